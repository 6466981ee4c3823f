"""Fixed demo data loaded into the stores at startup."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from aggregator.schemas import (
    Account, AccountType,
    Transaction, TransactionStatus, TransactionType,
)


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def seed_accounts(now: Optional[datetime] = None) -> list[Account]:
    """Return the six demo accounts, timestamped relative to ``now``."""
    now = _now(now)
    rows = [
        ("acc_001", "Primary Checking", "Chase Bank", AccountType.CHECKING,
         "2500.75", timedelta(hours=2)),
        ("acc_002", "High Yield Savings", "Ally Bank", AccountType.SAVINGS,
         "15000.00", timedelta(hours=1)),
        ("acc_003", "Credit Card", "Capital One", AccountType.CREDIT,
         "-1200.50", timedelta(minutes=30)),
        ("acc_004", "Investment Account", "Fidelity", AccountType.INVESTMENT,
         "45000.25", timedelta(minutes=15)),
        ("acc_005", "Business Checking", "Wells Fargo", AccountType.CHECKING,
         "8500.00", timedelta(minutes=45)),
        ("acc_006", "Emergency Fund", "Marcus by Goldman Sachs", AccountType.SAVINGS,
         "25000.00", timedelta(hours=1)),
    ]
    return [
        Account(
            id=account_id,
            name=name,
            bank=bank,
            account_type=account_type,
            balance=Decimal(balance),
            currency="USD",
            last_updated=now - age,
            is_active=True,
        )
        for account_id, name, bank, account_type, balance, age in rows
    ]


def seed_transactions(now: Optional[datetime] = None) -> list[Transaction]:
    """Return the ten demo transactions, dated relative to ``now``."""
    now = _now(now)
    debit, credit = TransactionType.DEBIT, TransactionType.CREDIT
    rows = [
        ("txn_001", "acc_001", "-45.50", debit, "food",
         "Grocery Store Purchase", 2, "TXN001234567"),
        ("txn_002", "acc_001", "5000.00", credit, "salary",
         "Monthly Salary", 1, "SAL001234567"),
        ("txn_003", "acc_003", "-120.00", debit, "utilities",
         "Electric Bill", 3, "UTL001234567"),
        ("txn_004", "acc_002", "500.00", credit, "transfer",
         "Transfer from Checking", 4, "TRF001234567"),
        ("txn_005", "acc_001", "-25.00", debit, "transportation",
         "Gas Station", 5, "GAS001234567"),
        ("txn_006", "acc_004", "150.00", credit, "investment",
         "Dividend Payment", 6, "DIV001234567"),
        ("txn_007", "acc_001", "-80.00", debit, "entertainment",
         "Movie Theater", 24, "ENT001234567"),
        ("txn_008", "acc_005", "2500.00", credit, "business",
         "Client Payment", 48, "BIZ001234567"),
        ("txn_009", "acc_001", "-200.00", debit, "healthcare",
         "Doctor Visit", 72, "HLT001234567"),
        ("txn_010", "acc_002", "1000.00", credit, "transfer",
         "Emergency Fund Contribution", 96, "EMG001234567"),
    ]
    return [
        Transaction(
            id=txn_id,
            account_id=account_id,
            amount=Decimal(amount),
            currency="USD",
            type=txn_type,
            category=category,
            description=description,
            date=now - timedelta(hours=hours_ago),
            status=TransactionStatus.COMPLETED,
            reference=reference,
        )
        for txn_id, account_id, amount, txn_type, category, description, hours_ago, reference in rows
    ]
