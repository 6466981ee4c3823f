"""Simulated re-sync of an account's balance from an upstream bank."""
import random
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

from aggregator import metrics
from aggregator.logging import get_logger
from aggregator.schemas import Account, AccountType, RefreshResult

logger = get_logger(__name__)

REFRESH_SUCCESS_MESSAGE = "account data refreshed successfully"

# Account types whose balance never drops below zero after a refresh
NON_NEGATIVE_TYPES = frozenset({AccountType.CHECKING, AccountType.SAVINGS})

# Delta bound, in cents, on either side of zero
MAX_DELTA_CENTS = 100


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RefreshSimulator:
    """
    Stands in for a call to the account's bank.

    Each refresh nudges the balance by a random amount in
    [-1.00, +1.00], stamps ``last_updated`` and, for checking and
    savings accounts, clamps the balance at zero.

    The random source, clock and simulated latency are all injectable so
    tests can pin the delta and skip the sleep.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        delay_seconds: float = 0.0,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the simulator.

        Args:
            rng: Random source for the balance delta (defaults to a new Random)
            delay_seconds: Simulated upstream latency per refresh
            clock: Returns the timestamp stored as ``last_updated``
        """
        self.rng = rng or random.Random()
        self.delay_seconds = delay_seconds
        self.clock = clock

    def next_delta(self) -> Decimal:
        """Draw a balance delta in whole cents within the allowed bound."""
        cents = self.rng.randint(-MAX_DELTA_CENTS, MAX_DELTA_CENTS)
        return Decimal(cents) / Decimal(100)

    def simulate_latency(self) -> None:
        if self.delay_seconds > 0:
            time.sleep(self.delay_seconds)

    def apply(self, account: Account) -> RefreshResult:
        """
        Refresh ``account`` in place.

        The caller must hold the owning store's write lock.

        Args:
            account: The stored account record to mutate

        Returns:
            RefreshResult describing the new balance
        """
        self.simulate_latency()

        delta = self.next_delta()
        metrics.record_balance_delta(float(delta))
        balance = account.balance + delta
        clamped = False
        if account.account_type in NON_NEGATIVE_TYPES and balance < 0:
            balance = Decimal("0.00")
            clamped = True

        account.balance = balance
        account.last_updated = self.clock()

        logger.info(
            "account_balance_updated",
            account_id=account.id,
            delta=float(delta),
            new_balance=float(balance),
            clamped=clamped,
        )

        return RefreshResult(
            account_id=account.id,
            success=True,
            message=REFRESH_SUCCESS_MESSAGE,
            last_updated=account.last_updated,
            new_balance=account.balance,
        )
