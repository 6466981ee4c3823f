"""
Filtering and pagination for transaction queries.

These are pure functions over a sequence of transactions: nothing here
touches store state or locking, so the same inputs always produce the
same page.
"""
import math
from typing import Iterable, Optional

from aggregator.schemas import Transaction, TransactionFilter, TransactionPage

DEFAULT_LIMIT = 50


def matches(transaction: Transaction, criteria: TransactionFilter) -> bool:
    """
    Check a transaction against every set field of a filter.

    String fields are compared exactly (case-sensitive). Date bounds are
    inclusive on both ends. Unset fields impose no constraint.
    """
    if criteria.account_id and transaction.account_id != criteria.account_id:
        return False
    if criteria.type and transaction.type != criteria.type:
        return False
    if criteria.category and transaction.category != criteria.category:
        return False
    if criteria.status and transaction.status != criteria.status:
        return False
    if criteria.start_date is not None and transaction.date < criteria.start_date:
        return False
    if criteria.end_date is not None and transaction.date > criteria.end_date:
        return False
    return True


def apply_filters(
    transactions: Iterable[Transaction], criteria: Optional[TransactionFilter]
) -> list[Transaction]:
    """Keep the transactions matching all predicates of ``criteria``."""
    if criteria is None:
        return list(transactions)
    return [txn for txn in transactions if matches(txn, criteria)]


def sort_newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    # sorted() is stable, so equal dates keep their input order
    return sorted(transactions, key=lambda txn: txn.date, reverse=True)


def effective_limit(limit: Optional[int], default: int = DEFAULT_LIMIT) -> int:
    if limit is None or limit <= 0:
        return default
    return limit


def effective_offset(offset: Optional[int]) -> int:
    if offset is None or offset < 0:
        return 0
    return offset


def paginate(
    transactions: list[Transaction],
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    default_limit: int = DEFAULT_LIMIT,
) -> TransactionPage:
    """
    Slice an already filtered and sorted list into one page.

    Args:
        transactions: The full filtered result, in display order
        limit: Requested page size; unset or non-positive means default_limit
        offset: Requested start index; unset or negative means 0
        default_limit: Page size used when limit is not usable

    Returns:
        TransactionPage whose ``total`` is the pre-pagination count
    """
    limit = effective_limit(limit, default_limit)
    offset = effective_offset(offset)
    total = len(transactions)

    return TransactionPage(
        items=transactions[offset:offset + limit],
        total=total,
        limit=limit,
        offset=offset,
        pages=math.ceil(total / limit),
    )


def run_query(
    transactions: Iterable[Transaction],
    criteria: Optional[TransactionFilter],
    default_limit: int = DEFAULT_LIMIT,
) -> TransactionPage:
    """Filter, sort by date descending, then paginate."""
    filtered = sort_newest_first(apply_filters(transactions, criteria))
    if criteria is None:
        return paginate(filtered, default_limit=default_limit)
    return paginate(
        filtered,
        limit=criteria.limit,
        offset=criteria.offset,
        default_limit=default_limit,
    )
