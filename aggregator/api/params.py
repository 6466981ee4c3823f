"""
Lenient query-string parsing.

Unparsable or out-of-range values never fail a request: they are
dropped and the caller falls back to its default.
"""
from datetime import datetime, timezone
from typing import Optional

from aggregator.errors import BadRequestError
from aggregator.schemas import TransactionFilter

DATE_FORMAT = "%Y-%m-%d"


def parse_positive_int(raw: Optional[str]) -> Optional[int]:
    """Return ``raw`` as an int if it is a positive integer, else None."""
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def parse_non_negative_int(raw: Optional[str]) -> Optional[int]:
    """Return ``raw`` as an int if it is zero or positive, else None."""
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value >= 0 else None


def parse_date(raw: Optional[str]) -> Optional[datetime]:
    """Parse a YYYY-MM-DD string as midnight UTC of that day."""
    if not raw:
        return None
    try:
        parsed = datetime.strptime(raw, DATE_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc)


def build_transaction_filter(
    account_id: Optional[str] = None,
    type: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    limit: Optional[str] = None,
    offset: Optional[str] = None,
) -> TransactionFilter:
    """Build a TransactionFilter from raw query-string values."""
    return TransactionFilter(
        account_id=account_id or None,
        type=type or None,
        category=category or None,
        status=status or None,
        start_date=parse_date(start_date),
        end_date=parse_date(end_date),
        limit=parse_positive_int(limit) or 0,
        offset=parse_non_negative_int(offset) or 0,
    )


def require_id(value: str, resource: str) -> str:
    """Reject a blank path ID with BadRequestError."""
    if not value or not value.strip():
        raise BadRequestError(f"{resource} ID is required")
    return value
