"""Pydantic schemas for domain records and response envelopes."""
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

# Decimals go over the wire as JSON numbers, not strings
Money = Annotated[
    Decimal,
    PlainSerializer(lambda value: float(value), return_type=float, when_used="json"),
]

T = TypeVar("T")


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"


class TransactionType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"
    TRANSFER = "transfer"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Account(BaseModel):
    """A bank account as held by the account store."""
    id: str
    name: str
    bank: str
    account_type: AccountType
    balance: Money
    currency: str = "USD"
    last_updated: datetime
    is_active: bool = True


class Transaction(BaseModel):
    """An immutable financial movement tied to an account."""
    model_config = ConfigDict(frozen=True)

    id: str
    account_id: str
    amount: Money = Field(..., description="Signed amount; negative is an outflow")
    currency: str = "USD"
    type: TransactionType
    category: str
    description: str
    date: datetime
    status: TransactionStatus
    reference: Optional[str] = None


class TransactionFilter(BaseModel):
    """Per-request query descriptor for the transaction store."""
    account_id: Optional[str] = None
    type: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    limit: int = 0
    offset: int = 0

    @field_validator("start_date", "end_date")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Stored dates are UTC-aware; a naive bound is read as UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class RefreshResult(BaseModel):
    """Outcome of a simulated account refresh."""
    account_id: str
    success: bool
    message: str
    last_updated: datetime
    new_balance: Optional[Money] = None


class PaginationMeta(BaseModel):
    total: int
    limit: int
    offset: int
    pages: int


class TransactionPage(BaseModel):
    """A filtered, sorted and sliced set of transactions."""
    items: list[Transaction]
    total: int
    limit: int
    offset: int
    pages: int

    @property
    def meta(self) -> PaginationMeta:
        return PaginationMeta(
            total=self.total,
            limit=self.limit,
            offset=self.offset,
            pages=self.pages,
        )


class APIResponse(BaseModel, Generic[T]):
    """Envelope used by every non-paginated endpoint."""
    success: bool
    message: Optional[str] = None
    data: Optional[T] = None
    error: Optional[str] = None


class PaginatedResponse(BaseModel, Generic[T]):
    """Envelope for list endpoints that report pagination metadata."""
    success: bool
    data: T
    meta: PaginationMeta


class HealthResponse(BaseModel):
    status: str
    timestamp: str
