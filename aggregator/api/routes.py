"""API route handlers for accounts and transactions."""
from typing import Optional

from fastapi import APIRouter, Depends, Response

from aggregator.api.dependencies import get_account_store, get_transaction_store
from aggregator.api.params import build_transaction_filter, parse_positive_int, require_id
from aggregator.logging import get_logger, set_account_context
from aggregator.schemas import (
    Account, APIResponse,
    PaginatedResponse,
    RefreshResult,
    Transaction, TransactionFilter,
)
from aggregator.services import AccountStore, TransactionStore

logger = get_logger(__name__)

# Route handlers are plain functions: FastAPI runs them on its worker
# thread pool, which is what the stores' thread locks expect.
router = APIRouter(prefix="/api")


@router.get(
    "/accounts",
    response_model=APIResponse[list[Account]],
    response_model_exclude_none=True,
    tags=["accounts"],
)
def list_accounts(store: AccountStore = Depends(get_account_store)):
    """List every linked account."""
    accounts = store.get_all()
    logger.info("accounts_listed", account_count=len(accounts))
    return APIResponse(
        success=True,
        message="Accounts retrieved successfully",
        data=accounts,
    )


@router.get(
    "/accounts/{account_id}",
    response_model=APIResponse[Account],
    response_model_exclude_none=True,
    tags=["accounts"],
)
def get_account(account_id: str, store: AccountStore = Depends(get_account_store)):
    """Fetch one account by ID; 404 when it does not exist."""
    require_id(account_id, "Account")
    set_account_context(account_id)

    account = store.get_by_id(account_id)
    return APIResponse(
        success=True,
        message="Account retrieved successfully",
        data=account,
    )


@router.post(
    "/accounts/{account_id}/refresh",
    response_model=APIResponse[RefreshResult],
    response_model_exclude_none=True,
    tags=["accounts"],
)
def refresh_account(
    account_id: str,
    response: Response,
    store: AccountStore = Depends(get_account_store),
):
    """
    Re-sync an account's balance from its bank.

    The upstream call is simulated: the balance moves by at most one unit
    of currency and ``last_updated`` is set to now.
    """
    require_id(account_id, "Account")
    set_account_context(account_id)

    result = store.refresh(account_id)
    if not result.success:
        response.status_code = 400

    return APIResponse(
        success=result.success,
        message=result.message,
        data=result,
    )


@router.get(
    "/accounts/{account_id}/transactions",
    response_model=APIResponse[list[Transaction]],
    response_model_exclude_none=True,
    tags=["accounts", "transactions"],
)
def list_account_transactions(
    account_id: str,
    limit: Optional[str] = None,
    store: TransactionStore = Depends(get_transaction_store),
):
    """
    List the most recent transactions of one account.

    An unknown account yields an empty list rather than a 404.
    """
    require_id(account_id, "Account")
    set_account_context(account_id)

    effective_limit = parse_positive_int(limit) or store.default_limit
    transactions = store.get_by_account(account_id, effective_limit)

    logger.info(
        "account_transactions_listed",
        limit=effective_limit,
        transaction_count=len(transactions),
    )
    return APIResponse(
        success=True,
        message="Account transactions retrieved successfully",
        data=transactions,
    )


@router.get(
    "/transactions",
    response_model=PaginatedResponse[list[Transaction]],
    response_model_exclude_none=True,
    tags=["transactions"],
)
def list_transactions(
    criteria: TransactionFilter = Depends(build_transaction_filter),
    store: TransactionStore = Depends(get_transaction_store),
):
    """
    Query transactions with optional filters, newest first.

    Supported filters: account_id, type, category, status, start_date and
    end_date (YYYY-MM-DD), plus limit/offset paging. Values that cannot be
    parsed are ignored.
    """
    page = store.query(criteria)

    logger.info(
        "transactions_listed",
        total=page.total,
        returned=len(page.items),
        limit=page.limit,
        offset=page.offset,
    )
    return PaginatedResponse(success=True, data=page.items, meta=page.meta)


@router.get(
    "/transactions/{transaction_id}",
    response_model=APIResponse[Transaction],
    response_model_exclude_none=True,
    tags=["transactions"],
)
def get_transaction(
    transaction_id: str,
    store: TransactionStore = Depends(get_transaction_store),
):
    """Fetch one transaction by ID; 404 when it does not exist."""
    require_id(transaction_id, "Transaction")

    transaction = store.get_by_id(transaction_id)
    return APIResponse(
        success=True,
        message="Transaction retrieved successfully",
        data=transaction,
    )
