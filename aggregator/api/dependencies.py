"""Dependency injection for the API routes."""
from fastapi import Request

from aggregator.services import AccountStore, TransactionStore


def get_account_store(request: Request) -> AccountStore:
    """Return the account store built by the application factory."""
    return request.app.state.account_store


def get_transaction_store(request: Request) -> TransactionStore:
    """Return the transaction store built by the application factory."""
    return request.app.state.transaction_store
