"""Service layer for the Financial Aggregator API."""
from aggregator.services.accounts import AccountStore
from aggregator.services.refresh import RefreshSimulator
from aggregator.services.rwlock import ReadWriteLock
from aggregator.services.transactions import TransactionStore

__all__ = ["AccountStore", "RefreshSimulator", "ReadWriteLock", "TransactionStore"]
