"""In-memory account store."""
import time
from typing import Iterable, Optional

from aggregator import metrics
from aggregator.errors import NotFoundError
from aggregator.logging import TimedOperation, get_logger
from aggregator.schemas import Account, RefreshResult
from aggregator.services.refresh import RefreshSimulator
from aggregator.services.rwlock import ReadWriteLock
from aggregator.services.seed import seed_accounts

logger = get_logger(__name__)


class AccountStore:
    """
    Holds every account for the lifetime of the process.

    Reads take the shared lock and return copies, so callers never see
    or cause a half-applied refresh. Refreshes take the exclusive lock,
    which serializes them process-wide.
    """

    def __init__(
        self,
        accounts: Optional[Iterable[Account]] = None,
        simulator: Optional[RefreshSimulator] = None,
    ):
        """
        Initialize the store.

        Args:
            accounts: Initial records (defaults to the demo seed set)
            simulator: Refresh simulator (defaults to a new RefreshSimulator)
        """
        if accounts is None:
            accounts = seed_accounts()
        self._accounts: dict[str, Account] = {}
        for account in accounts:
            if account.id in self._accounts:
                raise ValueError(f"duplicate account id: {account.id}")
            self._accounts[account.id] = account.model_copy()
        self._lock = ReadWriteLock()
        self.simulator = simulator or RefreshSimulator()

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._accounts)

    def get_all(self) -> list[Account]:
        """Return a snapshot of every account, in insertion order."""
        with self._lock.read_locked():
            return [account.model_copy() for account in self._accounts.values()]

    def get_by_id(self, account_id: str) -> Account:
        """
        Look up one account by exact ID.

        Raises:
            NotFoundError: If no account has that ID
        """
        with self._lock.read_locked():
            account = self._accounts.get(account_id)
            if account is None:
                metrics.record_not_found("account")
                raise NotFoundError("account", account_id)
            return account.model_copy()

    def refresh(self, account_id: str) -> RefreshResult:
        """
        Re-sync an account's balance from its (simulated) bank.

        Args:
            account_id: The account to refresh

        Returns:
            RefreshResult with the new balance and timestamp

        Raises:
            NotFoundError: If no account has that ID
        """
        start_time = time.perf_counter()
        with TimedOperation("account_refresh", logger, account_id=account_id):
            with self._lock.write_locked():
                account = self._accounts.get(account_id)
                if account is None:
                    metrics.record_refresh(
                        refreshed=False,
                        latency_seconds=time.perf_counter() - start_time,
                    )
                    raise NotFoundError("account", account_id)
                result = self.simulator.apply(account)

        metrics.record_refresh(refreshed=True, latency_seconds=time.perf_counter() - start_time)
        return result
