"""In-memory transaction store."""
from typing import Iterable, Optional

from aggregator import metrics
from aggregator.errors import NotFoundError
from aggregator.logging import get_logger
from aggregator.schemas import Transaction, TransactionFilter, TransactionPage
from aggregator.services.filtering import DEFAULT_LIMIT, run_query
from aggregator.services.rwlock import ReadWriteLock
from aggregator.services.seed import seed_transactions

logger = get_logger(__name__)


class TransactionStore:
    """
    Holds every transaction for the lifetime of the process.

    Transactions are frozen models and the store offers no way to change
    them, but the map is still guarded by a reader/writer lock so a
    future writer cannot race with in-flight queries.
    """

    def __init__(
        self,
        transactions: Optional[Iterable[Transaction]] = None,
        default_limit: int = DEFAULT_LIMIT,
    ):
        """
        Initialize the store.

        Args:
            transactions: Initial records (defaults to the demo seed set)
            default_limit: Page size applied when a query has no usable limit
        """
        if transactions is None:
            transactions = seed_transactions()
        self._transactions: dict[str, Transaction] = {}
        for transaction in transactions:
            if transaction.id in self._transactions:
                raise ValueError(f"duplicate transaction id: {transaction.id}")
            self._transactions[transaction.id] = transaction
        self._lock = ReadWriteLock()
        self.default_limit = default_limit

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._transactions)

    def query(self, criteria: Optional[TransactionFilter] = None) -> TransactionPage:
        """
        Filter, sort (newest first) and paginate the stored transactions.

        Args:
            criteria: Filter and paging parameters; None means no filter
                and the default page

        Returns:
            TransactionPage with the requested slice and pre-pagination total
        """
        with self._lock.read_locked():
            snapshot = list(self._transactions.values())

        page = run_query(snapshot, criteria, default_limit=self.default_limit)
        metrics.record_transaction_query(page.total)

        logger.debug(
            "transactions_queried",
            total=page.total,
            returned=len(page.items),
            limit=page.limit,
            offset=page.offset,
        )
        return page

    def get_all(self, criteria: Optional[TransactionFilter] = None) -> list[Transaction]:
        """Return the page of transactions selected by ``criteria``."""
        return self.query(criteria).items

    def get_by_id(self, transaction_id: str) -> Transaction:
        """
        Look up one transaction by exact ID.

        Raises:
            NotFoundError: If no transaction has that ID
        """
        with self._lock.read_locked():
            transaction = self._transactions.get(transaction_id)
        if transaction is None:
            metrics.record_not_found("transaction")
            raise NotFoundError("transaction", transaction_id)
        return transaction

    def get_by_account(self, account_id: str, limit: int = DEFAULT_LIMIT) -> list[Transaction]:
        """
        Return the most recent transactions of one account.

        An unknown account simply has no transactions; this never raises.
        """
        return self.get_all(TransactionFilter(account_id=account_id, limit=limit, offset=0))
