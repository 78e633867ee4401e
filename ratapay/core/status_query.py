"""Status lookups for client polling."""
import structlog

from ratapay.database.models import TransactionStatus
from ratapay.database.store import StoreError, TransactionStore
from ratapay.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)


class StatusQueryService:
    """
    Answers status polls.

    An untracked id reads as ``pending`` so that a client polling right after
    creation sees a stable, non-final state.
    """

    def __init__(self, store: TransactionStore) -> None:
        self.store = store

    async def get_status(self, transaction_id: str) -> str:
        """Current status for ``transaction_id``; never raises."""
        try:
            record = await self.store.find(transaction_id)
        except StoreError as e:
            logger.error("status_query_failed", transaction_id=transaction_id, error=str(e))
            metrics.record_status_query("defaulted")
            return TransactionStatus.PENDING.value

        if record is None:
            metrics.record_status_query("defaulted")
            return TransactionStatus.PENDING.value

        metrics.record_status_query("found")
        return record.status.value
