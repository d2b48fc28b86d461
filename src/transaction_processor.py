import logging
from typing import Optional

from models import TransactionRecord, TransitionResult, ProcessingStats
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Routes transaction records to the owning client's account.
    Enforces the lockout: records for a locked account are skipped entirely.
    Rejected transitions are logged and counted, never raised.
    """

    def __init__(self, state: StateManager, stats: Optional[ProcessingStats] = None):
        self._state = state
        self._stats = stats if stats is not None else ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_transaction(self, record: TransactionRecord) -> Optional[TransitionResult]:
        """
        Process a single transaction record.

        Returns:
            None: Account is locked, record skipped without touching state
            SUCCESS: Transition applied
            any other TransitionResult: Transition rejected, state unchanged
        """
        account = self._state.get_or_create_account(record.client_id)

        if account.locked:
            logger.info(f"Skipping {record}: client {record.client_id} is locked")
            self._stats.record_locked_skip()
            return None

        result = account.apply(record)

        if result.ok:
            self._stats.record_success()
        else:
            logger.warning(
                f"{record.transaction_type.value.capitalize()} tx {record.transaction_id} "
                f"for client {record.client_id} rejected: {result.value}"
            )
            self._stats.record_rejection(result)
        return result
