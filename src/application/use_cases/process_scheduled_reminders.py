"""
Process Scheduled Reminders Use Case.

System-wide due-sweep: marks every due PENDING reminder SENT exactly once
and creates the next occurrence of recurring series.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from src.config import get_logger, get_settings
from src.core.entities.reminder import Reminder, utcnow
from src.core.interfaces.storage import IReminderStore

logger = get_logger(__name__)


@dataclass
class SweepResult:
    """Result of one due-sweep."""

    processed: int = 0
    sent: int = 0
    next_occurrences_created: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[dict] = field(default_factory=list)
    started_at: datetime | None = None
    duration_ms: int = 0


class ProcessScheduledRemindersUseCase:
    """
    Use case for firing due reminders.

    Due rows are read in keyset batches bounded by the highest ID present at
    sweep start, so successors inserted by this sweep wait for the next one.
    Each row is claimed by a compare-and-set in the store; a row claimed by a
    concurrent sweep or closed by its owner is counted as skipped. Each item
    ends up counted once, as sent, skipped or failed; a failed claim leaves
    the row PENDING for the next sweep.
    """

    def __init__(
        self,
        reminder_store: IReminderStore | None = None,
        batch_size: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._rem_store = reminder_store
        self._batch_size = batch_size or get_settings().reminders.sweep_batch_size
        self._clock = clock

    async def _get_rem_store(self) -> IReminderStore:
        if self._rem_store is None:
            from src.infrastructure.storage.sqlite import get_reminder_store
            self._rem_store = await get_reminder_store()
        return self._rem_store

    async def execute(self) -> SweepResult:
        """
        Run one sweep over all users.

        Returns:
            SweepResult with counts and per-item errors.
        """
        rem_store = await self._get_rem_store()
        start = time.monotonic()
        now = self._clock()
        result = SweepResult(started_at=now)

        upper_id = await rem_store.max_id()
        after_id = 0
        logger.info("reminder_sweep_started", now=now.isoformat(), max_id=upper_id)

        while True:
            batch = await rem_store.list_due(now, after_id, upper_id, self._batch_size)
            if not batch:
                break

            for reminder in batch:
                result.processed += 1
                try:
                    await self._fire(rem_store, reminder, now, result)
                except Exception as e:
                    result.failed += 1
                    result.errors.append({"reminder_id": reminder.id, "error": str(e)})
                    logger.error(
                        "reminder_sweep_item_failed",
                        reminder_id=reminder.id,
                        error=str(e),
                    )

            after_id = batch[-1].id
            if len(batch) < self._batch_size:
                break

        result.duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "reminder_sweep_completed",
            processed=result.processed,
            sent=result.sent,
            next_occurrences_created=result.next_occurrences_created,
            skipped=result.skipped,
            failed=result.failed,
            duration_ms=result.duration_ms,
        )
        return result

    async def _fire(
        self,
        rem_store: IReminderStore,
        reminder: Reminder,
        now: datetime,
        result: SweepResult,
    ) -> None:
        outcome = await rem_store.mark_sent(reminder.id, now)
        if outcome is None:
            result.skipped += 1
            logger.debug("reminder_sweep_item_skipped", reminder_id=reminder.id)
            return

        sent, successor = outcome
        result.sent += 1
        if successor is not None:
            result.next_occurrences_created += 1
