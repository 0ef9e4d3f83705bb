"""
Periodic due-sweep trigger.

Runs the due-sweep at fixed local hours (by default 09:00, 13:00 and 17:00
Moscow time) from an asyncio task owned by the FastAPI lifespan.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.config import get_logger, get_settings
from src.core.exceptions import ConfigurationError

logger = get_logger(__name__)


def load_timezone(name: str) -> ZoneInfo:
    """Resolve an IANA zone name from settings."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown scheduler timezone: {name!r}") from e


def next_run_at(now: datetime, run_hours: Sequence[int], tz: ZoneInfo) -> datetime:
    """
    First run slot strictly after now.

    Args:
        now: Current time; naive values are taken as UTC
        run_hours: Local hours (0-23) at which the sweep runs
        tz: Timezone the hours are expressed in

    Returns:
        Aware datetime of the next slot in tz
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    local = now.astimezone(tz)

    for day_offset in (0, 1):
        day = (local + timedelta(days=day_offset)).date()
        for hour in sorted(run_hours):
            slot = datetime(day.year, day.month, day.day, hour, tzinfo=tz)
            if slot > local:
                return slot

    raise ValueError("run_hours must contain at least one hour")


def seconds_until_next_run(
    now: datetime,
    run_hours: Sequence[int] | None = None,
    tz: ZoneInfo | None = None,
) -> float:
    """Seconds from now until the next run slot (defaults from settings)."""
    if run_hours is None or tz is None:
        settings = get_settings().scheduler
        run_hours = run_hours if run_hours is not None else settings.run_hours
        tz = tz or load_timezone(settings.timezone)

    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return (next_run_at(now, run_hours, tz) - now).total_seconds()


class ReminderScheduler:
    """Sleeps until each run slot and invokes the sweep."""

    def __init__(
        self,
        sweep: Callable[[], Awaitable[object]],
        run_hours: Sequence[int] | None = None,
        timezone: str | None = None,
    ):
        settings = get_settings().scheduler
        self._sweep = sweep
        self._run_hours = list(run_hours) if run_hours is not None else settings.run_hours
        self._tz = load_timezone(timezone or settings.timezone)
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the scheduler loop."""
        if self.running:
            logger.warning("reminder_scheduler_already_running")
            return

        self._task = asyncio.create_task(self._loop(), name="reminder-scheduler")
        logger.info(
            "reminder_scheduler_started",
            run_hours=self._run_hours,
            timezone=str(self._tz),
        )

    async def stop(self) -> None:
        """Cancel the loop and wait for it to exit."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("reminder_scheduler_stopped")

    async def run_once(self) -> None:
        """Invoke one sweep; failures are logged and do not stop the loop."""
        try:
            await self._sweep()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("reminder_scheduler_sweep_failed", error=str(e))

    async def _loop(self) -> None:
        while True:
            delay = seconds_until_next_run(datetime.now(UTC), self._run_hours, self._tz)
            logger.debug("reminder_scheduler_sleeping", seconds=round(delay))
            await asyncio.sleep(delay)
            await self.run_once()
