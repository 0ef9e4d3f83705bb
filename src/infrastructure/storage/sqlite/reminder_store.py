"""
SQLite implementation of reminder storage.

Every status change is a guarded UPDATE (WHERE status ...) inside a
BEGIN IMMEDIATE transaction, so concurrent sweeps and user actions cannot
both transition the same row. The follow-up state of a related calculation
is written in the same transaction as the reminder change that drives it.
"""

from datetime import datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.reminder import (
    OPEN_STATUSES,
    RelatedType,
    Reminder,
    ReminderStatus,
    ReminderType,
    utcnow,
)
from src.core.entities.reminder_query import PageRequest, ReminderFilters
from src.core.exceptions import CalculationNotFoundError
from src.core.interfaces.storage import IReminderStore
from src.infrastructure.storage.sqlite.calculation_store import (
    mark_follow_up_scheduled,
    set_next_reminder_date,
)
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)

_OPEN = tuple(s.value for s in OPEN_STATUSES)


def _fmt(value: datetime) -> str:
    """Serialize a naive UTC datetime so lexical order is chronological."""
    return value.isoformat(timespec="microseconds")


def _where_owner(user_id: str, filters: ReminderFilters) -> tuple[str, list]:
    clauses = ["user_id = ?"]
    params: list = [user_id]
    if filters.status is not None:
        clauses.append("status = ?")
        params.append(filters.status.value)
    if filters.related_type is not None:
        clauses.append("related_type = ?")
        params.append(filters.related_type.value)
    if filters.reminder_type is not None:
        clauses.append("reminder_type = ?")
        params.append(filters.reminder_type.value)
    return " AND ".join(clauses), params


class SQLiteReminderStore(IReminderStore):
    """SQLite implementation of reminder storage."""

    async def create(self, reminder: Reminder) -> Reminder:
        """Create a new reminder."""
        async with get_transaction() as conn:
            created = await self._insert(conn, reminder)
        logger.info(
            "reminder_created",
            reminder_id=created.id,
            user_id=created.user_id,
            related_type=created.related_type.value,
            series_id=created.series_id,
        )
        return created

    async def create_follow_up(self, reminder: Reminder, sent_date: datetime) -> Reminder:
        """Insert the first occurrence and mark the calculation in one transaction."""
        async with get_transaction() as conn:
            marked = await mark_follow_up_scheduled(
                conn,
                reminder.related_id,
                reminder.user_id,
                sent_date,
                reminder.scheduled_date,
            )
            if not marked:
                raise CalculationNotFoundError(reminder.related_id)
            created = await self._insert(conn, reminder)
        logger.info(
            "follow_up_series_created",
            reminder_id=created.id,
            calculation_id=created.related_id,
            series_id=created.series_id,
        )
        return created

    async def get(self, reminder_id: int) -> Reminder | None:
        """Get reminder by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM reminders WHERE id = ?", (reminder_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_entity(row) if row else None

    async def get_for_owner(self, reminder_id: int, user_id: str) -> Reminder | None:
        """Get reminder by ID scoped to its owner."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM reminders WHERE id = ? AND user_id = ?",
                (reminder_id, user_id),
            )
            row = await cursor.fetchone()
            return self._row_to_entity(row) if row else None

    async def update_pending(self, reminder: Reminder) -> Reminder | None:
        """Persist user edits while the reminder is still PENDING."""
        reminder.updated_at = utcnow()
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE reminders SET
                    title = ?, description = ?, scheduled_date = ?,
                    frequency = ?, max_reminders = ?, updated_at = ?
                WHERE id = ? AND user_id = ? AND status = ?
                """,
                (
                    reminder.title,
                    reminder.description,
                    _fmt(reminder.scheduled_date),
                    reminder.frequency,
                    reminder.max_reminders,
                    _fmt(reminder.updated_at),
                    reminder.id,
                    reminder.user_id,
                    ReminderStatus.PENDING.value,
                ),
            )
            if cursor.rowcount == 0:
                return None
        logger.info("reminder_updated", reminder_id=reminder.id)
        return reminder

    async def close(
        self,
        reminder_id: int,
        user_id: str,
        target: ReminderStatus,
    ) -> Reminder | None:
        """Move an open reminder to a terminal status and close its series."""
        if target not in (ReminderStatus.COMPLETED, ReminderStatus.CANCELLED):
            raise ValueError(f"Not a terminal status: {target}")

        now = _fmt(utcnow())
        async with get_transaction() as conn:
            cursor = await conn.execute(
                f"""
                UPDATE reminders SET status = ?, updated_at = ?
                WHERE id = ? AND user_id = ?
                  AND status IN ({", ".join("?" for _ in _OPEN)})
                """,
                (target.value, now, reminder_id, user_id, *_OPEN),
            )
            if cursor.rowcount == 0:
                return None

            cursor = await conn.execute(
                "SELECT * FROM reminders WHERE id = ?", (reminder_id,)
            )
            reminder = self._row_to_entity(await cursor.fetchone())

            siblings_cancelled = 0
            if reminder.series_id is not None:
                cursor = await conn.execute(
                    """
                    UPDATE reminders SET status = ?, updated_at = ?
                    WHERE series_id = ? AND user_id = ? AND status = ? AND id != ?
                    """,
                    (
                        ReminderStatus.CANCELLED.value,
                        now,
                        reminder.series_id,
                        user_id,
                        ReminderStatus.PENDING.value,
                        reminder_id,
                    ),
                )
                siblings_cancelled = cursor.rowcount

            if reminder.related_type == RelatedType.CALCULATION:
                await set_next_reminder_date(conn, reminder.related_id, None)

        logger.info(
            "reminder_closed",
            reminder_id=reminder_id,
            status=target.value,
            series_id=reminder.series_id,
            siblings_cancelled=siblings_cancelled,
        )
        return reminder

    async def list_for_owner(
        self,
        user_id: str,
        filters: ReminderFilters,
        page: PageRequest,
    ) -> list[Reminder]:
        """List one page of an owner's reminders."""
        where, params = _where_owner(user_id, filters)
        # sort_by and sort_order come from closed enums, never raw input
        order = f"{page.sort_by.value} {page.sort_order.value.upper()}, id {page.sort_order.value.upper()}"
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM reminders WHERE {where} ORDER BY {order} LIMIT ? OFFSET ?",
                (*params, page.limit, page.offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_entity(row) for row in rows]

    async def count_for_owner(self, user_id: str, filters: ReminderFilters) -> int:
        where, params = _where_owner(user_id, filters)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT COUNT(*) FROM reminders WHERE {where}", params
            )
            row = await cursor.fetchone()
            return int(row[0]) if row else 0

    async def count_overdue(self, user_id: str, now: datetime) -> int:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT COUNT(*) FROM reminders
                WHERE user_id = ? AND status = ? AND scheduled_date < ?
                """,
                (user_id, ReminderStatus.PENDING.value, _fmt(now)),
            )
            row = await cursor.fetchone()
            return int(row[0]) if row else 0

    async def count_pending_by_type(self, user_id: str) -> dict[ReminderType, int]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT reminder_type, COUNT(*) AS n FROM reminders
                WHERE user_id = ? AND status = ?
                GROUP BY reminder_type
                """,
                (user_id, ReminderStatus.PENDING.value),
            )
            rows = await cursor.fetchall()
            return {ReminderType(row["reminder_type"]): int(row["n"]) for row in rows}

    async def list_upcoming(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        limit: int,
    ) -> list[Reminder]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM reminders
                WHERE user_id = ? AND status = ?
                  AND scheduled_date >= ? AND scheduled_date <= ?
                ORDER BY scheduled_date ASC, id ASC
                LIMIT ?
                """,
                (user_id, ReminderStatus.PENDING.value, _fmt(start), _fmt(end), limit),
            )
            rows = await cursor.fetchall()
            return [self._row_to_entity(row) for row in rows]

    async def max_id(self) -> int:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT COALESCE(MAX(id), 0) FROM reminders")
            row = await cursor.fetchone()
            return int(row[0]) if row else 0

    async def list_due(
        self,
        now: datetime,
        after_id: int,
        max_id: int,
        limit: int,
    ) -> list[Reminder]:
        """Keyset-paginated batch of due PENDING reminders across all users."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM reminders
                WHERE status = ? AND scheduled_date <= ?
                  AND id > ? AND id <= ?
                ORDER BY id ASC
                LIMIT ?
                """,
                (ReminderStatus.PENDING.value, _fmt(now), after_id, max_id, limit),
            )
            rows = await cursor.fetchall()
            return [self._row_to_entity(row) for row in rows]

    async def mark_sent(
        self, reminder_id: int, now: datetime
    ) -> tuple[Reminder, Reminder | None] | None:
        """Compare-and-set PENDING -> SENT, inserting the successor atomically."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "UPDATE reminders SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
                (
                    ReminderStatus.SENT.value,
                    _fmt(now),
                    reminder_id,
                    ReminderStatus.PENDING.value,
                ),
            )
            if cursor.rowcount == 0:
                return None

            cursor = await conn.execute(
                "SELECT * FROM reminders WHERE id = ?", (reminder_id,)
            )
            sent = self._row_to_entity(await cursor.fetchone())

            # Successor derives from the row this transaction just claimed
            successor = sent.next_occurrence(now)
            if successor is not None:
                successor = await self._insert(conn, successor)

            if sent.related_type == RelatedType.CALCULATION and sent.is_recurring:
                await set_next_reminder_date(
                    conn,
                    sent.related_id,
                    successor.scheduled_date if successor else None,
                )

        logger.info(
            "reminder_sent",
            reminder_id=sent.id,
            user_id=sent.user_id,
            occurrence=sent.occurrence,
            successor_id=successor.id if successor else None,
        )
        return sent, successor

    @staticmethod
    async def _insert(conn: aiosqlite.Connection, reminder: Reminder) -> Reminder:
        cursor = await conn.execute(
            """
            INSERT INTO reminders (
                user_id, related_id, related_type, reminder_type,
                title, description, scheduled_date,
                frequency, max_reminders, occurrence, series_id, status,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                reminder.user_id,
                reminder.related_id,
                reminder.related_type.value,
                reminder.reminder_type.value,
                reminder.title,
                reminder.description,
                _fmt(reminder.scheduled_date),
                reminder.frequency,
                reminder.max_reminders,
                reminder.occurrence,
                reminder.series_id,
                reminder.status.value,
                _fmt(reminder.created_at),
                _fmt(reminder.updated_at),
            ),
        )
        reminder.id = cursor.lastrowid
        return reminder

    @staticmethod
    def _row_to_entity(row: aiosqlite.Row) -> Reminder:
        """Convert a database row to a Reminder entity."""
        return Reminder(
            id=row["id"],
            user_id=row["user_id"],
            related_id=row["related_id"],
            related_type=RelatedType(row["related_type"]),
            reminder_type=ReminderType(row["reminder_type"]),
            title=row["title"],
            description=row["description"],
            scheduled_date=datetime.fromisoformat(row["scheduled_date"]),
            frequency=row["frequency"],
            max_reminders=row["max_reminders"],
            occurrence=row["occurrence"],
            series_id=row["series_id"],
            status=ReminderStatus(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
