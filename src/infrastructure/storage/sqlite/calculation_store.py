"""
SQLite implementation of the calculation lookup.

The follow-up columns (status, sent_date, reminder_active,
next_reminder_date) change only together with a reminder, so their writers
take the connection of the reminder store's open transaction.
"""

from datetime import datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.calculation import Calculation, CalculationStatus
from src.core.entities.reminder import utcnow
from src.core.interfaces.storage import ICalculationStore
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)

_SELECT = """
    SELECT c.*, cl.name AS client_name
    FROM calculations c
    LEFT JOIN clients cl ON cl.id = c.client_id
"""


def _fmt(value: datetime | None) -> str | None:
    return value.isoformat(timespec="microseconds") if value else None


def _parse(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteCalculationStore(ICalculationStore):
    """SQLite implementation of calculation storage."""

    async def create(self, calculation: Calculation) -> Calculation:
        """Insert a calculation, registering its client name if given."""
        async with get_transaction() as conn:
            if calculation.client_id and calculation.client_name:
                await conn.execute(
                    "INSERT OR IGNORE INTO clients (id, name) VALUES (?, ?)",
                    (calculation.client_id, calculation.client_name),
                )
            await conn.execute(
                """
                INSERT INTO calculations (
                    id, user_id, client_id, name, status, sent_date,
                    reminder_active, next_reminder_date, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    calculation.id,
                    calculation.user_id,
                    calculation.client_id,
                    calculation.name,
                    calculation.status.value,
                    _fmt(calculation.sent_date),
                    int(calculation.reminder_active),
                    _fmt(calculation.next_reminder_date),
                    _fmt(calculation.created_at),
                    _fmt(calculation.updated_at),
                ),
            )
        logger.info("calculation_created", calculation_id=calculation.id)
        return calculation

    async def get_for_owner(self, calculation_id: str, user_id: str) -> Calculation | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"{_SELECT} WHERE c.id = ? AND c.user_id = ?",
                (calculation_id, user_id),
            )
            row = await cursor.fetchone()
            return self._row_to_entity(row) if row else None

    @staticmethod
    def _row_to_entity(row: aiosqlite.Row) -> Calculation:
        return Calculation(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            client_id=row["client_id"],
            client_name=row["client_name"],
            status=CalculationStatus(row["status"]),
            sent_date=_parse(row["sent_date"]),
            reminder_active=bool(row["reminder_active"]),
            next_reminder_date=_parse(row["next_reminder_date"]),
            created_at=_parse(row["created_at"]),
            updated_at=_parse(row["updated_at"]),
        )


async def mark_follow_up_scheduled(
    conn: aiosqlite.Connection,
    calculation_id: str,
    user_id: str,
    sent_date: datetime,
    next_reminder_date: datetime,
) -> bool:
    """Record that a proposal was sent; False if the owner has no such calculation."""
    cursor = await conn.execute(
        """
        UPDATE calculations SET
            status = ?, sent_date = ?, reminder_active = 1,
            next_reminder_date = ?, updated_at = ?
        WHERE id = ? AND user_id = ?
        """,
        (
            CalculationStatus.PROPOSAL_SENT.value,
            _fmt(sent_date),
            _fmt(next_reminder_date),
            _fmt(utcnow()),
            calculation_id,
            user_id,
        ),
    )
    return cursor.rowcount > 0


async def set_next_reminder_date(
    conn: aiosqlite.Connection,
    calculation_id: str,
    next_reminder_date: datetime | None,
) -> None:
    """Move the next follow-up date; None ends the follow-up."""
    await conn.execute(
        """
        UPDATE calculations SET
            next_reminder_date = ?, reminder_active = ?, updated_at = ?
        WHERE id = ?
        """,
        (
            _fmt(next_reminder_date),
            int(next_reminder_date is not None),
            _fmt(utcnow()),
            calculation_id,
        ),
    )
