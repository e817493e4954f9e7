"""SQLite implementation of consecutive counter storage."""

from datetime import datetime

import aiosqlite

from facturacr.config import get_logger
from facturacr.core.entities.sequence import Environment, SequenceScope
from facturacr.core.exceptions import DatabaseError, DuplicateConsecutiveError
from facturacr.core.interfaces.sequence_store import ISequenceStore
from facturacr.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)

_SCOPE_WHERE = "company_id = ? AND document_type = ? AND branch = ? AND terminal = ?"


def _base_key(scope: SequenceScope) -> tuple[str, str, str, str]:
    return (scope.company_id, scope.document_type.value, scope.branch, scope.terminal)


class SQLiteSequenceStore(ISequenceStore):
    """
    SQLite counter storage.

    Counters only move forward: set_counter refuses a value that is not
    greater than the stored one, so two writers can never both issue it.
    """

    async def get_counter(self, scope: SequenceScope) -> int:
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT value FROM sequence_counters WHERE {_SCOPE_WHERE} AND environment = ?",
                (*_base_key(scope), scope.environment.value),
            )
            row = await cursor.fetchone()
            return int(row["value"]) if row else 0

    async def set_counter(self, scope: SequenceScope, value: int) -> None:
        now = datetime.utcnow().isoformat()
        try:
            async with get_transaction(immediate=True) as conn:
                cursor = await conn.execute(
                    """
                    INSERT INTO sequence_counters (
                        company_id, document_type, branch, terminal,
                        environment, value, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT (company_id, document_type, branch, terminal, environment)
                    DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    WHERE excluded.value > sequence_counters.value
                    """,
                    (*_base_key(scope), scope.environment.value, value, now),
                )
                if cursor.rowcount == 0:
                    raise DuplicateConsecutiveError(scope.label, value)
        except aiosqlite.Error as e:
            raise DatabaseError("set_counter", str(e)) from e

    async def reset_counter(self, scope: SequenceScope) -> None:
        now = datetime.utcnow().isoformat()
        async with get_transaction(immediate=True) as conn:
            await conn.execute(
                """
                INSERT INTO sequence_counters (
                    company_id, document_type, branch, terminal,
                    environment, value, updated_at
                ) VALUES (?, ?, ?, ?, ?, 0, ?)
                ON CONFLICT (company_id, document_type, branch, terminal, environment)
                DO UPDATE SET value = 0, updated_at = excluded.updated_at
                """,
                (*_base_key(scope), scope.environment.value, now),
            )
        logger.warning("sequence_counter_reset", scope=scope.label)

    async def get_active_environment(self, scope: SequenceScope) -> Environment | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT environment FROM sequence_environments WHERE {_SCOPE_WHERE}",
                _base_key(scope),
            )
            row = await cursor.fetchone()
            return Environment(row["environment"]) if row else None

    async def set_active_environment(self, scope: SequenceScope) -> None:
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO sequence_environments (
                    company_id, document_type, branch, terminal, environment, switched_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (company_id, document_type, branch, terminal)
                DO UPDATE SET environment = excluded.environment,
                              switched_at = excluded.switched_at
                """,
                (*_base_key(scope), scope.environment.value, datetime.utcnow().isoformat()),
            )
