"""Storage infrastructure implementations."""

from facturacr.infrastructure.storage.sqlite import (
    SQLiteCompanyStore,
    SQLiteRecordStore,
    SQLiteSequenceStore,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)

__all__ = [
    # SQLite stores
    "SQLiteSequenceStore",
    "SQLiteRecordStore",
    "SQLiteCompanyStore",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
]
