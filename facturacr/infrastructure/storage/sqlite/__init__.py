"""SQLite storage implementations."""

from facturacr.infrastructure.storage.sqlite.company_store import SQLiteCompanyStore
from facturacr.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from facturacr.infrastructure.storage.sqlite.record_store import SQLiteRecordStore
from facturacr.infrastructure.storage.sqlite.sequence_store import SQLiteSequenceStore

# Singleton instances
_sequence_store: SQLiteSequenceStore | None = None
_record_store: SQLiteRecordStore | None = None
_company_store: SQLiteCompanyStore | None = None


async def get_sequence_store() -> SQLiteSequenceStore:
    """Get singleton sequence store instance."""
    global _sequence_store
    if _sequence_store is None:
        _sequence_store = SQLiteSequenceStore()
    return _sequence_store


async def get_record_store() -> SQLiteRecordStore:
    """Get singleton record store instance."""
    global _record_store
    if _record_store is None:
        _record_store = SQLiteRecordStore()
    return _record_store


async def get_company_store() -> SQLiteCompanyStore:
    """Get singleton company store instance."""
    global _company_store
    if _company_store is None:
        _company_store = SQLiteCompanyStore()
    return _company_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Store classes
    "SQLiteSequenceStore",
    "SQLiteRecordStore",
    "SQLiteCompanyStore",
    # Factory functions
    "get_sequence_store",
    "get_record_store",
    "get_company_store",
]
