"""
kitchenledger.storage
~~~~~~~~~~~~~~~~~~~~~
Pluggable persistence layer for monetary records.

Default backend: SQLite at ``~/.kitchenledger/default/kitchenledger.db``.
The tax ledger never reads storage itself; callers load a snapshot and
pass it in.

Usage::

    from kitchenledger.storage import get_repository

    with get_repository() as repo:
        repo.save(record)
        for r in repo.list_all():
            print(r.date, r.gross_amount)
"""

from .base import RecordRepository
from .sqlite import SQLiteRepository


def get_repository(db_path=None) -> SQLiteRepository:
    """Return the default SQLite repository, optionally at a custom path."""
    return SQLiteRepository(db_path=db_path)


__all__ = ["RecordRepository", "SQLiteRepository", "get_repository"]
