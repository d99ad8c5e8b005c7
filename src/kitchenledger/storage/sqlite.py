"""
kitchenledger.storage.sqlite
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
SQLite-backed record repository.

Schema
------
records — one row per MonetaryRecord. Amounts are stored as TEXT so the
          exact ``Decimal`` survives the round trip; dates as ISO strings,
          so ``BETWEEN`` on them is a calendar comparison.

Default path: ``~/.kitchenledger/<project>/kitchenledger.db``, where the
project comes from ``KITCHENLEDGER_PROJECT`` (or ``default``).
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Iterable

from ..exceptions import DuplicateRecordError, InvalidRecordError, LedgerError
from ..models import MonetaryRecord, RecordKind
from .project import resolve_project

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_SCHEMA_VERSION = 1


class SQLiteRepository:
    """Persistent SQLite storage implementing ``RecordRepository``."""

    def __init__(self, db_path: Path | str | None = None) -> None:
        # KITCHENLEDGER_PROJECT is read at open time, not at import.
        self.db_path = Path(db_path) if db_path else resolve_project().db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> "SQLiteRepository":
        return self

    def __exit__(self, *_) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def _init_schema(self) -> None:
        with self._lock:
            version = self._conn.execute("PRAGMA user_version").fetchone()[0]
            if version == 0:
                self._create_tables()
                self._conn.execute(f"PRAGMA user_version = {_SCHEMA_VERSION}")
                self._conn.commit()

    def _create_tables(self) -> None:
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS records (
                id            TEXT PRIMARY KEY,
                kind          TEXT NOT NULL,
                gross_amount  TEXT NOT NULL,
                vat_rate      INTEGER NOT NULL,
                record_date   TEXT NOT NULL,
                description   TEXT,
                category      TEXT,
                source        TEXT,
                created_at    TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_records_date ON records (record_date);
            CREATE INDEX IF NOT EXISTS idx_records_kind ON records (kind);
        """)

    # ------------------------------------------------------------------
    # Write helpers
    # ------------------------------------------------------------------

    def _exec(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with self._lock:
            cur = self._conn.execute(sql, params)
            self._conn.commit()
            return cur

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _iso(d: date | datetime) -> str:
        return (d.date() if isinstance(d, datetime) else d).isoformat()

    # ------------------------------------------------------------------
    # save / delete
    # ------------------------------------------------------------------

    def save(self, record: MonetaryRecord) -> bool:
        """
        Persist a record.

        Returns ``True`` on success, ``False`` if the id is already taken.
        Raises no exceptions on duplicate — callers check the return value
        or call ``exists()`` first.
        """
        if self.exists(record.id):
            logger.info("Record %s already stored; not saved again.", record.id)
            return False

        self._exec(
            """INSERT INTO records
               (id, kind, gross_amount, vat_rate, record_date,
                description, category, source, created_at)
               VALUES (?,?,?,?,?,?,?,?,?)""",
            (
                record.id,
                str(record.kind),
                str(record.gross_amount),
                int(record.vat_rate),
                record.date.isoformat(),
                record.description,
                str(record.category) if record.category is not None else None,
                record.source,
                self._now(),
            ),
        )
        return True

    def add(self, record: MonetaryRecord) -> MonetaryRecord:
        """Like ``save`` but raises ``DuplicateRecordError`` instead of returning False."""
        if not self.save(record):
            raise DuplicateRecordError(
                f"Record {record.id} already exists.", existing_id=record.id
            )
        return record

    def delete(self, record_id: str) -> bool:
        cur = self._exec("DELETE FROM records WHERE id = ?", (record_id,))
        return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def exists(self, record_id: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM records WHERE id = ?", (record_id,)
        ).fetchone()
        return row is not None

    def get(self, record_id: str) -> MonetaryRecord | None:
        rows = self._query("WHERE id = ?", (record_id,))
        return rows[0] if rows else None

    def list_all(self) -> Iterable[MonetaryRecord]:
        return self._query("ORDER BY record_date DESC, created_at DESC")

    def find_by_period(self, start: date, end: date) -> Iterable[MonetaryRecord]:
        return self._query(
            "WHERE record_date BETWEEN ? AND ? ORDER BY record_date DESC, created_at DESC",
            (self._iso(start), self._iso(end)),
        )

    def find_by_kind(self, kind: str) -> Iterable[MonetaryRecord]:
        return self._query(
            "WHERE kind = ? ORDER BY record_date DESC, created_at DESC",
            (str(RecordKind(kind)),),
        )

    # ------------------------------------------------------------------
    # Internal query helper
    # ------------------------------------------------------------------

    def _query(self, where_order: str, params: tuple = ()) -> list[MonetaryRecord]:
        rows = self._conn.execute(f"SELECT * FROM records {where_order}", params).fetchall()
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> MonetaryRecord:
        try:
            return MonetaryRecord(
                id=row["id"],
                kind=row["kind"],
                gross_amount=Decimal(row["gross_amount"]),
                vat_rate=row["vat_rate"],
                date=row["record_date"],
                description=row["description"],
                category=row["category"],
                source=row["source"],
            )
        except LedgerError as exc:
            raise InvalidRecordError(f"Stored record {row['id']} is corrupt.", cause=exc)
