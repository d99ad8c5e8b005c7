"""
kitchenledger.storage.base
~~~~~~~~~~~~~~~~~~~~~~~~~~
Abstract repository interface.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Protocol, runtime_checkable

from ..models import MonetaryRecord


@runtime_checkable
class RecordRepository(Protocol):
    """Storage abstraction for monetary records."""

    def save(self, record: MonetaryRecord) -> bool:
        """
        Persist a record.

        Returns ``True`` if saved, ``False`` if a record with the same id
        already exists. Callers can distinguish via the return value
        rather than catching an exception.
        """
        ...

    def get(self, record_id: str) -> MonetaryRecord | None:
        """Fetch a record by id."""
        ...

    def exists(self, record_id: str) -> bool:
        """Return True if a record with this id is already stored."""
        ...

    def delete(self, record_id: str) -> bool:
        """Remove a record. Returns True if deleted."""
        ...

    def list_all(self) -> Iterable[MonetaryRecord]:
        """All records, most recently dated first."""
        ...

    def find_by_period(self, start: date, end: date) -> Iterable[MonetaryRecord]:
        """Records dated within [start, end] inclusive."""
        ...

    def find_by_kind(self, kind: str) -> Iterable[MonetaryRecord]:
        """Records of one kind: ``"expense"`` or ``"sale"``."""
        ...
