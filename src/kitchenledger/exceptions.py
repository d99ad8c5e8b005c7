"""
kitchenledger.exceptions
~~~~~~~~~~~~~~~~~~~~~~~~
Exception hierarchy for the kitchenledger library.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base exception for all kitchenledger errors."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
        self.message = message

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by {type(self.cause).__name__}: {self.cause})"
        return self.message


class InvalidRateError(LedgerError):
    """Raised when a VAT rate is not one of the Dutch rates 0, 9 or 21."""


class InvalidRangeError(LedgerError):
    """Raised when a date range bound is not a date, or in strict mode when it is reversed."""


class InvalidRecordError(LedgerError):
    """Raised when a monetary record fails business-logic validation."""


class ScanParseError(LedgerError):
    """Raised when an external receipt-scan result cannot be turned into an expense."""


class DuplicateRecordError(LedgerError):
    """
    Raised when a record with the same id already exists in the store.

    Attributes:
        existing_id: The id of the stored record.
    """

    def __init__(self, message: str, *, existing_id: str) -> None:
        super().__init__(message)
        self.existing_id = existing_id
