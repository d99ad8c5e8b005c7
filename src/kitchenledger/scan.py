"""
kitchenledger.scan
~~~~~~~~~~~~~~~~~~
Parsing boundary for receipt-scan results produced outside this library.

A scanner (a vision model, an OCR tool, a bookkeeping export) hands back
loosely typed JSON such as::

    {"description": "Sligro", "amount": "45,00", "category": "ingredients", "vatRate": 9}

Nothing from that payload reaches the ledger until it has passed the
pydantic schema below. Failures surface as ``ScanParseError``; a partially
built expense is never returned.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import InvalidRateError, InvalidRecordError, ScanParseError
from .models import Expense, ExpenseCategory, VatRate
from .utils import clean_json_response, parse_amount, parse_date

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# Scanners that cannot tell the rate assume the standard one
DEFAULT_SCAN_VAT_RATE = 21
DEFAULT_DESCRIPTION = "Scanned Receipt"


class ScannedReceipt(BaseModel):
    """Validated shape of a single scan result."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    description: str = DEFAULT_DESCRIPTION
    amount: Decimal = Field(ge=0)
    category: str = "Other"
    vat_rate: int = Field(default=DEFAULT_SCAN_VAT_RATE, alias="vatRate")
    receipt_date: Optional[date] = Field(default=None, alias="date")

    @field_validator("description", mode="before")
    @classmethod
    def _default_description(cls, v: Any) -> str:
        text = str(v).strip() if v is not None else ""
        return text or DEFAULT_DESCRIPTION

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, v: Any) -> Decimal:
        amount = parse_amount(v)
        if amount is None:
            raise ValueError(f"not a monetary amount: {v!r}")
        return amount

    @field_validator("category", mode="before")
    @classmethod
    def _normalise_category(cls, v: Any) -> str:
        return str(ExpenseCategory(v if v is not None else "Other"))

    @field_validator("vat_rate", mode="before")
    @classmethod
    def _check_rate(cls, v: Any) -> int:
        if v is None or v == "":
            return DEFAULT_SCAN_VAT_RATE
        try:
            return int(VatRate(v))
        except InvalidRateError as exc:
            raise ValueError(exc.message) from exc

    @field_validator("receipt_date", mode="before")
    @classmethod
    def _coerce_date(cls, v: Any) -> Optional[date]:
        if v is None or v == "":
            return None
        parsed = parse_date(v)
        if parsed is None:
            raise ValueError(f"not a date: {v!r}")
        return parsed


def parse_scan_result(
    payload: Union[str, bytes, dict],
    *,
    attachment: Optional[str] = None,
    today: Optional[date] = None,
) -> Expense:
    """
    Turn a raw scan payload into an ``Expense``.

    Args:
        payload:    A dict, or a JSON string (markdown fences tolerated).
        attachment: Optional path/URL of the scanned image to keep with it.
        today:      Booking date used when the scan carries none.

    Raises:
        ScanParseError: The payload is not JSON, not an object, or fails
                        validation.
    """
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")

    if isinstance(payload, str):
        try:
            data = json.loads(clean_json_response(payload))
        except json.JSONDecodeError as exc:
            raise ScanParseError("Scan result is not valid JSON.", cause=exc)
        if not data:
            raise ScanParseError("Scan result contains no JSON object.")
    elif isinstance(payload, dict):
        data = payload
    else:
        raise ScanParseError(f"Unsupported scan payload type: {type(payload).__name__}")

    try:
        scanned = ScannedReceipt.model_validate(data)
    except ValidationError as exc:
        logger.warning("Rejected scan result: %s", exc.errors())
        raise ScanParseError("Scan result failed validation.", cause=exc)

    try:
        return Expense(
            description=scanned.description,
            amount=scanned.amount,
            category=ExpenseCategory(scanned.category),
            vat_rate=VatRate(scanned.vat_rate),
            date=scanned.receipt_date or today or date.today(),
            attachment=attachment,
        )
    except InvalidRecordError as exc:
        raise ScanParseError("Scan result does not form a valid expense.", cause=exc)
