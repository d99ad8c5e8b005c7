"""
kitchenledger.ui.api
~~~~~~~~~~~~~~~~~~~~
FastAPI backend for kitchenledger.

All records are persisted via SQLiteRepository at the configured project
database (``~/.kitchenledger/<project>/kitchenledger.db`` by default).

Endpoints
---------
GET    /health                          — Liveness + database status
GET    /config                          — Runtime configuration snapshot
GET    /records                         — List records (?kind= ?start= ?end=)
POST   /records                         — Book a VAT-inclusive record
POST   /records/scan                    — Book a receipt-scan result as an expense
GET    /records/{id}                    — Single record
DELETE /records/{id}                    — Remove a record
GET    /tax/position?start=&end=        — VAT position for a date range
GET    /tax/quarter?quarter=4&year=2023 — VAT position for a filing quarter
GET    /tax/fiscal-quarter?date=        — Quarter + deadline for a date
GET    /tax/categories?start=&end=      — Expense totals per category
GET    /tax/kor?year=                   — Small-business scheme check
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from kitchenledger.config import Config
from kitchenledger.exceptions import DuplicateRecordError, LedgerError
from kitchenledger.models import EXPENSE_CATEGORIES, MonetaryRecord, RecordKind
from kitchenledger.scan import parse_scan_result
from kitchenledger.storage.project import resolve_project
from kitchenledger.storage.sqlite import SQLiteRepository
from kitchenledger.tax.ledger import TaxLedger, annual_revenue
from kitchenledger.tax.periods import DateRange, current_fiscal_quarter, fiscal_quarter

logger = logging.getLogger(__name__)

_cfg = Config()
DB_PATH: Path = _cfg.db_path or resolve_project(_cfg.project).db_path

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="kitchenledger API",
    description=(
        "REST API for kitchenledger: expense and sales bookkeeping for a "
        "Dutch cloud kitchen, with quarterly VAT (BTW) positions."
    ),
    version="0.1.0",
    license_info={"name": "MIT"},
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class RecordIn(BaseModel):
    """Body of ``POST /records``. Amounts are VAT-inclusive."""

    grossAmount:    Decimal = Field(ge=0)
    vatRatePercent: int
    date:           str
    kind:           str
    description:    Optional[str] = None
    category:       Optional[str] = None
    id:             Optional[str] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _repo() -> SQLiteRepository:
    """Open a fresh repository connection (use as a context manager)."""
    return SQLiteRepository(db_path=DB_PATH)


def _ledger() -> TaxLedger:
    return TaxLedger(config=_cfg)


def _range(start: str, end: str) -> DateRange:
    try:
        return DateRange(start, end)
    except LedgerError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message
        )


def _store(record: MonetaryRecord) -> dict:
    try:
        with _repo() as repo:
            repo.add(record)
    except DuplicateRecordError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": exc.message, "existing_id": exc.existing_id},
        )
    return record.to_dict()


# ---------------------------------------------------------------------------
# Meta routes
# ---------------------------------------------------------------------------

@app.get("/health", tags=["meta"])
def health():
    return {
        "status":    "ok",
        "db_path":   str(DB_PATH),
        "db_exists": DB_PATH.exists(),
    }


@app.get("/config", tags=["meta"])
def get_config():
    """Return the active ledger configuration."""
    lc = _cfg.get_ledger_config()
    return {
        "business_name":            _cfg.business_name,
        "currency":                 lc.currency,
        "rounding_policy":          lc.rounding_policy,
        "default_sale_vat_rate":    lc.default_sale_vat_rate,
        "default_expense_vat_rate": lc.default_expense_vat_rate,
        "kor_threshold":            str(lc.kor_threshold),
        "categories":               EXPENSE_CATEGORIES,
        "db_path":                  str(DB_PATH),
    }


# ---------------------------------------------------------------------------
# Record routes
# ---------------------------------------------------------------------------

@app.get("/records", tags=["records"])
def list_records(
    kind:  Optional[str] = Query(default=None, enum=["expense", "sale"]),
    start: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    end:   Optional[str] = Query(default=None, description="YYYY-MM-DD"),
):
    """
    List records, newest first.

    - ``?kind=expense`` / ``?kind=sale``
    - ``?start=2023-10-01&end=2023-12-31`` (both bounds inclusive)
    """
    if (start is None) != (end is None):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Pass both start and end, or neither.",
        )
    if kind:
        try:
            kind = str(RecordKind(kind))
        except LedgerError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message
            )

    with _repo() as repo:
        if start and end:
            rng = _range(start, end)
            records = list(repo.find_by_period(rng.start, rng.end))
        elif kind:
            records = list(repo.find_by_kind(kind))
        else:
            records = list(repo.list_all())

    if kind and start:
        records = [r for r in records if str(r.kind) == kind]

    return {
        "records": [r.to_dict() for r in records],
        "total":   len(records),
    }


@app.post("/records", status_code=status.HTTP_201_CREATED, tags=["records"])
def create_record(body: RecordIn):
    """Book a record. An id that is already stored gives 409."""
    payload: dict[str, Any] = body.model_dump()
    payload["source"] = "api"
    try:
        record = MonetaryRecord.from_dict(payload)
    except LedgerError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message
        )
    return _store(record)


@app.post("/records/scan", status_code=status.HTTP_201_CREATED, tags=["records"])
def create_from_scan(payload: dict):
    """
    Validate a receipt-scan result and book it as an expense.

    Body: ``{"description": ..., "amount": ..., "category": ..., "vatRate": ...}``
    """
    try:
        expense = parse_scan_result(payload)
    except LedgerError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        )
    response = _store(expense.to_record())
    response["expense"] = expense.to_dict()
    return response


@app.get("/records/{record_id}", tags=["records"])
def get_record(record_id: str):
    with _repo() as repo:
        record = repo.get(record_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail="Record not found.")
    return record.to_dict()


@app.delete("/records/{record_id}", status_code=status.HTTP_204_NO_CONTENT,
            tags=["records"])
def delete_record(record_id: str):
    with _repo() as repo:
        deleted = repo.delete(record_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail="Record not found.")


# ---------------------------------------------------------------------------
# Tax routes
# ---------------------------------------------------------------------------

@app.get("/tax/position", tags=["tax"])
def get_position(
    start: str = Query(..., description="First day, inclusive (YYYY-MM-DD)"),
    end:   str = Query(..., description="Last day, inclusive (YYYY-MM-DD)"),
):
    """
    VAT position for a date range.

    A reversed range is answered with an all-zero position.
    """
    rng = _range(start, end)
    with _repo() as repo:
        records = list(repo.list_all())
    return _ledger().aggregate(records, rng).to_dict()


@app.get("/tax/quarter", tags=["tax"])
def get_quarter(
    quarter: int = Query(..., ge=1, le=4, description="Filing quarter (1-4)"),
    year:    int = Query(..., ge=2000, le=2100, description="Calendar year"),
):
    """VAT position for a whole filing quarter, plus its deadline."""
    q = fiscal_quarter(quarter, year)
    with _repo() as repo:
        records = list(repo.find_by_period(q.start, q.end))
    result = _ledger().aggregate(records, q.date_range).to_dict()
    result["quarter"] = q.to_dict()
    return result


@app.get("/tax/fiscal-quarter", tags=["tax"])
def get_fiscal_quarter(
    reference_date: Optional[str] = Query(default=None, alias="date",
                                          description="YYYY-MM-DD (default today)"),
):
    try:
        q = current_fiscal_quarter(reference_date)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        )
    result = q.to_dict()
    result["days_until_deadline"] = q.days_until_deadline(date.today())
    return result


@app.get("/tax/categories", tags=["tax"])
def get_categories(
    start: str = Query(..., description="YYYY-MM-DD"),
    end:   str = Query(..., description="YYYY-MM-DD"),
):
    """Gross expense totals per category, largest first."""
    rng = _range(start, end)
    with _repo() as repo:
        records = list(repo.find_by_kind("expense"))
    totals = _ledger().category_totals(records, rng)
    return {"categories": {cat: str(amt) for cat, amt in totals.items()}}


@app.get("/tax/kor", tags=["tax"])
def get_kor(
    year: Optional[int] = Query(default=None, ge=2000, le=2100, description="Default: this year"),
):
    """Whether the year's sales stay under the KOR ceiling."""
    year = year or date.today().year
    with _repo() as repo:
        sales = list(repo.find_by_kind("sale"))
    return {
        "year":      year,
        "revenue":   str(annual_revenue(sales, year)),
        "threshold": str(_cfg.kor_threshold),
        "eligible":  _ledger().kor_eligible(sales, year),
    }
