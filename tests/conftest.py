"""
tests/conftest.py
~~~~~~~~~~~~~~~~~
Shared pytest fixtures for the kitchenledger test suite.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from kitchenledger.config import Config
from kitchenledger.models import Expense, Invoice, MonetaryRecord, Order
from kitchenledger.storage.sqlite import SQLiteRepository


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep a developer's KITCHENLEDGER_* variables out of the tests."""
    for var in (
        "KITCHENLEDGER_PROJECT", "KITCHENLEDGER_DB_PATH", "KITCHENLEDGER_CURRENCY",
        "KITCHENLEDGER_ROUNDING_POLICY", "KITCHENLEDGER_KOR_THRESHOLD",
        "KITCHENLEDGER_DEFAULT_SALE_VAT_RATE", "KITCHENLEDGER_DEFAULT_EXPENSE_VAT_RATE",
        "KITCHENLEDGER_BUSINESS_NAME",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def default_config() -> Config:
    return Config(_env_file=None)  # type: ignore[call-arg]


# ---------------------------------------------------------------------------
# Model helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def rice_expense() -> MonetaryRecord:
    """Basmati rice bought in October: 45.00 incl. 9 % VAT."""
    return MonetaryRecord(
        gross_amount=Decimal("45.00"),
        vat_rate=9,
        date=date(2023, 10, 25),
        kind="expense",
        description="Basmati rice 25kg",
        category="Ingredients",
    )


@pytest.fixture
def catering_sale() -> MonetaryRecord:
    """Catering invoice paid in October: 544.50 incl. 21 % VAT."""
    return MonetaryRecord(
        gross_amount=Decimal("544.50"),
        vat_rate=21,
        date=date(2023, 10, 20),
        kind="sale",
        description="Invoice INV-001 - Tech Corp",
    )


@pytest.fixture
def october_records(rice_expense, catering_sale) -> list[MonetaryRecord]:
    return [rice_expense, catering_sale]


@pytest.fixture
def sample_expense() -> Expense:
    return Expense(
        description="Sligro weekly order",
        amount=Decimal("109.00"),
        category="Ingredients",
        vat_rate=9,
        date=date(2023, 11, 3),
    )


@pytest.fixture
def sample_invoice() -> Invoice:
    return Invoice(
        client_name="Tech Corp",
        lines=[
            {"description": "Lunch buffet 30p", "amount": "400.00"},
            {"description": "Delivery", "amount": "50.00"},
        ],
        vat_rate=21,
        date=date(2023, 10, 20),
        id="INV-001",
    )


@pytest.fixture
def sample_order() -> Order:
    return Order(
        customer_name="Priya",
        total_amount=Decimal("32.70"),
        vat_rate=9,
        source="whatsapp",
        status="Delivered",
        date=date(2023, 10, 21),
        id="101",
    )


@pytest.fixture
def scan_payload() -> dict:
    return {
        "description": "Hanos groothandel",
        "amount": "1.234,56",
        "category": "ingredients",
        "vatRate": 9,
        "date": "2023-11-14",
    }


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

@pytest.fixture
def repo(tmp_path) -> SQLiteRepository:
    db = SQLiteRepository(db_path=tmp_path / "test.db")
    yield db
    db.close()
