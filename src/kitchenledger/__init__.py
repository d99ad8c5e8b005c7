"""
kitchenledger
~~~~~~~~~~~~~
Dutch VAT (BTW) bookkeeping for a single-location cloud kitchen.

Typical usage::

    from kitchenledger import MonetaryRecord, TaxLedger, current_fiscal_quarter

    records = [
        MonetaryRecord(gross_amount="45.00", vat_rate=9, date="2023-10-25", kind="expense"),
        MonetaryRecord(gross_amount="544.50", vat_rate=21, date="2023-10-20", kind="sale"),
    ]
    position = TaxLedger().aggregate(records, ("2023-10-01", "2023-10-31"))
    print(position.net_position)          # Decimal('90.78') → pay
"""

from .config import Config, LedgerConfig, cfg
from .exceptions import (
    DuplicateRecordError,
    InvalidRangeError,
    InvalidRateError,
    InvalidRecordError,
    LedgerError,
    ScanParseError,
)
from .models import (
    EXPENSE_CATEGORIES,
    Expense,
    ExpenseCategory,
    Invoice,
    InvoiceLine,
    MonetaryRecord,
    Order,
    RecordKind,
    VatRate,
)
from .scan import parse_scan_result
from .tax import (
    DateRange,
    FiscalQuarter,
    TaxLedger,
    TaxPosition,
    aggregate,
    current_fiscal_quarter,
    vat_portion,
)

__all__ = [
    # Ledger
    "TaxLedger",
    "TaxPosition",
    "DateRange",
    "FiscalQuarter",
    "vat_portion",
    "aggregate",
    "current_fiscal_quarter",
    # Configuration
    "Config",
    "LedgerConfig",
    "cfg",
    # Models
    "MonetaryRecord",
    "RecordKind",
    "VatRate",
    "Expense",
    "ExpenseCategory",
    "EXPENSE_CATEGORIES",
    "Invoice",
    "InvoiceLine",
    "Order",
    # Scan boundary
    "parse_scan_result",
    # Exceptions
    "LedgerError",
    "InvalidRateError",
    "InvalidRangeError",
    "InvalidRecordError",
    "ScanParseError",
    "DuplicateRecordError",
]
