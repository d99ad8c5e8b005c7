"""
kitchenledger.tax
~~~~~~~~~~~~~~~~~
VAT (BTW) computation for Dutch quarterly returns.

  - ``ledger``   — VAT portions, date-range aggregation, KOR check
  - ``periods``  — date ranges and filing quarters with deadlines
"""

from .ledger import (
    TaxLedger,
    TaxLine,
    TaxPosition,
    aggregate,
    category_totals,
    kor_eligible,
    vat_portion,
)
from .periods import DateRange, FiscalQuarter, current_fiscal_quarter, fiscal_quarter

__all__ = [
    "DateRange",
    "FiscalQuarter",
    "TaxLedger",
    "TaxLine",
    "TaxPosition",
    "aggregate",
    "category_totals",
    "current_fiscal_quarter",
    "fiscal_quarter",
    "kor_eligible",
    "vat_portion",
]
