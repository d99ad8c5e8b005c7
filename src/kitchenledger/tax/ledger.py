"""
kitchenledger.tax.ledger
~~~~~~~~~~~~~~~~~~~~~~~~
TaxLedger — Dutch VAT (BTW) position from VAT-inclusive records.

VAT flow
--------
Expenses (inkopen)
    You paid a supplier a VAT-inclusive amount. The embedded VAT is
    voorbelasting (input tax) and is reclaimed from the Belastingdienst.

Sales (omzet)
    A customer paid you a VAT-inclusive amount. The embedded VAT is
    omzetbelasting (output tax) and is remitted to the Belastingdienst.

Net position = output VAT − input VAT
  > 0  → you pay (te betalen)
  < 0  → refund due (terug te ontvangen)
  = 0  → nil return

The VAT in a gross amount is backed out by division::

    vat = gross − gross / (1 + rate/100)

Rounding
--------
``aggregate`` (default) sums the exact portions and rounds only the
reported totals. ``per_record`` rounds each record's VAT to cents first and
sums those, which is what a shoebox of individually rounded receipts gives.

Usage::

    from kitchenledger.storage import get_repository
    from kitchenledger.tax import aggregate, current_fiscal_quarter

    q = current_fiscal_quarter()
    with get_repository() as repo:
        records = repo.find_by_period(q.start, q.end)
    print(aggregate(records, q.date_range).summary())
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Optional

from ..config import Config, ROUNDING_POLICIES
from ..exceptions import InvalidRangeError, InvalidRecordError
from ..models import MonetaryRecord, VatRate
from ..money import MAX_AMOUNT, ZERO, embedded_vat, round_money
from ..utils import parse_amount
from .periods import DateRange, FiscalQuarter, current_fiscal_quarter, fiscal_quarter

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

AGGREGATE = "aggregate"
PER_RECORD = "per_record"

# BTW return box for output VAT per rate
_RETURN_BOX = {21: "1a", 9: "1b", 0: "1e"}


def _policy(rounding: Optional[str]) -> str:
    policy = (rounding or AGGREGATE).strip().lower().replace("-", "_")
    if policy not in ROUNDING_POLICIES:
        raise ValueError(f"rounding must be one of {ROUNDING_POLICIES}, got {rounding!r}")
    return policy


# ---------------------------------------------------------------------------
# vat_portion
# ---------------------------------------------------------------------------

def vat_portion(gross_amount: Any, vat_rate: Any, *, exact: bool = False) -> Decimal:
    """
    VAT embedded in a VAT-inclusive ``gross_amount`` at ``vat_rate`` percent.

    Rounded half-up to cents unless ``exact=True``. A 0 % rate gives exactly
    ``Decimal("0")``.

    Raises:
        InvalidRateError:   ``vat_rate`` is not 0, 9 or 21.
        InvalidRecordError: ``gross_amount`` is not a non-negative amount
                            below ``MAX_AMOUNT``.
    """
    rate = VatRate(vat_rate)
    gross = parse_amount(gross_amount)
    if gross is None or gross < 0 or gross >= MAX_AMOUNT:
        raise InvalidRecordError(
            f"gross_amount must be a non-negative amount below {MAX_AMOUNT}, got {gross_amount!r}"
        )
    portion = embedded_vat(gross, rate.percent)
    return portion if exact else round_money(portion)


# ---------------------------------------------------------------------------
# Per-rate line
# ---------------------------------------------------------------------------

@dataclass
class TaxLine:
    """
    Figures for one VAT rate, split by record kind.

    VAT fields hold the summed portions as the rounding policy produced
    them; ``to_dict`` rounds for display.
    """

    vat_rate:      int
    sale_gross:    Decimal = field(default_factory=Decimal)
    sale_vat:      Decimal = field(default_factory=Decimal)
    sale_count:    int = 0
    expense_gross: Decimal = field(default_factory=Decimal)
    expense_vat:   Decimal = field(default_factory=Decimal)
    expense_count: int = 0

    @property
    def return_box(self) -> str:
        return _RETURN_BOX.get(self.vat_rate, "?")

    @property
    def net_position(self) -> Decimal:
        """Output VAT − input VAT for this rate. Positive = you pay."""
        return round_money(self.sale_vat - self.expense_vat)

    def to_dict(self) -> dict:
        return {
            "vat_rate":      self.vat_rate,
            "return_box":    self.return_box,
            "sale_gross":    str(round_money(self.sale_gross)),
            "sale_net":      str(round_money(self.sale_gross - self.sale_vat)),
            "sale_vat":      str(round_money(self.sale_vat)),
            "sale_count":    self.sale_count,
            "expense_gross": str(round_money(self.expense_gross)),
            "expense_vat":   str(round_money(self.expense_vat)),
            "expense_count": self.expense_count,
            "net_position":  str(self.net_position),
        }


# ---------------------------------------------------------------------------
# TaxPosition
# ---------------------------------------------------------------------------

@dataclass
class TaxPosition:
    """
    VAT position over a date range.

    ``net_position > 0``  → pay the Belastingdienst
    ``net_position < 0``  → the Belastingdienst owes you a refund
    """

    date_range:     DateRange
    rounding:       str = AGGREGATE
    lines:          dict[int, TaxLine] = field(default_factory=dict)
    excluded_count: int = 0

    # ------------------------------------------------------------------
    # Aggregated totals
    # ------------------------------------------------------------------

    @property
    def _exact_output(self) -> Decimal:
        return sum((ln.sale_vat for ln in self.lines.values()), ZERO)

    @property
    def _exact_input(self) -> Decimal:
        return sum((ln.expense_vat for ln in self.lines.values()), ZERO)

    @property
    def vat_output(self) -> Decimal:
        """Total VAT on sales — owed to the tax authority."""
        return round_money(self._exact_output)

    @property
    def vat_input(self) -> Decimal:
        """Total VAT on expenses — reclaimable."""
        return round_money(self._exact_input)

    @property
    def net_position(self) -> Decimal:
        """output − input. Positive = pay; negative = refund."""
        return round_money(self._exact_output - self._exact_input)

    @property
    def status(self) -> str:
        if self.net_position > 0:
            return "pay"
        if self.net_position < 0:
            return "refund"
        return "nil"

    @property
    def sales_gross(self) -> Decimal:
        return round_money(sum((ln.sale_gross for ln in self.lines.values()), ZERO))

    @property
    def expenses_gross(self) -> Decimal:
        return round_money(sum((ln.expense_gross for ln in self.lines.values()), ZERO))

    @property
    def record_count(self) -> int:
        return sum(ln.sale_count + ln.expense_count for ln in self.lines.values())

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "period_start":   self.date_range.start.isoformat(),
            "period_end":     self.date_range.end.isoformat(),
            "rounding":       self.rounding,
            "record_count":   self.record_count,
            "excluded_count": self.excluded_count,
            "sales_gross":    str(self.sales_gross),
            "expenses_gross": str(self.expenses_gross),
            "vat_output":     str(self.vat_output),
            "vat_input":      str(self.vat_input),
            "net_position":   str(self.net_position),
            "status":         self.status,
            "lines":          {str(k): v.to_dict() for k, v in sorted(self.lines.items(), reverse=True)},
        }

    def to_json(self, path: str | Path | None = None) -> str:
        raw = json.dumps(self.to_dict(), indent=2, ensure_ascii=False)
        if path:
            Path(path).write_text(raw, encoding="utf-8")
        return raw

    def summary(self, currency: str = "EUR") -> str:
        W = 54
        div = "─" * W
        hdiv = "═" * W

        def position_str() -> str:
            if self.status == "pay":
                return f"{self.net_position:>10.2f} {currency}  ← te betalen"
            if self.status == "refund":
                return f"{abs(self.net_position):>10.2f} {currency}  ← terug te ontvangen"
            return f"{ZERO:>10.2f} {currency}  (nihil)"

        lines = [
            "=" * W,
            f"  BTW-aangifte  {self.date_range.start} t/m {self.date_range.end}",
            "=" * W,
            f"  Boekingen           : {self.record_count}",
            f"  Buiten periode      : {self.excluded_count}",
        ]

        for rate, ln in sorted(self.lines.items(), reverse=True):
            lines += [
                div,
                f"  Rubriek {ln.return_box}  BTW {rate} %",
                f"    Omzet incl. BTW   : {round_money(ln.sale_gross):>10.2f} {currency}  ({ln.sale_count})",
                f"    Omzetbelasting    : {round_money(ln.sale_vat):>10.2f} {currency}",
                f"    Kosten incl. BTW  : {round_money(ln.expense_gross):>10.2f} {currency}  ({ln.expense_count})",
                f"    Voorbelasting     : {round_money(ln.expense_vat):>10.2f} {currency}",
            ]

        lines += [
            hdiv,
            f"  Omzetbelasting      : {self.vat_output:>10.2f} {currency}",
            f"  Voorbelasting (5b)  : {self.vat_input:>10.2f} {currency}",
            hdiv,
            f"  Saldo               : {position_str()}",
            "=" * W,
        ]
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def aggregate(
    records: Iterable[MonetaryRecord],
    date_range: DateRange | tuple,
    *,
    rounding: Optional[str] = None,
    strict: bool = False,
) -> TaxPosition:
    """
    Sum output and input VAT of the records dated inside ``date_range``.

    Both range bounds are inclusive. Records are only read, never changed,
    so repeated calls on the same snapshot give equal positions.

    A reversed range (start after end) yields an all-zero position; with
    ``strict=True`` it raises ``InvalidRangeError`` instead.
    """
    rng = DateRange.coerce(date_range)
    policy = _policy(rounding)
    position = TaxPosition(date_range=rng, rounding=policy)

    if rng.is_reversed:
        if strict:
            raise InvalidRangeError(f"Range start {rng.start} is after end {rng.end}.")
        logger.warning("Reversed date range %s; returning an empty position.", rng)

    for r in records:
        if r.date not in rng:
            position.excluded_count += 1
            continue

        rate = int(r.vat_rate)
        ln = position.lines.get(rate)
        if ln is None:
            ln = position.lines[rate] = TaxLine(vat_rate=rate)

        vat = r.exact_vat if policy == AGGREGATE else r.vat_amount
        if r.is_sale:
            ln.sale_gross += r.gross_amount
            ln.sale_vat += vat
            ln.sale_count += 1
        else:
            ln.expense_gross += r.gross_amount
            ln.expense_vat += vat
            ln.expense_count += 1

    return position


def category_totals(
    records: Iterable[MonetaryRecord],
    date_range: DateRange | tuple,
) -> dict[str, Decimal]:
    """
    Gross expense totals per category inside ``date_range``.

    Largest category first; categories without spend are left out.
    Uncategorised expenses count as ``"Other"``.
    """
    rng = DateRange.coerce(date_range)
    totals: dict[str, Decimal] = defaultdict(Decimal)
    for r in records:
        if r.is_expense and r.date in rng:
            totals[str(r.category or "Other")] += r.gross_amount
    return {
        cat: round_money(amt)
        for cat, amt in sorted(totals.items(), key=lambda x: (-x[1], x[0]))
        if amt > 0
    }


def annual_revenue(records: Iterable[MonetaryRecord], year: int) -> Decimal:
    """Gross sales revenue booked in calendar ``year``."""
    return round_money(sum(
        (r.gross_amount for r in records if r.is_sale and r.date.year == year),
        ZERO,
    ))


def kor_eligible(
    records: Iterable[MonetaryRecord],
    year: int,
    threshold: Decimal = Decimal("20000"),
) -> bool:
    """
    Whether the kitchen stays under the small-business scheme (KOR) ceiling.

    The KOR exempts businesses whose yearly turnover stays below the
    threshold from charging and filing VAT.
    """
    return annual_revenue(records, year) < threshold


# ---------------------------------------------------------------------------
# TaxLedger
# ---------------------------------------------------------------------------

class TaxLedger:
    """
    Stateless VAT calculator bound to a rounding policy and KOR threshold.

    Holds no records. Every method works on the snapshot it is given, so a
    single instance can be shared freely between threads.

    Args:
        rounding: ``"aggregate"`` or ``"per_record"``. Defaults to the
                  configured ``rounding_policy``.
        config:   Optional Config instance (reads .env by default).
    """

    def __init__(self, rounding: Optional[str] = None, config: Optional[Config] = None) -> None:
        self.config = config or Config()
        self.rounding = _policy(rounding or self.config.rounding_policy)

    def vat_portion(self, gross_amount: Any, vat_rate: Any, *, exact: bool = False) -> Decimal:
        return vat_portion(gross_amount, vat_rate, exact=exact)

    def aggregate(
        self,
        records: Iterable[MonetaryRecord],
        date_range: DateRange | tuple,
        *,
        strict: bool = False,
    ) -> TaxPosition:
        return aggregate(records, date_range, rounding=self.rounding, strict=strict)

    def current_fiscal_quarter(self, reference_date: date | datetime | str | None = None) -> FiscalQuarter:
        return current_fiscal_quarter(reference_date)

    def quarter_position(self, records: Iterable[MonetaryRecord], quarter: int, year: int) -> TaxPosition:
        """Position for a whole filing quarter."""
        return self.aggregate(records, fiscal_quarter(quarter, year).date_range)

    def category_totals(
        self,
        records: Iterable[MonetaryRecord],
        date_range: DateRange | tuple,
    ) -> dict[str, Decimal]:
        return category_totals(records, date_range)

    def kor_eligible(self, records: Iterable[MonetaryRecord], year: int) -> bool:
        return kor_eligible(records, year, self.config.kor_threshold)


__all__ = [
    "AGGREGATE",
    "PER_RECORD",
    "TaxLedger",
    "TaxLine",
    "TaxPosition",
    "aggregate",
    "annual_revenue",
    "category_totals",
    "kor_eligible",
    "vat_portion",
]
