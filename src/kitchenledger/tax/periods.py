"""
kitchenledger.tax.periods
~~~~~~~~~~~~~~~~~~~~~~~~~
Reporting periods: inclusive date ranges and Dutch VAT filing quarters.

The Belastingdienst expects a quarterly BTW return (aangifte omzetbelasting)
by the last day of the month after the quarter ends:

    Q1 (Jan-Mar)  → April 30
    Q2 (Apr-Jun)  → July 31
    Q3 (Jul-Sep)  → October 31
    Q4 (Oct-Dec)  → January 31 of the following year

Months are 1-indexed (January = 1) everywhere in this module.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from ..exceptions import InvalidRangeError
from ..utils import parse_date

_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# quarter → (label, first month, last month, last day of last month,
#            deadline month, deadline day, deadline year offset)
_QUARTERS = {
    1: ("Q1 (Jan-Mar)", 1, 3, 31, 4, 30, 0),
    2: ("Q2 (Apr-Jun)", 4, 6, 30, 7, 31, 0),
    3: ("Q3 (Jul-Sep)", 7, 9, 30, 10, 31, 0),
    4: ("Q4 (Oct-Dec)", 10, 12, 31, 1, 31, 1),
}


# ---------------------------------------------------------------------------
# DateRange
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DateRange:
    """
    Inclusive ``[start, end]`` range of calendar days.

    Bounds may be given as ``date``, ``datetime`` or ISO strings. A range
    whose start lies after its end is *reversed*: it is allowed to exist
    and simply contains no day.
    """

    start: date
    end:   date

    def __post_init__(self) -> None:
        for name in ("start", "end"):
            raw = getattr(self, name)
            parsed = parse_date(raw)
            if parsed is None:
                raise InvalidRangeError(f"Range {name} is not a valid date: {raw!r}")
            object.__setattr__(self, name, parsed)

    @classmethod
    def coerce(cls, value: Any) -> "DateRange":
        """Accept a ``DateRange`` or any ``(start, end)`` pair."""
        if isinstance(value, DateRange):
            return value
        try:
            start, end = value
        except (TypeError, ValueError) as exc:
            raise InvalidRangeError("Expected a DateRange or a (start, end) pair.", cause=exc)
        return cls(start, end)

    @property
    def is_reversed(self) -> bool:
        return self.start > self.end

    def __contains__(self, day: date | datetime) -> bool:
        d = day.date() if isinstance(day, datetime) else day
        return self.start <= d <= self.end

    def to_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}

    def __str__(self) -> str:
        return f"{self.start.isoformat()} .. {self.end.isoformat()}"


# ---------------------------------------------------------------------------
# FiscalQuarter
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FiscalQuarter:
    """A VAT filing quarter and its return deadline. Derived, never stored."""

    quarter: int
    year:    int

    def __post_init__(self) -> None:
        if self.quarter not in _QUARTERS:
            raise ValueError(f"quarter must be 1-4, got {self.quarter!r}")

    @property
    def label(self) -> str:
        return _QUARTERS[self.quarter][0]

    @property
    def start(self) -> date:
        return date(self.year, _QUARTERS[self.quarter][1], 1)

    @property
    def end(self) -> date:
        _, _, last_month, last_day, *_ = _QUARTERS[self.quarter]
        return date(self.year, last_month, last_day)

    @property
    def deadline(self) -> date:
        *_, month, day, year_offset = _QUARTERS[self.quarter]
        return date(self.year + year_offset, month, day)

    @property
    def deadline_label(self) -> str:
        d = self.deadline
        return f"{_MONTH_NAMES[d.month - 1]} {d.day}, {d.year}"

    @property
    def date_range(self) -> DateRange:
        return DateRange(self.start, self.end)

    def days_until_deadline(self, today: date | None = None) -> int:
        """Days left to file; negative once the deadline has passed."""
        return (self.deadline - (today or date.today())).days

    def to_dict(self) -> dict:
        return {
            "quarter":        self.quarter,
            "year":           self.year,
            "label":          self.label,
            "start":          self.start.isoformat(),
            "end":            self.end.isoformat(),
            "deadline":       self.deadline.isoformat(),
            "deadline_label": self.deadline_label,
        }


def quarter_of_month(month: int) -> int:
    """Map a 1-indexed month to its quarter number."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1-12, got {month!r}")
    return (month - 1) // 3 + 1


def fiscal_quarter(quarter: int, year: int) -> FiscalQuarter:
    return FiscalQuarter(quarter=quarter, year=year)


def current_fiscal_quarter(reference_date: date | datetime | str | None = None) -> FiscalQuarter:
    """
    Return the filing quarter containing ``reference_date`` (default: today).

    Pure and deterministic for a given date.
    """
    if reference_date is None:
        ref = date.today()
    else:
        ref = parse_date(reference_date)
        if ref is None:
            raise ValueError(f"Not a valid reference date: {reference_date!r}")
    return FiscalQuarter(quarter=quarter_of_month(ref.month), year=ref.year)


__all__ = [
    "DateRange",
    "FiscalQuarter",
    "current_fiscal_quarter",
    "fiscal_quarter",
    "quarter_of_month",
]
