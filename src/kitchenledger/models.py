"""
kitchenledger.models
~~~~~~~~~~~~~~~~~~~~
Data models for the kitchen's bookkeeping records.

Key design decisions
--------------------
* Every amount the ledger sees is VAT-inclusive (``gross_amount``). The VAT
  portion is derived from gross and rate, never entered separately.

* ``VatRate`` is a closed set {0, 9, 21} — the Dutch exempt, low (food and
  water) and high (alcohol, services) rates. Anything else is rejected.

* ``RecordKind`` distinguishes expenses (input VAT, "voorbelasting", you
  reclaim it) from sales (output VAT, you remit it to the Belastingdienst).

* ``Expense``, ``Invoice`` and ``Order`` are the entities the kitchen
  actually books. Each converts to a ``MonetaryRecord`` — the only shape
  the tax ledger and the record store work with.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional

from .exceptions import InvalidRateError, InvalidRecordError
from .money import MAX_AMOUNT, ZERO, added_vat, embedded_vat, round_money
from .utils import parse_amount, parse_date, parse_decimal


def _new_id() -> str:
    return uuid.uuid4().hex


def _require_date(value: Any, what: str) -> date:
    parsed = parse_date(value)
    if parsed is None:
        raise InvalidRecordError(f"{what} is not a valid date: {value!r}")
    return parsed


def _require_amount(value: Any, what: str) -> Decimal:
    amount = parse_amount(value)
    if amount is None:
        raise InvalidRecordError(f"{what} is not a valid amount: {value!r}")
    if amount < 0:
        raise InvalidRecordError(f"{what} must not be negative, got {amount}")
    if amount >= MAX_AMOUNT:
        raise InvalidRecordError(f"{what} must be below {MAX_AMOUNT}, got {value!r}")
    return amount


# ---------------------------------------------------------------------------
# VatRate
# ---------------------------------------------------------------------------

class VatRate(int):
    """
    A Dutch VAT (BTW) rate in percent.

    ``0``  — exempt / zero-rated
    ``9``  — low rate: food, non-alcoholic drinks, water
    ``21`` — high rate: alcohol, catering services, packaging, most goods
    """

    VALID: frozenset = frozenset({0, 9, 21})
    LABELS = {0: "0% (exempt)", 9: "9% (low)", 21: "21% (high)"}

    def __new__(cls, value: Any = 9) -> "VatRate":
        d = parse_decimal(value)
        if d is None or d != d.to_integral_value() or int(d) not in cls.VALID:
            raise InvalidRateError(
                f"VAT rate must be one of {sorted(cls.VALID)}, got {value!r}"
            )
        return super().__new__(cls, int(d))

    @property
    def percent(self) -> Decimal:
        return Decimal(int(self))

    @property
    def label(self) -> str:
        return self.LABELS[int(self)]

    @classmethod
    def low(cls) -> "VatRate":
        return cls(9)

    @classmethod
    def high(cls) -> "VatRate":
        return cls(21)


# ---------------------------------------------------------------------------
# RecordKind
# ---------------------------------------------------------------------------

class RecordKind(str):
    """
    Whether a record is an expense or a sale.

    ``"expense"`` — you paid a supplier. VAT = voorbelasting → reclaimable.
    ``"sale"``    — a customer paid you. VAT = omzetbelasting → payable.
    """

    _VALID = {"expense", "sale"}

    def __new__(cls, value: str = "expense") -> "RecordKind":
        normalised = str(value).strip().lower()
        if normalised not in cls._VALID:
            raise InvalidRecordError(f"Record kind must be 'expense' or 'sale', got {value!r}")
        return super().__new__(cls, normalised)

    @classmethod
    def expense(cls) -> "RecordKind":
        return cls("expense")

    @classmethod
    def sale(cls) -> "RecordKind":
        return cls("sale")

    @property
    def label(self) -> str:
        return str(self).capitalize()


# ---------------------------------------------------------------------------
# Labelled string choices
# ---------------------------------------------------------------------------

class _Choice(str):
    """
    A string restricted to ``VALID``; unknown values fall back to ``DEFAULT``.

    Matching is case-insensitive and the canonical spelling is kept, so
    ``"whatsapp"`` becomes ``"WhatsApp"``.
    """

    VALID: tuple = ()
    DEFAULT: str = ""

    def __new__(cls, value: Optional[str] = None):
        wanted = str(value if value is not None else cls.DEFAULT).strip().lower()
        for canonical in cls.VALID:
            if canonical.lower() == wanted:
                return super().__new__(cls, canonical)
        return super().__new__(cls, cls.DEFAULT)


class ExpenseCategory(_Choice):
    """Expense category; unknown values are normalised to ``"Other"``."""

    VALID = ("Ingredients", "Packaging", "Marketing", "Utilities", "Salary", "Other")
    DEFAULT = "Other"

    @classmethod
    def other(cls) -> "ExpenseCategory":
        return cls("Other")


EXPENSE_CATEGORIES: List[str] = list(ExpenseCategory.VALID)


class InvoiceStatus(_Choice):
    VALID = ("Draft", "Sent", "Paid", "Overdue")
    DEFAULT = "Draft"


class OrderStatus(_Choice):
    VALID = ("Pending", "Preparing", "Ready", "Delivered", "Cancelled")
    DEFAULT = "Pending"


class OrderSource(_Choice):
    VALID = ("Call", "WhatsApp", "Website", "KookXtra", "Other")
    DEFAULT = "Other"


# ---------------------------------------------------------------------------
# MonetaryRecord
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MonetaryRecord:
    """
    One VAT-inclusive money movement — the unit the tax ledger aggregates.

    Inputs are coerced on construction: amounts from numbers or strings,
    dates from ``date``/``datetime``/ISO strings, rates and kinds through
    their closed sets. Records are immutable once built.
    """

    gross_amount: Decimal
    vat_rate:     VatRate
    date:         date
    kind:         RecordKind = field(default_factory=RecordKind.expense)
    description:  Optional[str] = None
    category:     Optional[ExpenseCategory] = None
    source:       Optional[str] = None   # e.g. "expense", "invoice:INV-001", "order:101"
    id:           str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "gross_amount", _require_amount(self.gross_amount, "gross_amount"))
        object.__setattr__(self, "vat_rate", VatRate(self.vat_rate))
        object.__setattr__(self, "date", _require_date(self.date, "date"))
        object.__setattr__(self, "kind", RecordKind(self.kind))
        if self.category is not None:
            object.__setattr__(self, "category", ExpenseCategory(self.category))

    # ------------------------------------------------------------------
    # Derived helpers
    # ------------------------------------------------------------------

    @property
    def exact_vat(self) -> Decimal:
        """Unrounded VAT portion — what aggregation sums."""
        return embedded_vat(self.gross_amount, self.vat_rate.percent)

    @property
    def vat_amount(self) -> Decimal:
        """VAT portion rounded to cents — what gets stored and displayed."""
        return round_money(self.exact_vat)

    @property
    def net_amount(self) -> Decimal:
        return self.gross_amount - self.vat_amount

    @property
    def is_expense(self) -> bool:
        return str(self.kind) == "expense"

    @property
    def is_sale(self) -> bool:
        return str(self.kind) == "sale"

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "id":             self.id,
            "grossAmount":    float(self.gross_amount),
            "vatRatePercent": int(self.vat_rate),
            "date":           self.date.isoformat(),
            "kind":           self.kind.label,
            "vatAmount":      float(self.vat_amount),
            "netAmount":      float(self.net_amount),
            "description":    self.description,
            "category":       str(self.category) if self.category is not None else None,
            "source":         self.source,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(cls, d: dict) -> "MonetaryRecord":
        """
        Build a record from the boundary contract.

        Accepts the camelCase keys (``grossAmount``, ``vatRatePercent``) as
        well as the snake_case attribute names. ``kind`` is required.
        """
        def pick(*keys: str) -> Any:
            for k in keys:
                if k in d:
                    return d[k]
            return None

        if not pick("kind"):
            raise InvalidRecordError("kind is required ('expense' or 'sale').")

        kwargs = dict(
            gross_amount=pick("grossAmount", "gross_amount"),
            vat_rate=pick("vatRatePercent", "vat_rate"),
            date=pick("date"),
            kind=pick("kind"),
            description=pick("description"),
            category=pick("category"),
            source=pick("source"),
        )
        record_id = pick("id")
        if record_id:
            kwargs["id"] = str(record_id)
        return cls(**kwargs)


# ---------------------------------------------------------------------------
# Expense
# ---------------------------------------------------------------------------

@dataclass
class Expense:
    """A purchase booked by the kitchen — supplier bill, receipt, utility."""

    description: str
    amount:      Decimal                       # VAT-inclusive
    category:    ExpenseCategory = field(default_factory=ExpenseCategory.other)
    vat_rate:    VatRate = field(default_factory=VatRate.low)
    date:        date = field(default_factory=date.today)
    attachment:  Optional[str] = None          # path or URL of the scanned bill
    id:          str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        if not self.description or not str(self.description).strip():
            raise InvalidRecordError("Expense needs a description.")
        self.amount = _require_amount(self.amount, "amount")
        self.category = ExpenseCategory(self.category)
        self.vat_rate = VatRate(self.vat_rate)
        self.date = _require_date(self.date, "date")

    @property
    def tax_amount(self) -> Decimal:
        """Reclaimable VAT, rounded per expense."""
        return round_money(embedded_vat(self.amount, self.vat_rate.percent))

    def to_record(self) -> MonetaryRecord:
        return MonetaryRecord(
            gross_amount=self.amount,
            vat_rate=self.vat_rate,
            date=self.date,
            kind=RecordKind.expense(),
            description=self.description,
            category=self.category,
            source="expense",
            id=self.id,
        )

    def to_dict(self) -> dict:
        return {
            "id":          self.id,
            "description": self.description,
            "amount":      float(self.amount),
            "category":    str(self.category),
            "vatRate":     int(self.vat_rate),
            "taxAmount":   float(self.tax_amount),
            "date":        self.date.isoformat(),
            "attachment":  self.attachment,
        }


# ---------------------------------------------------------------------------
# Invoice
# ---------------------------------------------------------------------------

@dataclass
class InvoiceLine:
    """A VAT-exclusive invoice line."""

    description: str
    amount:      Decimal

    def __post_init__(self) -> None:
        self.amount = _require_amount(self.amount, "line amount")

    def to_dict(self) -> dict:
        return {"description": self.description, "amount": float(self.amount)}


@dataclass
class Invoice:
    """
    A sales invoice to a client (catering, corporate events).

    Unlike expenses and orders, invoice lines are priced *excluding* VAT;
    VAT is added on top of the subtotal and rounded once per invoice.
    """

    client_name: str
    lines:       List[InvoiceLine] = field(default_factory=list)
    vat_rate:    VatRate = field(default_factory=VatRate.low)
    date:        date = field(default_factory=date.today)
    due_date:    Optional[date] = None
    status:      InvoiceStatus = field(default_factory=InvoiceStatus)
    id:          str = field(default_factory=lambda: f"INV-{uuid.uuid4().hex[:6].upper()}")

    def __post_init__(self) -> None:
        if not self.client_name or not str(self.client_name).strip():
            raise InvalidRecordError("Invoice needs a client name.")
        if not self.lines:
            raise InvalidRecordError("Invoice needs at least one line.")
        self.lines = [
            ln if isinstance(ln, InvoiceLine) else InvoiceLine(**ln) for ln in self.lines
        ]
        self.vat_rate = VatRate(self.vat_rate)
        self.date = _require_date(self.date, "date")
        self.due_date = _require_date(self.due_date, "due_date") if self.due_date else self.date
        self.status = InvoiceStatus(self.status)

    @property
    def subtotal(self) -> Decimal:
        return sum((ln.amount for ln in self.lines), ZERO)

    @property
    def vat_amount(self) -> Decimal:
        return round_money(added_vat(self.subtotal, self.vat_rate.percent))

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.vat_amount

    def to_record(self) -> MonetaryRecord:
        return MonetaryRecord(
            gross_amount=self.total,
            vat_rate=self.vat_rate,
            date=self.date,
            kind=RecordKind.sale(),
            description=f"Invoice {self.id} - {self.client_name}",
            source=f"invoice:{self.id}",
            id=self.id,
        )

    def to_dict(self) -> dict:
        return {
            "id":         self.id,
            "clientName": self.client_name,
            "items":      [ln.to_dict() for ln in self.lines],
            "subtotal":   float(self.subtotal),
            "vatRate":    int(self.vat_rate),
            "vatAmount":  float(self.vat_amount),
            "total":      float(self.total),
            "date":       self.date.isoformat(),
            "dueDate":    self.due_date.isoformat() if self.due_date else None,
            "status":     str(self.status),
        }


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------

@dataclass
class OrderItem:
    name:     str
    quantity: int = 1
    type:     str = "Restaurant"     # "Home Cooked" | "Restaurant" | "Drink"

    def to_dict(self) -> dict:
        return {"name": self.name, "quantity": self.quantity, "type": self.type}


@dataclass
class Order:
    """A customer order. ``total_amount`` is VAT-inclusive, like a menu price."""

    customer_name:   str
    total_amount:    Decimal
    vat_rate:        VatRate = field(default_factory=VatRate.low)
    items:           List[OrderItem] = field(default_factory=list)
    status:          OrderStatus = field(default_factory=OrderStatus)
    source:          OrderSource = field(default_factory=lambda: OrderSource("Call"))
    date:            date = field(default_factory=date.today)
    is_subscription: bool = False
    is_bulk:         bool = False
    platform_fee:    Decimal = ZERO
    id:              str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    def __post_init__(self) -> None:
        if not self.customer_name or not str(self.customer_name).strip():
            raise InvalidRecordError("Order needs a customer name.")
        self.total_amount = _require_amount(self.total_amount, "total_amount")
        self.platform_fee = _require_amount(self.platform_fee, "platform_fee")
        self.vat_rate = VatRate(self.vat_rate)
        self.status = OrderStatus(self.status)
        self.source = OrderSource(self.source)
        self.date = _require_date(self.date, "date")

    @property
    def vat_amount(self) -> Decimal:
        return round_money(embedded_vat(self.total_amount, self.vat_rate.percent))

    @property
    def is_cancelled(self) -> bool:
        return str(self.status) == "Cancelled"

    def to_record(self) -> MonetaryRecord:
        if self.is_cancelled:
            raise InvalidRecordError(f"Order {self.id} is cancelled and has no taxable sale.")
        return MonetaryRecord(
            gross_amount=self.total_amount,
            vat_rate=self.vat_rate,
            date=self.date,
            kind=RecordKind.sale(),
            description=f"Order {self.id} - {self.customer_name}",
            source=f"order:{self.id}",
            id=f"order-{self.id}",
        )

    def to_dict(self) -> dict:
        return {
            "id":             self.id,
            "customerName":   self.customer_name,
            "items":          [i.to_dict() for i in self.items],
            "totalAmount":    float(self.total_amount),
            "vatRate":        int(self.vat_rate),
            "vatAmount":      float(self.vat_amount),
            "status":         str(self.status),
            "source":         str(self.source),
            "date":           self.date.isoformat(),
            "isSubscription": self.is_subscription,
            "isBulk":         self.is_bulk,
            "platformFee":    float(self.platform_fee),
        }
