"""
kitchenledger.utils
~~~~~~~~~~~~~~~~~~~
Parsing helpers shared by the models, the scan boundary, the CLI and the API.

These functions are intentionally conservative — they prefer returning
``None`` over returning plausibly wrong values.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Currency noise stripped before amount parsing
_CURRENCY_RE = re.compile(r"(€|eur|euro)", re.IGNORECASE)

# Dutch month names → month number (English handled by the same table)
_MONTH_MAP = {
    "januari": 1,   "january": 1,   "jan": 1,
    "februari": 2,  "february": 2,  "feb": 2,
    "maart": 3,     "march": 3,     "mrt": 3,   "mar": 3,
    "april": 4,     "apr": 4,
    "mei": 5,       "may": 5,
    "juni": 6,      "june": 6,      "jun": 6,
    "juli": 7,      "july": 7,      "jul": 7,
    "augustus": 8,  "august": 8,    "aug": 8,
    "september": 9, "sep": 9,       "sept": 9,
    "oktober": 10,  "october": 10,  "okt": 10,  "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

_DATE_FORMATS = [
    "%Y-%m-%d",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d/%m/%Y",
    "%Y/%m/%d",
]

_NAMED_MONTH_RE = re.compile(r"^(\d{1,2})\s+([A-Za-z]+)\.?\s+(\d{4})$")


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------

def parse_decimal(value: Any) -> Optional[Decimal]:
    """Safely coerce any value to ``Decimal``, returning ``None`` on failure."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse a monetary amount written either way round.

    Accepts plain numbers, ``"45.00"``, Dutch ``"1.234,56"``, English
    ``"1,234.56"`` and strings carrying ``€``/``EUR``. When both separators
    appear, the last one is the decimal separator.
    """
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return parse_decimal(value)
    if not isinstance(value, str):
        return None

    s = _CURRENCY_RE.sub("", value).strip().replace(" ", "")
    if not s:
        return None

    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", ".")

    return parse_decimal(s)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def to_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a date from ``date``/``datetime`` objects or strings.

    ISO ``YYYY-MM-DD`` first, then common European formats and finally
    ``"25 oktober 2023"`` style named months. Explicit format strings avoid
    locale dependency.
    """
    if isinstance(value, (date, datetime)):
        return to_date(value)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    # Tolerate full ISO timestamps
    if "T" in text:
        text = text.split("T", 1)[0]

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    m = _NAMED_MONTH_RE.match(text)
    if m:
        month = _MONTH_MAP.get(m.group(2).lower())
        if month:
            try:
                return date(int(m.group(3)), month, int(m.group(1)))
            except ValueError:
                return None
    return None


# ---------------------------------------------------------------------------
# JSON cleaning
# ---------------------------------------------------------------------------

def clean_json_response(response: str) -> str:
    """
    Extract and sanitise a JSON object from a scanner/LLM response string.

    Handles:
    - Markdown code fences (```json … ```)
    - Trailing commas in objects and arrays

    Returns an empty JSON object ``{}`` on total failure so callers can
    always call ``json.loads()`` on the result.
    """
    response = re.sub(r"```(?:json)?\s*", "", response)
    response = re.sub(r"```\s*$", "", response, flags=re.MULTILINE)
    response = response.strip()

    response = re.sub(r",\s*([}\]])", r"\1", response)

    match = re.search(r"\{.*\}", response, re.DOTALL)
    if not match:
        logger.warning("No JSON object found in scan response.")
        return "{}"

    candidate = match.group(0)
    try:
        json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.warning("Could not produce valid JSON after cleaning: %s", exc)
        return "{}"
    return candidate
