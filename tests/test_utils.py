"""
tests/test_utils.py
~~~~~~~~~~~~~~~~~~~
Tests for kitchenledger.utils and kitchenledger.money — amount and date
parsing, JSON cleaning, half-up rounding.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal

import pytest

from kitchenledger.money import added_vat, embedded_vat, round_money
from kitchenledger.utils import clean_json_response, parse_amount, parse_date, parse_decimal


# ---------------------------------------------------------------------------
# parse_decimal / parse_amount
# ---------------------------------------------------------------------------

class TestParseDecimal:
    def test_number(self):
        assert parse_decimal(12) == Decimal("12")

    def test_float_goes_through_str(self):
        assert parse_decimal(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("value", [None, True, "abc", "NaN", "inf"])
    def test_rejects(self, value):
        assert parse_decimal(value) is None


class TestParseAmount:
    @pytest.mark.parametrize("raw, expected", [
        ("45.00", "45.00"),
        ("45,00", "45.00"),
        ("1.234,56", "1234.56"),
        ("1,234.56", "1234.56"),
        ("€ 12,50", "12.50"),
        ("12.50 EUR", "12.50"),
        (" 7 ", "7"),
    ])
    def test_formats(self, raw, expected):
        assert parse_amount(raw) == Decimal(expected)

    def test_numbers_pass_through(self):
        assert parse_amount(Decimal("3.33")) == Decimal("3.33")
        assert parse_amount(5) == Decimal("5")

    @pytest.mark.parametrize("value", ["", "€", "twelve", None, [], False])
    def test_rejects(self, value):
        assert parse_amount(value) is None


# ---------------------------------------------------------------------------
# parse_date
# ---------------------------------------------------------------------------

class TestParseDate:
    @pytest.mark.parametrize("raw", [
        "2023-10-25",
        "2023-10-25T14:03:00",
        "25-10-2023",
        "25.10.2023",
        "25/10/2023",
        "2023/10/25",
        "25 oktober 2023",
        "25 October 2023",
        "25 okt. 2023",
    ])
    def test_formats(self, raw):
        assert parse_date(raw) == date(2023, 10, 25)

    def test_datetime_truncated(self):
        assert parse_date(datetime(2023, 10, 25, 9, 0)) == date(2023, 10, 25)

    def test_date_passthrough(self):
        assert parse_date(date(2023, 1, 1)) == date(2023, 1, 1)

    @pytest.mark.parametrize("raw", ["", "   ", "yesterday", "31 februari 2023", "2023-13-01", 20231025])
    def test_rejects(self, raw):
        assert parse_date(raw) is None


# ---------------------------------------------------------------------------
# clean_json_response
# ---------------------------------------------------------------------------

class TestCleanJsonResponse:
    def test_strips_markdown_fence(self):
        raw = '```json\n{"amount": 1}\n```'
        assert json.loads(clean_json_response(raw)) == {"amount": 1}

    def test_removes_trailing_commas(self):
        raw = '{"items": [1, 2,], "amount": 3,}'
        assert json.loads(clean_json_response(raw)) == {"items": [1, 2], "amount": 3}

    def test_surrounding_prose_ignored(self):
        raw = 'Here is the receipt: {"amount": 9} hope that helps'
        assert json.loads(clean_json_response(raw)) == {"amount": 9}

    def test_returns_empty_object_on_no_json(self):
        assert clean_json_response("no braces here") == "{}"

    def test_returns_empty_object_on_broken_json(self):
        assert clean_json_response('{"amount": }') == "{}"


# ---------------------------------------------------------------------------
# money
# ---------------------------------------------------------------------------

class TestMoney:
    def test_round_half_up(self):
        assert round_money(Decimal("0.005")) == Decimal("0.01")
        assert round_money(Decimal("2.675")) == Decimal("2.68")
        assert round_money(Decimal("-0.005")) == Decimal("-0.01")

    def test_embedded_vat(self):
        assert round_money(embedded_vat(Decimal("121"), Decimal("21"))) == Decimal("21.00")
        assert embedded_vat(Decimal("50"), Decimal("0")) == Decimal("0")

    def test_added_vat(self):
        assert added_vat(Decimal("450.00"), Decimal("21")) == Decimal("94.5")
