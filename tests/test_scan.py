"""
tests/test_scan.py
~~~~~~~~~~~~~~~~~~
Tests for kitchenledger.scan — parse_scan_result and the ScannedReceipt schema.
"""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest

from kitchenledger.exceptions import InvalidRateError, ScanParseError
from kitchenledger.models import Expense
from kitchenledger.scan import DEFAULT_DESCRIPTION, DEFAULT_SCAN_VAT_RATE, parse_scan_result


class TestParseScanResult:
    def test_dict_payload(self, scan_payload):
        e = parse_scan_result(scan_payload)
        assert isinstance(e, Expense)
        assert e.description == "Hanos groothandel"
        assert e.amount == Decimal("1234.56")
        assert e.category == "Ingredients"
        assert e.vat_rate == 9
        assert e.date == date(2023, 11, 14)

    def test_json_string_payload(self, scan_payload):
        e = parse_scan_result(json.dumps(scan_payload))
        assert e.amount == Decimal("1234.56")

    def test_bytes_payload(self, scan_payload):
        e = parse_scan_result(json.dumps(scan_payload).encode("utf-8"))
        assert e.vat_rate == 9

    def test_markdown_fenced_payload(self):
        raw = '```json\n{"description": "Makro", "amount": 12.10, "vatRate": 21,}\n```'
        e = parse_scan_result(raw)
        assert e.description == "Makro"
        assert e.amount == Decimal("12.1")

    def test_defaults(self):
        e = parse_scan_result({"amount": 10}, today=date(2023, 10, 2))
        assert e.description == DEFAULT_DESCRIPTION
        assert e.vat_rate == DEFAULT_SCAN_VAT_RATE == 21
        assert e.category == "Other"
        assert e.date == date(2023, 10, 2)

    def test_blank_description_gets_default(self):
        assert parse_scan_result({"amount": 1, "description": "  "}).description == DEFAULT_DESCRIPTION

    def test_unknown_category_is_other(self):
        assert parse_scan_result({"amount": 1, "category": "Flowers"}).category == "Other"

    def test_snake_case_rate_accepted(self):
        assert parse_scan_result({"amount": 1, "vat_rate": 0}).vat_rate == 0

    def test_attachment_kept(self):
        e = parse_scan_result({"amount": 1}, attachment="bon.jpg")
        assert e.attachment == "bon.jpg"

    def test_tax_amount(self):
        assert parse_scan_result({"amount": "121,00"}).tax_amount == Decimal("21.00")


class TestParseScanResultFailures:
    def test_invalid_rate(self):
        with pytest.raises(ScanParseError) as exc_info:
            parse_scan_result({"amount": 10, "vatRate": 19})
        assert exc_info.value.cause is not None

    def test_invalid_rate_message_mentions_rates(self):
        with pytest.raises(ScanParseError) as exc_info:
            parse_scan_result({"amount": 10, "vatRate": 6})
        assert "VAT rate" in str(exc_info.value)

    def test_missing_amount(self):
        with pytest.raises(ScanParseError):
            parse_scan_result({"description": "Sligro"})

    def test_negative_amount(self):
        with pytest.raises(ScanParseError):
            parse_scan_result({"amount": -3})

    def test_unparseable_amount(self):
        with pytest.raises(ScanParseError):
            parse_scan_result({"amount": "a lot"})

    def test_bad_date(self):
        with pytest.raises(ScanParseError):
            parse_scan_result({"amount": 1, "date": "next tuesday"})

    def test_not_json(self):
        with pytest.raises(ScanParseError):
            parse_scan_result("the scanner crashed")

    def test_unsupported_type(self):
        with pytest.raises(ScanParseError):
            parse_scan_result(42)  # type: ignore[arg-type]

    def test_is_not_a_rate_error(self):
        with pytest.raises(ScanParseError) as exc_info:
            parse_scan_result({"amount": 1, "vatRate": 19})
        assert not isinstance(exc_info.value, InvalidRateError)
