"""
examples/quarterly_return.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Book a handful of kitchen expenses, an invoice and some orders, then print
the BTW position for the quarter they fall in.

Usage
-----
    python -m examples.quarterly_return
    python -m examples.quarterly_return --db /tmp/demo.db
    python -m examples.quarterly_return --output-dir results/     # also save JSON
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

logging.basicConfig(level=logging.WARNING, format="%(levelname)s  %(name)s — %(message)s")

from kitchenledger import Expense, Invoice, Order, TaxLedger, current_fiscal_quarter, parse_scan_result
from kitchenledger.exceptions import LedgerError
from kitchenledger.storage import get_repository


def _demo_records():
    yield Expense(description="Sligro weekly order", amount="109.00",
                  category="Ingredients", vat_rate=9, date=date(2023, 10, 3)).to_record()
    yield Expense(description="Takeaway boxes", amount="60.50",
                  category="Packaging", vat_rate=21, date=date(2023, 10, 9)).to_record()
    yield parse_scan_result(
        '```json\n{"description": "Eneco", "amount": "242,00", "category": "utilities"}\n```',
        today=date(2023, 10, 31),
    ).to_record()
    yield Invoice(client_name="Tech Corp", vat_rate=21, date=date(2023, 10, 20),
                  lines=[{"description": "Lunch buffet 30p", "amount": "400.00"},
                         {"description": "Delivery", "amount": "50.00"}]).to_record()
    for i, (customer, total) in enumerate([("Priya", "32.70"), ("Sanne", "18.53")], start=1):
        yield Order(customer_name=customer, total_amount=total, source="WhatsApp",
                    status="Delivered", date=date(2023, 11, i)).to_record()


def quarterly_return(db_path: Path | None = None, output_dir: Path | None = None) -> bool:
    quarter = current_fiscal_quarter(date(2023, 11, 15))
    ledger = TaxLedger()

    try:
        with get_repository(db_path) as repo:
            for record in _demo_records():
                repo.save(record)
            records = list(repo.find_by_period(quarter.start, quarter.end))
    except LedgerError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return False

    position = ledger.aggregate(records, quarter.date_range)
    print(position.summary())
    print(f"\n  File by {quarter.deadline_label}.")

    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)
        out = output_dir / f"btw_q{quarter.quarter}_{quarter.year}.json"
        position.to_json(out)
        print(f"  Saved → {out}")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Book demo records and print the quarter's VAT return.")
    parser.add_argument("--db", default=None, type=Path, help="SQLite path (default: project database)")
    parser.add_argument("--output-dir", default=None, type=Path, help="Also write the JSON report here")
    args = parser.parse_args()
    sys.exit(0 if quarterly_return(args.db, args.output_dir) else 1)


if __name__ == "__main__":
    main()
