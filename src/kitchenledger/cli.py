"""
kitchenledger.cli
~~~~~~~~~~~~~~~~~
Command-line interface for kitchenledger.

Entry point registered in pyproject.toml::

    [project.scripts]
    kitchenledger = "kitchenledger.cli:main"

Usage examples
--------------
    kitchenledger --version

    # Book an expense and a sale (amounts include VAT)
    kitchenledger --add-expense --amount 45.00 --rate 9 --date 2023-10-25 \\
                  --description "Basmati rice 25kg" --category Ingredients
    kitchenledger --add-sale --amount 544.50 --rate 21 --date 2023-10-20

    # Import a receipt-scan JSON result as an expense
    kitchenledger --import-scan scan.json

    # VAT position for a date range, or for a filing quarter
    kitchenledger --report --start 2023-10-01 --end 2023-10-31
    kitchenledger --report --quarter 4 --year 2023 --output btw_q4.json
    kitchenledger --report --quarter 4 --year 2023 --save   # project reports/ folder

    # Which quarter are we in, and when is the return due?
    kitchenledger --quarter-info --date 2023-12-15

    # Small-business scheme check
    kitchenledger --kor --year 2023
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from importlib.metadata import version
from pathlib import Path

from kitchenledger.config import Config
from kitchenledger.exceptions import DuplicateRecordError, LedgerError
from kitchenledger.models import MonetaryRecord, RecordKind
from kitchenledger.scan import parse_scan_result
from kitchenledger.storage import get_repository
from kitchenledger.storage.project import resolve_project
from kitchenledger.tax.ledger import TaxLedger, annual_revenue
from kitchenledger.tax.periods import DateRange, current_fiscal_quarter, fiscal_quarter


# ---------------------------------------------------------------------------
# CLI class
# ---------------------------------------------------------------------------

class KitchenLedgerCLI:

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or Config()
        self.ledger = TaxLedger(config=self.config)

    # ------------------------------------------------------------------
    # Utility
    # ------------------------------------------------------------------

    def print_version(self) -> None:
        try:
            print(f"kitchenledger version: {version('kitchenledger')}")
        except Exception:
            print("kitchenledger version: unknown")

    def resolve_db(self, db: str | Path | None = None, project: str | None = None) -> Path:
        """--db beats --project beats KITCHENLEDGER_DB_PATH beats the project layout."""
        if db:
            return Path(db)
        if project:
            return resolve_project(project).db_path
        if self.config.db_path:
            return self.config.db_path
        return resolve_project(self.config.project).db_path

    def resolve_reports_dir(self, db: str | Path | None = None, project: str | None = None) -> Path:
        """The project's ``reports/`` folder, or one beside an explicit database file."""
        if db or (not project and self.config.db_path):
            return self.resolve_db(db, project).parent / "reports"
        return resolve_project(project or self.config.project).reports_dir

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def add_record(
        self,
        kind: str,
        amount: str,
        rate: int | None = None,
        record_date: str | None = None,
        description: str | None = None,
        category: str | None = None,
        db_path: Path | None = None,
    ) -> int:
        """Book one VAT-inclusive record. Returns exit code."""
        if rate is None:
            rate = (
                self.config.default_sale_vat_rate
                if kind == "sale"
                else self.config.default_expense_vat_rate
            )
        try:
            record = MonetaryRecord(
                gross_amount=amount,
                vat_rate=rate,
                date=record_date or date.today(),
                kind=RecordKind(kind),
                description=description,
                category=category if kind == "expense" else None,
                source="cli",
            )
        except LedgerError as exc:
            print(f"[error] {exc}", file=sys.stderr)
            return 1

        with get_repository(db_path) as repo:
            repo.save(record)

        print(
            f"✓  {record.kind.label.upper():<8} {record.date}  "
            f"{record.gross_amount:.2f} {self.config.currency}  "
            f"(VAT {int(record.vat_rate)}%: {record.vat_amount:.2f})  id={record.id[:12]}"
        )
        return 0

    def import_scan(self, scan_file: str | Path, db_path: Path | None = None) -> int:
        """Validate a scan-result JSON file and book it as an expense."""
        path = Path(scan_file)
        if not path.exists():
            print(f"[error] File not found: {path}", file=sys.stderr)
            return 1

        try:
            expense = parse_scan_result(path.read_text(encoding="utf-8"), attachment=str(path))
        except LedgerError as exc:
            print(f"✗  Scan rejected: {exc}", file=sys.stderr)
            return 1

        try:
            with get_repository(db_path) as repo:
                repo.add(expense.to_record())
        except DuplicateRecordError as exc:
            print(f"⚠  Duplicate — already booked (id: {exc.existing_id[:12]}…)")
            return 0

        print(
            f"✓  EXPENSE  {expense.description}  {expense.amount:.2f} {self.config.currency}  "
            f"[{expense.category}]  VAT {int(expense.vat_rate)}%: {expense.tax_amount:.2f}"
        )
        return 0

    def list_records(self, db_path: Path | None = None, kind: str | None = None) -> int:
        with get_repository(db_path) as repo:
            records = list(repo.find_by_kind(kind) if kind else repo.list_all())

        if not records:
            print("No records booked yet.")
            return 0

        W = 78
        print("─" * W)
        print(f"  {'DATE':<10}  {'KIND':<8} {'GROSS':>10} {'VAT%':>5} {'VAT':>8}  DESCRIPTION")
        print("─" * W)
        for r in records:
            print(
                f"  {r.date.isoformat():<10}  {r.kind.label:<8} {r.gross_amount:>10.2f} "
                f"{int(r.vat_rate):>4}% {r.vat_amount:>8.2f}  {r.description or '—'}"
            )
        print("─" * W)
        print(f"  {len(records)} record(s)")
        return 0

    # ------------------------------------------------------------------
    # VAT report
    # ------------------------------------------------------------------

    def run_report(
        self,
        date_range: DateRange,
        db_path: Path | None = None,
        output: Path | None = None,
        output_dir: Path | None = None,
        name: str | None = None,
    ) -> int:
        """
        Print the VAT position for ``date_range``.

        Args:
            output:     Explicit output file path. Takes priority over output_dir.
            output_dir: Directory to write an auto-named file
                        (e.g. ``btw_q4_2023.json``).
            name:       Stem for the auto-named file.
        """
        with get_repository(db_path) as repo:
            if date_range.is_reversed:
                # Nil return: every record falls outside the range.
                records = list(repo.list_all())
            else:
                records = list(repo.find_by_period(date_range.start, date_range.end))

        if not records and not date_range.is_reversed:
            print(f"No records found for {date_range}.")
            return 1

        position = self.ledger.aggregate(records, date_range)
        print(position.summary(currency=self.config.currency))

        out_path: Path | None = None
        if output:
            out_path = output
        elif output_dir:
            output_dir.mkdir(parents=True, exist_ok=True)
            stem = name or f"btw_{date_range.start}_{date_range.end}"
            out_path = output_dir / f"{stem}.json"

        if out_path:
            position.to_json(out_path)
            print(f"Report saved to {out_path}")

        totals = self.ledger.category_totals(records, date_range)
        if totals:
            print("\n  EXPENSES BY CATEGORY")
            for cat, amt in totals.items():
                print(f"  {cat:<14} {amt:>10.2f} {self.config.currency}")

        return 0

    def quarter_info(self, reference_date: str | None = None) -> int:
        try:
            q = current_fiscal_quarter(reference_date)
        except ValueError as exc:
            print(f"[error] {exc}", file=sys.stderr)
            return 1
        today = date.today()
        days = q.days_until_deadline(today)
        print(f"  Quarter  : {q.label} {q.year}")
        print(f"  Period   : {q.start} t/m {q.end}")
        print(f"  Deadline : {q.deadline_label}")
        if days >= 0:
            print(f"  Due in   : {days} day(s)")
        else:
            print(f"  Overdue  : {-days} day(s)")
        return 0

    def kor_check(self, year: int, db_path: Path | None = None) -> int:
        with get_repository(db_path) as repo:
            sales = list(repo.find_by_kind("sale"))
        revenue = annual_revenue(sales, year)
        threshold = self.config.kor_threshold
        eligible = self.ledger.kor_eligible(sales, year)
        print(f"  Revenue {year} : {revenue:.2f} {self.config.currency}")
        print(f"  KOR ceiling  : {threshold:.2f} {self.config.currency}")
        print(f"  KOR eligible : {'yes' if eligible else 'no'}")
        return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="kitchenledger: book kitchen expenses and sales, prepare Dutch VAT returns.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--version", action="store_true",
        help="Show package version and exit.",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose output.",
    )
    parser.add_argument(
        "--db", default=None, metavar="FILE",
        help="SQLite database path (default: ~/.kitchenledger/<project>/kitchenledger.db).",
    )
    parser.add_argument(
        "--project", default=None, metavar="NAME",
        help="Project folder under ~/.kitchenledger/.",
    )

    # -- Booking -----------------------------------------------------------
    book_group = parser.add_argument_group("Booking")
    book_group.add_argument(
        "--add-expense", action="store_true",
        help="Book an expense (VAT reclaimable).",
    )
    book_group.add_argument(
        "--add-sale", action="store_true",
        help="Book a sale (VAT payable).",
    )
    book_group.add_argument(
        "--amount", default=None, metavar="GROSS",
        help="VAT-inclusive amount, e.g. 45.00 or 45,00.",
    )
    book_group.add_argument(
        "--rate", type=int, default=None, choices=[0, 9, 21],
        help="VAT rate in percent. Defaults to the configured rate.",
    )
    book_group.add_argument(
        "--date", default=None, metavar="YYYY-MM-DD",
        help="Booking date, or reference date for --quarter-info.",
    )
    book_group.add_argument(
        "--description", default=None,
        help="Free-text description.",
    )
    book_group.add_argument(
        "--category", default=None,
        help="Expense category (Ingredients, Packaging, Marketing, Utilities, Salary, Other).",
    )
    book_group.add_argument(
        "--import-scan", default=None, metavar="FILE",
        help="Book a receipt-scan JSON result as an expense.",
    )
    book_group.add_argument(
        "--list", action="store_true",
        help="List booked records.",
    )
    book_group.add_argument(
        "--kind", default=None, choices=["expense", "sale"],
        help="Restrict --list to one kind.",
    )

    # -- Tax ------------------------------------------------------------------
    tax_group = parser.add_argument_group("VAT return")
    tax_group.add_argument(
        "--report", action="store_true",
        help="Print the VAT position for --start/--end or --quarter/--year.",
    )
    tax_group.add_argument("--start", default=None, metavar="YYYY-MM-DD")
    tax_group.add_argument("--end", default=None, metavar="YYYY-MM-DD")
    tax_group.add_argument(
        "--quarter", type=int, default=None, choices=[1, 2, 3, 4],
        help="Filing quarter for the report.",
    )
    tax_group.add_argument(
        "--year", type=int, default=date.today().year,
        help="Year for --quarter and --kor.",
    )
    tax_group.add_argument(
        "--output", default=None, metavar="FILE",
        help="Write the JSON report to this file.",
    )
    tax_group.add_argument(
        "--output-dir", default=None, metavar="DIR",
        help="Write an auto-named JSON report into this directory.",
    )
    tax_group.add_argument(
        "--save", action="store_true",
        help="Write an auto-named JSON report into the project's reports/ folder.",
    )
    tax_group.add_argument(
        "--quarter-info", action="store_true",
        help="Show the filing quarter and deadline for --date (default today).",
    )
    tax_group.add_argument(
        "--kor", action="store_true",
        help="Check small-business scheme (KOR) eligibility for --year.",
    )

    # -- Web API ------------------------------------------------------------
    ui_group = parser.add_argument_group("Web API")
    ui_group.add_argument(
        "--ui", action="store_true",
        help="Start the HTTP API server.",
    )
    ui_group.add_argument("--host", default="127.0.0.1", metavar="HOST")
    ui_group.add_argument("--port", default=8000, type=int, metavar="PORT")
    ui_group.add_argument(
        "--reload", action="store_true",
        help="Enable hot-reload (development mode).",
    )
    ui_group.add_argument(
        "--log-level",
        default="warning",
        choices=["debug", "info", "warning", "error"],
        metavar="LEVEL",
        help="Log level for the server (debug, info, warning, error).",
    )

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args   = parser.parse_args(argv)
    cli    = KitchenLedgerCLI()

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)-8s %(name)s — %(message)s",
        )

    if args.version:
        cli.print_version()
        return 0

    try:
        db_path = cli.resolve_db(args.db, args.project)
    except ValueError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1

    # -- Booking -----------------------------------------------------------
    if args.add_expense or args.add_sale:
        if args.amount is None:
            print("[error] --amount is required.", file=sys.stderr)
            return 1
        return cli.add_record(
            kind="sale" if args.add_sale else "expense",
            amount=args.amount,
            rate=args.rate,
            record_date=args.date,
            description=args.description,
            category=args.category,
            db_path=db_path,
        )

    if args.import_scan:
        return cli.import_scan(args.import_scan, db_path=db_path)

    if args.list:
        return cli.list_records(db_path=db_path, kind=args.kind)

    # -- VAT ---------------------------------------------------------------
    if args.report:
        if args.quarter:
            q = fiscal_quarter(args.quarter, args.year)
            rng, name = q.date_range, f"btw_q{q.quarter}_{q.year}"
        elif args.start and args.end:
            try:
                rng, name = DateRange(args.start, args.end), None
            except LedgerError as exc:
                print(f"[error] {exc}", file=sys.stderr)
                return 1
        else:
            q = current_fiscal_quarter()
            rng, name = q.date_range, f"btw_q{q.quarter}_{q.year}"
        output_dir: Path | None = None
        if args.output_dir:
            output_dir = Path(args.output_dir)
        elif args.save:
            output_dir = cli.resolve_reports_dir(args.db, args.project)
        return cli.run_report(
            rng,
            db_path=db_path,
            output=Path(args.output) if args.output else None,
            output_dir=output_dir,
            name=name,
        )

    if args.quarter_info:
        return cli.quarter_info(args.date)

    if args.kor:
        return cli.kor_check(args.year, db_path=db_path)

    # -- Web API -----------------------------------------------------------
    if args.ui:
        from kitchenledger.ui.server import launch
        launch(
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level=args.log_level,
        )
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
