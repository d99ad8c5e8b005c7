"""
tests/test_cli_inprocess.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~
In-process tests for the kitchenledger CLI against a temporary database.
"""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest

from kitchenledger.cli import KitchenLedgerCLI, main
from kitchenledger.models import Expense
from kitchenledger.storage.sqlite import SQLiteRepository


@pytest.fixture
def db(tmp_path):
    return str(tmp_path / "cli.db")


def _book_october(db: str) -> None:
    assert main(["--db", db, "--add-expense", "--amount", "45,00", "--rate", "9",
                 "--date", "2023-10-25", "--category", "ingredients",
                 "--description", "Basmati rice"]) == 0
    assert main(["--db", db, "--add-sale", "--amount", "544.50", "--rate", "21",
                 "--date", "2023-10-20"]) == 0


class TestKitchenLedgerCLI:

    def test_print_version(self, capsys):
        KitchenLedgerCLI().print_version()
        assert "kitchenledger version" in capsys.readouterr().out

    def test_resolve_db_priority(self, tmp_path, default_config):
        cli = KitchenLedgerCLI(config=default_config)
        assert cli.resolve_db(tmp_path / "a.db", "proj") == tmp_path / "a.db"
        assert cli.resolve_db(None, "proj").name == "kitchenledger.db"
        assert cli.resolve_db(None, "proj").parent.name == "proj"

    def test_add_record_uses_configured_default_rate(self, tmp_path, default_config):
        cli = KitchenLedgerCLI(config=default_config)
        db = tmp_path / "r.db"
        assert cli.add_record("sale", "10.90", record_date="2023-10-01", db_path=db) == 0
        with SQLiteRepository(db) as repo:
            (rec,) = list(repo.list_all())
        assert rec.vat_rate == 9
        assert rec.source == "cli"

    def test_import_scan_duplicate(self, mocker, tmp_path, capsys):
        expense = Expense(description="Sligro", amount=Decimal("10.90"), date=date(2023, 10, 1))
        mocker.patch("kitchenledger.cli.parse_scan_result", return_value=expense)
        scan = tmp_path / "scan.json"
        scan.write_text("{}", encoding="utf-8")

        cli = KitchenLedgerCLI()
        assert cli.import_scan(scan, db_path=tmp_path / "d.db") == 0
        assert cli.import_scan(scan, db_path=tmp_path / "d.db") == 0
        assert "Duplicate" in capsys.readouterr().out


class TestMain:

    def test_version(self, capsys):
        assert main(["--version"]) == 0
        assert "kitchenledger version" in capsys.readouterr().out

    def test_no_args_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_add_and_report(self, db, capsys):
        _book_october(db)
        rc = main(["--db", db, "--report", "--start", "2023-10-01", "--end", "2023-10-31"])
        out = capsys.readouterr().out
        assert rc == 0
        assert "90.78" in out
        assert "te betalen" in out
        assert "Ingredients" in out

    def test_quarter_report_writes_json(self, db, tmp_path, capsys):
        _book_october(db)
        out_dir = tmp_path / "reports"
        rc = main(["--db", db, "--report", "--quarter", "4", "--year", "2023",
                   "--output-dir", str(out_dir)])
        assert rc == 0
        report = json.loads((out_dir / "btw_q4_2023.json").read_text(encoding="utf-8"))
        assert report["net_position"] == "90.78"
        assert report["period_end"] == "2023-12-31"

    def test_report_explicit_output(self, db, tmp_path):
        _book_october(db)
        out = tmp_path / "q.json"
        assert main(["--db", db, "--report", "--quarter", "4", "--year", "2023",
                     "--output", str(out)]) == 0
        assert json.loads(out.read_text(encoding="utf-8"))["vat_input"] == "3.72"

    def test_report_without_records(self, db, capsys):
        assert main(["--db", db, "--report", "--quarter", "1", "--year", "2023"]) == 1
        assert "No records" in capsys.readouterr().out

    def test_report_bad_range(self, db, capsys):
        assert main(["--db", db, "--report", "--start", "soon", "--end", "2023-10-31"]) == 1
        assert "[error]" in capsys.readouterr().err

    def test_report_reversed_range_is_nil(self, db, capsys):
        assert main(["--db", db, "--add-sale", "--amount", "121.00", "--rate", "21",
                     "--date", "2023-10-15"]) == 0
        capsys.readouterr()
        rc = main(["--db", db, "--report", "--start", "2023-10-31", "--end", "2023-10-01"])
        out = capsys.readouterr().out
        assert rc == 0
        assert "(nihil)" in out
        assert "Buiten periode      : 1" in out
        assert "No records" not in out

    def test_report_reversed_range_empty_db(self, db, capsys):
        assert main(["--db", db, "--report", "--start", "2023-10-31", "--end", "2023-10-01"]) == 0
        assert "(nihil)" in capsys.readouterr().out

    def test_report_save_beside_db(self, db, tmp_path):
        _book_october(db)
        assert main(["--db", db, "--report", "--quarter", "4", "--year", "2023", "--save"]) == 0
        report = json.loads((tmp_path / "reports" / "btw_q4_2023.json").read_text(encoding="utf-8"))
        assert report["net_position"] == "90.78"

    def test_report_save_into_project(self, tmp_path, monkeypatch):
        monkeypatch.setattr("kitchenledger.storage.project.KITCHENLEDGER_HOME", tmp_path)
        assert main(["--project", "alinas", "--add-sale", "--amount", "121.00",
                     "--rate", "21", "--date", "2023-10-15"]) == 0
        assert main(["--project", "alinas", "--report", "--quarter", "4",
                     "--year", "2023", "--save"]) == 0
        assert (tmp_path / "alinas" / "reports" / "btw_q4_2023.json").exists()

    def test_output_dir_beats_save(self, db, tmp_path):
        _book_october(db)
        out_dir = tmp_path / "elsewhere"
        assert main(["--db", db, "--report", "--quarter", "4", "--year", "2023",
                     "--save", "--output-dir", str(out_dir)]) == 0
        assert (out_dir / "btw_q4_2023.json").exists()
        assert not (tmp_path / "reports").exists()

    def test_add_requires_amount(self, db, capsys):
        assert main(["--db", db, "--add-expense"]) == 1
        assert "--amount" in capsys.readouterr().err

    def test_add_rejects_bad_date(self, db, capsys):
        assert main(["--db", db, "--add-sale", "--amount", "10", "--date", "someday"]) == 1
        assert "[error]" in capsys.readouterr().err

    def test_list(self, db, capsys):
        assert main(["--db", db, "--list"]) == 0
        assert "No records booked yet." in capsys.readouterr().out
        _book_october(db)
        capsys.readouterr()
        assert main(["--db", db, "--list", "--kind", "sale"]) == 0
        out = capsys.readouterr().out
        assert "1 record(s)" in out
        assert "544.50" in out

    def test_import_scan(self, db, tmp_path, capsys):
        scan = tmp_path / "scan.json"
        scan.write_text(json.dumps({"description": "Hanos", "amount": "1.234,56",
                                    "category": "ingredients", "vatRate": 9}), encoding="utf-8")
        assert main(["--db", db, "--import-scan", str(scan)]) == 0
        assert "Hanos" in capsys.readouterr().out
        with SQLiteRepository(db) as repo:
            (rec,) = list(repo.list_all())
        assert rec.gross_amount == Decimal("1234.56")
        assert rec.is_expense

    def test_import_scan_rejected(self, db, tmp_path, capsys):
        scan = tmp_path / "scan.json"
        scan.write_text('{"amount": 10, "vatRate": 19}', encoding="utf-8")
        assert main(["--db", db, "--import-scan", str(scan)]) == 1
        assert "Scan rejected" in capsys.readouterr().err

    def test_import_scan_missing_file(self, db, tmp_path, capsys):
        assert main(["--db", db, "--import-scan", str(tmp_path / "nope.json")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_quarter_info(self, capsys):
        assert main(["--quarter-info", "--date", "2023-12-15"]) == 0
        out = capsys.readouterr().out
        assert "Q4 (Oct-Dec) 2023" in out
        assert "January 31, 2024" in out

    def test_quarter_info_bad_date(self, capsys):
        assert main(["--quarter-info", "--date", "someday"]) == 1

    def test_kor(self, db, capsys):
        _book_october(db)
        capsys.readouterr()
        assert main(["--db", db, "--kor", "--year", "2023"]) == 0
        out = capsys.readouterr().out
        assert "544.50" in out
        assert "KOR eligible : yes" in out

    def test_invalid_project(self, capsys):
        assert main(["--project", "Not Valid!", "--list"]) == 1
        assert "Invalid project name" in capsys.readouterr().err

    def test_mixed_case_project_env(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr("kitchenledger.storage.project.KITCHENLEDGER_HOME", tmp_path)
        monkeypatch.setenv("KITCHENLEDGER_PROJECT", "Alinas")
        assert main(["--quarter-info", "--date", "2023-12-01"]) == 0
        assert main(["--list"]) == 0
        assert "No records booked yet." in capsys.readouterr().out
        assert (tmp_path / "alinas" / "kitchenledger.db").exists()

    def test_ui_launches_server(self, mocker):
        launch = mocker.patch("kitchenledger.ui.server.launch")
        assert main(["--ui", "--port", "8123"]) == 0
        launch.assert_called_once_with(host="127.0.0.1", port=8123, reload=False, log_level="warning")
