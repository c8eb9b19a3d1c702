import json
import logging
from decimal import Decimal
from pathlib import Path

from openpyxl import Workbook

from stockledger.application.container import build_container
from stockledger.config import get_app_paths, low_stock_threshold
from stockledger.logging_config import JsonFormatter
from stockledger.main import main


def test_app_paths_live_under_base_dir(tmp_path: Path):
    paths = get_app_paths(tmp_path / "data")

    assert paths.stock_path == tmp_path / "data" / "stock.dat"
    assert paths.revenue_path.name == "grand_total.dat"
    assert paths.history_path.name == "history.log"
    assert paths.logs_dir.is_dir()


def test_env_overrides(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("STOCKLEDGER_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("STOCKLEDGER_LOW_STOCK", "7")

    assert get_app_paths().base_dir == tmp_path / "home"
    assert low_stock_threshold() == 7

    monkeypatch.setenv("STOCKLEDGER_LOW_STOCK", "lots")
    assert low_stock_threshold() == 15


def test_container_wires_a_persistent_ledger(tmp_path: Path):
    container = build_container(tmp_path, threshold=5)
    container.ledger.add_item(1, "Apple", "Fruits", 4, 2)
    container.ledger.sell(1, 1, 3)
    container.ledger.close()

    again = build_container(tmp_path)

    assert again.ledger.get(1).quantity == 3
    assert again.ledger.total_revenue == Decimal("3")
    assert container.reporting.low_stock().low_stock[0].id == 1


def test_json_formatter_emits_one_object_per_record():
    record = logging.LogRecord("stockledger.sales", logging.INFO, __file__, 1, "sale_recorded qty=%s", (2,), None)

    payload = json.loads(JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S").format(record))

    assert payload["logger"] == "stockledger.sales"
    assert payload["message"] == "sale_recorded qty=2"
    assert payload["level"] == "INFO"


def test_main_imports_and_exports_without_the_menu(tmp_path: Path, capsys):
    wb = Workbook()
    wb.active.append(["id", "name", "category", "quantity", "price"])
    wb.active.append([1, "Apple", "Fruits", 10, 2.0])
    sheet = tmp_path / "in.xlsx"
    wb.save(sheet)
    data = tmp_path / "data"

    assert main(["--data-dir", str(data), "--import-excel", str(sheet)]) == 0
    assert main(["--data-dir", str(data), "--export-report", str(tmp_path / "out.xlsx")]) == 0

    assert "Imported 1 row(s), skipped 0." in capsys.readouterr().out
    assert (tmp_path / "out.xlsx").exists()
    assert (data / "stock.dat").read_text(encoding="utf-8").splitlines()[1] == "Apple"


def test_main_reports_unwritable_export_path(tmp_path: Path, capsys):
    target = tmp_path / "missing" / "out.xlsx"

    assert main(["--data-dir", str(tmp_path / "data"), "--export-report", str(target)]) == 1

    assert "Export failed" in capsys.readouterr().out
    assert not target.exists()


def test_main_reports_import_failure(tmp_path: Path, capsys):
    wb = Workbook()
    wb.active.append(["id", "name"])
    sheet = tmp_path / "bad.xlsx"
    wb.save(sheet)

    assert main(["--data-dir", str(tmp_path / "data"), "--import-excel", str(sheet)]) == 1
    assert "Import failed: Missing column header" in capsys.readouterr().out
