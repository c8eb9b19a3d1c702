from pathlib import Path

import pytest
from openpyxl import Workbook

from conftest import open_ledger
from stockledger.domain.errors import PersistenceError, ValidationError
from stockledger.domain.models import LogAction
from stockledger.repositories.file_repo import FileSnapshotRepository
from stockledger.services.excel_service import ExcelService


def _sheet(path: Path, rows):
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    wb.save(path)
    return path


def test_import_adds_new_items_and_restocks_existing_names(tmp_path: Path):
    ledger = open_ledger(tmp_path)
    ledger.add_item(1, "Apple", "Fruits", 10, 2.00)
    path = _sheet(tmp_path / "items.xlsx", [
        ["id", "name", "category", "quantity", "price"],
        [9, "Apple", "Fruits", 5, 2.0],
        [2, "Bread", "bakery", 3, 1.5],
        [3, "Ball", "Toys", 1, 1.0],
    ])

    ok, skipped = ExcelService(ledger).import_items_excel(str(path))

    assert (ok, skipped) == (2, 1)
    assert ledger.get(1).quantity == 15
    assert ledger.find_by_name("Bread").category == "Bakery"
    summary = ledger.history.summarize()
    assert summary[LogAction.RESTOCK] == 1
    assert summary[LogAction.ADD] == 2


def test_import_requires_headers(tmp_path: Path):
    ledger = open_ledger(tmp_path)
    path = _sheet(tmp_path / "bad.xlsx", [["id", "name", "qty"], [1, "Apple", 3]])

    with pytest.raises(ValidationError, match="Missing column header"):
        ExcelService(ledger).import_items_excel(str(path))


def test_import_skips_rows_with_infinite_numbers(tmp_path: Path):
    ledger = open_ledger(tmp_path)
    path = _sheet(tmp_path / "inf.xlsx", [
        ["id", "name", "category", "quantity", "price"],
        [1, "Apple", "Fruits", "inf", 1],
        ["inf", "Bread", "Bakery", 2, 1],
        [3, "Milk", "Dairy", 4, 1],
    ])

    ok, skipped = ExcelService(ledger).import_items_excel(str(path))

    assert (ok, skipped) == (1, 2)
    assert [it.name for it in ledger.items()] == ["Milk"]


class RejectsBreadRepo(FileSnapshotRepository):
    def save_snapshot(self, items):
        if any(it.name == "Bread" for it in items):
            raise PersistenceError("disk full")
        super().save_snapshot(items)


def test_import_counts_unsaved_rows_as_skipped_and_continues(tmp_path: Path):
    store = RejectsBreadRepo(tmp_path / "stock.dat", tmp_path / "grand_total.dat")
    ledger = open_ledger(tmp_path, store=store)
    path = _sheet(tmp_path / "items.xlsx", [
        ["id", "name", "category", "quantity", "price"],
        [1, "Apple", "Fruits", 5, 1],
        [2, "Bread", "Bakery", 3, 1],
        [3, "Milk", "Dairy", 4, 1],
    ])

    ok, skipped = ExcelService(ledger).import_items_excel(str(path))

    assert (ok, skipped) == (2, 1)
    assert [it.name for it in ledger.items()] == ["Apple", "Milk"]
    assert [it.name for it in store.load_snapshot()] == ["Apple", "Milk"]
