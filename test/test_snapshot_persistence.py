from decimal import Decimal
from pathlib import Path

from conftest import open_ledger
from stockledger.domain.models import StockItem
from stockledger.repositories.file_repo import FileSnapshotRepository


def _repo(tmp_path: Path) -> FileSnapshotRepository:
    return FileSnapshotRepository(tmp_path / "stock.dat", tmp_path / "grand_total.dat")


def test_missing_files_start_an_empty_ledger(tmp_path: Path):
    repo = _repo(tmp_path)

    assert repo.load_snapshot() == []
    assert repo.load_revenue() == Decimal("0")

    ledger = open_ledger(tmp_path)
    assert ledger.item_count == 0
    assert len(ledger.history) == 0


def test_save_then_load_reproduces_items(tmp_path: Path):
    ledger = open_ledger(tmp_path)
    ledger.add_item(1, "Apple", "Fruits", 10, 2.00)
    ledger.add_item(2, "Frozen Peas", "Frozen Foods", 0, "1.99")
    ledger.add_item(3, "Café au lait", "Beverages", 4, "3.125")

    loaded = _repo(tmp_path).load_snapshot()

    assert [(i.id, i.name, i.category, i.quantity, i.last_price) for i in loaded] == [
        (i.id, i.name, i.category, i.quantity, i.last_price) for i in ledger.items()
    ]
    for before, after in zip(ledger.items(), loaded):
        assert abs(before.created_at - after.created_at) <= 1


def test_snapshot_uses_six_lines_per_item(tmp_path: Path):
    repo = _repo(tmp_path)
    repo.save_snapshot([StockItem(7, "Apple", "Fruits", 3, Decimal("2.5"), 1700000000)])

    assert (tmp_path / "stock.dat").read_text(encoding="utf-8").splitlines() == [
        "7", "Apple", "Fruits", "3", "2.5", "1700000000",
    ]


def test_load_stops_at_first_malformed_record(tmp_path: Path):
    (tmp_path / "stock.dat").write_text(
        "1\nApple\nFruits\n10\n2\n1700000000\n"
        "2\nBread\nBakery\nlots\n1.5\n1700000000\n"
        "3\nMilk\nDairy\n4\n1\n1700000000\n",
        encoding="utf-8",
    )

    items = _repo(tmp_path).load_snapshot()

    assert [i.id for i in items] == [1]


def test_load_ignores_trailing_partial_record(tmp_path: Path):
    (tmp_path / "stock.dat").write_text(
        "1\nApple\nFruits\n10\n2\n1700000000\n2\nBread\n",
        encoding="utf-8",
    )

    assert [i.id for i in _repo(tmp_path).load_snapshot()] == [1]


def test_load_stops_at_duplicate_id_or_unknown_category(tmp_path: Path):
    (tmp_path / "stock.dat").write_text(
        "1\nApple\nFruits\n10\n2\n1700000000\n"
        "1\nPear\nFruits\n1\n2\n1700000000\n",
        encoding="utf-8",
    )
    assert [i.name for i in _repo(tmp_path).load_snapshot()] == ["Apple"]

    (tmp_path / "stock.dat").write_text("1\nBall\nToys\n10\n2\n1700000000\n", encoding="utf-8")
    assert _repo(tmp_path).load_snapshot() == []


def test_revenue_round_trip_and_malformed_value(tmp_path: Path):
    repo = _repo(tmp_path)
    repo.save_revenue(Decimal("12.34"))
    assert repo.load_revenue() == Decimal("12.34")

    (tmp_path / "grand_total.dat").write_text("not-a-number", encoding="utf-8")
    assert repo.load_revenue() == Decimal("0")

    (tmp_path / "grand_total.dat").write_text("-5", encoding="utf-8")
    assert repo.load_revenue() == Decimal("0")


def test_reopen_restores_items_revenue_and_logs_load(tmp_path: Path):
    ledger = open_ledger(tmp_path)
    ledger.add_item(1, "Apple", "Fruits", 10, 2.00)
    ledger.sell(1, 4, "2.50")
    ledger.close()

    reopened = open_ledger(tmp_path)

    assert reopened.get(1).quantity == 6
    assert reopened.total_revenue == Decimal("10.00")
    assert reopened.history.recent(1)[0].detail == "Stock data loaded successfully (1 items)"
    assert reopened.verify_revenue().consistent


def test_no_temp_files_left_behind(tmp_path: Path):
    ledger = open_ledger(tmp_path)
    ledger.add_item(1, "Apple", "Fruits", 10, 2.00)
    ledger.sell(1, 1, 1)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["grand_total.dat", "history.log", "stock.dat"]
