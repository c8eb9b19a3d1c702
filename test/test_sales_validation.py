from decimal import Decimal
from pathlib import Path

import pytest

from conftest import open_ledger
from stockledger.domain.models import format_money
from stockledger.domain.errors import (
    InsufficientStockError,
    InvalidPriceError,
    InvalidQuantityError,
    NotFoundError,
    OutOfStockError,
)


def _setup(tmp_path: Path):
    ledger = open_ledger(tmp_path)
    ledger.add_item(1, "Apple", "Fruits", 10, 2.00)
    return ledger


def test_sale_scenario_updates_quantity_price_and_revenue(tmp_path: Path):
    ledger = _setup(tmp_path)

    result = ledger.sell(1, 4, 2.50)

    assert result.amount == Decimal("10.00")
    assert result.remaining_qty == 6
    assert ledger.total_revenue == Decimal("10.00")
    assert ledger.get(1).last_price == Decimal("2.50")

    with pytest.raises(InsufficientStockError):
        ledger.sell(1, 10, 1.00)

    assert ledger.get(1).quantity == 6
    assert ledger.total_revenue == Decimal("10.00")


def test_sale_revenue_is_exact_for_decimal_prices(tmp_path: Path):
    ledger = _setup(tmp_path)

    ledger.sell(1, 3, "0.10")
    ledger.sell(1, 3, "0.20")

    assert ledger.total_revenue == Decimal("0.90")
    assert ledger.get(1).quantity == 4


def test_selling_out_of_stock_item_is_rejected(tmp_path: Path):
    ledger = _setup(tmp_path)
    ledger.sell(1, 10, 1)

    with pytest.raises(OutOfStockError):
        ledger.sell(1, 1, 1)

    assert ledger.get(1).quantity == 0
    assert ledger.total_revenue == Decimal("10")


@pytest.mark.parametrize("qty", [0, -3])
def test_sale_rejects_non_positive_quantity(tmp_path: Path, qty):
    ledger = _setup(tmp_path)

    with pytest.raises(InvalidQuantityError):
        ledger.sell(1, qty, 1.0)

    assert ledger.get(1).quantity == 10


def test_sale_rejects_negative_unit_price(tmp_path: Path):
    ledger = _setup(tmp_path)

    with pytest.raises(InvalidPriceError, match="Unit price must be >= 0"):
        ledger.sell(1, 1, -1.0)

    assert ledger.total_revenue == Decimal("0")


def test_sale_at_zero_price_is_allowed(tmp_path: Path):
    ledger = _setup(tmp_path)

    result = ledger.sell(1, 2, 0)

    assert result.amount == Decimal("0")
    assert result.remaining_qty == 8


def test_sale_of_unknown_item_raises_not_found(tmp_path: Path):
    ledger = _setup(tmp_path)

    with pytest.raises(NotFoundError):
        ledger.sell(99, 1, 1.0)


def test_selling_whole_stock_leaves_item_out_of_stock_but_present(tmp_path: Path):
    ledger = _setup(tmp_path)

    ledger.sell(1, 10, 1.0)

    assert ledger.item_count == 1
    assert ledger.low_stock().out_of_stock[0].id == 1
    assert [it.id for it in ledger.search("apple")] == [1]


def test_sale_with_very_large_price_is_logged_and_reloads(tmp_path: Path):
    ledger = _setup(tmp_path)

    result = ledger.sell(1, 1, "1e26")

    assert result.amount == Decimal("1e26")
    assert ledger.get(1).quantity == 9
    entry = ledger.history.recent(1)[0]
    assert entry.detail == (
        "1x Apple @ $100000000000000000000000000.00 each = "
        "$100000000000000000000000000.00 (Remaining: 9)"
    )
    reopened = open_ledger(tmp_path)
    assert reopened.total_revenue == Decimal("1e26")
    assert reopened.verify_revenue().consistent


def test_format_money_keeps_cents_and_extra_precision():
    assert format_money(Decimal("2.5")) == "2.50"
    assert format_money(Decimal("0.125")) == "0.125"
    assert format_money(Decimal("1e26")) == "100000000000000000000000000.00"
    assert format_money(Decimal("12345678901234567890123456789.001")) == "12345678901234567890123456789.001"
