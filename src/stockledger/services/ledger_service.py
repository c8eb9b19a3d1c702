from __future__ import annotations

import logging
import time
from decimal import Decimal
from typing import Callable, Optional

from stockledger.domain.errors import (
    DuplicateIdError,
    DuplicateNameError,
    EmptyNameError,
    InsufficientStockError,
    InvalidCategoryError,
    InvalidIdError,
    InvalidNameError,
    InvalidPriceError,
    InvalidQuantityError,
    NegativePriceError,
    NegativeQuantityError,
    NotFoundError,
    OutOfStockError,
    PersistenceError,
    ValidationError,
)
from stockledger.domain.models import (
    CATEGORY_OPTIONS,
    DEFAULT_LOW_STOCK_THRESHOLD,
    InventoryStats,
    ItemChanges,
    LedgerState,
    LogAction,
    LowStockReport,
    RevenueCheck,
    SaleResult,
    StockItem,
    format_money,
    to_decimal,
)
from stockledger.repositories.contracts import SnapshotStore
from stockledger.repositories.unit_of_work import LedgerUnitOfWork
from stockledger.services.reporting_service import inventory_stats, partition_low_stock
from stockledger.services.transaction_log import TransactionLog

log = logging.getLogger(__name__)
sales_log = logging.getLogger("stockledger.sales")


def resolve_category(value: object) -> str:
    """Return the canonical category label for ``value`` (case-insensitive)."""
    raw = str(value or "").strip()
    for option in CATEGORY_OPTIONS:
        if raw.lower() == option.lower():
            return option
    raise InvalidCategoryError(f"Unknown category '{raw}'. Choose one of: {', '.join(CATEGORY_OPTIONS)}.")


def clean_name(value: object) -> str:
    name = str(value or "").strip()
    if not name:
        raise EmptyNameError("Item name cannot be empty.")
    if name.splitlines() != [name]:
        raise InvalidNameError("Item name must be a single line.")
    return name


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _non_negative_qty(value: object) -> int:
    if not _is_int(value):
        raise ValidationError("Quantity must be a whole number.")
    if value < 0:
        raise NegativeQuantityError("Quantity must be >= 0.")
    return int(value)


def _non_negative_price(value: object) -> Decimal:
    try:
        price = to_decimal(value)
    except ValueError as e:
        raise ValidationError("Price must be a number.") from e
    if price < 0:
        raise NegativePriceError("Price must be >= 0.")
    return price


class Ledger:
    """Authoritative in-memory stock plus accumulated revenue.

    Every mutation is saved to the snapshot store before its activity log
    entry is written. A failed save restores the previous in-memory state
    and raises PersistenceError; a failed log write only produces a warning
    (see ``drain_warnings``).
    """

    def __init__(
        self,
        store: SnapshotStore,
        history: TransactionLog,
        state: Optional[LedgerState] = None,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.history = history
        self.state = state or LedgerState()
        self.low_stock_threshold = int(low_stock_threshold)
        self.clock = clock
        self._warnings: list[str] = []

    @classmethod
    def open(
        cls,
        store: SnapshotStore,
        history: TransactionLog,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ) -> "Ledger":
        existed = store.snapshot_exists()
        items = store.load_snapshot()
        revenue = store.load_revenue()
        ledger = cls(store, history, LedgerState(items=items, total_revenue=revenue), low_stock_threshold, clock)

        if existed:
            ledger._record(LogAction.SYSTEM, f"Stock data loaded successfully ({len(items)} items)")
        else:
            log.info("ledger_started_empty path=%s", getattr(store, "stock_path", "?"))

        check = ledger.verify_revenue()
        if not check.consistent:
            log.warning(
                "revenue_mismatch snapshot=%s log=%s",
                format_money(check.snapshot_total),
                format_money(check.log_total),
            )
        return ledger

    def close(self) -> None:
        self.store.save_state(self.state.items, self.state.total_revenue)
        self._record(LogAction.SYSTEM, "Program exited successfully")
        log.info("ledger_closed items=%s revenue=%s", len(self.state.items), self.state.total_revenue)

    # ---------- Read side ----------
    @property
    def total_revenue(self) -> Decimal:
        return self.state.total_revenue

    @property
    def item_count(self) -> int:
        return len(self.state.items)

    def items(self) -> list[StockItem]:
        return list(self.state.items)

    def get(self, item_id: int) -> StockItem:
        for item in self.state.items:
            if item.id == item_id:
                return item
        raise NotFoundError(f"No item with ID {item_id}.")

    def find_by_name(self, name: str) -> StockItem:
        item = self._by_name(name)
        if item is None:
            raise NotFoundError(f"Item '{name}' not found.")
        return item

    def search(self, term: str) -> list[StockItem]:
        needle = (term or "").strip().lower()
        return [
            it for it in self.state.items
            if needle in it.name.lower() or needle in it.category.lower()
        ]

    def low_stock(self, threshold: Optional[int] = None) -> LowStockReport:
        return partition_low_stock(self.state.items, self.low_stock_threshold if threshold is None else threshold)

    def stats(self) -> InventoryStats:
        return inventory_stats(self.state.items, self.low_stock_threshold)

    def set_low_stock_threshold(self, threshold: int) -> None:
        if not _is_int(threshold) or threshold < 0:
            raise ValidationError("Threshold must be a whole number >= 0.")
        self.low_stock_threshold = threshold

    def is_valid_product_id(self, item_id: int, exclude_id: Optional[int] = None) -> bool:
        if not _is_int(item_id) or item_id <= 0:
            return False
        return not any(it.id == item_id and it.id != exclude_id for it in self.state.items)

    def verify_revenue(self) -> RevenueCheck:
        return RevenueCheck(snapshot_total=self.state.total_revenue, log_total=self.history.sales_total())

    def drain_warnings(self) -> list[str]:
        out, self._warnings = self._warnings, []
        return out

    # ---------- Mutations ----------
    def add_item(self, item_id: int, name: str, category: str, quantity: int, price) -> StockItem:
        self._check_id(item_id)
        name = clean_name(name)
        existing = self._by_name(name)
        if existing is not None:
            raise DuplicateNameError(f"Item '{name}' already exists (ID: {existing.id}).", existing=existing)
        category = resolve_category(category)
        quantity = _non_negative_qty(quantity)
        price = _non_negative_price(price)

        item = StockItem(
            id=item_id,
            name=name,
            category=category,
            quantity=quantity,
            last_price=price,
            created_at=int(self.clock()),
        )
        with self._unit_of_work():
            self.state.items.append(item)

        self._record(LogAction.ADD, f"Added {name} (ID: {item_id}, Category: {category}, Qty: {quantity})")
        log.info("item_added item_id=%s qty=%s", item_id, quantity)
        return item

    def restock(self, item_id: int, additional_qty: int) -> StockItem:
        item = self.get(item_id)
        qty = _non_negative_qty(additional_qty)
        with self._unit_of_work():
            item.quantity += qty
        self._record(LogAction.RESTOCK, f"Added {qty} units to {item.name} (New total: {item.quantity})")
        log.info("item_restocked item_id=%s added=%s total=%s", item.id, qty, item.quantity)
        return item

    def update_item(self, item_id: int, changes: ItemChanges) -> StockItem:
        item = self.get(item_id)
        if changes.is_empty():
            raise ValidationError("Nothing to update.")

        new_id = item.id
        if changes.id is not None and changes.id != item.id:
            self._check_id(changes.id, exclude_id=item.id)
            new_id = changes.id

        new_name = item.name
        if changes.name is not None:
            new_name = clean_name(changes.name)
            other = self._by_name(new_name)
            if other is not None and other is not item:
                raise DuplicateNameError(f"Item '{new_name}' already exists (ID: {other.id}).", existing=other)

        new_category = resolve_category(changes.category) if changes.category is not None else item.category
        new_qty = _non_negative_qty(changes.quantity) if changes.quantity is not None else item.quantity
        new_price = _non_negative_price(changes.price) if changes.price is not None else item.last_price

        before = f"{item.name} (ID:{item.id})"
        with self._unit_of_work():
            item.id = new_id
            item.name = new_name
            item.category = new_category
            item.quantity = new_qty
            item.last_price = new_price

        self._record(LogAction.UPDATE, f"{before} -> {item.name} (ID:{item.id})")
        log.info("item_updated old=%s new_id=%s", before, item.id)
        return item

    def delete_item(self, item_id: int) -> StockItem:
        item = self.get(item_id)
        with self._unit_of_work():
            idx = next(i for i, it in enumerate(self.state.items) if it is item)
            del self.state.items[idx]
        self._record(LogAction.DELETE, f"Removed {item.name} (ID: {item.id}, Had {item.quantity} units)")
        log.info("item_deleted item_id=%s qty_lost=%s", item.id, item.quantity)
        return item

    def sell(self, item_id: int, qty: int, unit_price) -> SaleResult:
        item = self.get(item_id)
        if item.quantity == 0:
            raise OutOfStockError(f"{item.name} is out of stock!")
        if not _is_int(qty) or qty <= 0:
            raise InvalidQuantityError("Qty must be >= 1.")
        if qty > item.quantity:
            raise InsufficientStockError(f"Not enough stock for {item.name}. Available: {item.quantity}")
        try:
            price = to_decimal(unit_price)
        except ValueError as e:
            raise InvalidPriceError("Unit price must be a number.") from e
        if price < 0:
            raise InvalidPriceError("Unit price must be >= 0.")

        amount = price * qty
        detail = (
            f"{qty}x {item.name} @ ${format_money(price)} each = ${format_money(amount)} "
            f"(Remaining: {item.quantity - qty})"
        )
        with self._unit_of_work(include_revenue=True):
            item.quantity -= qty
            item.last_price = price
            self.state.total_revenue += amount

        self._record(LogAction.SALE, detail)
        sales_log.info(
            "sale_recorded item_id=%s qty=%s unit_price=%s amount=%s remaining=%s",
            item.id, qty, price, amount, item.quantity,
        )
        return SaleResult(
            item_id=item.id,
            name=item.name,
            quantity=qty,
            unit_price=price,
            amount=amount,
            remaining_qty=item.quantity,
            total_revenue=self.state.total_revenue,
        )

    # ---------- Internals ----------
    def _by_name(self, name: str) -> Optional[StockItem]:
        for item in self.state.items:
            if item.name == name:
                return item
        return None

    def _check_id(self, item_id: int, exclude_id: Optional[int] = None) -> None:
        if not _is_int(item_id) or item_id <= 0:
            raise InvalidIdError("Product ID must be a positive whole number.")
        if not self.is_valid_product_id(item_id, exclude_id):
            raise DuplicateIdError(f"Product ID {item_id} is already in use.")

    def _unit_of_work(self, include_revenue: bool = False) -> LedgerUnitOfWork:
        return LedgerUnitOfWork(self.store, self.state, include_revenue=include_revenue)

    def _record(self, action: LogAction, detail: str) -> None:
        try:
            self.history.append(action, detail)
        except PersistenceError as e:
            log.warning("history_write_failed action=%s error=%s", action.value, e)
            self._warnings.append(f"Activity log not updated: {e}")
