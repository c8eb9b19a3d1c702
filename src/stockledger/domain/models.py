from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Optional


CATEGORY_OPTIONS: tuple[str, ...] = (
    "Fruits",
    "Vegetables",
    "Snacks",
    "Beverages",
    "Dairy",
    "Meat",
    "Bakery",
    "Frozen Foods",
    "Other",
)

DEFAULT_LOW_STOCK_THRESHOLD = 15


class LogAction(str, Enum):
    SALE = "SALE"
    ADD = "ADD"
    RESTOCK = "RESTOCK"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SYSTEM = "SYSTEM"


class StockStatus(str, Enum):
    OK = "OK"
    LOW = "LOW"
    OUT = "OUT"


def to_decimal(value: object) -> Decimal:
    """Convert user or file input to Decimal without float artifacts.

    Raises ValueError for anything that is not a finite number.
    """
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    elif isinstance(value, (int, float)):
        d = Decimal(str(value))
    else:
        try:
            d = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Not a number: {value!r}") from e
    if not d.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return d


def format_money(value: Decimal) -> str:
    # Precision must hold every digit of value plus two decimals, or
    # quantize raises InvalidOperation for large amounts.
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(value.as_tuple().digits) + 2, value.adjusted() + 3)
        cents = value.quantize(Decimal("0.01"))
        if cents == value:
            return f"{cents:f}"
        return f"{value.normalize():f}"


@dataclass
class StockItem:
    id: int
    name: str
    category: str
    quantity: int
    last_price: Decimal
    created_at: int

    def status(self, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> StockStatus:
        if self.quantity == 0:
            return StockStatus.OUT
        if self.quantity < threshold:
            return StockStatus.LOW
        return StockStatus.OK


@dataclass(frozen=True)
class ItemChanges:
    id: Optional[int] = None
    name: Optional[str] = None
    category: Optional[str] = None
    quantity: Optional[int] = None
    price: Optional[Decimal] = None

    def is_empty(self) -> bool:
        return all(v is None for v in (self.id, self.name, self.category, self.quantity, self.price))


@dataclass(frozen=True)
class LogEntry:
    timestamp: Optional[datetime]
    action: LogAction
    detail: str


@dataclass(frozen=True)
class SaleResult:
    item_id: int
    name: str
    quantity: int
    unit_price: Decimal
    amount: Decimal
    remaining_qty: int
    total_revenue: Decimal


@dataclass(frozen=True)
class LowStockReport:
    threshold: int
    out_of_stock: list[StockItem] = field(default_factory=list)
    low_stock: list[StockItem] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.out_of_stock and not self.low_stock


@dataclass(frozen=True)
class InventoryStats:
    item_count: int
    total_quantity: int
    out_of_stock_count: int
    low_stock_count: int
    categories: dict[str, int]


@dataclass(frozen=True)
class RevenueCheck:
    snapshot_total: Decimal
    log_total: Decimal

    @property
    def consistent(self) -> bool:
        return self.snapshot_total == self.log_total


@dataclass
class LedgerState:
    """Items in display order plus the accumulated sales revenue."""

    items: list[StockItem] = field(default_factory=list)
    total_revenue: Decimal = Decimal("0")
