from .models import (
    CATEGORY_OPTIONS,
    InventoryStats,
    ItemChanges,
    LogAction,
    LedgerState,
    LogEntry,
    LowStockReport,
    RevenueCheck,
    SaleResult,
    StockItem,
    StockStatus,
)
from .errors import AppError, ValidationError, NotFoundError, PersistenceError, InsufficientStockError, OutOfStockError

__all__ = [
    "CATEGORY_OPTIONS",
    "InventoryStats",
    "ItemChanges",
    "LogAction",
    "LedgerState",
    "LogEntry",
    "LowStockReport",
    "RevenueCheck",
    "SaleResult",
    "StockItem",
    "StockStatus",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "PersistenceError",
    "InsufficientStockError",
    "OutOfStockError",
]
