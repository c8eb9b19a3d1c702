from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Protocol

from stockledger.domain.models import StockItem


class SnapshotStore(Protocol):
    def load_snapshot(self) -> list[StockItem]: ...
    def snapshot_exists(self) -> bool: ...
    def save_snapshot(self, items: Iterable[StockItem]) -> None: ...
    def load_revenue(self) -> Decimal: ...
    def save_revenue(self, value: Decimal) -> None: ...
    def save_state(self, items: Iterable[StockItem], revenue: Decimal) -> None: ...


class ActivityLogWriter(Protocol):
    def append_line(self, line: str) -> None: ...
    def read_lines(self) -> list[str]: ...
