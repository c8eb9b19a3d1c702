from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Optional

from stockledger.domain.errors import PersistenceError
from stockledger.domain.models import CATEGORY_OPTIONS, StockItem, to_decimal

log = logging.getLogger("stockledger.storage")

FIELDS_PER_RECORD = 6


class FileSnapshotRepository:
    """Line-oriented snapshot of the stock plus the running revenue total.

    Each item is six consecutive lines: id, name, category, quantity,
    last price, created-at (epoch seconds). The revenue file holds a single
    decimal value.
    """

    def __init__(self, stock_path: Path | str, revenue_path: Path | str):
        self.stock_path = Path(stock_path)
        self.revenue_path = Path(revenue_path)

    # ---------- Items ----------
    def snapshot_exists(self) -> bool:
        return self.stock_path.exists()

    def load_snapshot(self) -> list[StockItem]:
        if not self.stock_path.exists():
            log.info("snapshot_missing path=%s", self.stock_path)
            return []
        try:
            text = self.stock_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Could not read stock file: {e}") from e

        lines = text.splitlines()
        items: list[StockItem] = []
        seen: set[int] = set()
        for start in range(0, len(lines), FIELDS_PER_RECORD):
            record = lines[start:start + FIELDS_PER_RECORD]
            index = start // FIELDS_PER_RECORD
            if len(record) < FIELDS_PER_RECORD:
                if any(r.strip() for r in record):
                    log.warning("snapshot_partial_record index=%s lines=%s", index, len(record))
                break
            item = self._parse_record(record)
            if item is None or item.id in seen:
                log.warning("snapshot_truncated index=%s path=%s", index, self.stock_path)
                break
            seen.add(item.id)
            items.append(item)
        return items

    @staticmethod
    def _parse_record(record: list[str]) -> Optional[StockItem]:
        raw_id, name, category, raw_qty, raw_price, raw_created = record
        try:
            item_id = int(raw_id.strip())
            quantity = int(raw_qty.strip())
            price = to_decimal(raw_price)
            created_at = int(raw_created.strip())
        except ValueError:
            return None
        if item_id <= 0 or quantity < 0 or price < 0:
            return None
        if not name.strip() or category not in CATEGORY_OPTIONS:
            return None
        return StockItem(
            id=item_id,
            name=name,
            category=category,
            quantity=quantity,
            last_price=price,
            created_at=created_at,
        )

    @staticmethod
    def _render_items(items: Iterable[StockItem]) -> str:
        out = []
        for it in items:
            out.extend([
                str(int(it.id)),
                it.name,
                it.category,
                str(int(it.quantity)),
                f"{it.last_price:f}",
                str(int(it.created_at)),
            ])
        return "".join(f"{line}\n" for line in out)

    def save_snapshot(self, items: Iterable[StockItem]) -> None:
        tmp = self._stage(self.stock_path, self._render_items(items))
        try:
            tmp.replace(self.stock_path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise PersistenceError(f"Error saving stock data: {e}") from e

    # ---------- Revenue ----------
    def load_revenue(self) -> Decimal:
        if not self.revenue_path.exists():
            return Decimal("0")
        try:
            raw = self.revenue_path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Could not read revenue file: {e}") from e
        if not raw:
            return Decimal("0")
        try:
            value = to_decimal(raw)
        except ValueError:
            log.warning("revenue_malformed path=%s raw=%r", self.revenue_path, raw[:40])
            return Decimal("0")
        if value < 0:
            log.warning("revenue_negative path=%s value=%s", self.revenue_path, value)
            return Decimal("0")
        return value

    def save_revenue(self, value: Decimal) -> None:
        tmp = self._stage(self.revenue_path, f"{value:f}\n")
        try:
            tmp.replace(self.revenue_path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise PersistenceError(f"Error saving revenue total: {e}") from e

    # ---------- Both ----------
    def save_state(self, items: Iterable[StockItem], revenue: Decimal) -> None:
        """Write items and revenue so that either both files change or neither does."""
        stock_tmp = self._stage(self.stock_path, self._render_items(items))
        try:
            revenue_tmp = self._stage(self.revenue_path, f"{revenue:f}\n")
        except PersistenceError:
            stock_tmp.unlink(missing_ok=True)
            raise

        try:
            previous = self.stock_path.read_bytes() if self.stock_path.exists() else None
            stock_tmp.replace(self.stock_path)
        except OSError as e:
            stock_tmp.unlink(missing_ok=True)
            revenue_tmp.unlink(missing_ok=True)
            raise PersistenceError(f"Error saving stock data: {e}") from e

        try:
            revenue_tmp.replace(self.revenue_path)
        except OSError as e:
            revenue_tmp.unlink(missing_ok=True)
            self._restore_stock(previous)
            raise PersistenceError(f"Error saving revenue total: {e}") from e

    def _restore_stock(self, previous: Optional[bytes]) -> None:
        try:
            if previous is None:
                self.stock_path.unlink(missing_ok=True)
            else:
                self.stock_path.write_bytes(previous)
        except OSError:
            log.exception("snapshot_restore_failed path=%s", self.stock_path)

    @staticmethod
    def _stage(target: Path, content: str) -> Path:
        tmp = target.with_name(target.name + ".tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8", newline="\n") as fh:
                fh.write(content)
        except OSError as e:
            raise PersistenceError(f"Could not write {target.name}: {e}") from e
        return tmp
