from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Callable, Optional, Union

from stockledger.domain.errors import AppError, PersistenceError
from stockledger.domain.models import ItemChanges, LogAction, LogEntry, format_money

log = logging.getLogger(__name__)

Number = Union[Decimal, float, int, str]


@dataclass(frozen=True)
class SellRequest:
    item_id: int
    qty: int
    unit_price: Number


@dataclass(frozen=True)
class AddItemRequest:
    item_id: int
    name: str
    category: str
    quantity: int
    price: Number


@dataclass(frozen=True)
class RestockRequest:
    item_id: int
    quantity: int


@dataclass(frozen=True)
class UpdateItemRequest:
    item_id: int
    changes: ItemChanges


@dataclass(frozen=True)
class DeleteItemRequest:
    item_id: int


@dataclass(frozen=True)
class FindItemRequest:
    name: str


@dataclass(frozen=True)
class SearchRequest:
    term: str


@dataclass(frozen=True)
class LowStockRequest:
    threshold: Optional[int] = None


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    message: str
    value: object = None
    error: Optional[AppError] = None
    warnings: tuple[str, ...] = ()


class CommandService:
    """Validated requests in, CommandResult out; no AppError escapes."""

    def __init__(self, ledger):
        self.ledger = ledger

    def _run(self, action: Callable[[], object], describe: Callable[[object], str]) -> CommandResult:
        try:
            value = action()
        except PersistenceError as e:
            log.error("command_persistence_failed error=%s", e)
            return CommandResult(
                ok=False,
                message=f"Could not save data: {e}. Nothing was changed, please retry.",
                error=e,
                warnings=tuple(self.ledger.drain_warnings()),
            )
        except AppError as e:
            return CommandResult(ok=False, message=str(e), error=e, warnings=tuple(self.ledger.drain_warnings()))
        return CommandResult(ok=True, message=describe(value), value=value, warnings=tuple(self.ledger.drain_warnings()))

    # ---------- Mutations ----------
    def sell(self, req: SellRequest) -> CommandResult:
        return self._run(
            lambda: self.ledger.sell(req.item_id, req.qty, req.unit_price),
            lambda r: f"Sale recorded successfully! Sale amount: ${format_money(r.amount)} "
                      f"| Remaining stock: {r.remaining_qty}",
        )

    def add_item(self, req: AddItemRequest) -> CommandResult:
        return self._run(
            lambda: self.ledger.add_item(req.item_id, req.name, req.category, req.quantity, req.price),
            lambda it: f"Item '{it.name}' added (ID: {it.id}, Qty: {it.quantity}).",
        )

    def restock(self, req: RestockRequest) -> CommandResult:
        return self._run(
            lambda: self.ledger.restock(req.item_id, req.quantity),
            lambda it: f"Stock updated! New quantity: {it.quantity}",
        )

    def update_item(self, req: UpdateItemRequest) -> CommandResult:
        return self._run(
            lambda: self.ledger.update_item(req.item_id, req.changes),
            lambda it: f"Item updated: {it.name} (ID: {it.id}).",
        )

    def delete_item(self, req: DeleteItemRequest) -> CommandResult:
        return self._run(
            lambda: self.ledger.delete_item(req.item_id),
            lambda it: f"Item '{it.name}' deleted ({it.quantity} units removed).",
        )

    def set_low_stock_threshold(self, threshold: int) -> CommandResult:
        def apply():
            self.ledger.set_low_stock_threshold(threshold)
            return threshold

        return self._run(apply, lambda t: f"Low stock threshold set to {t}.")

    def exit(self) -> CommandResult:
        result = self._run(self.ledger.close, lambda _: "Data saved successfully. Good Bye.....")
        if isinstance(result.error, PersistenceError):
            return replace(result, message=f"Could not save data: {result.error}.")
        return result

    # ---------- Queries ----------
    def find(self, req: FindItemRequest) -> CommandResult:
        return self._run(
            lambda: self.ledger.find_by_name(req.name),
            lambda it: f"Found {it.name} (ID: {it.id}).",
        )

    def search(self, req: SearchRequest) -> CommandResult:
        return self._run(
            lambda: self.ledger.search(req.term),
            lambda found: f"Found {len(found)} item(s) matching '{req.term}'." if found
            else f"No items found matching '{req.term}'.",
        )

    def low_stock(self, req: LowStockRequest) -> CommandResult:
        return self._run(
            lambda: self.ledger.low_stock(req.threshold),
            lambda r: "All items are sufficiently stocked." if r.is_empty
            else f"{len(r.out_of_stock)} out of stock, {len(r.low_stock)} below {r.threshold}.",
        )

    def history_summary(self) -> dict[LogAction, int]:
        return self.ledger.history.summarize()

    def recent_history(self, n: int = 20) -> list[LogEntry]:
        return self.ledger.history.recent(n)
