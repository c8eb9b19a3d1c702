from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal

from stockledger.domain.errors import PersistenceError
from stockledger.domain.models import LedgerState, StockItem
from stockledger.repositories.contracts import SnapshotStore


@dataclass
class LedgerUnitOfWork:
    """Commit an in-memory ledger mutation to the snapshot store.

    The pre-image of every item (field values and order) and of the revenue
    total is captured on enter. A clean exit saves the snapshot, together
    with the revenue file when ``include_revenue`` is set. If the body
    raises, or the save fails, the pre-image is restored so memory matches
    the last durable snapshot.
    """

    store: SnapshotStore
    state: LedgerState
    include_revenue: bool = False
    _before: list[tuple[StockItem, StockItem]] = field(default_factory=list, init=False, repr=False)
    _revenue_before: Decimal = field(default=Decimal("0"), init=False, repr=False)

    def __enter__(self) -> "LedgerUnitOfWork":
        self._before = [(item, replace(item)) for item in self.state.items]
        self._revenue_before = self.state.total_revenue
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.rollback()
            return False
        try:
            if self.include_revenue:
                self.store.save_state(self.state.items, self.state.total_revenue)
            else:
                self.store.save_snapshot(self.state.items)
        except PersistenceError:
            self.rollback()
            raise
        return False

    def rollback(self) -> None:
        for item, copy in self._before:
            vars(item).update(vars(copy))
        self.state.items[:] = [item for item, _ in self._before]
        self.state.total_revenue = self._revenue_before
