from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Iterable, Optional

from stockledger.application.commands import (
    AddItemRequest,
    CommandResult,
    CommandService,
    DeleteItemRequest,
    FindItemRequest,
    LowStockRequest,
    RestockRequest,
    SearchRequest,
    SellRequest,
    UpdateItemRequest,
)
from stockledger.domain.errors import DuplicateNameError
from stockledger.domain.models import CATEGORY_OPTIONS, ItemChanges, LogAction, StockItem, format_money, to_decimal
from stockledger.services.transaction_log import format_line

log = logging.getLogger(__name__)

MENU = (
    "Make a Sale",
    "Add New Item",
    "View All Items",
    "Update Item",
    "Delete Item",
    "Search Item",
    "Low Stock Alert",
    "View Stock History",
    "Exit",
)
EXIT_CHOICE = len(MENU)


def _clip(text: str, width: int) -> str:
    return text if len(text) <= width - 2 else text[: width - 3] + "..."


def render_table(items: Iterable[StockItem], threshold: int) -> list[str]:
    items = list(items)
    if not items:
        return ["No items to display."]
    lines = [
        f"{'ID':<8}{'Product Name':<25}{'Category':<15}{'Qty':<8}{'Last Price':<12}{'Status':<8}",
        "-" * 80,
    ]
    for it in items:
        price = f"${format_money(it.last_price)}" if it.last_price > 0 else "Not Set"
        lines.append(
            f"{it.id:<8}{_clip(it.name, 25):<25}{_clip(it.category, 15):<15}"
            f"{it.quantity:<8}{price:<12}{it.status(threshold).value:<8}"
        )
    lines.append("-" * 80)
    return lines


class ConsoleShell:
    """Numbered-menu front end over CommandService."""

    def __init__(
        self,
        commands: CommandService,
        input_fn: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
    ):
        self.commands = commands
        self.ledger = commands.ledger
        self._input = input_fn
        self._out = output

    # ---------- Loop ----------
    def run(self) -> int:
        handlers = {
            1: self.make_sale,
            2: self.add_item,
            3: self.view_all,
            4: self.update_item,
            5: self.delete_item,
            6: self.search,
            7: self.low_stock_alert,
            8: self.view_history,
        }
        try:
            while True:
                self._show_menu()
                choice = self._ask_int("Enter your choice: ", 1, EXIT_CHOICE)
                if choice != EXIT_CHOICE:
                    handlers[choice]()
                    continue
                result = self.commands.exit()
                self._report(result)
                if result.ok:
                    return 0
                self._out("Choose Exit again to retry saving.")
        except (EOFError, KeyboardInterrupt):
            self._out("")
            log.info("console_input_closed")
        # No input left to retry a failed save.
        result = self.commands.exit()
        self._report(result)
        return 0 if result.ok else 1

    def _show_menu(self) -> None:
        self._out("")
        self._out("=== STOCK MANAGEMENT SYSTEM ===")
        for i, label in enumerate(MENU, start=1):
            self._out(f"{i}. {label}")
        self._out(
            f"Total Revenue: ${format_money(self.ledger.total_revenue)} "
            f"| Items in Stock: {self.ledger.item_count}"
        )

    # ---------- Prompts ----------
    def _ask(self, prompt: str) -> str:
        return self._input(prompt).strip()

    def _ask_int(self, prompt: str, low: Optional[int] = None, high: Optional[int] = None) -> int:
        while True:
            raw = self._ask(prompt)
            try:
                value = int(raw)
            except ValueError:
                self._out("Please enter a valid number.")
                continue
            if (low is not None and value < low) or (high is not None and value > high):
                self._out(f"Please enter a number between {low}-{high}." if high is not None
                          else f"Please enter a number >= {low}.")
                continue
            return value

    def _ask_price(self, prompt: str) -> Decimal:
        while True:
            raw = self._ask(prompt)
            try:
                value = to_decimal(raw)
            except ValueError:
                self._out("Please enter a valid price.")
                continue
            if value < 0:
                self._out("Please enter a valid price.")
                continue
            return value

    def _ask_category(self) -> str:
        self._out("Select category:")
        for i, option in enumerate(CATEGORY_OPTIONS, start=1):
            self._out(f"  {i}. {option}")
        choice = self._ask_int(f"Enter category number (1-{len(CATEGORY_OPTIONS)}): ", 1, len(CATEGORY_OPTIONS))
        return CATEGORY_OPTIONS[choice - 1]

    def _confirm(self, message: str) -> bool:
        return self._ask(f"{message} (Y/N): ").upper().startswith("Y")

    def _report(self, result: CommandResult) -> None:
        self._out(result.message)
        for w in result.warnings:
            self._out(f"Warning: {w}")

    def _print_table(self, items: Iterable[StockItem]) -> None:
        for line in render_table(items, self.ledger.low_stock_threshold):
            self._out(line)

    def _lookup_by_name(self) -> Optional[StockItem]:
        name = self._ask("Enter the exact item name: ")
        result = self.commands.find(FindItemRequest(name))
        if not result.ok:
            self._report(result)
            return None
        return result.value

    # ---------- Screens ----------
    def make_sale(self) -> None:
        self._out("=== MAKE A SALE ===")
        if not self.ledger.item_count:
            self._out("No items in stock to sell.")
            return

        session_total = Decimal("0")
        sales_count = 0
        while True:
            self._out(f"Session Total: ${format_money(session_total)} | Sales Made: {sales_count}")
            self._print_table(self.ledger.items())
            item_id = self._ask_int("Enter product ID to sell (0 to finish): ", 0)
            if item_id == 0:
                break

            qty = self._ask_int("Enter quantity to sell (0 to cancel): ", 0)
            if qty == 0:
                self._out("Sale cancelled.")
                continue

            last = next((it.last_price for it in self.ledger.items() if it.id == item_id), Decimal("0"))
            hint = f" (last: ${format_money(last)})" if last > 0 else ""
            price = self._ask_price(f"Enter price per unit{hint}: $")

            result = self.commands.sell(SellRequest(item_id=item_id, qty=qty, unit_price=price))
            self._report(result)
            if result.ok:
                session_total += result.value.amount
                sales_count += 1
            if not self._confirm("Continue selling?"):
                break

        if sales_count:
            self._out(f"Sale session completed! Items sold: {sales_count} | Session total: ${format_money(session_total)}")
        else:
            self._out("No sales made.")

    def add_item(self) -> None:
        self._out("=== ADD NEW ITEM ===")
        added = 0
        while True:
            item_id = self._ask_int("Enter product ID: ", 1)
            while not self.ledger.is_valid_product_id(item_id):
                self._out("Product ID must be positive and unique.")
                item_id = self._ask_int("Enter product ID: ", 1)

            name = self._ask("Enter item name: ")
            while not name:
                self._out("Item name cannot be empty.")
                name = self._ask("Enter item name: ")
            existing = self.commands.find(FindItemRequest(name))
            if existing.ok:
                added += self._offer_restock(existing.value)
            else:
                category = self._ask_category()
                price = self._ask_price("Enter initial price: $")
                quantity = self._ask_int("Enter initial quantity: ", 0)
                result = self.commands.add_item(AddItemRequest(item_id, name, category, quantity, price))
                if isinstance(result.error, DuplicateNameError):
                    added += self._offer_restock(result.error.existing)
                else:
                    self._report(result)
                    added += int(result.ok)

            if not self._confirm("Add another item?"):
                break
        self._out(f"Items added this session: {added}")

    def _offer_restock(self, item: StockItem) -> int:
        self._out(f"Item '{item.name}' already exists!")
        if not self._confirm("Add more quantity to existing item?"):
            return 0
        self._out(f"Current stock: {item.quantity}")
        qty = self._ask_int("Enter quantity to add: ", 0)
        result = self.commands.restock(RestockRequest(item.id, qty))
        self._report(result)
        return int(result.ok)

    def view_all(self) -> None:
        self._out("=== ALL STOCK ITEMS ===")
        if not self.ledger.item_count:
            self._out("No items in stock.")
            return
        stats = self.ledger.stats()
        self._out(
            f"Total Products: {stats.item_count} | Total Quantity: {stats.total_quantity} "
            f"| Out of Stock: {stats.out_of_stock_count} | Low Stock: {stats.low_stock_count}"
        )
        self._out("Categories: " + ", ".join(f"{c}: {n}" for c, n in stats.categories.items()))
        self._print_table(self.ledger.items())

    def update_item(self) -> None:
        self._out("=== UPDATE ITEM ===")
        item = self._lookup_by_name()
        if item is None:
            return
        self._print_table([item])
        self._out("What would you like to update?")
        for i, label in enumerate(("Product ID", "Name", "Category", "Quantity", "Price", "All fields"), start=1):
            self._out(f"{i}. {label}")
        choice = self._ask_int("Enter choice (1-6): ", 1, 6)

        if choice == 1:
            changes = ItemChanges(id=self._ask_int("Enter new product ID: ", 1))
        elif choice == 2:
            changes = ItemChanges(name=self._ask("Enter new name: "))
        elif choice == 3:
            changes = ItemChanges(category=self._ask_category())
        elif choice == 4:
            changes = ItemChanges(quantity=self._ask_int("Enter new quantity: ", 0))
        elif choice == 5:
            changes = ItemChanges(price=self._ask_price("Enter new price: $"))
        else:
            changes = self._ask_all_fields()

        self._report(self.commands.update_item(UpdateItemRequest(item.id, changes)))

    def _ask_all_fields(self) -> ItemChanges:
        """Blank input keeps the current value."""
        def optional(prompt: str, parse):
            while True:
                raw = self._ask(prompt)
                if not raw:
                    return None
                try:
                    return parse(raw)
                except ValueError:
                    self._out("Invalid value, try again or leave blank.")

        def category(raw: str) -> str:
            idx = int(raw)
            if not 1 <= idx <= len(CATEGORY_OPTIONS):
                raise ValueError(raw)
            return CATEGORY_OPTIONS[idx - 1]

        new_id = optional("New product ID (blank to keep): ", int)
        name = optional("New name (blank to keep): ", str)
        for i, option in enumerate(CATEGORY_OPTIONS, start=1):
            self._out(f"  {i}. {option}")
        cat = optional("New category number (blank to keep): ", category)
        qty = optional("New quantity (blank to keep): ", int)
        price = optional("New price (blank to keep): $", to_decimal)
        return ItemChanges(id=new_id, name=name, category=cat, quantity=qty, price=price)

    def delete_item(self) -> None:
        self._out("=== DELETE ITEM ===")
        item = self._lookup_by_name()
        if item is None:
            return
        self._print_table([item])
        if item.quantity > 0:
            self._out(f"Warning: this item still has {item.quantity} units in stock.")
        if not self._confirm("Are you sure you want to delete this item?"):
            self._out("Deletion cancelled.")
            return
        self._report(self.commands.delete_item(DeleteItemRequest(item.id)))

    def search(self) -> None:
        self._out("=== SEARCH ITEMS ===")
        while True:
            term = self._ask("Enter name or category to search: ")
            result = self.commands.search(SearchRequest(term))
            self._report(result)
            if result.ok and result.value:
                self._print_table(result.value)
            if not self._confirm("Search again?"):
                break

    def low_stock_alert(self) -> None:
        self._out("=== LOW STOCK ALERT ===")
        self._out(f"Current threshold: {self.ledger.low_stock_threshold}")
        if self._confirm("Change threshold?"):
            self._report(self.commands.set_low_stock_threshold(self._ask_int("Enter new threshold: ", 0)))

        result = self.commands.low_stock(LowStockRequest())
        self._report(result)
        if not result.ok:
            return
        report = result.value
        if report.out_of_stock:
            self._out("OUT OF STOCK:")
            self._print_table(report.out_of_stock)
        if report.low_stock:
            self._out(f"LOW STOCK (below {report.threshold}):")
            self._print_table(report.low_stock)

    def view_history(self) -> None:
        self._out("=== STOCK HISTORY LOG ===")
        summary = self.commands.history_summary()
        total = sum(summary.values())
        if not total:
            self._out("No history log found.")
            return
        self._out(
            f"SUMMARY: {total} total actions | {summary[LogAction.SALE]} sales "
            f"| {summary[LogAction.ADD]} additions | {summary[LogAction.RESTOCK]} restocks "
            f"| {summary[LogAction.UPDATE]} updates | {summary[LogAction.DELETE]} deletions"
        )
        recent = self.commands.recent_history(20)
        self._out(f"Recent Activities (last {len(recent)} entries):")
        for entry in recent:
            self._out(format_line(entry))
