from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from stockledger.domain.models import (
    CATEGORY_OPTIONS,
    DEFAULT_LOW_STOCK_THRESHOLD,
    InventoryStats,
    LowStockReport,
    StockItem,
    StockStatus,
)


def stock_status(item: StockItem, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> StockStatus:
    return item.status(threshold)


def partition_low_stock(items: Iterable[StockItem], threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> LowStockReport:
    out_of_stock: list[StockItem] = []
    low: list[StockItem] = []
    for item in items:
        if item.quantity == 0:
            out_of_stock.append(item)
        elif item.quantity < threshold:
            low.append(item)
    return LowStockReport(threshold=threshold, out_of_stock=out_of_stock, low_stock=low)


def category_tally(items: Iterable[StockItem]) -> dict[str, int]:
    """Count items per category, known categories first in their fixed order."""
    counts: dict[str, int] = {}
    for item in items:
        counts[item.category] = counts.get(item.category, 0) + 1
    ordered = {c: counts[c] for c in CATEGORY_OPTIONS if c in counts}
    ordered.update({c: n for c, n in counts.items() if c not in ordered})
    return ordered


def total_quantity(items: Iterable[StockItem]) -> int:
    return sum(int(item.quantity) for item in items)


def inventory_stats(items: Iterable[StockItem], threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> InventoryStats:
    items = list(items)
    report = partition_low_stock(items, threshold)
    return InventoryStats(
        item_count=len(items),
        total_quantity=total_quantity(items),
        out_of_stock_count=len(report.out_of_stock),
        low_stock_count=len(report.low_stock),
        categories=category_tally(items),
    )


class ReportingService:
    def __init__(self, ledger):
        self.ledger = ledger

    def stats(self, threshold: Optional[int] = None) -> InventoryStats:
        return inventory_stats(self.ledger.items(), self._threshold(threshold))

    def low_stock(self, threshold: Optional[int] = None) -> LowStockReport:
        return partition_low_stock(self.ledger.items(), self._threshold(threshold))

    def _threshold(self, threshold: Optional[int]) -> int:
        return self.ledger.low_stock_threshold if threshold is None else int(threshold)

    def export_inventory_report_excel(self, path: str, threshold: Optional[int] = None) -> None:
        export_inventory_report_excel(
            path,
            self.ledger.items(),
            self.ledger.total_revenue,
            self._threshold(threshold),
        )


def export_inventory_report_excel(
    path: str,
    items: Iterable[StockItem],
    total_revenue: Decimal,
    threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
) -> None:
    items = list(items)
    stats = inventory_stats(items, threshold)
    wb = Workbook()

    def money(cell):
        cell.number_format = "#,##0.00"

    def bold_row(ws, r):
        for c in ws[r]:
            c.font = Font(bold=True)

    def set_widths(ws, widths: dict[str, int]):
        for col, w in widths.items():
            ws.column_dimensions[col].width = w

    def add_table(ws, name: str, start_row: int, start_col: int, end_row: int, end_col: int):
        ref = f"{get_column_letter(start_col)}{start_row}:{get_column_letter(end_col)}{end_row}"
        tab = Table(displayName=name, ref=ref)
        tab.tableStyleInfo = TableStyleInfo(
            name="TableStyleMedium9",
            showRowStripes=True,
            showColumnStripes=False,
        )
        ws.add_table(tab)

    # -------- 1) Summary --------
    ws = wb.active
    ws.title = "Summary"
    ws["A1"] = "Inventory Summary"
    ws["A1"].font = Font(bold=True, size=14)

    ws["A3"] = "Generated"
    ws["B3"] = datetime.now().replace(microsecond=0).isoformat(sep=" ")

    rows = [
        ("Total products", stats.item_count, "int"),
        ("Total quantity", stats.total_quantity, "int"),
        ("Out of stock", stats.out_of_stock_count, "int"),
        (f"Low stock (< {threshold})", stats.low_stock_count, "int"),
        ("Total revenue", float(total_revenue), "money"),
    ]
    start_row = 5
    for i, (label, val, kind) in enumerate(rows):
        r = start_row + i
        ws[f"A{r}"] = label
        ws[f"B{r}"] = val
        if kind == "money":
            money(ws[f"B{r}"])
    set_widths(ws, {"A": 24, "B": 22})

    # -------- 2) Items --------
    ws2 = wb.create_sheet("Items")
    ws2.append(["ID", "Product Name", "Category", "Qty", "Last Price", "Added", "Status"])
    bold_row(ws2, 1)
    for out_row, item in enumerate(items, start=2):
        ws2.append([
            int(item.id),
            item.name,
            item.category,
            int(item.quantity),
            float(item.last_price),
            datetime.fromtimestamp(item.created_at).strftime("%Y-%m-%d %H:%M"),
            item.status(threshold).value,
        ])
        money(ws2[f"E{out_row}"])
    ws2.freeze_panes = "A2"
    set_widths(ws2, {"A": 8, "B": 30, "C": 16, "D": 8, "E": 14, "F": 18, "G": 8})
    if ws2.max_row >= 2:
        add_table(ws2, "StockItems", 1, 1, ws2.max_row, 7)

    # -------- 3) Categories --------
    ws3 = wb.create_sheet("Categories")
    ws3.append(["Category", "Products"])
    bold_row(ws3, 1)
    for category, count in stats.categories.items():
        ws3.append([category, int(count)])
    set_widths(ws3, {"A": 18, "B": 10})

    wb.save(path)
