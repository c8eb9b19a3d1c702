from __future__ import annotations

import logging

from openpyxl import load_workbook

from stockledger.domain.errors import NotFoundError, PersistenceError, ValidationError

log = logging.getLogger(__name__)

REQUIRED_HEADERS = ["id", "name", "category", "quantity", "price"]


class ExcelService:
    def __init__(self, ledger):
        self.ledger = ledger

    def import_items_excel(self, path: str) -> tuple[int, int]:
        """
        Rows whose name matches an existing item restock it by `quantity`;
        other rows are added as new items.
        Headers:
          id | name | category | quantity | price
        """
        wb = load_workbook(path, read_only=True, data_only=True)
        try:
            ws = wb.active
            rows = ws.iter_rows(values_only=True)
            header_row = next(rows, None) or ()

            headers = {}
            for col, v in enumerate(header_row):
                if isinstance(v, str):
                    headers[v.strip().lower()] = col

            for r in REQUIRED_HEADERS:
                if r not in headers:
                    raise ValidationError(f"Missing column header: {r}")

            ok = 0
            skipped = 0
            for row_no, row in enumerate(rows, start=2):
                def cell(name):
                    idx = headers[name]
                    return row[idx] if idx < len(row) else None

                name = cell("name")
                if name is None or not str(name).strip():
                    skipped += 1
                    continue
                name = str(name).strip()

                try:
                    quantity = int(float(cell("quantity")))
                    existing = next((it for it in self.ledger.items() if it.name == name), None)
                    if existing is not None:
                        self.ledger.restock(existing.id, quantity)
                    else:
                        self.ledger.add_item(
                            int(float(cell("id"))),
                            name,
                            cell("category"),
                            quantity,
                            cell("price"),
                        )
                    ok += 1
                except (TypeError, ValueError, OverflowError, ValidationError, NotFoundError) as e:
                    log.warning("Excel import skipped row %s: %s", row_no, e)
                    skipped += 1
                except PersistenceError as e:
                    log.error("Excel import could not save row %s: %s", row_no, e)
                    skipped += 1
        finally:
            wb.close()

        log.info("excel_import path=%s ok=%s skipped=%s", path, ok, skipped)
        return ok, skipped
