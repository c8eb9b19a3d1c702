from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from stockledger.application.container import build_container
from stockledger.config import get_app_paths
from stockledger.domain.errors import AppError
from stockledger.logging_config import setup_logging
from stockledger.ui.console import ConsoleShell

log = logging.getLogger(__name__)


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="stockledger", description="Single-user stock ledger.")
    parser.add_argument("--data-dir", help="Directory holding stock.dat, grand_total.dat and history.log")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--export-report", metavar="PATH", help="Write an Excel inventory report and exit")
    group.add_argument("--import-excel", metavar="PATH", help="Import items from an Excel sheet and exit")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    paths = get_app_paths(args.data_dir)
    setup_logging(paths.logs_dir, level=logging.INFO)

    try:
        container = build_container(paths.base_dir)
    except AppError as e:
        log.exception("startup_failed")
        print(f"Could not load stock data: {e}")
        return 1

    if args.export_report:
        try:
            container.reporting.export_inventory_report_excel(args.export_report)
        except OSError as e:
            log.error("report_export_failed path=%s error=%s", args.export_report, e)
            print(f"Export failed: {e}")
            return 1
        print(f"Report written to {args.export_report}")
        return 0

    if args.import_excel:
        try:
            ok, skipped = container.excel.import_items_excel(args.import_excel)
        except (AppError, OSError) as e:
            log.error("excel_import_failed path=%s error=%s", args.import_excel, e)
            print(f"Import failed: {e}")
            return 1
        print(f"Imported {ok} row(s), skipped {skipped}.")
        for warning in container.ledger.drain_warnings():
            print(f"Warning: {warning}")
        return 0

    shell = ConsoleShell(container.commands)
    return shell.run()


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
