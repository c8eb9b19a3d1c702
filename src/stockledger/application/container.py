from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from stockledger.application.commands import CommandService
from stockledger.config import AppPaths, get_app_paths, low_stock_threshold
from stockledger.repositories.file_repo import FileSnapshotRepository
from stockledger.repositories.history_file import HistoryLogFile
from stockledger.services.excel_service import ExcelService
from stockledger.services.ledger_service import Ledger
from stockledger.services.reporting_service import ReportingService
from stockledger.services.transaction_log import TransactionLog


@dataclass(frozen=True)
class AppContainer:
    paths: AppPaths
    store: FileSnapshotRepository
    history: TransactionLog
    ledger: Ledger
    reporting: ReportingService
    excel: ExcelService
    commands: CommandService


def build_container(base_dir: Optional[Path | str] = None, threshold: Optional[int] = None) -> AppContainer:
    paths = get_app_paths(base_dir)

    store = FileSnapshotRepository(paths.stock_path, paths.revenue_path)
    history = TransactionLog.load(HistoryLogFile(paths.history_path))
    ledger = Ledger.open(
        store,
        history,
        low_stock_threshold=low_stock_threshold() if threshold is None else threshold,
    )
    reporting = ReportingService(ledger)
    excel = ExcelService(ledger)
    commands = CommandService(ledger)

    return AppContainer(
        paths=paths,
        store=store,
        history=history,
        ledger=ledger,
        reporting=reporting,
        excel=excel,
        commands=commands,
    )
