import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def open_ledger(tmp_path: Path, store=None, threshold: int = 15):
    from stockledger.repositories.file_repo import FileSnapshotRepository
    from stockledger.repositories.history_file import HistoryLogFile
    from stockledger.services.ledger_service import Ledger
    from stockledger.services.transaction_log import TransactionLog

    store = store or FileSnapshotRepository(tmp_path / "stock.dat", tmp_path / "grand_total.dat")
    history = TransactionLog.load(HistoryLogFile(tmp_path / "history.log"))
    return Ledger.open(store, history, low_stock_threshold=threshold)
