from .ledger_service import Ledger
from .transaction_log import TransactionLog
from .reporting_service import ReportingService
from .excel_service import ExcelService

__all__ = [
    "Ledger",
    "TransactionLog",
    "ReportingService",
    "ExcelService",
]
