from .allocations import AllocationResolver
from .balances import BalanceCalculator
from .export import ExportFormat, ExportService
from .ledger import Ledger, open_ledger
from .ordering import OrderingManager
from .reports import ReportService
from .transactions import TransactionDraft, TransactionWriter
from .transfers import TransferOrchestrator, TransferResult

__all__ = [
    "AllocationResolver",
    "BalanceCalculator",
    "ExportFormat",
    "ExportService",
    "Ledger",
    "OrderingManager",
    "ReportService",
    "TransactionDraft",
    "TransactionWriter",
    "TransferOrchestrator",
    "TransferResult",
    "open_ledger",
]
