"""
Amplop - Envelope Budgeting Ledger

Derives account balances, envelope balances with rollover, and monthly
totals from a log of transactions, and records transfers as paired
transactions.
"""

from .db import LedgerStore, MemoryPersistence, SQLitePersistence
from .exceptions import LedgerError
from .models import (
    Account,
    AccountType,
    Envelope,
    MonthlyAllocation,
    Payee,
    Transaction,
    TransactionType,
)
from .services import Ledger, TransferResult, open_ledger

__version__ = "0.1.0"

__all__ = [
    "Account",
    "AccountType",
    "Envelope",
    "Ledger",
    "LedgerError",
    "LedgerStore",
    "MemoryPersistence",
    "MonthlyAllocation",
    "Payee",
    "SQLitePersistence",
    "Transaction",
    "TransactionType",
    "TransferResult",
    "open_ledger",
]
