from .account import Account, AccountType
from .envelope import Envelope, MonthlyAllocation
from .payee import Payee
from .transaction import Transaction, TransactionType, safe_amount

__all__ = [
    "Account",
    "AccountType",
    "Envelope",
    "MonthlyAllocation",
    "Payee",
    "Transaction",
    "TransactionType",
    "safe_amount",
]
