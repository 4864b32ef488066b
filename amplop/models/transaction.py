from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional

from amplop.dates import parse_date, parse_timestamp


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


@dataclass
class Transaction:
    """
    A dated money movement against an account.

    The stored amount is always positive; direction comes from ``type``.
    Both legs of a transfer share a ``transfer_group_id``; only
    account-to-account legs set ``is_transfer``.
    """

    id: str
    account_id: str
    payee_id: str
    amount: float
    type: TransactionType
    date: date
    created_at: datetime
    envelope_id: Optional[str] = None
    description: Optional[str] = None
    is_transfer: bool = False
    transfer_group_id: Optional[str] = None

    @property
    def signed_amount(self) -> float:
        """Amount with sign applied: positive for income, negative for expense."""
        amount = safe_amount(self.amount)
        return amount if self.type == TransactionType.INCOME else -amount

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "account_id": self.account_id,
            "envelope_id": self.envelope_id,
            "payee_id": self.payee_id,
            "amount": self.amount,
            "type": self.type.value,
            "description": self.description,
            "date": self.date.isoformat(),
            "created_at": self.created_at.isoformat(),
            "is_transfer": self.is_transfer,
            "transfer_group_id": self.transfer_group_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Transaction":
        """Create a Transaction from its serialized form."""
        return cls(
            id=data["id"],
            account_id=data["account_id"],
            payee_id=data["payee_id"],
            amount=data["amount"],
            type=TransactionType(data["type"]),
            date=parse_date(data["date"]),
            created_at=parse_timestamp(data["created_at"]),
            envelope_id=data.get("envelope_id") or None,
            description=data.get("description") or None,
            is_transfer=bool(data.get("is_transfer")),
            transfer_group_id=data.get("transfer_group_id"),
        )


def safe_amount(value) -> float:
    """
    Coerce a stored amount for derivations.

    Corrupted or non-numeric values contribute zero instead of breaking a
    balance. Never use this on the write path.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if value != value:  # NaN
        return 0.0
    return float(value)
