"""
Account models.

An account is a money container. Its balance is never stored; it is always
derived from the initial balance plus the account's transactions.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from amplop.dates import parse_timestamp


class AccountType(str, Enum):
    """Optional tag describing what kind of account this is."""

    CHECKING = "Checking"
    SAVINGS = "Savings"
    CREDIT_CARD = "Credit Card"
    INVESTMENT = "Investment"
    LOAN = "Loan"
    CASH = "Cash"
    OTHER = "Other"


@dataclass
class Account:
    """
    Represents an account in the ledger.

    Attributes:
        id: Unique account ID
        name: Display name
        initial_balance: Opening balance (may be negative, e.g. credit cards)
        created_at: When the account was created
        account_type: Optional account type tag
    """

    id: str
    name: str
    initial_balance: float
    created_at: datetime
    account_type: Optional[AccountType] = None

    def __post_init__(self):
        """Normalize the display name."""
        if self.name:
            self.name = self.name.strip()

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "initial_balance": self.initial_balance,
            "account_type": self.account_type.value if self.account_type else None,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Account":
        """Create an Account from its serialized form."""
        account_type = data.get("account_type")
        return cls(
            id=data["id"],
            name=data["name"],
            initial_balance=data.get("initial_balance") or 0.0,
            created_at=parse_timestamp(data["created_at"]),
            account_type=AccountType(account_type) if account_type else None,
        )
