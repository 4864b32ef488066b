"""
Envelope models.

An envelope is a budget category with a default monthly target. Its
available balance (with rollover) is derived, never stored.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from amplop.dates import parse_timestamp


@dataclass
class Envelope:
    """
    Represents a budget envelope.

    Attributes:
        id: Unique envelope ID
        name: Display name
        category: Category this envelope belongs to (mandatory)
        budget_amount: Default monthly funding (>= 0)
        created_at: When the envelope was created; funding starts that month
        order_index: Global display order counter
        estimated_amount: Informational estimate, not used in balance math
        due_day: Optional day of month the bill is due (1-31)
    """

    id: str
    name: str
    category: str
    budget_amount: float
    created_at: datetime
    order_index: int = 0
    estimated_amount: Optional[float] = None
    due_day: Optional[int] = None

    def __post_init__(self):
        """Normalize name and category."""
        if self.name:
            self.name = self.name.strip()
        if self.category:
            self.category = self.category.strip()

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "budget_amount": self.budget_amount,
            "estimated_amount": self.estimated_amount,
            "due_day": self.due_day,
            "order_index": self.order_index,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Envelope":
        """Create an Envelope from its serialized form."""
        return cls(
            id=data["id"],
            name=data["name"],
            category=data["category"],
            budget_amount=data.get("budget_amount") or 0.0,
            created_at=parse_timestamp(data["created_at"]),
            order_index=data.get("order_index") or 0,
            estimated_amount=data.get("estimated_amount"),
            due_day=data.get("due_day"),
        )


@dataclass
class MonthlyAllocation:
    """Explicit override of an envelope's budget for one "YYYY-MM" month."""

    envelope_id: str
    month: str
    amount: float

    @property
    def key(self) -> tuple[str, str]:
        return (self.envelope_id, self.month)

    def to_dict(self) -> dict:
        return {
            "envelope_id": self.envelope_id,
            "month": self.month,
            "amount": self.amount,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MonthlyAllocation":
        return cls(
            envelope_id=data["envelope_id"],
            month=data["month"],
            amount=data["amount"],
        )
