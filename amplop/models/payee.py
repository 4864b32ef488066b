from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from amplop.dates import parse_timestamp


@dataclass
class Payee:
    """Counterparty of a transaction. Synthetic payees represent transfers."""

    id: str
    name: str
    created_at: datetime
    category: Optional[str] = None

    def __post_init__(self):
        """Trim the name and drop a blank category."""
        if self.name:
            self.name = self.name.strip()
        if self.category is not None:
            self.category = self.category.strip() or None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Payee":
        return cls(
            id=data["id"],
            name=data["name"],
            created_at=parse_timestamp(data["created_at"]),
            category=data.get("category"),
        )
