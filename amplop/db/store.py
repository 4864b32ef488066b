"""
In-memory ledger store.

Holds the four base collections (accounts, envelopes, payees, transactions)
and the two auxiliary collections (monthly allocations, category order).
The store owns no business rules; all relationships are by id lookup and an
unknown id simply resolves to None.
"""

import logging
from typing import TYPE_CHECKING, Optional

from amplop.models import (
    Account,
    Envelope,
    MonthlyAllocation,
    Payee,
    Transaction,
)

if TYPE_CHECKING:
    from .persistence import LedgerSnapshot

logger = logging.getLogger(__name__)


class LedgerStore:
    """Plain data holder for one ledger."""

    def __init__(self):
        self.accounts: dict[str, Account] = {}
        self.envelopes: dict[str, Envelope] = {}
        self.payees: dict[str, Payee] = {}
        # Kept sorted by date descending; ties stay in insertion order
        self.transactions: list[Transaction] = []
        self.allocations: dict[tuple[str, str], MonthlyAllocation] = {}
        self.category_order: list[str] = []

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_account(self, account_id: Optional[str]) -> Optional[Account]:
        return self.accounts.get(account_id) if account_id else None

    def get_envelope(self, envelope_id: Optional[str]) -> Optional[Envelope]:
        return self.envelopes.get(envelope_id) if envelope_id else None

    def get_payee(self, payee_id: Optional[str]) -> Optional[Payee]:
        return self.payees.get(payee_id) if payee_id else None

    def get_transaction(self, transaction_id: Optional[str]) -> Optional[Transaction]:
        if not transaction_id:
            return None
        for tx in self.transactions:
            if tx.id == transaction_id:
                return tx
        return None

    def find_payee_by_name(self, name: str) -> Optional[Payee]:
        """Find a payee by exact name."""
        for payee in self.payees.values():
            if payee.name == name:
                return payee
        return None

    def get_allocation(self, envelope_id: str, month: str) -> Optional[MonthlyAllocation]:
        return self.allocations.get((envelope_id, month))

    def categories(self) -> list[str]:
        """Distinct categories referenced by existing envelopes, sorted by name."""
        return sorted({env.category for env in self.envelopes.values()})

    # =========================================================================
    # Transactions
    # =========================================================================

    def insert_transactions(self, transactions: list[Transaction]):
        """Append transactions and restore date-descending order."""
        self.transactions.extend(transactions)
        self.sort_transactions()

    def sort_transactions(self):
        # list.sort is stable, so equal dates keep insertion order
        self.transactions.sort(key=lambda tx: tx.date, reverse=True)

    def delete_transaction(self, transaction_id: str) -> bool:
        before = len(self.transactions)
        self.transactions = [tx for tx in self.transactions if tx.id != transaction_id]
        return len(self.transactions) < before

    # =========================================================================
    # Snapshots
    # =========================================================================

    def snapshot(self) -> "LedgerSnapshot":
        """Serialize every collection into a persistence snapshot."""
        from .persistence import LedgerSnapshot

        return LedgerSnapshot(
            accounts=[a.to_dict() for a in self.accounts.values()],
            envelopes=[e.to_dict() for e in self.envelopes.values()],
            payees=[p.to_dict() for p in self.payees.values()],
            transactions=[t.to_dict() for t in self.transactions],
            allocations=[a.to_dict() for a in self.allocations.values()],
            category_order=list(self.category_order),
        )

    def restore(self, snapshot: "LedgerSnapshot"):
        """Replace every collection with the contents of a snapshot."""
        self.accounts = {
            a.id: a for a in (Account.from_dict(d) for d in snapshot.accounts)
        }
        self.envelopes = {
            e.id: e for e in (Envelope.from_dict(d) for d in snapshot.envelopes)
        }
        self.payees = {p.id: p for p in (Payee.from_dict(d) for d in snapshot.payees)}
        self.transactions = [Transaction.from_dict(d) for d in snapshot.transactions]
        self.sort_transactions()
        self.allocations = {
            a.key: a
            for a in (MonthlyAllocation.from_dict(d) for d in snapshot.allocations)
        }

        # Category order must cover exactly the categories in use
        known = self.categories()
        order = [c for c in snapshot.category_order if c in known]
        order = list(dict.fromkeys(order))
        order.extend(c for c in known if c not in order)
        self.category_order = order

        logger.debug(
            f"Restored ledger: {len(self.accounts)} accounts, "
            f"{len(self.envelopes)} envelopes, {len(self.payees)} payees, "
            f"{len(self.transactions)} transactions"
        )
