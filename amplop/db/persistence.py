"""
Persistence collaborators for the ledger.

The engine only needs something that can load the six collections at startup
and save them after every mutation. ``SQLitePersistence`` is the default;
``MemoryPersistence`` keeps the snapshot in process.
"""

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

from amplop.exceptions import PersistenceError

from .base import BaseRepository

logger = logging.getLogger(__name__)


@dataclass
class LedgerSnapshot:
    """Serialized state of every ledger collection."""

    accounts: list[dict] = field(default_factory=list)
    envelopes: list[dict] = field(default_factory=list)
    payees: list[dict] = field(default_factory=list)
    transactions: list[dict] = field(default_factory=list)
    allocations: list[dict] = field(default_factory=list)
    category_order: list[str] = field(default_factory=list)
    last_modified: Optional[str] = None

    def is_empty(self) -> bool:
        return not (
            self.accounts
            or self.envelopes
            or self.payees
            or self.transactions
            or self.allocations
        )


class LedgerPersistence(Protocol):
    """Load/save contract the ledger expects from its storage layer."""

    def load(self) -> LedgerSnapshot: ...

    def save(self, snapshot: LedgerSnapshot) -> None: ...


class MemoryPersistence:
    """Keeps the last saved snapshot in memory."""

    def __init__(self, snapshot: Optional[LedgerSnapshot] = None):
        self._snapshot = copy.deepcopy(snapshot) if snapshot else LedgerSnapshot()
        self.save_count = 0

    def load(self) -> LedgerSnapshot:
        return copy.deepcopy(self._snapshot)

    def save(self, snapshot: LedgerSnapshot) -> None:
        self._snapshot = copy.deepcopy(snapshot)
        self._snapshot.last_modified = datetime.now(timezone.utc).isoformat()
        self.save_count += 1


class SQLitePersistence(BaseRepository):
    """
    SQLite-backed persistence.

    ``save`` rewrites every table inside a single SQLite transaction, so a
    snapshot (including both legs of a transfer) is committed atomically.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize the persistence layer.

        Args:
            db_path: Path to the SQLite database file
        """
        super().__init__(db_path, init_schema=True)
        logger.info(f"SQLitePersistence initialized with db_path: {self.db_path}")

    def load(self) -> LedgerSnapshot:
        """
        Load every collection from the database.

        Returns:
            LedgerSnapshot (empty for a fresh database)

        Raises:
            PersistenceError: If the database cannot be read
        """
        try:
            with self._get_connection() as conn:
                accounts = [
                    {
                        "id": row["id"],
                        "name": row["name"],
                        "account_type": row["account_type"],
                        "initial_balance": row["initial_balance"],
                        "created_at": row["created_at"],
                    }
                    for row in conn.execute("SELECT * FROM accounts ORDER BY name")
                ]
                envelopes = [
                    {
                        "id": row["id"],
                        "name": row["name"],
                        "category": row["category"],
                        "budget_amount": row["budget_amount"],
                        "estimated_amount": row["estimated_amount"],
                        "due_day": row["due_day"],
                        "order_index": row["order_index"],
                        "created_at": row["created_at"],
                    }
                    for row in conn.execute(
                        "SELECT * FROM envelopes ORDER BY order_index"
                    )
                ]
                payees = [
                    {
                        "id": row["id"],
                        "name": row["name"],
                        "category": row["category"],
                        "created_at": row["created_at"],
                    }
                    for row in conn.execute("SELECT * FROM payees ORDER BY name")
                ]
                transactions = [
                    {
                        "id": row["id"],
                        "account_id": row["account_id"],
                        "envelope_id": row["envelope_id"],
                        "payee_id": row["payee_id"],
                        "amount": row["amount"],
                        "type": row["type"],
                        "description": row["description"],
                        "date": row["date"],
                        "created_at": row["created_at"],
                        "is_transfer": bool(row["is_transfer"]),
                        "transfer_group_id": row["transfer_group_id"],
                    }
                    for row in conn.execute(
                        "SELECT * FROM transactions ORDER BY position"
                    )
                ]
                allocations = [
                    {
                        "envelope_id": row["envelope_id"],
                        "month": row["month"],
                        "amount": row["amount"],
                    }
                    for row in conn.execute("SELECT * FROM monthly_allocations")
                ]
                category_order = [
                    row["name"]
                    for row in conn.execute(
                        "SELECT name FROM category_order ORDER BY position"
                    )
                ]
                row = conn.execute(
                    "SELECT value FROM ledger_metadata WHERE key = 'last_modified'"
                ).fetchone()
                last_modified = row["value"] if row else None

            logger.info(
                f"Loaded ledger from {self.db_path}: {len(accounts)} accounts, "
                f"{len(envelopes)} envelopes, {len(transactions)} transactions"
            )
            return LedgerSnapshot(
                accounts=accounts,
                envelopes=envelopes,
                payees=payees,
                transactions=transactions,
                allocations=allocations,
                category_order=category_order,
                last_modified=last_modified,
            )
        except Exception as e:
            logger.error(f"Error loading ledger: {e}", exc_info=True)
            raise PersistenceError(f"Failed to load ledger: {e}") from e

    def save(self, snapshot: LedgerSnapshot) -> None:
        """
        Replace the stored ledger with a snapshot in one transaction.

        Raises:
            PersistenceError: If the write fails (nothing is committed)
        """
        now = datetime.now(timezone.utc).isoformat()

        try:
            with self._get_connection() as conn:
                for table in (
                    "accounts",
                    "envelopes",
                    "payees",
                    "transactions",
                    "monthly_allocations",
                    "category_order",
                ):
                    conn.execute(f"DELETE FROM {table}")

                conn.executemany(
                    """
                    INSERT INTO accounts (
                        id, name, account_type, initial_balance, created_at
                    ) VALUES (?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            a["id"],
                            a["name"],
                            a["account_type"],
                            a["initial_balance"],
                            a["created_at"],
                        )
                        for a in snapshot.accounts
                    ],
                )
                conn.executemany(
                    """
                    INSERT INTO envelopes (
                        id, name, category, budget_amount, estimated_amount,
                        due_day, order_index, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            e["id"],
                            e["name"],
                            e["category"],
                            e["budget_amount"],
                            e["estimated_amount"],
                            e["due_day"],
                            e["order_index"],
                            e["created_at"],
                        )
                        for e in snapshot.envelopes
                    ],
                )
                conn.executemany(
                    """
                    INSERT INTO payees (id, name, category, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    [
                        (p["id"], p["name"], p["category"], p["created_at"])
                        for p in snapshot.payees
                    ],
                )
                conn.executemany(
                    """
                    INSERT INTO transactions (
                        id, position, account_id, envelope_id, payee_id, amount,
                        type, description, date, created_at, is_transfer,
                        transfer_group_id
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            t["id"],
                            position,
                            t["account_id"],
                            t["envelope_id"],
                            t["payee_id"],
                            t["amount"],
                            t["type"],
                            t["description"],
                            t["date"],
                            t["created_at"],
                            1 if t["is_transfer"] else 0,
                            t["transfer_group_id"],
                        )
                        for position, t in enumerate(snapshot.transactions)
                    ],
                )
                conn.executemany(
                    """
                    INSERT INTO monthly_allocations (envelope_id, month, amount)
                    VALUES (?, ?, ?)
                    """,
                    [
                        (a["envelope_id"], a["month"], a["amount"])
                        for a in snapshot.allocations
                    ],
                )
                conn.executemany(
                    "INSERT INTO category_order (position, name) VALUES (?, ?)",
                    list(enumerate(snapshot.category_order)),
                )
                conn.execute(
                    """
                    INSERT OR REPLACE INTO ledger_metadata (key, value)
                    VALUES ('last_modified', ?)
                    """,
                    (now,),
                )

            snapshot.last_modified = now
            logger.debug(
                f"Saved ledger snapshot with {len(snapshot.transactions)} transactions"
            )
        except Exception as e:
            logger.error(f"Error saving ledger: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save ledger: {e}") from e
