"""
Base repository module with connection management and schema initialization.

Provides the SQLite foundation used by the default persistence collaborator.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from amplop.config import DB_TIMEOUT, get_db_path

logger = logging.getLogger(__name__)


class BaseRepository:
    """
    Base repository class with SQLite connection management.

    Provides schema initialization and a transactional connection context
    shared by the persistence layer.
    """

    def __init__(self, db_path: Optional[Path] = None, init_schema: bool = True):
        """
        Initialize the base repository.

        Args:
            db_path: Path to the SQLite database file. Defaults to data/amplop.db
            init_schema: Whether to initialize the schema on startup
        """
        self.db_path = Path(db_path) if db_path else get_db_path()
        self._ensure_db_directory()
        if init_schema:
            self._init_schema()

    def _ensure_db_directory(self):
        """Ensure the database directory exists."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Database directory ensured: {self.db_path.parent}")
        except Exception as e:
            logger.error(f"Failed to create database directory: {e}", exc_info=True)
            raise

    @contextmanager
    def _get_connection(self):
        """Context manager for database connections with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=DB_TIMEOUT)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
            conn.commit()
        except sqlite3.OperationalError as e:
            logger.error(f"Database locked or operational error: {e}", exc_info=True)
            if conn:
                conn.rollback()
            raise
        except Exception as e:
            logger.error(f"Database error: {e}", exc_info=True)
            if conn:
                conn.rollback()
            raise
        finally:
            if conn:
                conn.close()

    def _init_schema(self):
        """Initialize the ledger schema."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS accounts (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    account_type TEXT,
                    initial_balance REAL NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS envelopes (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    category TEXT NOT NULL CHECK(length(category) > 0),
                    budget_amount REAL NOT NULL DEFAULT 0 CHECK(budget_amount >= 0),
                    estimated_amount REAL,
                    due_day INTEGER CHECK(due_day IS NULL OR (due_day >= 1 AND due_day <= 31)),
                    order_index INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS payees (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    category TEXT,
                    created_at TEXT NOT NULL
                )
            """)

            # No foreign keys: stale references must load and degrade to zero
            conn.execute("""
                CREATE TABLE IF NOT EXISTS transactions (
                    id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    account_id TEXT NOT NULL,
                    envelope_id TEXT,
                    payee_id TEXT NOT NULL,
                    amount REAL NOT NULL,
                    type TEXT NOT NULL CHECK(type IN ('income', 'expense')),
                    description TEXT,
                    date TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    is_transfer INTEGER NOT NULL DEFAULT 0 CHECK(is_transfer IN (0, 1)),
                    transfer_group_id TEXT
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS monthly_allocations (
                    envelope_id TEXT NOT NULL,
                    month TEXT NOT NULL,
                    amount REAL NOT NULL CHECK(amount >= 0),
                    PRIMARY KEY (envelope_id, month)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS category_order (
                    position INTEGER PRIMARY KEY,
                    name TEXT NOT NULL UNIQUE
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS ledger_metadata (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)

            self._create_indexes(conn)

            logger.debug("Ledger schema initialized successfully")

    def _create_indexes(self, conn):
        """Create database indexes for query performance."""
        indexes = [
            ("idx_transactions_account_id", "transactions", "account_id"),
            ("idx_transactions_envelope_id", "transactions", "envelope_id"),
            ("idx_transactions_date", "transactions", "date DESC"),
            ("idx_transactions_group", "transactions", "transfer_group_id"),
        ]

        for index_name, table, columns in indexes:
            conn.execute(f"""
                CREATE INDEX IF NOT EXISTS {index_name}
                ON {table}({columns})
            """)
