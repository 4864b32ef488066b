"""
Configuration module for Amplop.

Contains constants, settings, and configuration values used throughout the application.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Version
VERSION = "0.1.0"

# Application paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
LOG_DIR = PROJECT_ROOT / "logs"
ENV_FILE = PROJECT_ROOT / ".env"

# Database configuration
DEFAULT_DB_PATH = DATA_DIR / "amplop.db"
DB_TIMEOUT = 10.0  # seconds

# Synthetic payees used by transfers
ACCOUNT_TRANSFER_PAYEE = "Internal Account Transfer"
BUDGET_TRANSFER_PAYEE = "Internal Budget Transfer"

# Amount validation
MAX_AMOUNT = 999_999_999_999.99  # ~1 trillion

# Envelope constraints
MIN_DUE_DAY = 1
MAX_DUE_DAY = 31

# User input limits
MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 200

# Export configuration
MAX_EXPORT_ENTRIES = 10000

# Chart generation
CHART_DPI = 150
CHART_FORMAT = "png"
CHART_WIDTH = 12
CHART_HEIGHT = 8

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "amplop.log"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Error messages
ERROR_MESSAGES = {
    "invalid_amount": "Amount must be a positive number.",
    "invalid_date": "Invalid date format.",
    "invalid_type": "Transaction type must be 'income' or 'expense'.",
    "invalid_month": "Month must be in YYYY-MM format.",
    "validation_error": "Invalid input. Please check your values and try again.",
    "account_not_found": "The selected account does not exist.",
    "envelope_not_found": "The selected envelope does not exist.",
    "payee_not_found": "A payee is required.",
    "transaction_not_found": "The transaction was not found.",
    "same_source_and_destination": "Source and destination must be different.",
    "category_order_mismatch": "Category order does not match existing categories.",
    "envelope_order_mismatch": "Envelope order does not match the category.",
    "not_ready": "The ledger is still loading.",
    "persistence_error": "Could not save your changes. Please try again later.",
}


def load_environment(env_path: Optional[Path] = None) -> bool:
    """
    Load environment variables from a .env file if present.

    Returns:
        True if a file was loaded
    """
    path = env_path or ENV_FILE
    if path.exists():
        load_dotenv(path)
        return True
    return False


def get_db_path() -> Path:
    """Get the configured database path."""
    override = os.getenv("AMPLOP_DB_PATH")
    return Path(override) if override else DEFAULT_DB_PATH


def ensure_directories():
    """Ensure required directories exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    LOG_DIR.mkdir(parents=True, exist_ok=True)


def get_log_level():
    """Get the configured log level."""
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    level = os.getenv("LOG_LEVEL", LOG_LEVEL)
    return level_map.get(level.upper(), logging.INFO)


def configure_logging(log_file: Optional[Path] = None):
    """Configure root logging with a file handler and stdout."""
    ensure_directories()
    logging.basicConfig(
        level=get_log_level(),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file or LOG_DIR / LOG_FILE),
            logging.StreamHandler(sys.stdout),
        ],
    )
