"""Shared fixtures for ledger tests."""

from datetime import date, datetime, timezone

import pytest

from amplop import Ledger, MemoryPersistence

TODAY = date(2024, 5, 15)


def start_of(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


@pytest.fixture
def ledger():
    """Fresh in-memory ledger pinned to TODAY."""
    return Ledger(clock=lambda: TODAY)


@pytest.fixture
def persisted_ledger():
    """Ledger backed by MemoryPersistence, already loaded."""
    return Ledger(persistence=MemoryPersistence(), clock=lambda: TODAY).load()


@pytest.fixture
def checking(ledger):
    return ledger.add_account("Checking", initial_balance=1000, account_type="Checking")


@pytest.fixture
def savings(ledger):
    return ledger.add_account("Savings", initial_balance=500, account_type="Savings")


@pytest.fixture
def grocer(ledger):
    return ledger.add_payee("Corner Grocer", category="Food")


@pytest.fixture
def groceries(ledger):
    return ledger.add_envelope("Groceries", "Living", budget_amount=200)


@pytest.fixture
def dining(ledger):
    return ledger.add_envelope("Dining Out", "Living", budget_amount=100)
