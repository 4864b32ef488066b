"""
Balance calculator for account and envelope figures.

Every figure is recomputed from the store on each call. Unknown ids and
corrupted amounts contribute zero so stale references never raise.
"""

import logging
from datetime import date
from typing import Optional

from amplop.dates import (
    Period,
    current_month_period,
    month_key,
    month_period,
    year_to_date_period,
)
from amplop.db.store import LedgerStore
from amplop.models import Transaction, TransactionType, safe_amount

from .allocations import AllocationResolver

logger = logging.getLogger(__name__)


class BalanceCalculator:
    """Pure derivations over a LedgerStore. Never mutates."""

    def __init__(self, store: LedgerStore, allocations: Optional[AllocationResolver] = None):
        self.store = store
        self.allocations = allocations or AllocationResolver(store)

    # =========================================================================
    # Accounts
    # =========================================================================

    def account_balance(self, account_id: str) -> float:
        """
        Calculate the balance of an account.

        balance = initial balance + income - expense over the account's
        transactions.

        Args:
            account_id: Account ID

        Returns:
            The derived balance, or 0 for an unknown account
        """
        account = self.store.get_account(account_id)
        if account is None:
            return 0.0

        balance = safe_amount(account.initial_balance)
        for tx in self.store.transactions:
            if tx.account_id == account_id:
                balance += tx.signed_amount
        return balance

    def total_balance(self) -> float:
        """Sum of every account balance."""
        return sum(self.account_balance(account_id) for account_id in self.store.accounts)

    def account_transactions(self, account_id: str) -> list[Transaction]:
        return [tx for tx in self.store.transactions if tx.account_id == account_id]

    # =========================================================================
    # Envelopes
    # =========================================================================

    def envelope_spending(
        self, envelope_id: str, period: Optional[Period] = None
    ) -> float:
        """
        Sum the expenses booked to an envelope within a period.

        Args:
            envelope_id: Envelope ID
            period: Inclusive date range; defaults to the current calendar month

        Returns:
            Total expense amount
        """
        period = period or current_month_period()
        return sum(
            safe_amount(tx.amount)
            for tx in self.store.transactions
            if tx.envelope_id == envelope_id
            and tx.type == TransactionType.EXPENSE
            and period.contains(tx.date)
        )

    def envelope_balance_with_rollover(
        self, envelope_id: str, today: Optional[date] = None
    ) -> float:
        """
        Money still available in an envelope, with rollover.

        funded = sum of effective monthly budgets from the creation month
        through the current month. Income legs on the envelope add, expenses
        subtract; only transactions dated on or after the creation day count.
        The result can be negative (overspent) and is not clamped.

        Args:
            envelope_id: Envelope ID
            today: Reference date, defaults to today

        Returns:
            Available balance, or 0 for an unknown or not yet active envelope
        """
        envelope = self.store.get_envelope(envelope_id)
        if envelope is None:
            return 0.0

        today = today or date.today()
        created = envelope.created_at.date()
        if created > today:
            return 0.0

        funded = self.allocations.total_funded(envelope_id, today)

        transfers_in = 0.0
        spending_and_transfers_out = 0.0
        for tx in self.store.transactions:
            if tx.envelope_id != envelope_id or tx.date < created:
                continue
            if tx.type == TransactionType.INCOME:
                transfers_in += safe_amount(tx.amount)
            else:
                spending_and_transfers_out += safe_amount(tx.amount)

        balance = funded + transfers_in - spending_and_transfers_out
        logger.debug(
            f"Envelope {envelope_id}: funded={funded} in={transfers_in} "
            f"out={spending_and_transfers_out} balance={balance}"
        )
        return balance

    def envelope_transactions(self, envelope_id: str) -> list[Transaction]:
        return [tx for tx in self.store.transactions if tx.envelope_id == envelope_id]

    # =========================================================================
    # Payees
    # =========================================================================

    def payee_transactions(self, payee_id: str) -> list[Transaction]:
        """Transactions for a payee, newest first."""
        return [tx for tx in self.store.transactions if tx.payee_id == payee_id]

    # =========================================================================
    # Dashboard aggregates
    # =========================================================================

    def _total(self, tx_type: TransactionType, period: Period) -> float:
        """Sum of non-transfer amounts of one type within a period."""
        return sum(
            safe_amount(tx.amount)
            for tx in self.store.transactions
            if tx.type == tx_type and not tx.is_transfer and period.contains(tx.date)
        )

    def monthly_income_total(self, month: Optional[str] = None) -> float:
        """Income for a month, excluding account-to-account transfers."""
        period = month_period(month) if month else current_month_period()
        return self._total(TransactionType.INCOME, period)

    def monthly_spending_total(self, month: Optional[str] = None) -> float:
        """Spending for a month, excluding account-to-account transfers."""
        period = month_period(month) if month else current_month_period()
        return self._total(TransactionType.EXPENSE, period)

    def ytd_income_total(self, today: Optional[date] = None) -> float:
        return self._total(TransactionType.INCOME, year_to_date_period(today))

    def ytd_spending_total(self, today: Optional[date] = None) -> float:
        return self._total(TransactionType.EXPENSE, year_to_date_period(today))

    def total_monthly_budgeted(self, month: Optional[str] = None) -> float:
        return self.allocations.total_monthly_budgeted(month or month_key(date.today()))
