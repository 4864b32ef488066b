"""
Allocation resolver for per-month envelope funding.

An envelope is funded every month from its creation month onward. The
amount for a month is an explicit MonthlyAllocation override when one exists,
otherwise the envelope's default budget amount.
"""

import logging
from datetime import date
from typing import Optional

from amplop.dates import iter_months, month_key, parse_month
from amplop.db.store import LedgerStore
from amplop.exceptions import EnvelopeNotFoundError, InvalidAmountError
from amplop.models import Envelope, MonthlyAllocation, safe_amount

logger = logging.getLogger(__name__)


class AllocationResolver:
    """Resolves effective monthly budgets from envelopes and overrides."""

    def __init__(self, store: LedgerStore):
        self.store = store

    # =========================================================================
    # Reads
    # =========================================================================

    def effective_monthly_budget(self, envelope_id: str, month: str) -> float:
        """
        Get the funding amount for an envelope in a given month.

        Args:
            envelope_id: Envelope ID
            month: Month key ("YYYY-MM")

        Returns:
            The override amount if set, else the envelope's default budget.
            Unknown envelopes contribute 0.
        """
        parse_month(month)
        envelope = self.store.get_envelope(envelope_id)
        if envelope is None:
            return 0.0

        allocation = self.store.get_allocation(envelope_id, month)
        if allocation is not None:
            return safe_amount(allocation.amount)
        return safe_amount(envelope.budget_amount)

    def total_monthly_budgeted(self, month: Optional[str] = None) -> float:
        """Sum of effective budgets across all envelopes for a month."""
        month = month or month_key(date.today())
        return sum(
            self.effective_monthly_budget(envelope_id, month)
            for envelope_id in self.store.envelopes
        )

    def active_months(self, envelope: Envelope, today: Optional[date] = None) -> list[str]:
        """
        Month keys from the envelope's creation month through today's month.

        Empty when the envelope was created after today.
        """
        today = today or date.today()
        created = envelope.created_at.date()
        if created > today:
            return []
        return list(iter_months(created, today))

    def total_funded(self, envelope_id: str, today: Optional[date] = None) -> float:
        """Sum of effective monthly budgets over every active month."""
        envelope = self.store.get_envelope(envelope_id)
        if envelope is None:
            return 0.0
        return sum(
            self.effective_monthly_budget(envelope_id, month)
            for month in self.active_months(envelope, today)
        )

    def allocations_for(self, envelope_id: str) -> list[MonthlyAllocation]:
        """Explicit overrides for an envelope, oldest month first."""
        return sorted(
            (a for a in self.store.allocations.values() if a.envelope_id == envelope_id),
            key=lambda a: a.month,
        )

    # =========================================================================
    # Overrides
    # =========================================================================

    def set_monthly_allocation(
        self, envelope_id: str, month: str, amount: float
    ) -> MonthlyAllocation:
        """
        Override an envelope's budget for one month.

        Raises:
            EnvelopeNotFoundError: If the envelope does not exist
            InvalidMonthError: If the month key is malformed
            InvalidAmountError: If the amount is negative or non-numeric
        """
        if self.store.get_envelope(envelope_id) is None:
            raise EnvelopeNotFoundError(envelope_id)
        parse_month(month)
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise InvalidAmountError(amount, "must be a number")
        if amount < 0 or amount != amount:
            raise InvalidAmountError(amount, "must be >= 0")

        allocation = MonthlyAllocation(
            envelope_id=envelope_id, month=month, amount=float(amount)
        )
        self.store.allocations[allocation.key] = allocation
        logger.info(f"Set allocation for envelope {envelope_id} in {month}: {amount}")
        return allocation

    def pin_past_months(
        self, envelope: Envelope, today: Optional[date] = None
    ) -> list[MonthlyAllocation]:
        """
        Record the current default budget for every elapsed month.

        Called before the default changes, so months already funded keep
        their amount. The current month and months that already have an
        override are left alone.

        Returns:
            The allocations that were written
        """
        today = today or date.today()
        current = month_key(today)
        amount = safe_amount(envelope.budget_amount)

        pinned = []
        for month in self.active_months(envelope, today):
            if month == current or (envelope.id, month) in self.store.allocations:
                continue
            allocation = MonthlyAllocation(
                envelope_id=envelope.id, month=month, amount=amount
            )
            self.store.allocations[allocation.key] = allocation
            pinned.append(allocation)

        if pinned:
            logger.info(
                f"Pinned budget {amount} for envelope {envelope.id} "
                f"over {len(pinned)} past months"
            )
        return pinned

    def clear_monthly_allocation(self, envelope_id: str, month: str) -> bool:
        """
        Remove a monthly override so the default budget applies again.

        Returns:
            True if an override was removed
        """
        parse_month(month)
        removed = self.store.allocations.pop((envelope_id, month), None)
        if removed:
            logger.info(f"Cleared allocation for envelope {envelope_id} in {month}")
        return removed is not None
