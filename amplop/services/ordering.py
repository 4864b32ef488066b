"""
Ordering manager for category and envelope display order.

Display metadata only: nothing here affects balances.
"""

import logging

from amplop.db.store import LedgerStore
from amplop.exceptions import CategoryOrderMismatchError, EnvelopeOrderMismatchError
from amplop.models import Envelope

logger = logging.getLogger(__name__)


class OrderingManager:
    """Maintains the user-defined order of categories and envelopes."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def ordered_categories(self) -> list[str]:
        return list(self.store.category_order)

    def envelopes_in_category(self, category: str) -> list[Envelope]:
        """Envelopes of a category sorted by order_index, then id."""
        return sorted(
            (env for env in self.store.envelopes.values() if env.category == category),
            key=lambda env: (env.order_index, env.id),
        )

    def next_order_index(self) -> int:
        """Next value of the global order counter."""
        return max((env.order_index for env in self.store.envelopes.values()), default=-1) + 1

    def sync_categories(self):
        """
        Bring the category order in line with the envelopes.

        Categories no longer used are dropped, new ones are appended at the
        end, and the user's order is kept for the rest.
        """
        known = self.store.categories()
        order = [c for c in self.store.category_order if c in known]
        order.extend(c for c in known if c not in order)
        if order != self.store.category_order:
            logger.debug(f"Category order synced: {order}")
        self.store.category_order = order

    def reorder_categories(self, new_order: list[str]) -> list[str]:
        """
        Replace the category order.

        Args:
            new_order: Every current category exactly once

        Raises:
            CategoryOrderMismatchError: If the list adds, drops or repeats
                a category
        """
        expected = self.store.categories()
        if len(new_order) != len(set(new_order)) or set(new_order) != set(expected):
            logger.warning(f"Rejected category order {new_order}; expected {expected}")
            raise CategoryOrderMismatchError(expected, list(new_order))

        self.store.category_order = list(new_order)
        logger.info(f"Category order updated: {new_order}")
        return self.ordered_categories()

    def reorder_envelopes_within_category(
        self, category: str, envelope_ids: list[str]
    ) -> list[Envelope]:
        """
        Reorder the envelopes of one category.

        The category's existing order_index values are handed out again in
        the new order, so envelopes of other categories keep their positions.

        Args:
            category: Category name
            envelope_ids: Every envelope id of the category exactly once

        Raises:
            EnvelopeOrderMismatchError: If the ids do not match the category
        """
        current = self.envelopes_in_category(category)
        expected = [env.id for env in current]
        if len(envelope_ids) != len(set(envelope_ids)) or set(envelope_ids) != set(expected):
            logger.warning(
                f"Rejected envelope order for {category!r}: {envelope_ids}"
            )
            raise EnvelopeOrderMismatchError(category, expected, list(envelope_ids))

        slots = sorted(env.order_index for env in current)
        for slot, envelope_id in zip(slots, envelope_ids):
            self.store.envelopes[envelope_id].order_index = slot

        logger.info(f"Envelope order updated for {category!r}: {envelope_ids}")
        return self.envelopes_in_category(category)
