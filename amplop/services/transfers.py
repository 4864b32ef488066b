"""
Transfer orchestrator.

A transfer is never stored as its own entity. It is two linked transactions
(an expense leg and an income leg) booked against a synthetic payee and
sharing a transfer_group_id. Every check runs before the first write, and
both legs are committed together, so a transfer is either fully recorded or
not recorded at all.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from amplop.config import ACCOUNT_TRANSFER_PAYEE, BUDGET_TRANSFER_PAYEE
from amplop.dates import DateLike, parse_date, utc_now
from amplop.db.store import LedgerStore
from amplop.exceptions import (
    AccountNotFoundError,
    EnvelopeNotFoundError,
    SameSourceAndDestinationError,
)
from amplop.models import Payee, Transaction, TransactionType

from .transactions import (
    TransactionDraft,
    TransactionWriter,
    clean_description,
    new_id,
    validate_amount,
)

logger = logging.getLogger(__name__)


@dataclass
class TransferResult:
    """Both legs of a committed transfer."""

    group_id: str
    payee: Payee
    debit: Transaction  # expense leg on the source
    credit: Transaction  # income leg on the destination

    @property
    def legs(self) -> list[Transaction]:
        return [self.debit, self.credit]


class TransferOrchestrator:
    """Writes account-to-account and envelope-to-envelope transfers."""

    def __init__(self, store: LedgerStore, writer: Optional[TransactionWriter] = None):
        self.store = store
        self.writer = writer or TransactionWriter(store)

    def ensure_payee(self, name: str) -> Payee:
        """Find a payee by name, creating it if it does not exist yet."""
        payee = self.store.find_payee_by_name(name)
        if payee is None:
            payee = Payee(id=new_id(), name=name, created_at=utc_now())
            self.store.payees[payee.id] = payee
            logger.info(f"Created synthetic payee {name!r} ({payee.id})")
        return payee

    def transfer_between_accounts(
        self,
        from_account_id: str,
        to_account_id: str,
        amount: float,
        date: DateLike,
        description: Optional[str] = None,
    ) -> TransferResult:
        """
        Move money from one account to another.

        Writes an expense on the source and an income on the destination,
        both flagged ``is_transfer`` and without an envelope, so monthly
        income/spending totals ignore them.

        Raises:
            SameSourceAndDestinationError: If both accounts are the same
            InvalidAmountError: If amount is not a positive number
            AccountNotFoundError: If either account does not exist
            InvalidDateError: If the date cannot be parsed
        """
        if from_account_id == to_account_id:
            raise SameSourceAndDestinationError(from_account_id)
        amount = validate_amount(amount)
        from_account = self.store.get_account(from_account_id)
        if from_account is None:
            raise AccountNotFoundError(from_account_id)
        to_account = self.store.get_account(to_account_id)
        if to_account is None:
            raise AccountNotFoundError(to_account_id)
        transfer_date = parse_date(date)
        description = clean_description(description)

        payee = self.ensure_payee(ACCOUNT_TRANSFER_PAYEE)
        group_id = new_id()
        debit, credit = self.writer.add_many(
            [
                TransactionDraft(
                    account_id=from_account_id,
                    payee_id=payee.id,
                    amount=amount,
                    type=TransactionType.EXPENSE,
                    date=transfer_date,
                    description=description or f"Transfer to {to_account.name}",
                    is_transfer=True,
                    transfer_group_id=group_id,
                ),
                TransactionDraft(
                    account_id=to_account_id,
                    payee_id=payee.id,
                    amount=amount,
                    type=TransactionType.INCOME,
                    date=transfer_date,
                    description=description or f"Transfer from {from_account.name}",
                    is_transfer=True,
                    transfer_group_id=group_id,
                ),
            ]
        )

        logger.info(
            f"Transferred {amount} from account {from_account.name} "
            f"to {to_account.name} (group {group_id})"
        )
        return TransferResult(group_id=group_id, payee=payee, debit=debit, credit=credit)

    def transfer_between_envelopes(
        self,
        from_envelope_id: str,
        to_envelope_id: str,
        amount: float,
        account_id: str,
        date: DateLike,
        description: Optional[str] = None,
    ) -> TransferResult:
        """
        Move budget from one envelope to another.

        Both legs post to the same account (one expense, one income), so the
        account balance is unchanged. Legs are not flagged ``is_transfer``.

        Raises:
            SameSourceAndDestinationError: If both envelopes are the same
            InvalidAmountError: If amount is not a positive number
            EnvelopeNotFoundError: If either envelope does not exist
            AccountNotFoundError: If the booking account does not exist
            InvalidDateError: If the date cannot be parsed
        """
        if from_envelope_id == to_envelope_id:
            raise SameSourceAndDestinationError(from_envelope_id)
        amount = validate_amount(amount)
        from_envelope = self.store.get_envelope(from_envelope_id)
        if from_envelope is None:
            raise EnvelopeNotFoundError(from_envelope_id)
        to_envelope = self.store.get_envelope(to_envelope_id)
        if to_envelope is None:
            raise EnvelopeNotFoundError(to_envelope_id)
        if self.store.get_account(account_id) is None:
            raise AccountNotFoundError(account_id)
        transfer_date = parse_date(date)
        description = clean_description(description)

        payee = self.ensure_payee(BUDGET_TRANSFER_PAYEE)
        group_id = new_id()
        debit, credit = self.writer.add_many(
            [
                TransactionDraft(
                    account_id=account_id,
                    envelope_id=from_envelope_id,
                    payee_id=payee.id,
                    amount=amount,
                    type=TransactionType.EXPENSE,
                    date=transfer_date,
                    description=description or f"Transfer to {to_envelope.name}",
                    transfer_group_id=group_id,
                ),
                TransactionDraft(
                    account_id=account_id,
                    envelope_id=to_envelope_id,
                    payee_id=payee.id,
                    amount=amount,
                    type=TransactionType.INCOME,
                    date=transfer_date,
                    description=description or f"Transfer from {from_envelope.name}",
                    transfer_group_id=group_id,
                ),
            ]
        )

        logger.info(
            f"Transferred {amount} from envelope {from_envelope.name} "
            f"to {to_envelope.name} via account {account_id} (group {group_id})"
        )
        return TransferResult(group_id=group_id, payee=payee, debit=debit, credit=credit)
