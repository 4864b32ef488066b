"""
Transaction writer.

Single entry point for appending, updating and removing transactions.
Validation happens before any mutation, so a rejected write leaves the store
untouched.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional, Union

from amplop.config import MAX_AMOUNT, MAX_DESCRIPTION_LENGTH
from amplop.dates import DateLike, parse_date, utc_now
from amplop.db.store import LedgerStore
from amplop.exceptions import (
    AccountNotFoundError,
    EnvelopeNotFoundError,
    InvalidAmountError,
    InvalidTransactionTypeError,
    PayeeNotFoundError,
    TransactionNotFoundError,
    ValidationError,
)
from amplop.models import Transaction, TransactionType

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "account_id",
    "envelope_id",
    "payee_id",
    "amount",
    "type",
    "description",
    "date",
    "is_transfer",
}


def new_id() -> str:
    return uuid.uuid4().hex


def validate_amount(amount: Any) -> float:
    """
    Validate a write-path amount.

    Raises:
        InvalidAmountError: If the amount is non-numeric, non-positive, NaN
            or above MAX_AMOUNT
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidAmountError(amount, "must be a number")
    if amount != amount or amount <= 0:
        raise InvalidAmountError(amount)
    if amount > MAX_AMOUNT:
        raise InvalidAmountError(amount, f"must not exceed {MAX_AMOUNT:,.2f}")
    return float(amount)


def validate_type(value: Union[TransactionType, str]) -> TransactionType:
    try:
        return TransactionType(value)
    except ValueError:
        raise InvalidTransactionTypeError(value) from None


def clean_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    description = description.strip()
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"Description longer than {MAX_DESCRIPTION_LENGTH} characters",
            field="description",
        )
    return description or None


@dataclass
class TransactionDraft:
    """Unvalidated input for a new transaction."""

    account_id: str
    payee_id: str
    amount: float
    type: Union[TransactionType, str]
    date: DateLike
    envelope_id: Optional[str] = None
    description: Optional[str] = None
    is_transfer: bool = False
    transfer_group_id: Optional[str] = None


class TransactionWriter:
    """Validates and writes single transactions into a LedgerStore."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def build(self, draft: TransactionDraft) -> Transaction:
        """
        Validate a draft and build the Transaction it describes.

        Nothing is written to the store.

        Raises:
            PayeeNotFoundError: If payee_id is missing or empty
            AccountNotFoundError: If account_id does not resolve
            EnvelopeNotFoundError: If a supplied envelope_id does not resolve
            InvalidAmountError: If the amount is not a positive number
            InvalidTransactionTypeError: If type is not income/expense
            InvalidDateError: If the date cannot be parsed
        """
        if not draft.payee_id:
            raise PayeeNotFoundError(draft.payee_id)
        if self.store.get_account(draft.account_id) is None:
            raise AccountNotFoundError(draft.account_id)
        if draft.envelope_id and self.store.get_envelope(draft.envelope_id) is None:
            raise EnvelopeNotFoundError(draft.envelope_id)

        return Transaction(
            id=new_id(),
            account_id=draft.account_id,
            payee_id=draft.payee_id,
            amount=validate_amount(draft.amount),
            type=validate_type(draft.type),
            date=parse_date(draft.date),
            created_at=utc_now(),
            envelope_id=draft.envelope_id or None,
            description=clean_description(draft.description),
            is_transfer=bool(draft.is_transfer),
            transfer_group_id=draft.transfer_group_id,
        )

    def add(self, draft: TransactionDraft) -> Transaction:
        """
        Validate and insert one transaction.

        Returns:
            The stored Transaction with its new id and created_at
        """
        transaction = self.build(draft)
        self.store.insert_transactions([transaction])
        logger.info(
            f"Added {transaction.type.value} transaction {transaction.id} "
            f"on account {transaction.account_id}: {transaction.amount}"
        )
        return transaction

    def add_many(self, drafts: list[TransactionDraft]) -> list[Transaction]:
        """
        Validate every draft, then insert them all.

        Either every transaction is written or none is.
        """
        transactions = [self.build(draft) for draft in drafts]
        self.store.insert_transactions(transactions)
        logger.info(
            f"Added {len(transactions)} transactions: "
            f"{', '.join(tx.id for tx in transactions)}"
        )
        return transactions

    def update(self, transaction_id: str, **fields: Any) -> Transaction:
        """
        Merge fields into an existing transaction.

        Each supplied field is validated on its own. Cross-field consistency
        is the caller's concern: switching an expense to income does not
        clear its envelope.

        Raises:
            TransactionNotFoundError: If the id does not resolve
            ValidationError: If a field is unknown or invalid
        """
        transaction = self.store.get_transaction(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)

        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot update fields: {', '.join(sorted(unknown))}",
                fields=sorted(unknown),
            )

        changes: dict[str, Any] = {}
        if "account_id" in fields:
            if self.store.get_account(fields["account_id"]) is None:
                raise AccountNotFoundError(fields["account_id"])
            changes["account_id"] = fields["account_id"]
        if "envelope_id" in fields:
            envelope_id = fields["envelope_id"] or None
            if envelope_id and self.store.get_envelope(envelope_id) is None:
                raise EnvelopeNotFoundError(envelope_id)
            changes["envelope_id"] = envelope_id
        if "payee_id" in fields:
            if not fields["payee_id"]:
                raise PayeeNotFoundError(fields["payee_id"])
            changes["payee_id"] = fields["payee_id"]
        if "amount" in fields:
            changes["amount"] = validate_amount(fields["amount"])
        if "type" in fields:
            changes["type"] = validate_type(fields["type"])
        if "description" in fields:
            changes["description"] = clean_description(fields["description"])
        if "date" in fields:
            changes["date"] = parse_date(fields["date"])
        if "is_transfer" in fields:
            changes["is_transfer"] = bool(fields["is_transfer"])

        for name, value in changes.items():
            setattr(transaction, name, value)
        if "date" in changes:
            self.store.sort_transactions()

        logger.info(f"Updated transaction {transaction_id}: {sorted(changes)}")
        return transaction

    def remove(self, transaction_id: str) -> Transaction:
        """
        Delete one transaction. Does not touch a sibling transfer leg.

        Raises:
            TransactionNotFoundError: If the id does not resolve
        """
        transaction = self.store.get_transaction(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        self.store.delete_transaction(transaction_id)
        logger.info(f"Removed transaction {transaction_id}")
        return transaction
