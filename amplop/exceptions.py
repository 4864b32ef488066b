"""
Typed exceptions for the Amplop ledger engine.

Every error carries a machine-readable ``code`` class attribute and the
structured data that caused it, so forms can show a validation message
without parsing strings:

    try:
        ledger.transfer_between_accounts(checking.id, checking.id, 100, today)
    except LedgerError as e:
        form.show_error(e.to_dict())

Hierarchy:

    LedgerError
    +-- ValidationError (also ValueError)
    |   +-- InvalidAmountError
    |   +-- InvalidDateError
    |   +-- InvalidMonthError
    |   +-- InvalidTransactionTypeError
    +-- ReferenceNotFoundError (also LookupError)
    |   +-- AccountNotFoundError
    |   +-- EnvelopeNotFoundError
    |   +-- PayeeNotFoundError
    |   +-- TransactionNotFoundError
    +-- TransferError
    |   +-- SameSourceAndDestinationError
    +-- OrderingError
    |   +-- CategoryOrderMismatchError
    |   +-- EnvelopeOrderMismatchError
    +-- LedgerNotReadyError
    +-- PersistenceError
"""

from typing import Any, Optional

from amplop.config import ERROR_MESSAGES


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    code: str = "LEDGER_ERROR"
    message_key: str = "validation_error"

    def __init__(self, message: str, **details: Any):
        self.details = details
        super().__init__(message)

    @property
    def user_message(self) -> str:
        """Human-readable message suitable for a form."""
        return ERROR_MESSAGES.get(self.message_key, str(self))

    def to_dict(self) -> dict:
        """Convert to a structured error payload."""
        return {
            "code": self.code,
            "message": self.user_message,
            "detail": str(self),
            **self.details,
        }


# Validation errors


class ValidationError(LedgerError, ValueError):
    """Input failed validation; nothing was written."""

    code: str = "VALIDATION_ERROR"


class InvalidAmountError(ValidationError):
    """Amount is missing, non-numeric, non-positive, or out of range."""

    code: str = "INVALID_AMOUNT"
    message_key = "invalid_amount"

    def __init__(self, amount: Any, reason: str = "must be a positive number"):
        self.amount = amount
        super().__init__(f"Invalid amount {amount!r}: {reason}", amount=amount)


class InvalidDateError(ValidationError):
    code: str = "INVALID_DATE"
    message_key = "invalid_date"

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid date: {value!r}", value=str(value))


class InvalidMonthError(ValidationError):
    code: str = "INVALID_MONTH"
    message_key = "invalid_month"

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid month key: {value!r}", value=str(value))


class InvalidTransactionTypeError(ValidationError):
    code: str = "INVALID_TRANSACTION_TYPE"
    message_key = "invalid_type"

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid transaction type: {value!r}", value=str(value))


# Reference errors


class ReferenceNotFoundError(LedgerError, LookupError):
    """A referenced entity id does not resolve."""

    code: str = "REFERENCE_NOT_FOUND"
    entity: str = "entity"

    def __init__(self, entity_id: Optional[str]):
        self.entity_id = entity_id
        super().__init__(
            f"{self.entity.capitalize()} not found: {entity_id}",
            entity=self.entity,
            entity_id=entity_id,
        )


class AccountNotFoundError(ReferenceNotFoundError):
    code: str = "ACCOUNT_NOT_FOUND"
    message_key = "account_not_found"
    entity = "account"


class EnvelopeNotFoundError(ReferenceNotFoundError):
    code: str = "ENVELOPE_NOT_FOUND"
    message_key = "envelope_not_found"
    entity = "envelope"


class PayeeNotFoundError(ReferenceNotFoundError):
    code: str = "PAYEE_NOT_FOUND"
    message_key = "payee_not_found"
    entity = "payee"


class TransactionNotFoundError(ReferenceNotFoundError):
    code: str = "TRANSACTION_NOT_FOUND"
    message_key = "transaction_not_found"
    entity = "transaction"


# Transfer errors


class TransferError(LedgerError):
    """Base exception for rejected transfers."""

    code: str = "TRANSFER_ERROR"


class SameSourceAndDestinationError(TransferError, ValueError):
    code: str = "SAME_SOURCE_AND_DESTINATION"
    message_key = "same_source_and_destination"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(
            f"Cannot transfer from {entity_id} to itself", entity_id=entity_id
        )


# Ordering errors


class OrderingError(LedgerError, ValueError):
    code: str = "ORDERING_ERROR"


class CategoryOrderMismatchError(OrderingError):
    code: str = "CATEGORY_ORDER_MISMATCH"
    message_key = "category_order_mismatch"

    def __init__(self, expected: list[str], received: list[str]):
        self.expected = expected
        self.received = received
        super().__init__(
            f"Category order {received} does not match categories {expected}",
            expected=expected,
            received=received,
        )


class EnvelopeOrderMismatchError(OrderingError):
    code: str = "ENVELOPE_ORDER_MISMATCH"
    message_key = "envelope_order_mismatch"

    def __init__(self, category: str, expected: list[str], received: list[str]):
        self.category = category
        self.expected = expected
        self.received = received
        super().__init__(
            f"Envelope order for {category!r} does not match its envelopes",
            category=category,
            expected=expected,
            received=received,
        )


# Lifecycle errors


class LedgerNotReadyError(LedgerError):
    code: str = "LEDGER_NOT_READY"
    message_key = "not_ready"

    def __init__(self):
        super().__init__("Ledger has not finished loading")


class PersistenceError(LedgerError):
    code: str = "PERSISTENCE_ERROR"
    message_key = "persistence_error"
