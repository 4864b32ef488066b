"""Tests for TransactionWriter through the Ledger facade."""

from datetime import date, datetime

import pytest

from amplop.exceptions import (
    AccountNotFoundError,
    EnvelopeNotFoundError,
    InvalidAmountError,
    InvalidDateError,
    InvalidTransactionTypeError,
    PayeeNotFoundError,
    TransactionNotFoundError,
    ValidationError,
)
from amplop.models import TransactionType


def test_add_assigns_id_and_normalizes_date(ledger, checking, grocer):
    tx = ledger.add_transaction(
        checking.id, grocer.id, 12.5, "expense", "2024-05-03T18:30:00Z",
        description="  milk  ",
    )

    assert tx.id
    assert tx.created_at is not None
    assert tx.date == date(2024, 5, 3)
    assert tx.type == TransactionType.EXPENSE
    assert tx.description == "milk"
    assert tx.envelope_id is None
    assert tx.is_transfer is False


def test_add_accepts_date_and_datetime(ledger, checking, grocer):
    a = ledger.add_transaction(checking.id, grocer.id, 1, "income", date(2024, 1, 2))
    b = ledger.add_transaction(checking.id, grocer.id, 1, "income", datetime(2024, 1, 3, 9))

    assert a.date == date(2024, 1, 2)
    assert b.date == date(2024, 1, 3)


def test_transactions_sorted_by_date_desc_with_ties_in_insertion_order(ledger, checking, grocer):
    first = ledger.add_transaction(checking.id, grocer.id, 1, "expense", "2024-05-02")
    oldest = ledger.add_transaction(checking.id, grocer.id, 2, "expense", "2024-05-01")
    second = ledger.add_transaction(checking.id, grocer.id, 3, "expense", "2024-05-02")
    newest = ledger.add_transaction(checking.id, grocer.id, 4, "expense", "2024-05-09")

    assert [tx.id for tx in ledger.transactions] == [
        newest.id,
        first.id,
        second.id,
        oldest.id,
    ]


@pytest.mark.parametrize("amount", [0, -5, "12", None, float("nan"), True])
def test_add_rejects_invalid_amount(ledger, checking, grocer, amount):
    with pytest.raises(InvalidAmountError):
        ledger.add_transaction(checking.id, grocer.id, amount, "expense", "2024-05-01")

    assert ledger.transactions == []


def test_add_rejects_missing_payee(ledger, checking):
    with pytest.raises(PayeeNotFoundError):
        ledger.add_transaction(checking.id, "", 10, "expense", "2024-05-01")


def test_add_rejects_unknown_account(ledger, grocer):
    with pytest.raises(AccountNotFoundError) as excinfo:
        ledger.add_transaction("nope", grocer.id, 10, "expense", "2024-05-01")

    assert excinfo.value.code == "ACCOUNT_NOT_FOUND"
    assert excinfo.value.to_dict()["entity_id"] == "nope"
    assert ledger.transactions == []


def test_add_rejects_unknown_envelope(ledger, checking, grocer):
    with pytest.raises(EnvelopeNotFoundError):
        ledger.add_transaction(
            checking.id, grocer.id, 10, "expense", "2024-05-01", envelope_id="nope"
        )


def test_add_rejects_bad_type_and_date(ledger, checking, grocer):
    with pytest.raises(InvalidTransactionTypeError):
        ledger.add_transaction(checking.id, grocer.id, 10, "refund", "2024-05-01")
    with pytest.raises(InvalidDateError):
        ledger.add_transaction(checking.id, grocer.id, 10, "expense", "yesterday")

    assert ledger.transactions == []


def test_validation_errors_are_value_errors(ledger, checking, grocer):
    with pytest.raises(ValueError):
        ledger.add_transaction(checking.id, grocer.id, -1, "expense", "2024-05-01")


def test_update_merges_fields_and_resorts(ledger, checking, grocer, groceries):
    a = ledger.add_transaction(checking.id, grocer.id, 10, "expense", "2024-05-01")
    b = ledger.add_transaction(checking.id, grocer.id, 20, "expense", "2024-05-05")

    ledger.update_transaction(a.id, date="2024-05-10", amount=15, envelope_id=groceries.id)

    assert [tx.id for tx in ledger.transactions] == [a.id, b.id]
    assert a.amount == 15
    assert a.envelope_id == groceries.id
    assert ledger.account_balance(checking.id) == 1000 - 15 - 20


def test_update_does_not_clear_envelope_when_type_changes(ledger, checking, grocer, groceries):
    tx = ledger.add_transaction(
        checking.id, grocer.id, 10, "expense", "2024-05-01", envelope_id=groceries.id
    )

    ledger.update_transaction(tx.id, type="income")

    assert tx.type == TransactionType.INCOME
    assert tx.envelope_id == groceries.id


def test_update_rejects_invalid_values(ledger, checking, grocer):
    tx = ledger.add_transaction(checking.id, grocer.id, 10, "expense", "2024-05-01")

    with pytest.raises(InvalidAmountError):
        ledger.update_transaction(tx.id, amount=0)
    with pytest.raises(ValidationError):
        ledger.update_transaction(tx.id, id="other")
    with pytest.raises(TransactionNotFoundError):
        ledger.update_transaction("missing", amount=5)

    assert tx.amount == 10


def test_delete_single_transaction(ledger, checking, grocer):
    tx = ledger.add_transaction(checking.id, grocer.id, 10, "expense", "2024-05-01")

    removed = ledger.delete_transaction(tx.id)

    assert [r.id for r in removed] == [tx.id]
    assert ledger.transactions == []
    assert ledger.account_balance(checking.id) == 1000


def test_delete_unknown_transaction(ledger):
    with pytest.raises(TransactionNotFoundError):
        ledger.delete_transaction("missing")


def test_writer_remove_does_not_cascade(ledger, checking, savings):
    result = ledger.transfer_between_accounts(checking.id, savings.id, 100, "2024-05-01")

    ledger.writer.remove(result.debit.id)

    assert [tx.id for tx in ledger.transactions] == [result.credit.id]
