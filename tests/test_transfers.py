"""Tests for TransferOrchestrator: account and envelope transfers."""

import pytest

from amplop.config import ACCOUNT_TRANSFER_PAYEE, BUDGET_TRANSFER_PAYEE
from amplop.exceptions import (
    AccountNotFoundError,
    EnvelopeNotFoundError,
    InvalidAmountError,
    InvalidDateError,
    LedgerError,
    SameSourceAndDestinationError,
)
from amplop.models import TransactionType
from tests.conftest import TODAY


def test_account_transfer_moves_money_between_accounts(ledger, checking, savings, grocer):
    ledger.add_transaction(checking.id, grocer.id, 50, "expense", TODAY)
    assert ledger.account_balance(checking.id) == 950

    before = len(ledger.transactions)
    result = ledger.transfer_between_accounts(checking.id, savings.id, 100, TODAY)

    assert ledger.account_balance(checking.id) == 850
    assert ledger.account_balance(savings.id) == 600
    assert len(ledger.transactions) == before + 2
    assert all(leg.is_transfer for leg in result.legs)
    assert result.debit.payee_id == result.credit.payee_id == result.payee.id
    assert result.payee.name == ACCOUNT_TRANSFER_PAYEE


def test_account_transfer_conserves_money(ledger, checking, savings):
    total_before = ledger.account_balance(checking.id) + ledger.account_balance(savings.id)

    ledger.transfer_between_accounts(checking.id, savings.id, 333.33, TODAY)

    total_after = ledger.account_balance(checking.id) + ledger.account_balance(savings.id)
    assert total_after == pytest.approx(total_before)
    assert ledger.account_balance(checking.id) == pytest.approx(1000 - 333.33)
    assert ledger.account_balance(savings.id) == pytest.approx(500 + 333.33)


def test_account_transfer_legs_shape(ledger, checking, savings):
    result = ledger.transfer_between_accounts(checking.id, savings.id, 75, "2024-05-02")

    assert result.debit.type == TransactionType.EXPENSE
    assert result.debit.account_id == checking.id
    assert result.credit.type == TransactionType.INCOME
    assert result.credit.account_id == savings.id
    assert result.debit.envelope_id is None and result.credit.envelope_id is None
    assert result.debit.description == "Transfer to Savings"
    assert result.credit.description == "Transfer from Checking"
    assert result.debit.transfer_group_id == result.credit.transfer_group_id == result.group_id


def test_account_transfer_uses_caller_description(ledger, checking, savings):
    result = ledger.transfer_between_accounts(
        checking.id, savings.id, 10, TODAY, description="Rainy day fund"
    )

    assert result.debit.description == result.credit.description == "Rainy day fund"


def test_synthetic_payee_is_reused(ledger, checking, savings):
    first = ledger.transfer_between_accounts(checking.id, savings.id, 10, TODAY)
    second = ledger.transfer_between_accounts(savings.id, checking.id, 5, TODAY)

    assert first.payee.id == second.payee.id
    assert [p.name for p in ledger.payees].count(ACCOUNT_TRANSFER_PAYEE) == 1


@pytest.mark.parametrize("amount", [0, -10, "100", None])
def test_account_transfer_rejects_bad_amount_without_side_effects(
    ledger, checking, savings, amount
):
    with pytest.raises(InvalidAmountError):
        ledger.transfer_between_accounts(checking.id, savings.id, amount, TODAY)

    assert ledger.transactions == []
    assert ledger.find_payee_by_name(ACCOUNT_TRANSFER_PAYEE) is None


def test_account_transfer_rejects_same_account(ledger, checking):
    with pytest.raises(SameSourceAndDestinationError) as excinfo:
        ledger.transfer_between_accounts(checking.id, checking.id, 100, TODAY)

    assert excinfo.value.to_dict()["code"] == "SAME_SOURCE_AND_DESTINATION"
    assert ledger.transactions == []
    assert ledger.payees == []


def test_account_transfer_rejects_unknown_account(ledger, checking):
    with pytest.raises(AccountNotFoundError):
        ledger.transfer_between_accounts(checking.id, "missing", 100, TODAY)
    with pytest.raises(AccountNotFoundError):
        ledger.transfer_between_accounts("missing", checking.id, 100, TODAY)

    assert ledger.transactions == []
    assert ledger.payees == []


def test_account_transfer_rejects_bad_date(ledger, checking, savings):
    with pytest.raises(InvalidDateError):
        ledger.transfer_between_accounts(checking.id, savings.id, 100, "soon")

    assert ledger.transactions == []
    assert ledger.payees == []


def test_envelope_transfer_is_neutral(ledger, checking, groceries, dining):
    sum_before = ledger.envelope_balance_with_rollover(
        groceries.id
    ) + ledger.envelope_balance_with_rollover(dining.id)

    result = ledger.transfer_between_envelopes(groceries.id, dining.id, 40, checking.id, TODAY)

    assert ledger.envelope_balance_with_rollover(groceries.id) == 160
    assert ledger.envelope_balance_with_rollover(dining.id) == 140
    assert (
        ledger.envelope_balance_with_rollover(groceries.id)
        + ledger.envelope_balance_with_rollover(dining.id)
        == sum_before
    )
    assert ledger.account_balance(checking.id) == 1000
    assert result.payee.name == BUDGET_TRANSFER_PAYEE


def test_envelope_transfer_legs_shape(ledger, checking, groceries, dining):
    result = ledger.transfer_between_envelopes(groceries.id, dining.id, 25, checking.id, TODAY)

    assert result.debit.envelope_id == groceries.id
    assert result.debit.type == TransactionType.EXPENSE
    assert result.credit.envelope_id == dining.id
    assert result.credit.type == TransactionType.INCOME
    assert result.debit.account_id == result.credit.account_id == checking.id
    assert not result.debit.is_transfer and not result.credit.is_transfer
    assert result.debit.description == "Transfer to Dining Out"
    assert result.credit.description == "Transfer from Groceries"


def test_envelope_transfer_counts_as_envelope_spending(ledger, checking, groceries, dining):
    ledger.transfer_between_envelopes(groceries.id, dining.id, 25, checking.id, TODAY)

    assert ledger.envelope_spending(groceries.id) == 25
    assert ledger.envelope_spending(dining.id) == 0


def test_envelope_transfer_rejections_have_no_side_effects(ledger, checking, groceries, dining):
    with pytest.raises(SameSourceAndDestinationError):
        ledger.transfer_between_envelopes(groceries.id, groceries.id, 10, checking.id, TODAY)
    with pytest.raises(InvalidAmountError):
        ledger.transfer_between_envelopes(groceries.id, dining.id, 0, checking.id, TODAY)
    with pytest.raises(EnvelopeNotFoundError):
        ledger.transfer_between_envelopes(groceries.id, "missing", 10, checking.id, TODAY)
    with pytest.raises(AccountNotFoundError):
        ledger.transfer_between_envelopes(groceries.id, dining.id, 10, "missing", TODAY)

    assert ledger.transactions == []
    assert ledger.payees == []


def test_all_rejections_are_ledger_errors(ledger, checking):
    with pytest.raises(LedgerError):
        ledger.transfer_between_accounts(checking.id, checking.id, 1, TODAY)


def test_deleting_one_leg_removes_the_pair(ledger, checking, savings):
    result = ledger.transfer_between_accounts(checking.id, savings.id, 100, TODAY)

    removed = ledger.delete_transaction(result.credit.id)

    assert {tx.id for tx in removed} == {result.debit.id, result.credit.id}
    assert ledger.transactions == []
    assert ledger.account_balance(checking.id) == 1000
    assert ledger.account_balance(savings.id) == 500
