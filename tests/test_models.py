"""Tests for model serialization and calendar helpers."""

from datetime import date, datetime, timezone

import pytest

from amplop.dates import (
    Period,
    iter_months,
    month_key,
    month_period,
    months_between,
    parse_date,
    parse_month,
    year_to_date_period,
)
from amplop.exceptions import InvalidDateError, InvalidMonthError
from amplop.models import (
    Account,
    AccountType,
    Envelope,
    MonthlyAllocation,
    Payee,
    Transaction,
    TransactionType,
    safe_amount,
)

CREATED = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class TestModels:
    def test_account_round_trip(self):
        account = Account(
            id="a1",
            name=" Visa ",
            initial_balance=-20.5,
            created_at=CREATED,
            account_type=AccountType.CREDIT_CARD,
        )

        data = account.to_dict()

        assert data["name"] == "Visa"
        assert data["account_type"] == "Credit Card"
        assert Account.from_dict(data) == account

    def test_account_without_type(self):
        data = Account(id="a1", name="Cash", initial_balance=0, created_at=CREATED).to_dict()

        assert data["account_type"] is None
        assert Account.from_dict(data).account_type is None

    def test_envelope_round_trip(self):
        envelope = Envelope(
            id="e1",
            name="Rent",
            category="Housing",
            budget_amount=900.0,
            created_at=CREATED,
            order_index=4,
            estimated_amount=880.0,
            due_day=1,
        )

        assert Envelope.from_dict(envelope.to_dict()) == envelope

    def test_payee_round_trip(self):
        payee = Payee(id="p1", name="Landlord", created_at=CREATED, category="Housing")

        assert Payee.from_dict(payee.to_dict()) == payee

    def test_transaction_serializes_calendar_date(self):
        tx = Transaction(
            id="t1",
            account_id="a1",
            payee_id="p1",
            amount=12.0,
            type=TransactionType.EXPENSE,
            date=date(2024, 2, 29),
            created_at=CREATED,
            transfer_group_id="g1",
            is_transfer=True,
        )

        data = tx.to_dict()

        assert data["date"] == "2024-02-29"
        assert data["type"] == "expense"
        assert Transaction.from_dict(data) == tx

    def test_signed_amount(self):
        income = Transaction(
            id="t1", account_id="a", payee_id="p", amount=10,
            type=TransactionType.INCOME, date=date(2024, 1, 1), created_at=CREATED,
        )
        expense = Transaction(
            id="t2", account_id="a", payee_id="p", amount=10,
            type=TransactionType.EXPENSE, date=date(2024, 1, 1), created_at=CREATED,
        )

        assert income.signed_amount == 10
        assert expense.signed_amount == -10

    def test_allocation_key(self):
        allocation = MonthlyAllocation(envelope_id="e1", month="2024-05", amount=50)

        assert allocation.key == ("e1", "2024-05")
        assert MonthlyAllocation.from_dict(allocation.to_dict()) == allocation

    @pytest.mark.parametrize(
        "value,expected",
        [(5, 5.0), (2.5, 2.5), ("5", 0.0), (None, 0.0), (True, 0.0), (float("nan"), 0.0)],
    )
    def test_safe_amount(self, value, expected):
        assert safe_amount(value) == expected


class TestDates:
    @pytest.mark.parametrize(
        "value",
        [
            "2024-05-01",
            "2024-05-01T23:59:59",
            "2024-05-01T10:00:00Z",
            "2024-05-01T10:00:00+02:00",
            date(2024, 5, 1),
            datetime(2024, 5, 1, 22, 0),
        ],
    )
    def test_parse_date_keeps_calendar_day(self, value):
        assert parse_date(value) == date(2024, 5, 1)

    @pytest.mark.parametrize("value", ["", "  ", "2024-02-30", "01/05/2024", None, 20240501])
    def test_parse_date_rejects_garbage(self, value):
        with pytest.raises(InvalidDateError):
            parse_date(value)

    def test_month_helpers(self):
        assert month_key(date(2024, 3, 9)) == "2024-03"
        assert parse_month("2024-12") == (2024, 12)
        assert month_period("2024-02") == Period(date(2024, 2, 1), date(2024, 2, 29))
        assert months_between(date(2023, 11, 30), date(2024, 2, 1)) == 3
        assert list(iter_months(date(2023, 12, 5), date(2024, 2, 1))) == [
            "2023-12",
            "2024-01",
            "2024-02",
        ]

    @pytest.mark.parametrize("key", ["2024-00", "2024-13", "24-01", "2024/01", None])
    def test_parse_month_rejects(self, key):
        with pytest.raises(InvalidMonthError):
            parse_month(key)

    def test_period_is_inclusive(self):
        period = Period(date(2024, 1, 1), date(2024, 1, 31))

        assert period.contains(date(2024, 1, 1))
        assert period.contains(date(2024, 1, 31))
        assert not period.contains(date(2024, 2, 1))

    def test_year_to_date_period(self):
        assert year_to_date_period(date(2024, 5, 15)) == Period(
            date(2024, 1, 1), date(2024, 5, 15)
        )
