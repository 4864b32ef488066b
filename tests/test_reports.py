"""Tests for ReportService."""

import pytest

from amplop.services import ReportService
from amplop.services.reports import SPENDING_COLUMNS, SUMMARY_COLUMNS
from tests.conftest import TODAY


@pytest.fixture
def reports(ledger):
    return ReportService(ledger)


def test_spending_by_envelope(ledger, reports, checking, grocer, groceries, dining):
    ledger.add_transaction(
        checking.id, grocer.id, 50, "expense", TODAY, envelope_id=groceries.id
    )

    df = reports.spending_by_envelope()

    assert list(df.columns) == SPENDING_COLUMNS
    assert list(df["envelope"]) == ["Groceries", "Dining Out"]
    row = df.set_index("envelope").loc["Groceries"]
    assert row["budgeted"] == 200
    assert row["spent"] == 50
    assert row["remaining"] == 150
    assert row["percent_used"] == pytest.approx(25.0)


def test_spending_report_follows_category_order(ledger, reports):
    ledger.add_envelope("Rent", "Housing", budget_amount=900)
    ledger.add_envelope("Movies", "Fun", budget_amount=20)
    ledger.reorder_categories(["Fun", "Housing"])

    df = reports.spending_by_envelope("2024-05")

    assert list(df["category"]) == ["Fun", "Housing"]


def test_zero_budget_reports_zero_percent(ledger, reports):
    ledger.add_envelope("Misc", "Other", budget_amount=0)

    df = reports.spending_by_envelope()

    assert df.iloc[0]["percent_used"] == 0.0


def test_empty_ledger_gives_empty_frames(reports):
    assert reports.spending_by_envelope().empty
    assert list(reports.spending_by_envelope().columns) == SPENDING_COLUMNS


def test_monthly_summary(ledger, reports, checking, savings, grocer, groceries):
    employer = ledger.add_payee("Employer")
    ledger.add_transaction(checking.id, employer.id, 2000, "income", "2024-04-01")
    ledger.add_transaction(checking.id, grocer.id, 150, "expense", "2024-04-12")
    ledger.add_transaction(checking.id, grocer.id, 60, "expense", "2024-05-02")
    ledger.transfer_between_accounts(checking.id, savings.id, 300, "2024-05-03")

    df = reports.monthly_summary("2024-03")

    assert list(df.columns) == SUMMARY_COLUMNS
    assert list(df["month"]) == ["2024-03", "2024-04", "2024-05"]
    april = df.set_index("month").loc["2024-04"]
    assert april["income"] == 2000
    assert april["spending"] == 150
    assert april["net"] == 1850
    may = df.set_index("month").loc["2024-05"]
    assert may["spending"] == 60
    assert may["budgeted"] == 200


def test_spending_chart_is_png(ledger, reports, checking, grocer, groceries):
    ledger.add_transaction(
        checking.id, grocer.id, 50, "expense", TODAY, envelope_id=groceries.id
    )

    buf = reports.generate_spending_chart()

    assert buf.getvalue().startswith(b"\x89PNG")


def test_spending_chart_without_envelopes(reports):
    assert reports.generate_spending_chart("2024-01").getvalue().startswith(b"\x89PNG")
