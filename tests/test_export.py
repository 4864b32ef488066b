"""Tests for ExportService."""

import csv
import io
from datetime import date

import pytest
from openpyxl import load_workbook

from amplop.services import ExportService
from amplop.services.export import HEADERS, ExportFormat
from tests.conftest import start_of


@pytest.fixture
def exporter(ledger, checking, savings, grocer):
    groceries = ledger.add_envelope(
        "Groceries", "Living", budget_amount=200, created_at=start_of(date(2024, 5, 1))
    )
    ledger.add_transaction(
        checking.id, grocer.id, 50, "expense", "2024-05-02",
        envelope_id=groceries.id, description="Weekly shop",
    )
    ledger.add_transaction(checking.id, grocer.id, 20, "income", "2024-04-20")
    ledger.transfer_between_accounts(checking.id, savings.id, 100, "2024-05-10")
    return ExportService(ledger)


def read_csv(buffer):
    return list(csv.reader(io.StringIO(buffer.getvalue().decode("utf-8-sig"))))


def test_csv_has_header_and_rows_newest_first(exporter):
    rows = read_csv(exporter.export_to_csv())

    assert rows[0] == HEADERS
    assert len(rows) == 5
    assert [row[1] for row in rows[1:]] == [
        "2024-05-10",
        "2024-05-10",
        "2024-05-02",
        "2024-04-20",
    ]


def test_csv_resolves_names(exporter):
    rows = read_csv(exporter.export_to_csv())
    shop = next(row for row in rows if row[7] == "Weekly shop")

    assert shop[2] == "expense"
    assert float(shop[3]) == 50
    assert shop[4] == "Checking"
    assert shop[5] == "Groceries"
    assert shop[6] == "Corner Grocer"
    assert shop[8] == "no"


def test_csv_marks_transfers(exporter):
    rows = read_csv(exporter.export_to_csv())
    legs = [row for row in rows[1:] if row[8] == "yes"]

    assert len(legs) == 2
    assert legs[0][9] and legs[0][9] == legs[1][9]
    assert {leg[4] for leg in legs} == {"Checking", "Savings"}


def test_csv_date_filter_is_inclusive(exporter):
    rows = read_csv(
        exporter.export_to_csv(start_date=date(2024, 4, 20), end_date=date(2024, 5, 2))
    )

    assert [row[1] for row in rows[1:]] == ["2024-05-02", "2024-04-20"]


def test_xlsx_has_transactions_and_summary(exporter, ledger, checking):
    workbook = load_workbook(exporter.export_to_xlsx())

    assert workbook.sheetnames == ["Transactions", "Summary"]

    sheet = workbook["Transactions"]
    assert [cell.value for cell in sheet[1]] == HEADERS
    assert sheet.max_row == 5

    summary = workbook["Summary"]
    labels = {
        row[0]: row[1]
        for row in summary.iter_rows(min_row=4, max_col=2, values_only=True)
        if row[0]
    }
    assert labels["Income"] == 20
    assert labels["Spending"] == 50
    assert labels["Net"] == -30
    assert labels["Checking"] == ledger.account_balance(checking.id)
    groceries = ledger.envelopes[0]
    assert labels["Groceries"] == ledger.envelope_balance_with_rollover(groceries.id) == 150


def test_filename(exporter):
    name = exporter.get_filename(ExportFormat.CSV, date(2024, 5, 1), date(2024, 5, 31))

    assert name.startswith("amplop_ledger_")
    assert name.endswith("_20240501-20240531.csv")
    assert exporter.get_filename(ExportFormat.XLSX).endswith(".xlsx")
