"""
Export service for ledger data.

Provides functionality to export transactions to XLSX and CSV formats.
"""

import csv
import io
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional, cast

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from amplop.config import MAX_EXPORT_ENTRIES
from amplop.models import Transaction, TransactionType

if TYPE_CHECKING:
    from .ledger import Ledger

HEADERS = [
    "ID",
    "Date",
    "Type",
    "Amount",
    "Account",
    "Envelope",
    "Payee",
    "Description",
    "Transfer",
    "Transfer Group",
]


class ExportFormat(str, Enum):
    """Supported export formats."""

    CSV = "csv"
    XLSX = "xlsx"


class ExportService:
    """Service for exporting ledger data to various formats."""

    def __init__(self, ledger: "Ledger"):
        """
        Initialize the export service.

        Args:
            ledger: Ledger to export
        """
        self.ledger = ledger

    def export_to_csv(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> io.BytesIO:
        """
        Export transactions to CSV format.

        Args:
            start_date: Optional start date filter (inclusive)
            end_date: Optional end date filter (inclusive)

        Returns:
            BytesIO buffer containing the CSV data
        """
        transactions = self._get_transactions(start_date, end_date)

        buffer = io.BytesIO()
        text_buffer = io.StringIO()

        writer = csv.writer(text_buffer)
        writer.writerow(HEADERS)
        for tx in transactions:
            writer.writerow(self._row(tx))

        buffer.write(text_buffer.getvalue().encode("utf-8-sig"))  # BOM for Excel
        buffer.seek(0)

        return buffer

    def export_to_xlsx(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> io.BytesIO:
        """
        Export transactions to XLSX format with formatting.

        Adds a Summary sheet with account balances and envelope balances.

        Args:
            start_date: Optional start date filter (inclusive)
            end_date: Optional end date filter (inclusive)

        Returns:
            BytesIO buffer containing the XLSX data
        """
        transactions = self._get_transactions(start_date, end_date)

        wb = Workbook()
        ws = cast(Worksheet, wb.active)
        ws.title = "Transactions"

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(
            start_color="4472C4", end_color="4472C4", fill_type="solid"
        )
        income_fill = PatternFill(
            start_color="C6EFCE", end_color="C6EFCE", fill_type="solid"
        )
        expense_fill = PatternFill(
            start_color="FFC7CE", end_color="FFC7CE", fill_type="solid"
        )
        transfer_fill = PatternFill(
            start_color="FFEB9C", end_color="FFEB9C", fill_type="solid"
        )

        for col, header in enumerate(HEADERS, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center")

        for row_idx, tx in enumerate(transactions, 2):
            for col, value in enumerate(self._row(tx), 1):
                ws.cell(row=row_idx, column=col, value=value)

            if tx.transfer_group_id:
                fill = transfer_fill
            elif tx.type == TransactionType.INCOME:
                fill = income_fill
            else:
                fill = expense_fill

            for col in range(1, len(HEADERS) + 1):
                ws.cell(row=row_idx, column=col).fill = fill

        for row in range(2, len(transactions) + 2):
            ws.cell(row=row, column=4).number_format = "#,##0.00"

        column_widths = [34, 12, 10, 15, 18, 18, 24, 30, 10, 34]
        for col, width in enumerate(column_widths, 1):
            ws.column_dimensions[get_column_letter(col)].width = width

        ws.freeze_panes = "A2"

        self._add_summary_sheet(wb, transactions)

        buffer = io.BytesIO()
        wb.save(buffer)
        buffer.seek(0)

        return buffer

    def _row(self, tx: Transaction) -> list:
        """Flatten a transaction into an export row with names resolved."""
        account = self.ledger.get_account(tx.account_id)
        envelope = self.ledger.get_envelope(tx.envelope_id) if tx.envelope_id else None
        payee = self.ledger.get_payee(tx.payee_id)
        return [
            tx.id,
            tx.date.isoformat(),
            tx.type.value,
            tx.amount,
            account.name if account else "",
            envelope.name if envelope else "",
            payee.name if payee else "",
            tx.description or "",
            "yes" if tx.is_transfer else "no",
            tx.transfer_group_id or "",
        ]

    def _add_summary_sheet(self, wb: Workbook, transactions: list[Transaction]):
        """Add a summary sheet to the workbook."""
        ws = wb.create_sheet(title="Summary")

        header_font = Font(bold=True)
        title_font = Font(bold=True, size=14)

        ws.cell(row=1, column=1, value="Ledger Summary").font = title_font
        ws.cell(
            row=2,
            column=1,
            value=f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}",
        )

        # Transfers are excluded from income and spending
        total_income = sum(
            tx.amount
            for tx in transactions
            if tx.type == TransactionType.INCOME and not tx.is_transfer
        )
        total_spending = sum(
            tx.amount
            for tx in transactions
            if tx.type == TransactionType.EXPENSE and not tx.is_transfer
        )

        row = 4
        ws.cell(row=row, column=1, value="Income").font = header_font
        ws.cell(row=row, column=2, value=total_income)
        ws.cell(row=row + 1, column=1, value="Spending").font = header_font
        ws.cell(row=row + 1, column=2, value=total_spending)
        ws.cell(row=row + 2, column=1, value="Net").font = header_font
        ws.cell(row=row + 2, column=2, value=total_income - total_spending)

        row += 4
        ws.cell(row=row, column=1, value="Account").font = header_font
        ws.cell(row=row, column=2, value="Balance").font = header_font
        for account in self.ledger.accounts:
            row += 1
            ws.cell(row=row, column=1, value=account.name)
            ws.cell(row=row, column=2, value=self.ledger.account_balance(account.id))

        row += 2
        ws.cell(row=row, column=1, value="Envelope").font = header_font
        ws.cell(row=row, column=2, value="Available").font = header_font
        for envelope in self.ledger.envelopes:
            row += 1
            ws.cell(row=row, column=1, value=envelope.name)
            ws.cell(
                row=row,
                column=2,
                value=self.ledger.envelope_balance_with_rollover(envelope.id),
            )

        for r in range(4, row + 1):
            ws.cell(row=r, column=2).number_format = "#,##0.00"

        ws.column_dimensions["A"].width = 24
        ws.column_dimensions["B"].width = 18

    def _get_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """Transactions within the optional date range, newest first."""
        transactions = [
            tx
            for tx in self.ledger.transactions
            if (start_date is None or tx.date >= start_date)
            and (end_date is None or tx.date <= end_date)
        ]
        return transactions[:MAX_EXPORT_ENTRIES]

    def get_filename(
        self,
        format: ExportFormat,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> str:
        """
        Generate a filename for the export.

        Args:
            format: Export format
            start_date: Optional start date
            end_date: Optional end date

        Returns:
            Suggested filename
        """
        date_str = datetime.now().strftime("%Y%m%d")

        if start_date and end_date:
            date_range = (
                f"_{start_date.strftime('%Y%m%d')}-{end_date.strftime('%Y%m%d')}"
            )
        else:
            date_range = ""

        return f"amplop_ledger_{date_str}{date_range}.{format.value}"
