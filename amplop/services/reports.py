"""
Report service for budget summaries and charts.

Provides functionality for:
- Spending by envelope for a month (budgeted vs. spent)
- Month-by-month income, spending and budget totals
- Spending-by-envelope bar chart
"""

import io
import logging
from datetime import date
from typing import TYPE_CHECKING, Optional

import matplotlib
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
from matplotlib.ticker import FuncFormatter

from amplop.config import CHART_DPI, CHART_FORMAT, CHART_HEIGHT, CHART_WIDTH
from amplop.dates import iter_months, month_key, month_period, parse_month

if TYPE_CHECKING:
    from .ledger import Ledger

# Non-interactive backend; charts are rendered to buffers only
matplotlib.use("Agg")

logger = logging.getLogger(__name__)

SPENDING_COLUMNS = [
    "envelope_id",
    "envelope",
    "category",
    "budgeted",
    "spent",
    "remaining",
    "percent_used",
]
SUMMARY_COLUMNS = ["month", "income", "spending", "net", "budgeted"]


class ReportService:
    """Builds tabular reports and charts from a ledger."""

    def __init__(self, ledger: "Ledger"):
        """
        Initialize the report service.

        Args:
            ledger: Ledger to report on
        """
        self.ledger = ledger

        try:
            sns.set_theme(style="darkgrid")
        except Exception as e:
            logger.warning(f"Failed to set seaborn theme: {e}")

    def spending_by_envelope(self, month: Optional[str] = None) -> pd.DataFrame:
        """
        Budgeted vs. spent for every envelope in a month.

        Rows follow the user's category and envelope order.

        Args:
            month: Month key ("YYYY-MM"), defaults to the current month

        Returns:
            DataFrame with SPENDING_COLUMNS
        """
        month = month or month_key(self.ledger.today())
        period = month_period(month)

        rows = []
        for category in self.ledger.ordered_categories():
            for envelope in self.ledger.envelopes_in_category(category):
                budgeted = self.ledger.effective_monthly_budget(envelope.id, month)
                spent = self.ledger.envelope_spending(envelope.id, period)
                rows.append(
                    {
                        "envelope_id": envelope.id,
                        "envelope": envelope.name,
                        "category": category,
                        "budgeted": budgeted,
                        "spent": spent,
                        "remaining": budgeted - spent,
                        "percent_used": (spent / budgeted * 100) if budgeted else 0.0,
                    }
                )

        logger.debug(f"Built spending report for {month} with {len(rows)} envelopes")
        return pd.DataFrame(rows, columns=SPENDING_COLUMNS)

    def monthly_summary(
        self, start_month: str, end_month: Optional[str] = None
    ) -> pd.DataFrame:
        """
        Income, spending and budget totals per month.

        Account-to-account transfers are excluded from income and spending.

        Args:
            start_month: First month key ("YYYY-MM")
            end_month: Last month key, defaults to the current month

        Returns:
            DataFrame with SUMMARY_COLUMNS, one row per month
        """
        end_month = end_month or month_key(self.ledger.today())
        start_year, start_mon = parse_month(start_month)
        end_year, end_mon = parse_month(end_month)

        rows = []
        for month in iter_months(
            date(start_year, start_mon, 1), date(end_year, end_mon, 1)
        ):
            income = self.ledger.monthly_income_total(month)
            spending = self.ledger.monthly_spending_total(month)
            rows.append(
                {
                    "month": month,
                    "income": income,
                    "spending": spending,
                    "net": income - spending,
                    "budgeted": self.ledger.total_monthly_budgeted(month),
                }
            )

        return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)

    def generate_spending_chart(self, month: Optional[str] = None) -> io.BytesIO:
        """
        Render a budgeted-vs-spent bar chart for a month.

        Args:
            month: Month key, defaults to the current month

        Returns:
            BytesIO buffer containing the PNG image
        """
        month = month or month_key(self.ledger.today())
        df = self.spending_by_envelope(month)

        fig = None
        try:
            fig, ax = plt.subplots(figsize=(CHART_WIDTH, CHART_HEIGHT))

            if df.empty:
                ax.text(
                    0.5,
                    0.5,
                    "No envelopes to report",
                    ha="center",
                    va="center",
                    fontsize=14,
                )
                ax.set_xlim(0, 1)
                ax.set_ylim(0, 1)
            else:
                long_df = df.melt(
                    id_vars=["envelope"],
                    value_vars=["budgeted", "spent"],
                    var_name="kind",
                    value_name="amount",
                )
                sns.barplot(data=long_df, x="envelope", y="amount", hue="kind", ax=ax)
                ax.yaxis.set_major_formatter(
                    FuncFormatter(lambda value, _: f"{value:,.0f}")
                )
                ax.set_xlabel("")
                ax.set_ylabel("Amount")
                ax.tick_params(axis="x", rotation=45)

            ax.set_title(f"Spending by envelope - {month}")

            buf = io.BytesIO()
            fig.savefig(buf, format=CHART_FORMAT, dpi=CHART_DPI, bbox_inches="tight")
            buf.seek(0)
            logger.debug(f"Generated spending chart for {month}")
            return buf
        finally:
            if fig is not None:
                plt.close(fig)
