"""Reporting package."""

from expense_splitter.reports.summary import (
    ExpenseSummary,
    PersonTotal,
    build_summary,
    calculate_total_expenses,
)

__all__ = ["ExpenseSummary", "PersonTotal", "build_summary", "calculate_total_expenses"]
