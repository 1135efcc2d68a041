"""Calculation core: balances and settlement planning."""

from expense_splitter.core.balances import collect_participants, compute_balances
from expense_splitter.core.settlement import organize_payments

__all__ = ["collect_participants", "compute_balances", "organize_payments"]
