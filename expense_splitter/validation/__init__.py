"""Validation package."""

from expense_splitter.validation.validator import (
    ExpenseValidator,
    InvalidAmountError,
    parse_amount,
)

__all__ = ["ExpenseValidator", "InvalidAmountError", "parse_amount"]
