"""
Data Models Package

This package contains all Pydantic models used in the Expense Splitter.
All data flowing through the system must conform to these schemas.
"""

from expense_splitter.models.expense import (
    CURRENT_STATE_VERSION,
    Balance,
    Debt,
    Expense,
    ExpenseGroup,
    Language,
    SharedExpense,
    SharedGroup,
    ShareableState,
    SplitterState,
    Theme,
    ValidationIssue,
    ValidationResult,
    generate_expense_id,
    generate_group_id,
    migrate_state,
)
from expense_splitter.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "CURRENT_STATE_VERSION",
    "Balance",
    "Debt",
    "Expense",
    "ExpenseGroup",
    "Language",
    "SharedExpense",
    "SharedGroup",
    "ShareableState",
    "SplitterState",
    "Theme",
    "ValidationIssue",
    "ValidationResult",
    "generate_expense_id",
    "generate_group_id",
    "migrate_state",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
