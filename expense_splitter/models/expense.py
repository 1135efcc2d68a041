"""
Core Data Models for Expense Splitter

These models define the schemas for all data flowing through the system.
They are designed to:
1. Carry plain data between the UI, storage and the calculation core
2. Be serializable for storage, logging and share links
3. Stay permissive where the core must see raw input

DESIGN DECISION: Expense amounts are NOT constrained here.
The calculation core is total over its input and NaN propagation is its
documented failure mode. Sanitising amounts is the job of
ExpenseValidator, which runs before anything is stored.
"""

import random
import string
import time
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


CURRENT_STATE_VERSION = 2

_BASE36 = string.digits + string.ascii_lowercase


# =============================================================================
# ENUMS
# =============================================================================

class Language(str, Enum):
    """UI languages."""
    SPANISH = "es"
    ENGLISH = "en"


class Theme(str, Enum):
    """UI themes."""
    DARK = "dark"
    LIGHT = "light"


# =============================================================================
# CORE MODELS
# =============================================================================

class ExpenseGroup(BaseModel):
    """
    A named subset of participants who share specific expenses.

    Groups cover activities, dietary preferences, rentals, or any situation
    where a cost belongs to some people only.

    NOTE: Participant uniqueness is NOT enforced here. A duplicated name
    is debited once per occurrence by the balance calculator.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        ...,
        description="Unique group identifier"
    )
    name: str = Field(
        ...,
        description="Display name (e.g., 'Went kayaking', 'Meat eaters')"
    )
    participants: list[str] = Field(
        default_factory=list,
        description="Names of the people who share this group's expenses"
    )


class Expense(BaseModel):
    """A single expense entry: who paid, how much, and who shares it."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        ...,
        description="Unique expense identifier"
    )
    person: str = Field(
        ...,
        description="Name of the person who paid"
    )
    amount: float = Field(
        ...,
        description="Amount paid"
    )
    group_id: Optional[str] = Field(
        default=None,
        alias="groupId",
        description="Group sharing this expense; None means everyone"
    )


class Balance(BaseModel):
    """
    A participant's net position.

    Positive: the others owe this person money.
    Negative: this person owes money.
    """

    person: str
    amount: float


class Debt(BaseModel):
    """
    A payment from one person to another.

    `settled` and `settled_at` belong to the application. The settlement
    planner always emits them at their defaults.
    """
    model_config = ConfigDict(populate_by_name=True)

    person: str = Field(
        ...,
        description="Person who owes money"
    )
    amount: float = Field(
        ...,
        description="Amount owed"
    )
    creditor: str = Field(
        ...,
        description="Person who is owed money"
    )
    settled: bool = Field(
        default=False,
        description="Whether this debt has been paid"
    )
    settled_at: Optional[datetime] = Field(
        default=None,
        alias="settledAt",
        description="When the debt was marked as paid"
    )


# =============================================================================
# APPLICATION STATE
# =============================================================================

class SplitterState(BaseModel):
    """
    Complete application state.

    This is the unit the storage layer persists.
    """
    model_config = ConfigDict(populate_by_name=True)

    version: int = Field(
        default=CURRENT_STATE_VERSION,
        description="Schema version for migrations"
    )
    expenses: list[Expense] = Field(default_factory=list)
    groups: list[ExpenseGroup] = Field(default_factory=list)
    debts: Optional[list[Debt]] = Field(
        default=None,
        description="Calculated debts (None until first calculated)"
    )
    language: Language = Language.SPANISH
    theme: Theme = Theme.DARK

    def find_group(self, group_id: Optional[str]) -> Optional[ExpenseGroup]:
        """Look up a group by id."""
        if group_id is None:
            return None
        for group in self.groups:
            if group.id == group_id:
                return group
        return None


class SharedExpense(BaseModel):
    """Abbreviated expense for share links."""
    model_config = ConfigDict(extra="ignore")

    p: str
    a: float
    g: Optional[str] = None


class SharedGroup(BaseModel):
    """Abbreviated group for share links."""
    model_config = ConfigDict(extra="ignore")

    i: str
    n: str
    p: list[str] = Field(default_factory=list)


class ShareableState(BaseModel):
    """
    Minimal shareable state for URL encoding.

    Uses abbreviated keys to keep URLs short.
    """
    model_config = ConfigDict(extra="ignore")

    e: list[SharedExpense] = Field(default_factory=list)
    gr: Optional[list[SharedGroup]] = None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_group')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating an expense or a group before it is stored."""

    subject: str = Field(
        ...,
        description="What was validated ('expense' or 'group')"
    )
    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    is_valid: bool = Field(
        ...,
        description="True when there are no error-level issues"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")


# =============================================================================
# HELPERS
# =============================================================================

def _random_suffix(length: int = 7) -> str:
    return "".join(random.choice(_BASE36) for _ in range(length))


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def generate_expense_id() -> str:
    """Generate a unique expense id: '<epoch-ms>-<7 base36 chars>'."""
    return f"{_epoch_ms()}-{_random_suffix()}"


def generate_group_id() -> str:
    """Generate a unique group id: 'group-<epoch-ms>-<7 base36 chars>'."""
    return f"group-{_epoch_ms()}-{_random_suffix()}"


def migrate_state(raw: dict) -> SplitterState:
    """
    Migrate a stored state dict to the current schema.

    Version 1 states have no expense ids and no groups.
    Missing keys are filled from the default state.
    """
    version = raw.get("version") or 1
    migrated = dict(raw)

    if version < 2:
        stamp = _epoch_ms()
        migrated["expenses"] = [
            {**expense, "id": expense.get("id") or f"migrated-{index}-{stamp}"}
            for index, expense in enumerate(migrated.get("expenses") or [])
        ]
        migrated["groups"] = migrated.get("groups") or []
        migrated["version"] = CURRENT_STATE_VERSION

    defaults = SplitterState().model_dump(by_alias=True)
    merged = {**defaults, **{k: v for k, v in migrated.items() if v is not None or k == "debts"}}
    return SplitterState.model_validate(merged)
