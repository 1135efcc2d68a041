"""
Input Validation

DESIGN DECISION: The calculation core never validates its input.
It is total over any list of expenses and lets NaN propagate. Everything
that would make a balance meaningless is stopped HERE, before an expense
or a group ever reaches storage:

- Blank payer names
- Non-numeric, non-finite or negative amounts (zero is fine: someone who
  paid nothing still takes part in the split)
- Expenses pointing at groups that don't exist
- Groups with no participants (their share would divide by zero)
- Duplicate participants (they would be charged twice)

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the user can correct the input.
"""

import math
from collections import Counter
from typing import Optional

from expense_splitter.config import get_settings
from expense_splitter.models.expense import (
    Expense,
    ExpenseGroup,
    ValidationIssue,
    ValidationResult,
)


class InvalidAmountError(ValueError):
    """Raised when an amount typed by the user can't be used."""
    pass


def parse_amount(raw) -> float:
    """
    Parse an amount coming from a form field.

    Accepts numbers and numeric strings (a decimal comma is accepted too).

    Raises:
        InvalidAmountError: For empty, non-numeric or non-finite input
    """
    if isinstance(raw, bool):
        raise InvalidAmountError(f"Invalid amount: {raw!r}")
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw or "").strip().replace(",", ".")
        if not text:
            raise InvalidAmountError("Amount is required")
        try:
            value = float(text)
        except ValueError:
            raise InvalidAmountError(f"Invalid amount: {raw!r}")

    if not math.isfinite(value):
        raise InvalidAmountError(f"Amount must be a finite number, got {raw!r}")
    return value


class ExpenseValidator:
    """Validates expenses and groups before they are stored."""

    def __init__(self, reject_unknown_groups: Optional[bool] = None):
        """
        Initialize validator.

        Args:
            reject_unknown_groups: Treat an unresolvable group id as an error.
                                  Defaults to the configured setting.
        """
        self._settings = get_settings().app
        self._reject_unknown_groups = (
            self._settings.reject_unknown_groups
            if reject_unknown_groups is None
            else reject_unknown_groups
        )

    @staticmethod
    def _result(subject: str, issues: list[ValidationIssue]) -> ValidationResult:
        return ValidationResult(
            subject=subject,
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
        )

    def validate_expense(
        self,
        expense: Expense,
        groups: list[ExpenseGroup],
    ) -> ValidationResult:
        """
        Validate a single expense against the current groups.

        Returns:
            ValidationResult with all issues found
        """
        issues = []

        if not expense.person or not expense.person.strip():
            issues.append(ValidationIssue(
                field="person",
                issue_type="missing",
                message="The name of the person who paid is required",
                severity="error",
                suggested_fix="Enter who paid for this expense",
            ))

        amount = expense.amount
        if not math.isfinite(amount):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=f"Amount must be a finite number, got {amount}",
                severity="error",
            ))
        elif amount < 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount can't be negative",
                severity="error",
                suggested_fix="Enter the amount that was paid, or 0 if this person paid nothing",
            ))
        elif amount > self._settings.max_expense_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if expense.group_id:
            group = next((g for g in groups if g.id == expense.group_id), None)
            if group is None:
                issues.append(ValidationIssue(
                    field="group_id",
                    issue_type="unknown_group",
                    message=(
                        f"Group '{expense.group_id}' doesn't exist"
                        + ("" if self._reject_unknown_groups else "; the expense will be shared by everyone")
                    ),
                    severity="error" if self._reject_unknown_groups else "warning",
                    suggested_fix="Pick an existing group or share with everyone",
                ))
            elif not group.participants:
                issues.append(ValidationIssue(
                    field="group_id",
                    issue_type="empty_group",
                    message=f"Group '{group.name}' has no participants",
                    severity="error",
                    suggested_fix="Add participants to the group first",
                ))

        return self._result("expense", issues)

    def validate_group(self, group: ExpenseGroup) -> ValidationResult:
        """Validate a group definition."""
        issues = []

        if not group.name or not group.name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Group name is required",
                severity="error",
            ))

        if not group.participants:
            issues.append(ValidationIssue(
                field="participants",
                issue_type="missing",
                message="A group needs at least one participant",
                severity="error",
                suggested_fix="Select who shares this group's expenses",
            ))
        elif len(group.participants) > self._settings.max_participants:
            issues.append(ValidationIssue(
                field="participants",
                issue_type="too_many",
                message=(
                    f"A group can't have more than {self._settings.max_participants} participants"
                ),
                severity="error",
            ))

        blank = [p for p in group.participants if not p.strip()]
        if blank:
            issues.append(ValidationIssue(
                field="participants",
                issue_type="missing",
                message="Participant names can't be blank",
                severity="error",
            ))

        duplicates = sorted(name for name, count in Counter(group.participants).items() if count > 1)
        if duplicates:
            issues.append(ValidationIssue(
                field="participants",
                issue_type="duplicate",
                message=f"Participants listed more than once: {', '.join(duplicates)}",
                severity="error",
                suggested_fix="Each person should appear once",
            ))

        return self._result("group", issues)

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Generate a user-friendly summary of validation results."""
        if result.is_valid and not result.warnings:
            return "✅ All checks passed!"

        lines = []

        if result.has_errors:
            lines.append(f"❌ This {result.subject} can't be saved:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
