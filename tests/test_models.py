"""
Tests for Expense Splitter

Test strategy:
1. Unit tests for individual components (models, core, validators)
2. Integration tests for flows (with in-memory storage)
3. No real file system outside pytest's tmp_path
"""

import json
import re
from datetime import datetime
from uuid import uuid4

import pytest

from expense_splitter.models.expense import (
    CURRENT_STATE_VERSION,
    Debt,
    Expense,
    ExpenseGroup,
    Language,
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


class TestExpenseModels:
    """Tests for expense-related Pydantic models."""

    def test_expense_accepts_group_id_alias(self):
        """Test that the camelCase storage key populates group_id."""
        expense = Expense.model_validate({"id": "1", "person": "Ana", "amount": 10, "groupId": "g1"})
        assert expense.group_id == "g1"

    def test_expense_dumps_group_id_alias(self):
        """Test that the alias is used when serializing for storage."""
        expense = Expense(id="1", person="Ana", amount=10, group_id="g1")
        assert expense.model_dump(by_alias=True)["groupId"] == "g1"

    def test_expense_amount_is_not_constrained(self):
        """Test that negative and non-finite amounts reach the core untouched."""
        assert Expense(id="1", person="Ana", amount=-5).amount == -5
        assert Expense(id="2", person="Ana", amount=float("inf")).amount == float("inf")

    def test_debt_defaults(self):
        """Test that a new debt is pending."""
        debt = Debt(person="Luis", amount=10, creditor="Ana")
        assert debt.settled is False
        assert debt.settled_at is None

    def test_debt_settled_at_alias(self):
        """Test that settledAt round-trips through JSON."""
        debt = Debt(person="Luis", amount=10, creditor="Ana", settled=True, settled_at=datetime(2024, 5, 1, 12))
        restored = Debt.model_validate_json(debt.model_dump_json(by_alias=True))
        assert restored.settled_at == datetime(2024, 5, 1, 12)

    def test_state_defaults(self):
        """Test the default state."""
        state = SplitterState()
        assert state.version == CURRENT_STATE_VERSION
        assert state.expenses == []
        assert state.groups == []
        assert state.debts is None
        assert state.language == Language.SPANISH
        assert state.theme == Theme.DARK

    def test_find_group(self):
        """Test group lookup by id."""
        group = ExpenseGroup(id="g1", name="Kayak", participants=["Ana"])
        state = SplitterState(groups=[group])
        assert state.find_group("g1") == group
        assert state.find_group("g2") is None
        assert state.find_group(None) is None


class TestIdGeneration:
    """Tests for id helpers."""

    def test_expense_id_format(self):
        """Test '<epoch-ms>-<7 base36 chars>'."""
        assert re.fullmatch(r"\d{13}-[0-9a-z]{7}", generate_expense_id())

    def test_group_id_format(self):
        """Test 'group-<epoch-ms>-<7 base36 chars>'."""
        assert re.fullmatch(r"group-\d{13}-[0-9a-z]{7}", generate_group_id())

    def test_ids_are_unique(self):
        """Test that consecutive ids differ."""
        ids = {generate_expense_id() for _ in range(50)}
        assert len(ids) == 50


class TestMigrateState:
    """Tests for state migration."""

    def test_empty_dict_becomes_default_state(self):
        """Test that nothing stored means the default state."""
        state = migrate_state({})
        assert state == SplitterState()

    def test_v1_expenses_get_ids_and_groups(self):
        """Test the v1 -> v2 migration."""
        raw = {
            "expenses": [
                {"person": "Ana", "amount": 10},
                {"person": "Luis", "amount": 5, "id": "kept"},
            ],
            "debts": None,
            "language": "en",
        }

        state = migrate_state(raw)

        assert state.version == 2
        assert state.groups == []
        assert re.fullmatch(r"migrated-0-\d+", state.expenses[0].id)
        assert state.expenses[1].id == "kept"
        assert state.language == Language.ENGLISH
        assert state.theme == Theme.DARK

    def test_v2_state_is_loaded_as_is(self):
        """Test that a current state isn't touched."""
        raw = {
            "version": 2,
            "expenses": [{"id": "e1", "person": "Ana", "amount": 10, "groupId": "g1"}],
            "groups": [{"id": "g1", "name": "Kayak", "participants": ["Ana", "Luis"]}],
            "debts": [{"person": "Luis", "amount": 5, "creditor": "Ana", "settled": True}],
            "language": "es",
            "theme": "light",
        }

        state = migrate_state(raw)

        assert state.expenses[0].group_id == "g1"
        assert state.debts[0].settled is True
        assert state.theme == Theme.LIGHT

    def test_state_survives_json_round_trip(self):
        """Test that stored JSON migrates back to the same state."""
        state = SplitterState(
            expenses=[Expense(id="e1", person="Ana", amount=12.5, group_id="g1")],
            groups=[ExpenseGroup(id="g1", name="Kayak", participants=["Ana"])],
            debts=[],
        )
        raw = json.loads(state.model_dump_json(by_alias=True))
        assert migrate_state(raw) == state


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            description="Test expense added",
        )
        assert event.event_type == AuditEventType.EXPENSE_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.GROUP_CREATED,
            description="Group created",
            details={"name": "Kayak"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "group_created"
        assert log_dict["details"]["name"] == "Kayak"

    def test_audit_event_json_line_round_trip(self):
        """Test that JSON-lines output parses back."""
        event = AuditEventBuilder.state_reset(correlation_id=uuid4())
        line = event.to_json_line()
        assert "\n" not in line
        assert AuditEvent.model_validate_json(line) == event

    def test_builder_expense_added(self):
        """Test AuditEventBuilder.expense_added."""
        correlation_id = uuid4()

        event = AuditEventBuilder.expense_added(
            expense_id="e1",
            person="Ana",
            amount=12.5,
            group_id=None,
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.EXPENSE_ADDED
        assert event.entity_id == "e1"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True
        assert "12.50" in event.description

    def test_builder_validation_failed_picks_subject(self):
        """Test that rejected groups and expenses get their own event types."""
        correlation_id = uuid4()
        expense_event = AuditEventBuilder.validation_failed("expense", [{}], correlation_id)
        group_event = AuditEventBuilder.validation_failed("group", [{}, {}], correlation_id)

        assert expense_event.event_type == AuditEventType.EXPENSE_REJECTED
        assert group_event.event_type == AuditEventType.GROUP_REJECTED
        assert group_event.severity == AuditSeverity.WARNING
        assert "2 issues" in group_event.description

    def test_builder_debt_status_changed(self):
        """Test settle/unsettle event types."""
        correlation_id = uuid4()
        settled = AuditEventBuilder.debt_status_changed(0, "Luis", "Ana", True, correlation_id)
        reopened = AuditEventBuilder.debt_status_changed(0, "Luis", "Ana", False, correlation_id)

        assert settled.event_type == AuditEventType.DEBT_SETTLED
        assert reopened.event_type == AuditEventType.DEBT_UNSETTLED
        assert settled.entity_id == "0"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            subject="expense",
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount can't be negative",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            subject="expense",
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="group_id",
                    issue_type="unknown_group",
                    message="Group doesn't exist",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0

    def test_validation_issue_rejects_unknown_severity(self):
        """Test the severity pattern."""
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
