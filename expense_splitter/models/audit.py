"""
Audit Models for Expense Splitter

Every mutation of the shared expense state is logged for audit purposes.
This provides:
1. Traceability of who changed what, and when
2. Debugging information when balances look wrong
3. Ability to reconstruct the history of a shared tab

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Expenses
    EXPENSE_ADDED = "expense_added"
    EXPENSE_REMOVED = "expense_removed"
    EXPENSE_REJECTED = "expense_rejected"

    # Groups
    GROUP_CREATED = "group_created"
    GROUP_UPDATED = "group_updated"
    GROUP_DELETED = "group_deleted"
    GROUP_REJECTED = "group_rejected"

    # Calculation
    DEBTS_RECALCULATED = "debts_recalculated"

    # Settlement status
    DEBT_SETTLED = "debt_settled"
    DEBT_UNSETTLED = "debt_unsettled"

    # State lifecycle
    STATE_RESET = "state_reset"
    STATE_IMPORTED = "state_imported"
    PREFERENCES_UPDATED = "preferences_updated"

    # System events
    SYSTEM_ERROR = "system_error"
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'group', 'debt')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a mutation and its recalculation)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json_line(self) -> str:
        """Serialize as one line of a JSON-lines audit file."""
        return json.dumps(self.model_dump(mode="json"), ensure_ascii=False)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(expense_id, person, amount, correlation_id)
        event = AuditEventBuilder.debt_settled(index, debtor, creditor, correlation_id)
    """

    @staticmethod
    def expense_added(
        expense_id: str,
        person: str,
        amount: float,
        group_id: Optional[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense added: {person} paid {amount:.2f}",
            details={
                "person": person,
                "amount": amount,
                "group_id": group_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_removed(
        expense_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_REMOVED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense removed: {expense_id}",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        subject: str,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        event_type = (
            AuditEventType.EXPENSE_REJECTED
            if subject == "expense"
            else AuditEventType.GROUP_REJECTED
        )
        return AuditEvent(
            event_type=event_type,
            severity=AuditSeverity.WARNING,
            entity_type=subject,
            correlation_id=correlation_id,
            description=f"{subject.capitalize()} rejected with {len(issues)} issues",
            details={
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def group_saved(
        group_id: str,
        name: str,
        participants: list[str],
        created: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_CREATED if created else AuditEventType.GROUP_UPDATED,
            entity_type="group",
            entity_id=group_id,
            correlation_id=correlation_id,
            description=f"Group {'created' if created else 'updated'}: {name}",
            details={
                "name": name,
                "participants": participants,
            },
            is_user_action=True,
        )

    @staticmethod
    def group_deleted(
        group_id: str,
        detached_expenses: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_DELETED,
            entity_type="group",
            entity_id=group_id,
            correlation_id=correlation_id,
            description=f"Group deleted: {group_id}",
            details={
                "detached_expenses": detached_expenses,
            },
            is_user_action=True,
        )

    @staticmethod
    def debts_recalculated(
        expense_count: int,
        group_count: int,
        debt_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBTS_RECALCULATED,
            entity_type="debt",
            correlation_id=correlation_id,
            description=f"Debts recalculated: {debt_count} payments",
            details={
                "expense_count": expense_count,
                "group_count": group_count,
                "debt_count": debt_count,
            },
        )

    @staticmethod
    def debt_status_changed(
        index: int,
        debtor: str,
        creditor: str,
        settled: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBT_SETTLED if settled else AuditEventType.DEBT_UNSETTLED,
            entity_type="debt",
            entity_id=str(index),
            correlation_id=correlation_id,
            description=(
                f"Debt {'settled' if settled else 'reopened'}: "
                f"{debtor} -> {creditor}"
            ),
            details={
                "index": index,
                "debtor": debtor,
                "creditor": creditor,
            },
            is_user_action=True,
        )

    @staticmethod
    def state_reset(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_RESET,
            correlation_id=correlation_id,
            description="State reset to defaults",
            is_user_action=True,
        )

    @staticmethod
    def state_imported(
        expense_count: int,
        group_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_IMPORTED,
            correlation_id=correlation_id,
            description=(
                f"State imported from share link: {expense_count} expenses, "
                f"{group_count} groups"
            ),
            details={
                "expense_count": expense_count,
                "group_count": group_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def preferences_updated(
        language: str,
        theme: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PREFERENCES_UPDATED,
            correlation_id=correlation_id,
            description="Preferences updated",
            details={
                "language": language,
                "theme": theme,
            },
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
            correlation_id=correlation_id,
        )
