"""
Audit Logger

DESIGN DECISION: Every mutation of the shared state is logged.
This provides:
1. Complete traceability
2. Debugging capability when balances look off
3. A history the group can look back at

The audit logger:
- Is async to match the storage interface
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_splitter.models.audit import AuditEvent, AuditEventBuilder
from expense_splitter.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO") -> None:
    """Configure stdlib logging and structlog for local JSON logs."""
    logging.basicConfig(format="%(message)s", level=level.upper())
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("expense_splitter.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_expense_added(
        self,
        expense_id: str,
        person: str,
        amount: float,
        group_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """Log a new expense."""
        await self.log(AuditEventBuilder.expense_added(
            expense_id=expense_id,
            person=person,
            amount=amount,
            group_id=group_id,
            correlation_id=correlation_id,
        ))

    async def log_expense_removed(
        self,
        expense_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_removed(
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        subject: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log a rejected expense or group."""
        await self.log(AuditEventBuilder.validation_failed(
            subject=subject,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_group_saved(
        self,
        group_id: str,
        name: str,
        participants: list[str],
        created: bool,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.group_saved(
            group_id=group_id,
            name=name,
            participants=participants,
            created=created,
            correlation_id=correlation_id,
        ))

    async def log_group_deleted(
        self,
        group_id: str,
        detached_expenses: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.group_deleted(
            group_id=group_id,
            detached_expenses=detached_expenses,
            correlation_id=correlation_id,
        ))

    async def log_debts_recalculated(
        self,
        expense_count: int,
        group_count: int,
        debt_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.debts_recalculated(
            expense_count=expense_count,
            group_count=group_count,
            debt_count=debt_count,
            correlation_id=correlation_id,
        ))

    async def log_debt_status_changed(
        self,
        index: int,
        debtor: str,
        creditor: str,
        settled: bool,
        correlation_id: UUID,
    ) -> None:
        """Log a debt being marked paid or pending."""
        await self.log(AuditEventBuilder.debt_status_changed(
            index=index,
            debtor=debtor,
            creditor=creditor,
            settled=settled,
            correlation_id=correlation_id,
        ))

    async def log_state_reset(self, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.state_reset(correlation_id=correlation_id))

    async def log_state_imported(
        self,
        expense_count: int,
        group_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.state_imported(
            expense_count=expense_count,
            group_count=group_count,
            correlation_id=correlation_id,
        ))

    async def log_preferences_updated(
        self,
        language: str,
        theme: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.preferences_updated(
            language=language,
            theme=theme,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., adding an expense).
    Pass it through all subsequent operations.
    """
    return uuid4()
