"""
Main Orchestrator for Expense Splitter

This module ties together all the components and defines the
end-to-end flows for a shared tab:
1. Expense entry (input → validate → store → recalculate)
2. Group management (create/update/delete → recalculate)
3. Settlement tracking (mark payments paid/pending)
4. Sharing (export/import share links)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the calculation core without passing validation
- Every change to expenses or groups recalculates the debts
- Every step is audited

The calculation core itself stays pure: it only ever sees plain lists
of expenses and groups, and knows nothing about storage or settlement.
"""

from datetime import datetime
from typing import Optional, Union
from uuid import UUID

import structlog

from expense_splitter.audit import AuditLogger, create_correlation_id
from expense_splitter.config import get_settings
from expense_splitter.core import compute_balances, organize_payments
from expense_splitter.models.expense import (
    Expense,
    ExpenseGroup,
    Language,
    SplitterState,
    Theme,
    ValidationIssue,
    ValidationResult,
    generate_expense_id,
    generate_group_id,
)
from expense_splitter.services.sharing import decode_shared_state, generate_share_url
from expense_splitter.services.storage import (
    InMemoryAuditStorage,
    InMemoryStateStorage,
    JsonFileAuditStorage,
    JsonFileStateStorage,
    NotFoundError,
    StateStorageInterface,
    StorageError,
)
from expense_splitter.validation import ExpenseValidator, InvalidAmountError, parse_amount


logger = structlog.get_logger(__name__)


class RejectedError(Exception):
    """Input failed validation. Carries the full ValidationResult."""

    def __init__(self, result: ValidationResult, message: str):
        super().__init__(message)
        self.result = result


class ExpenseRejectedError(RejectedError):
    pass


class GroupRejectedError(RejectedError):
    pass


class ImportRejectedError(RejectedError):
    """A share link decoded fine but its expenses or groups are invalid."""
    pass


def recalculate(state: SplitterState) -> SplitterState:
    """
    Return a copy of `state` with freshly calculated debts.

    Settlement flags on the previous debts are dropped: a new plan
    replaces the old one.
    """
    balances = compute_balances(state.expenses, state.groups)
    debts = organize_payments(balances)
    return state.model_copy(update={"debts": debts})


class SplitterFlow:
    """
    Orchestrates every change to a shared tab.

    Each public method loads the current state, applies one change,
    recalculates when expenses or groups changed, saves, and returns
    the new state (or the created entity).
    """

    def __init__(
        self,
        state_storage: StateStorageInterface,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = state_storage
        self._validator = validator or ExpenseValidator()
        self._audit_logger = audit_logger

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    async def get_state(self) -> SplitterState:
        """Load the current state."""
        return await self._storage.load_state()

    async def _save(
        self,
        state: SplitterState,
        operation: str,
        correlation_id: UUID,
    ) -> SplitterState:
        try:
            await self._storage.save_state(state)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation=operation,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise
        return state

    async def _recalculate_and_save(
        self,
        state: SplitterState,
        operation: str,
        correlation_id: UUID,
    ) -> SplitterState:
        state = recalculate(state)

        if self._audit_logger:
            await self._audit_logger.log_debts_recalculated(
                expense_count=len(state.expenses),
                group_count=len(state.groups),
                debt_count=len(state.debts or []),
                correlation_id=correlation_id,
            )

        return await self._save(state, operation, correlation_id)

    async def recalculate_debts(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> SplitterState:
        """Recalculate and store the debts for the current expenses and groups."""
        correlation_id = correlation_id or create_correlation_id()
        state = await self.get_state()
        return await self._recalculate_and_save(state, "recalculate", correlation_id)

    async def reset_state(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> SplitterState:
        """Forget everything and return the default state."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            await self._storage.clear_state()
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="reset",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_state_reset(correlation_id=correlation_id)

        return SplitterState()

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    async def _reject(
        self,
        result: ValidationResult,
        error_cls: type[RejectedError],
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            issues = [
                {"field": i.field, "type": i.issue_type, "message": i.message}
                for i in result.issues
            ]
            await self._audit_logger.log_validation_failed(
                subject=result.subject,
                issues=issues,
                correlation_id=correlation_id,
            )
        raise error_cls(result, self._validator.get_user_friendly_summary(result))

    async def add_expense(
        self,
        person: str,
        amount: Union[str, float],
        group_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Expense, SplitterState]:
        """
        Validate and store a new expense, then recalculate.

        Args:
            person: Who paid (surrounding whitespace is stripped)
            amount: Amount as typed by the user, or a number
            group_id: Group sharing the expense; None means everyone

        Returns:
            (expense, new_state)

        Raises:
            ExpenseRejectedError: If the expense fails validation
        """
        correlation_id = correlation_id or create_correlation_id()
        state = await self.get_state()

        try:
            parsed_amount = parse_amount(amount)
        except InvalidAmountError as e:
            result = ValidationResult(
                subject="expense",
                is_valid=False,
                issues=[ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message=str(e),
                    severity="error",
                    suggested_fix="Enter a number such as 12.50",
                )],
            )
            await self._reject(result, ExpenseRejectedError, correlation_id)

        expense = Expense(
            id=generate_expense_id(),
            person=(person or "").strip(),
            amount=parsed_amount,
            group_id=group_id or None,
        )

        result = self._validator.validate_expense(expense, state.groups)
        if not result.is_valid:
            await self._reject(result, ExpenseRejectedError, correlation_id)

        if result.warnings:
            logger.info("expense_accepted_with_warnings", warnings=result.warnings)

        state = state.model_copy(update={"expenses": [*state.expenses, expense]})

        if self._audit_logger:
            await self._audit_logger.log_expense_added(
                expense_id=expense.id,
                person=expense.person,
                amount=expense.amount,
                group_id=expense.group_id,
                correlation_id=correlation_id,
            )

        state = await self._recalculate_and_save(state, "add_expense", correlation_id)
        return expense, state

    async def remove_expense(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> SplitterState:
        """
        Remove an expense by id, then recalculate.

        Raises:
            NotFoundError: If no expense has this id
        """
        correlation_id = correlation_id or create_correlation_id()
        state = await self.get_state()

        remaining = [e for e in state.expenses if e.id != expense_id]
        if len(remaining) == len(state.expenses):
            raise NotFoundError(f"Expense not found: {expense_id}")

        state = state.model_copy(update={"expenses": remaining})

        if self._audit_logger:
            await self._audit_logger.log_expense_removed(
                expense_id=expense_id,
                correlation_id=correlation_id,
            )

        return await self._recalculate_and_save(state, "remove_expense", correlation_id)

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    async def save_group(
        self,
        name: str,
        participants: list[str],
        group_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[ExpenseGroup, SplitterState]:
        """
        Create a group, or update the group with `group_id`.

        Group membership changes invalidate balances, so the debts are
        always recalculated.

        Returns:
            (group, new_state)

        Raises:
            GroupRejectedError: If the group fails validation
            NotFoundError: If `group_id` is given but doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()
        state = await self.get_state()

        created = group_id is None
        if not created and state.find_group(group_id) is None:
            raise NotFoundError(f"Group not found: {group_id}")

        group = ExpenseGroup(
            id=group_id or generate_group_id(),
            name=(name or "").strip(),
            participants=[p.strip() for p in participants],
        )

        result = self._validator.validate_group(group)
        if not result.is_valid:
            await self._reject(result, GroupRejectedError, correlation_id)

        if created:
            groups = [*state.groups, group]
        else:
            groups = [group if g.id == group.id else g for g in state.groups]

        state = state.model_copy(update={"groups": groups})

        if self._audit_logger:
            await self._audit_logger.log_group_saved(
                group_id=group.id,
                name=group.name,
                participants=group.participants,
                created=created,
                correlation_id=correlation_id,
            )

        state = await self._recalculate_and_save(state, "save_group", correlation_id)
        return group, state

    async def delete_group(
        self,
        group_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> SplitterState:
        """
        Delete a group. Expenses that used it become shared by everyone.

        Raises:
            NotFoundError: If no group has this id
        """
        correlation_id = correlation_id or create_correlation_id()
        state = await self.get_state()

        if state.find_group(group_id) is None:
            raise NotFoundError(f"Group not found: {group_id}")

        detached = 0
        expenses = []
        for expense in state.expenses:
            if expense.group_id == group_id:
                expense = expense.model_copy(update={"group_id": None})
                detached += 1
            expenses.append(expense)

        state = state.model_copy(update={
            "groups": [g for g in state.groups if g.id != group_id],
            "expenses": expenses,
        })

        if self._audit_logger:
            await self._audit_logger.log_group_deleted(
                group_id=group_id,
                detached_expenses=detached,
                correlation_id=correlation_id,
            )

        return await self._recalculate_and_save(state, "delete_group", correlation_id)

    # -------------------------------------------------------------------------
    # Settlement tracking
    # -------------------------------------------------------------------------

    async def _set_settled(
        self,
        index: int,
        settled: bool,
        correlation_id: Optional[UUID],
    ) -> SplitterState:
        correlation_id = correlation_id or create_correlation_id()
        state = await self.get_state()

        debts = list(state.debts or [])
        if not 0 <= index < len(debts):
            logger.warning("debt_index_out_of_range", index=index, debt_count=len(debts))
            return state

        debt = debts[index]
        debts[index] = debt.model_copy(update={
            "settled": settled,
            "settled_at": datetime.utcnow() if settled else None,
        })
        state = state.model_copy(update={"debts": debts})

        if self._audit_logger:
            await self._audit_logger.log_debt_status_changed(
                index=index,
                debtor=debt.person,
                creditor=debt.creditor,
                settled=settled,
                correlation_id=correlation_id,
            )

        return await self._save(state, "settle_debt" if settled else "unsettle_debt", correlation_id)

    async def settle_debt(
        self,
        index: int,
        correlation_id: Optional[UUID] = None,
    ) -> SplitterState:
        """Mark the debt at `index` as paid. Out-of-range indexes change nothing."""
        return await self._set_settled(index, True, correlation_id)

    async def unsettle_debt(
        self,
        index: int,
        correlation_id: Optional[UUID] = None,
    ) -> SplitterState:
        """Mark the debt at `index` as pending again."""
        return await self._set_settled(index, False, correlation_id)

    # -------------------------------------------------------------------------
    # Preferences and sharing
    # -------------------------------------------------------------------------

    async def set_preferences(
        self,
        language: Optional[Language] = None,
        theme: Optional[Theme] = None,
        correlation_id: Optional[UUID] = None,
    ) -> SplitterState:
        """Update UI language and/or theme."""
        correlation_id = correlation_id or create_correlation_id()
        state = await self.get_state()

        update = {}
        if language is not None:
            update["language"] = Language(language)
        if theme is not None:
            update["theme"] = Theme(theme)
        state = state.model_copy(update=update)

        if self._audit_logger:
            await self._audit_logger.log_preferences_updated(
                language=state.language.value,
                theme=state.theme.value,
                correlation_id=correlation_id,
            )

        return await self._save(state, "set_preferences", correlation_id)

    async def share_url(self, base_url: Optional[str] = None) -> Optional[str]:
        """Share URL for the current state, or None if it would be too long."""
        return generate_share_url(await self.get_state(), base_url=base_url)

    async def import_shared_state(
        self,
        encoded: str,
        correlation_id: Optional[UUID] = None,
    ) -> SplitterState:
        """
        Replace expenses and groups with the ones from a share link.

        Preferences are kept. Debts are recalculated.

        Raises:
            ShareDecodeError: If the payload is malformed
            ImportRejectedError: If a shared group or expense fails validation
        """
        correlation_id = correlation_id or create_correlation_id()
        shared = decode_shared_state(encoded)

        # Nothing is stored unless every group and expense would pass the forms
        for group in shared.groups:
            result = self._validator.validate_group(group)
            if not result.is_valid:
                await self._reject(result, ImportRejectedError, correlation_id)
        for expense in shared.expenses:
            result = self._validator.validate_expense(expense, shared.groups)
            if not result.is_valid:
                await self._reject(result, ImportRejectedError, correlation_id)

        current = await self.get_state()

        state = current.model_copy(update={
            "expenses": shared.expenses,
            "groups": shared.groups,
        })

        if self._audit_logger:
            await self._audit_logger.log_state_imported(
                expense_count=len(shared.expenses),
                group_count=len(shared.groups),
                correlation_id=correlation_id,
            )

        return await self._recalculate_and_save(state, "import_shared_state", correlation_id)


def create_app_components(
    use_storage: bool = True,
) -> tuple[SplitterFlow, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use JSON file storage.
                    Set to False for in-memory state (tests, demos).

    Returns:
        (splitter_flow, audit_logger)
    """
    state_storage: StateStorageInterface
    if use_storage:
        try:
            storage_settings = get_settings().storage
            state_storage = JsonFileStateStorage(storage_settings.state_path)
            audit_storage = (
                JsonFileAuditStorage(storage_settings.audit_path)
                if storage_settings.audit_path
                else None
            )
            audit_logger = AuditLogger(audit_storage)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            state_storage = InMemoryStateStorage()
            audit_logger = AuditLogger(InMemoryAuditStorage())
    else:
        state_storage = InMemoryStateStorage()
        audit_logger = AuditLogger(InMemoryAuditStorage())

    flow = SplitterFlow(
        state_storage=state_storage,
        audit_logger=audit_logger,
    )
    return flow, audit_logger
