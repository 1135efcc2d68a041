"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the JSON file for a cookie/session store or a database later
2. Use in-memory storage for testing
3. Keep the flows decoupled from where state lives

The whole shared tab is one SplitterState document. The interface is
intentionally tiny: load it, save it, forget it.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from expense_splitter.models.audit import AuditEvent
from expense_splitter.models.expense import SplitterState


class StateStorageInterface(ABC):
    """
    Abstract interface for state storage operations.

    Any storage implementation (JSON file, cookies, database)
    must implement these methods.
    """

    @abstractmethod
    async def load_state(self) -> SplitterState:
        """
        Load the stored state, migrated to the current schema.

        Returns:
            The stored state, or the default state if nothing is stored

        Raises:
            StorageError: If the stored data can't be read
        """
        pass

    @abstractmethod
    async def save_state(self, state: SplitterState) -> bool:
        """
        Replace the stored state.

        Args:
            state: The state to persist

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def clear_state(self) -> bool:
        """
        Delete the stored state.

        Returns:
            True if something was deleted
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one mutation and its recalculation).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass
