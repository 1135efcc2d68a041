"""
In-Memory Storage Implementation

Used by the tests and by the app when file storage isn't configured.
State is kept as a serialized dict so callers can never mutate the
stored copy through a reference they still hold.
"""

from typing import Optional
from uuid import UUID

from expense_splitter.models.audit import AuditEvent
from expense_splitter.models.expense import SplitterState, migrate_state
from expense_splitter.services.storage.interface import (
    AuditStorageInterface,
    StateStorageInterface,
)


class InMemoryStateStorage(StateStorageInterface):
    """State storage backed by a plain dict."""

    def __init__(self, initial: Optional[dict] = None):
        self._data: Optional[dict] = initial

    async def load_state(self) -> SplitterState:
        if self._data is None:
            return SplitterState()
        return migrate_state(self._data)

    async def save_state(self, state: SplitterState) -> bool:
        self._data = state.model_dump(mode="json", by_alias=True)
        return True

    async def clear_state(self) -> bool:
        existed = self._data is not None
        self._data = None
        return existed


class InMemoryAuditStorage(AuditStorageInterface):
    """Audit storage backed by a list."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self.events if e.correlation_id == correlation_id]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self.events))[:limit]
