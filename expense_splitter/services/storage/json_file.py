"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON document is the default storage backend:
1. The state of one shared tab is small
2. No database setup required
3. The file is human-readable and easy to back up

TRADEOFFS:
- One writer at a time (concurrent multi-user editing is out of scope)
- The whole document is rewritten on every save

Writes go to a temporary file first and are then renamed over the target,
so a crash never leaves a half-written state behind.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional
from uuid import UUID

from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from expense_splitter.config import get_settings
from expense_splitter.models.audit import AuditEvent
from expense_splitter.models.expense import SplitterState, migrate_state
from expense_splitter.services.storage.interface import (
    AuditStorageInterface,
    StateStorageInterface,
    StorageError,
)


def _write_atomically(path: Path, content: str) -> None:
    """Write `content` to `path` through a temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class JsonFileStateStorage(StateStorageInterface):
    """
    JSON file implementation of state storage.

    The file holds the state exactly as `SplitterState.model_dump(by_alias=True)`
    produces it, so older files written by version 1 migrate on load.
    """

    def __init__(self, path: Optional[str] = None):
        self._path = Path(path or get_settings().storage.state_path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    async def load_state(self) -> SplitterState:
        """Load and migrate the stored state."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return SplitterState()
        except OSError as e:
            raise StorageError(f"Failed to read state: {e}")

        if not raw.strip():
            return SplitterState()

        try:
            data = json.loads(raw)
            return migrate_state(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise StorageError(f"Stored state is corrupt: {e}")

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
        reraise=True,
    )
    def _write(self, content: str) -> None:
        _write_atomically(self._path, content)

    async def save_state(self, state: SplitterState) -> bool:
        """Persist the state to the JSON file."""
        content = state.model_dump_json(by_alias=True, indent=2)
        try:
            self._write(content)
            return True
        except OSError as e:
            raise StorageError(f"Failed to save state: {e}")

    async def clear_state(self) -> bool:
        """Delete the state file."""
        try:
            self._path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to clear state: {e}")


class JsonFileAuditStorage(AuditStorageInterface):
    """
    JSON-lines implementation of audit storage.

    One event per line, appended in chronological order.
    """

    def __init__(self, path: Optional[str] = None):
        self._path = Path(path or get_settings().storage.audit_path).expanduser()

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
        reraise=True,
    )
    def _append(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def _read_all(self) -> list[AuditEvent]:
        try:
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(f"Failed to read audit log: {e}")

        events = []
        for line in lines:
            if not line.strip():
                continue
            try:
                events.append(AuditEvent.model_validate_json(line))
            except ValidationError:
                # Skip lines written by an incompatible version
                continue
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event to the log file."""
        try:
            self._append(event.to_json_line())
            return True
        except OSError as e:
            raise StorageError(f"Failed to append audit event: {e}")

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a correlation ID."""
        events = [e for e in self._read_all() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        events = self._read_all()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
