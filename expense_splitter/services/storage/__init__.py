"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements a JSON file backend and an in-memory backend.
"""

from expense_splitter.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    StateStorageInterface,
    StorageError,
)
from expense_splitter.services.storage.json_file import (
    JsonFileAuditStorage,
    JsonFileStateStorage,
)
from expense_splitter.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryStateStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "StateStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # JSON file implementation
    "JsonFileAuditStorage",
    "JsonFileStateStorage",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryStateStorage",
]
