"""Services package."""

from expense_splitter.services.sharing import (
    ShareDecodeError,
    decode_shared_state,
    encode_state_for_url,
    generate_share_url,
    state_to_shareable,
)
from expense_splitter.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    InMemoryAuditStorage,
    InMemoryStateStorage,
    JsonFileAuditStorage,
    JsonFileStateStorage,
    NotFoundError,
    StateStorageInterface,
    StorageError,
)

__all__ = [
    # Sharing
    "ShareDecodeError",
    "decode_shared_state",
    "encode_state_for_url",
    "generate_share_url",
    "state_to_shareable",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "InMemoryAuditStorage",
    "InMemoryStateStorage",
    "JsonFileAuditStorage",
    "JsonFileStateStorage",
    "NotFoundError",
    "StateStorageInterface",
    "StorageError",
]
