"""
Storage Services Package

Provides the abstract blob-store interface and concrete implementations.
The graph codec only ever talks to KeyValueStorageInterface.
"""

from moneyflow.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStorageInterface,
    StorageError,
)
from moneyflow.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryKeyValueStorage,
)
from moneyflow.services.storage.json_file import JsonFileKeyValueStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStorageInterface",
    # Exceptions
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryKeyValueStorage",
    "JsonFileKeyValueStorage",
]
