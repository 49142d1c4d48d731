"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the graph snapshot in a file, a browser-style blob store or memory
2. Use in-memory storage for testing
3. Keep the codec decoupled from where the document ends up

The interface is intentionally tiny: the whole graph is one document
stored under one key, written in full on every save.
"""

from abc import ABC, abstractmethod
from typing import Optional

from moneyflow.models.audit import AuditEvent


class KeyValueStorageInterface(ABC):
    """
    Abstract key-value blob store.

    Values are opaque strings (the serialized graph document).
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under `key`.

        Returns:
            The stored string, or None if nothing is stored

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store `value` under `key`, replacing any previous value.

        The write is all-or-nothing: readers see either the old or the
        new value, never a mix.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove `key`.

        Returns:
            True if something was removed
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass
