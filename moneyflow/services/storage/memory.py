"""
In-memory storage backends.

Used by tests and by sessions that should not touch the disk.
"""

from collections import deque
from typing import Optional

from moneyflow.models.audit import AuditEvent
from moneyflow.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStorageInterface,
)


class InMemoryKeyValueStorage(KeyValueStorageInterface):
    """Dict-backed blob store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._data)


class InMemoryAuditStorage(AuditStorageInterface):
    """
    Bounded audit log.

    Keeps the newest `max_events` events; older ones are dropped.
    """

    def __init__(self, max_events: int = 10_000):
        self._events: deque[AuditEvent] = deque(maxlen=max_events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]

    def __len__(self) -> int:
        return len(self._events)
