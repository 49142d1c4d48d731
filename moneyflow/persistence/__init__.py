"""Persistence package: document codec and snapshot storage manager."""

from moneyflow.persistence.codec import (
    DOCUMENT_VERSION,
    DocumentParseError,
    deserialize,
    dumps,
    loads,
    serialize,
)
from moneyflow.persistence.manager import StorageManager

__all__ = [
    "DOCUMENT_VERSION",
    "DocumentParseError",
    "StorageManager",
    "deserialize",
    "dumps",
    "loads",
    "serialize",
]
