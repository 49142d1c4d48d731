"""
Storage Manager

Saves and loads the graph snapshot through a key-value store, and
exports/imports backup files. Both paths go through the same codec, so an
imported backup is migrated exactly like a normal load.
"""

from datetime import date
from pathlib import Path
from typing import Optional

from moneyflow.config import get_settings
from moneyflow.graph.store import FlowGraph
from moneyflow.persistence.codec import dumps, loads
from moneyflow.services.storage import KeyValueStorageInterface, StorageError


class StorageManager:
    """
    Snapshot persistence for one graph.

    Every save writes the whole document; the last successful save wins.
    """

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        key: Optional[str] = None,
        backup_prefix: Optional[str] = None,
    ):
        settings = get_settings().storage
        self._storage = storage
        self._key = key or settings.storage_key
        self._backup_prefix = backup_prefix or settings.backup_prefix

    @property
    def key(self) -> str:
        return self._key

    def save(self, graph: FlowGraph) -> None:
        """
        Raises:
            StorageError: If the backend write fails
        """
        self._storage.set(self._key, dumps(graph))

    def load(self) -> Optional[FlowGraph]:
        """
        Load the stored graph.

        Returns:
            A new FlowGraph, or None if nothing is stored

        Raises:
            DocumentParseError: If the stored document is malformed
            StorageError: If the backend cannot be read
        """
        raw = self._storage.get(self._key)
        if raw is None:
            return None
        return loads(raw)

    @property
    def corrupt_key(self) -> str:
        return f"{self._key}.corrupt"

    def preserve_unreadable(self) -> Optional[str]:
        """
        Copy the stored document, as-is, to `corrupt_key`.

        Called before a fresh graph replaces a document that failed to
        load, so the user's data can still be recovered by hand.

        Returns:
            The key the raw text was copied to, or None if nothing is stored

        Raises:
            StorageError: If the backend cannot be read or written
        """
        raw = self._storage.get(self._key)
        if raw is None:
            return None
        self._storage.set(self.corrupt_key, raw)
        return self.corrupt_key

    def backup_filename(self, on: Optional[date] = None) -> str:
        return f"{self._backup_prefix}{(on or date.today()).isoformat()}.json"

    def export_to_file(
        self,
        graph: FlowGraph,
        directory: Path,
        on: Optional[date] = None,
    ) -> Path:
        """
        Write a dated backup file.

        Returns:
            Path of the written file

        Raises:
            StorageError: If the file cannot be written
        """
        path = Path(directory) / self.backup_filename(on)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(dumps(graph), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write backup {path}: {e}") from e
        return path

    def import_from_file(self, path: Path) -> FlowGraph:
        """
        Read a backup file into a new FlowGraph.

        Raises:
            DocumentParseError: If the file content is malformed
            StorageError: If the file cannot be read
        """
        try:
            raw = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read backup {path}: {e}") from e
        return loads(raw)
