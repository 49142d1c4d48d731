"""
JSON File Storage Implementation

DESIGN DECISION: Each key is one `<key>.json` file in a data directory.
This keeps the snapshot human-readable and easy to back up by hand.

TRADEOFFS:
- One writer at a time (fine for a single interactive session)
- No history: the last successful save wins

Writes go to a temporary file in the same directory first and then
replace the target, so a crash mid-write leaves the previous snapshot.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

from moneyflow.config import get_settings
from moneyflow.services.storage.interface import KeyValueStorageInterface, StorageError


class JsonFileKeyValueStorage(KeyValueStorageInterface):
    """File-per-key blob store under a data directory."""

    def __init__(self, data_dir: Optional[Path] = None):
        self._data_dir = Path(data_dir or get_settings().storage.data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._data_dir, prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {path}: {e}") from e
