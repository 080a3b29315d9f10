"""
Durable slot storage.

A slot is a named text value (JSON) that is always overwritten as a whole,
the same contract the browser localStorage copy of this app relies on.
"""

import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol, Union

logger = logging.getLogger(__name__)

TASKS_SLOT = "tasks"
MEMOS_SLOT = "memos"
BACKUP_TASKS_SLOT = "backupTasks"
BACKUP_MEMOS_SLOT = "backupMemos"


class StorageError(Exception):
    """A slot could not be read or written."""


class SlotStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class JsonFileStorage:
    """One `<key>.json` file per slot under `directory`."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read slot {key}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        except OSError as e:
            raise StorageError(f"Failed to write slot {key}: {e}") from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise StorageError(f"Failed to write slot {key}: {e}") from e
        logger.debug("[Storage] Wrote %s (%d bytes)", path, len(value))


class SupabaseStorage:
    """Slots kept as rows `{key, value}` in a Supabase table."""

    def __init__(self, client, table: str = "slots") -> None:
        self.client = client
        self.table = table

    def get(self, key: str) -> Optional[str]:
        try:
            result = self.client.table(self.table).select("value").eq("key", key).limit(1).execute()
        except Exception as e:
            raise StorageError(f"Failed to read slot {key}: {e}") from e
        row = result.data[0] if result.data else None
        return row.get("value") if row else None

    def set(self, key: str, value: str) -> None:
        try:
            self.client.table(self.table).upsert({"key": key, "value": value}).execute()
        except Exception as e:
            raise StorageError(f"Failed to write slot {key}: {e}") from e


class MemoryStorage:
    """Process-local slots, for ephemeral runs."""

    def __init__(self) -> None:
        self.slots: dict = {}

    def get(self, key: str) -> Optional[str]:
        return self.slots.get(key)

    def set(self, key: str, value: str) -> None:
        self.slots[key] = value
