"""
Backup, restore and export of the task/memo collections.

Restore treats tasks and memos as independent halves: a half whose backup
cannot be read, does not parse as the expected array, or cannot be written
back is reported and left untouched while the other half still restores.
"""

import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from pydantic import TypeAdapter, ValidationError

from models.schemas import MemoListAdapter, RestoreResult, TaskListAdapter, dump_record
from storage import BACKUP_MEMOS_SLOT, BACKUP_TASKS_SLOT, StorageError
from store import TrackerStore

logger = logging.getLogger(__name__)

TASK_RESTORE_FAILED = "タスク復元に失敗しました"
MEMO_RESTORE_FAILED = "メモ復元に失敗しました"
RESTORE_DONE = "データ復元しました"


class BackupParseError(ValueError):
    """Backup content is not the expected array of records."""


def parse_collection(raw: Any, adapter: TypeAdapter) -> list:
    """Validate raw JSON text (or already-decoded data) as a record array."""
    try:
        if isinstance(raw, (str, bytes)):
            return adapter.validate_json(raw)
        return adapter.validate_python(raw)
    except ValidationError as e:
        raise BackupParseError(f"{e.error_count()} validation error(s)") from e


def _restore_half(
    read: Callable[[], Any],
    adapter: TypeAdapter,
    replace: Callable[[list], None],
    failure: str,
    result: RestoreResult,
) -> Optional[int]:
    """Restore one collection. Returns the record count, or None if skipped/failed."""
    try:
        raw = read()
        if raw is None or raw == "":
            return None
        records = parse_collection(raw, adapter)
        replace(records)
    except (BackupParseError, StorageError) as e:
        logger.warning("[Backup] %s: %s", failure, e)
        result.errors.append(failure)
        return None
    return len(records)


def _restore_tasks(store: TrackerStore, read: Callable[[], Any], result: RestoreResult) -> None:
    result.tasks_restored = _restore_half(read, TaskListAdapter, store.replace_tasks, TASK_RESTORE_FAILED, result)


def _restore_memos(store: TrackerStore, read: Callable[[], Any], result: RestoreResult) -> None:
    result.memos_restored = _restore_half(read, MemoListAdapter, store.replace_memos, MEMO_RESTORE_FAILED, result)


def restore_backup(store: TrackerStore) -> RestoreResult:
    """
    Replace live collections with the backup slots.

    Missing slots are skipped silently, unreadable ones add an error message.
    """
    result = RestoreResult()
    _restore_tasks(store, lambda: store.storage.get(BACKUP_TASKS_SLOT), result)
    _restore_memos(store, lambda: store.storage.get(BACKUP_MEMOS_SLOT), result)
    logger.info(
        "[Backup] Restore finished tasks=%s memos=%s errors=%d",
        result.tasks_restored,
        result.memos_restored,
        len(result.errors),
    )
    return result


def export_payload(store: TrackerStore) -> Dict[str, Any]:
    return {
        "tasks": [dump_record(t) for t in store.tasks],
        "memos": [dump_record(m) for m in store.list_memos()],
        "exportedAt": datetime.now().isoformat(timespec="seconds"),
    }


def import_payload(store: TrackerStore, raw: bytes) -> RestoreResult:
    """Restore from an exported file, half by half like restore_backup."""
    result = RestoreResult()
    try:
        document = json.loads(raw)
    except (UnicodeDecodeError, ValueError):
        result.errors.extend([TASK_RESTORE_FAILED, MEMO_RESTORE_FAILED])
        return result
    if not isinstance(document, dict):
        result.errors.extend([TASK_RESTORE_FAILED, MEMO_RESTORE_FAILED])
        return result

    _restore_tasks(store, lambda: document.get("tasks"), result)
    _restore_memos(store, lambda: document.get("memos"), result)
    return result
