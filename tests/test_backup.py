# tests/test_backup.py

import json

from helpers.backup_helpers import (
    MEMO_RESTORE_FAILED,
    TASK_RESTORE_FAILED,
    export_payload,
    import_payload,
    restore_backup,
)
from models.schemas import Category, MemoDraft, TaskDraft
from storage import BACKUP_MEMOS_SLOT, BACKUP_TASKS_SLOT, MEMOS_SLOT, TASKS_SLOT, MemoryStorage
from store import TrackerStore

from .fakes import FailingStorage


def _seed(store: TrackerStore) -> None:
    store.add_task(TaskDraft(title="a", category=Category.WORK, deadline="2024-05-01"))
    store.add_memo(MemoDraft(title="m"))


def test_restore_replaces_both_collections(store: TrackerStore):
    _seed(store)
    store.write_backup()
    tasks, memos = store.tasks, store.list_memos()

    store.delete_task(tasks[0].id)
    store.delete_memo(memos[0].id)

    result = restore_backup(store)
    assert result.errors == []
    assert (result.tasks_restored, result.memos_restored) == (1, 1)
    assert store.tasks == tasks
    assert store.list_memos() == memos


def test_corrupt_task_backup_keeps_live_tasks_but_restores_memos(store: TrackerStore, storage: MemoryStorage):
    _seed(store)
    live_tasks = store.tasks
    storage.set(BACKUP_TASKS_SLOT, "{broken")
    storage.set(BACKUP_MEMOS_SLOT, '[{"id": 1, "title": "from backup"}]')

    result = restore_backup(store)

    assert result.errors == [TASK_RESTORE_FAILED]
    assert result.tasks_restored is None
    assert store.tasks == live_tasks
    assert [m.title for m in store.list_memos()] == ["from backup"]


def test_non_array_backup_is_a_parse_failure(store: TrackerStore, storage: MemoryStorage):
    storage.set(BACKUP_TASKS_SLOT, '{"id": 1}')
    storage.set(BACKUP_MEMOS_SLOT, '"just text"')

    result = restore_backup(store)
    assert result.errors == [TASK_RESTORE_FAILED, MEMO_RESTORE_FAILED]


def test_missing_backup_slots_are_skipped(store: TrackerStore):
    result = restore_backup(store)
    assert result.errors == []
    assert result.tasks_restored is None and result.memos_restored is None


def test_export_then_import_into_fresh_store(store: TrackerStore):
    _seed(store)
    payload = export_payload(store)
    assert set(payload) == {"tasks", "memos", "exportedAt"}

    fresh = TrackerStore(MemoryStorage())
    result = import_payload(fresh, json.dumps(payload).encode())
    assert result.errors == []
    assert fresh.tasks == store.tasks
    assert fresh.list_memos() == store.list_memos()


def test_import_with_one_bad_half(store: TrackerStore):
    document = {"tasks": [{"id": 1, "title": "x", "category": "Nope", "deadline": "2024-05-01"}],
                "memos": [{"id": 2, "title": "ok"}]}
    result = import_payload(store, json.dumps(document).encode())
    assert result.errors == [TASK_RESTORE_FAILED]
    assert result.memos_restored == 1
    assert store.tasks == []


def test_import_of_unreadable_file(store: TrackerStore):
    result = import_payload(store, b"\xff\xfe not json")
    assert result.errors == [TASK_RESTORE_FAILED, MEMO_RESTORE_FAILED]


def test_restore_rewrites_primary_slots(store: TrackerStore, storage: MemoryStorage):
    _seed(store)
    store.write_backup()
    backup_tasks = json.loads(storage.get(BACKUP_TASKS_SLOT))
    backup_memos = json.loads(storage.get(BACKUP_MEMOS_SLOT))
    store.delete_task(store.tasks[0].id)
    store.delete_memo(store.list_memos()[0].id)

    restore_backup(store)

    assert json.loads(storage.get(TASKS_SLOT)) == backup_tasks
    assert json.loads(storage.get(MEMOS_SLOT)) == backup_memos


def test_import_rewrites_primary_slots(store: TrackerStore, storage: MemoryStorage):
    document = {"tasks": [{"id": 1, "title": "x", "category": "Work", "deadline": "2024-05-01"}],
                "memos": [{"id": 2, "title": "ok"}]}
    import_payload(store, json.dumps(document).encode())

    assert json.loads(storage.get(TASKS_SLOT)) == [
        {"id": 1, "title": "x", "category": "Work", "deadline": "2024-05-01", "completed": False}
    ]
    assert json.loads(storage.get(MEMOS_SLOT)) == [{"id": 2, "title": "ok"}]


def test_failed_task_write_still_restores_memos():
    storage = FailingStorage()
    store = TrackerStore(storage)
    _seed(store)
    live_tasks = store.tasks
    storage.set(BACKUP_TASKS_SLOT, "[]")
    storage.set(BACKUP_MEMOS_SLOT, '[{"id": 1, "title": "m2"}]')
    storage.fail_set.add(TASKS_SLOT)

    result = restore_backup(store)

    assert result.errors == [TASK_RESTORE_FAILED]
    assert result.tasks_restored is None
    assert result.memos_restored == 1
    assert store.tasks == live_tasks
    assert [m.title for m in store.list_memos()] == ["m2"]


def test_unreadable_backup_slot_fails_only_its_half():
    storage = FailingStorage(fail_get={BACKUP_MEMOS_SLOT})
    store = TrackerStore(storage)
    storage.set(BACKUP_TASKS_SLOT, '[{"id": 1, "title": "x", "category": "Web", "deadline": "2024-05-01"}]')

    result = restore_backup(store)

    assert result.errors == [MEMO_RESTORE_FAILED]
    assert result.tasks_restored == 1
    assert [t.title for t in store.tasks] == ["x"]
