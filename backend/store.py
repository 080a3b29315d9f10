"""
Task and memo store.

Owns the two in-memory collections and mirrors each one to its primary slot
on every mutation (full overwrite, no diffing).
"""

import logging
import threading
import time
from typing import Callable, List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from helpers.date_utils import parse_iso_date
from models.schemas import (
    AllDayTask,
    Category,
    Memo,
    MemoDraft,
    MemoListAdapter,
    Task,
    TaskDraft,
    TaskListAdapter,
    TimedTask,
    WorkTask,
)
from storage import (
    BACKUP_MEMOS_SLOT,
    BACKUP_TASKS_SLOT,
    MEMOS_SLOT,
    TASKS_SLOT,
    SlotStorage,
)

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class TrackerStore:
    def __init__(self, storage: SlotStorage, clock: Callable[[], int] = _now_ms) -> None:
        self.storage = storage
        self._clock = clock
        self._lock = threading.RLock()
        self._tasks: List[Task] = self._load(TASKS_SLOT, TaskListAdapter)
        self._memos: List[Memo] = self._load(MEMOS_SLOT, MemoListAdapter)
        self._last_id = max([r.id for r in self._tasks] + [m.id for m in self._memos], default=0)
        logger.info("[Store] Ready tasks=%d memos=%d", len(self._tasks), len(self._memos))

    def _load(self, key: str, adapter: TypeAdapter) -> list:
        raw = self.storage.get(key)
        if not raw:
            return []
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("[Store] Slot %s is unreadable, starting empty: %s", key, e.error_count())
            return []

    def _candidate_id(self) -> int:
        """Next id; only claimed once the record is durably written."""
        return max(self._clock(), self._last_id + 1)

    @staticmethod
    def _tasks_json(tasks: List[Task]) -> str:
        return TaskListAdapter.dump_json(tasks, by_alias=True, exclude_none=True).decode()

    @staticmethod
    def _memos_json(memos: List[Memo]) -> str:
        return MemoListAdapter.dump_json(memos, by_alias=True, exclude_none=True).decode()

    def _commit_tasks(self, tasks: List[Task]) -> None:
        # Memory only follows a successful write, so a StorageError leaves both untouched.
        self.storage.set(TASKS_SLOT, self._tasks_json(tasks))
        self._tasks = tasks
        self._last_id = max([self._last_id] + [t.id for t in tasks])

    def _commit_memos(self, memos: List[Memo]) -> None:
        self.storage.set(MEMOS_SLOT, self._memos_json(memos))
        self._memos = memos
        self._last_id = max([self._last_id] + [m.id for m in memos])

    # ---- building ----

    def build_task(self, draft: TaskDraft) -> Optional[Task]:
        """
        Build a Task from a form draft.

        Returns None when the title or deadline is missing (or the deadline is
        not a date). Work tasks drop every schedule field; all-day tasks drop
        the start time and duration.
        """
        title = draft.title.strip()
        if not title or draft.category is Category.MEMO or not draft.deadline:
            return None
        try:
            deadline = parse_iso_date(draft.deadline)
        except ValueError:
            return None

        task_id = self._candidate_id()
        if draft.category is Category.WORK:
            return WorkTask(id=task_id, title=title, category=draft.category, deadline=deadline)
        if draft.is_all_day:
            days = draft.days if draft.days and draft.days > 0 else 1
            return AllDayTask(id=task_id, title=title, category=draft.category, deadline=deadline, days=days)
        return TimedTask(
            id=task_id,
            title=title,
            category=draft.category,
            deadline=deadline,
            start_time=draft.start_time or None,
            duration=draft.duration or None,
        )

    # ---- tasks ----

    def add_task(self, draft: TaskDraft) -> Optional[Task]:
        with self._lock:
            task = self.build_task(draft)
            if task is None:
                logger.debug("[Store] Ignored incomplete task draft title=%r", draft.title)
                return None
            self._commit_tasks(self._tasks + [task])
            self.storage.set(BACKUP_TASKS_SLOT, self._tasks_json(self._tasks))
        logger.info("[Store] Task added id=%s category=%s", task.id, task.category.value)
        return task

    def submit(self, draft: TaskDraft) -> Optional[Union[Task, Memo]]:
        """Memo-category submissions become memos, everything else a task."""
        if draft.category is Category.MEMO:
            return self.add_memo(MemoDraft(title=draft.title))
        return self.add_task(draft)

    def get_task(self, task_id: int) -> Optional[Task]:
        with self._lock:
            return next((t for t in self._tasks if t.id == task_id), None)

    def toggle_task(self, task_id: int) -> Optional[Task]:
        with self._lock:
            for index, task in enumerate(self._tasks):
                if task.id == task_id:
                    updated = task.model_copy(update={"completed": not task.completed})
                    tasks = list(self._tasks)
                    tasks[index] = updated
                    self._commit_tasks(tasks)
                    return updated
        return None

    def delete_task(self, task_id: int) -> bool:
        with self._lock:
            remaining = [t for t in self._tasks if t.id != task_id]
            if len(remaining) == len(self._tasks):
                return False
            self._commit_tasks(remaining)
        logger.info("[Store] Task deleted id=%s", task_id)
        return True

    def replace_tasks(self, tasks: List[Task]) -> None:
        with self._lock:
            self._commit_tasks(list(tasks))

    @property
    def tasks(self) -> List[Task]:
        """Tasks in insertion order."""
        with self._lock:
            return list(self._tasks)

    def list_tasks(self, category: Optional[Category] = None) -> List[Task]:
        """Tasks (optionally of one category), open ones first, then by deadline."""
        with self._lock:
            tasks = [t for t in self._tasks if category is None or t.category is category]
        return sorted(tasks, key=lambda t: (t.completed, t.deadline))

    # ---- memos ----

    def add_memo(self, draft: MemoDraft) -> Optional[Memo]:
        title = draft.title.strip()
        if not title:
            return None
        with self._lock:
            memo = Memo(id=self._candidate_id(), title=title)
            self._commit_memos(self._memos + [memo])
            self.storage.set(BACKUP_MEMOS_SLOT, self._memos_json(self._memos))
        logger.info("[Store] Memo added id=%s", memo.id)
        return memo

    def delete_memo(self, memo_id: int) -> bool:
        with self._lock:
            remaining = [m for m in self._memos if m.id != memo_id]
            if len(remaining) == len(self._memos):
                return False
            self._commit_memos(remaining)
        logger.info("[Store] Memo deleted id=%s", memo_id)
        return True

    def replace_memos(self, memos: List[Memo]) -> None:
        with self._lock:
            self._commit_memos(list(memos))

    def list_memos(self) -> List[Memo]:
        with self._lock:
            return list(self._memos)

    # ---- backup slots ----

    def write_backup(self) -> None:
        with self._lock:
            self.storage.set(BACKUP_TASKS_SLOT, self._tasks_json(self._tasks))
            self.storage.set(BACKUP_MEMOS_SLOT, self._memos_json(self._memos))
        logger.info("[Backup] Snapshot written tasks=%d memos=%d", len(self._tasks), len(self._memos))
