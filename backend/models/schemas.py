"""
Pydantic models for tasks, memos and calendar sync requests.

Records are stored and exchanged with camelCase keys (startTime, isAllDay, ...)
so data written by older page versions loads unchanged.
"""

from datetime import date
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    field_validator,
)
from pydantic.alias_generators import to_camel


class Category(str, Enum):
    WORK = "Work"
    MEMO = "Memo"
    OUTING = "Outing"
    VISITOR = "Visitor"
    WEB = "Web"
    NKE = "NKE"
    IMPORTANT = "Important"
    PB = "PB"

    @classmethod
    def _missing_(cls, value: object) -> Optional["Category"]:
        if not isinstance(value, str):
            return None
        key = value.strip()
        for member in cls:
            if key.lower() == member.value.lower() or key == member.label:
                return member
        return None

    @classmethod
    def parse(cls, value: Any) -> Optional["Category"]:
        """Lenient lookup: returns None instead of raising for unknown values."""
        if isinstance(value, Category):
            return value
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]

    @property
    def calendar_synced(self) -> bool:
        """Only categories that carry a schedule are pushed to Google Calendar."""
        return self not in (Category.WORK, Category.MEMO)

    @property
    def supports_schedule(self) -> bool:
        return self.calendar_synced


# Labels stored by the original Japanese UI
_CATEGORY_LABELS = {
    Category.WORK: "業務",
    Category.MEMO: "メモ",
    Category.OUTING: "外出",
    Category.VISITOR: "来客",
    Category.WEB: "WEB",
    Category.NKE: "NKE",
    Category.IMPORTANT: "重要",
    Category.PB: "PB",
}


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ========== Task variants ==========

class _TaskBase(_Record):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    id: int
    title: str = Field(min_length=1)
    category: Category
    deadline: date
    completed: bool = False


class WorkTask(_TaskBase):
    """Deadline-only task. Schedule fields are rejected."""

    @field_validator("category")
    @classmethod
    def validate_category(cls, value: Category) -> Category:
        if value is not Category.WORK:
            raise ValueError("WorkTask requires the Work category")
        return value


class _ScheduledTask(_TaskBase):
    @field_validator("category")
    @classmethod
    def validate_category(cls, value: Category) -> Category:
        if not value.supports_schedule:
            raise ValueError(f"category {value.value} cannot carry a schedule")
        return value


class TimedTask(_ScheduledTask):
    start_time: Optional[str] = None
    duration: Optional[str] = None
    is_all_day: Literal[False] = False


class AllDayTask(_ScheduledTask):
    is_all_day: Literal[True] = True
    days: int = Field(default=1, ge=1)


def _task_variant(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        category = value.get("category")
        all_day = value.get("isAllDay", value.get("is_all_day"))
    else:
        category = getattr(value, "category", None)
        all_day = getattr(value, "is_all_day", None)

    parsed = Category.parse(category)
    if parsed is None or parsed is Category.MEMO:
        return None
    if parsed is Category.WORK:
        return "work"
    return "all_day" if all_day else "timed"


Task = Annotated[
    Union[
        Annotated[WorkTask, Tag("work")],
        Annotated[TimedTask, Tag("timed")],
        Annotated[AllDayTask, Tag("all_day")],
    ],
    Discriminator(_task_variant),
]


class Memo(_Record):
    id: int
    title: str = Field(min_length=1, validation_alias=AliasChoices("title", "content"))


TaskAdapter: TypeAdapter[Task] = TypeAdapter(Task)
TaskListAdapter: TypeAdapter[List[Task]] = TypeAdapter(List[Task])
MemoListAdapter: TypeAdapter[List[Memo]] = TypeAdapter(List[Memo])


def dump_record(record: BaseModel) -> dict:
    return record.model_dump(mode="json", by_alias=True, exclude_none=True)


# ========== Requests ==========

class TaskDraft(_Record):
    """
    Raw form submission. Nothing here is required; incomplete drafts are
    dropped by the store instead of being rejected.
    """

    title: str = ""
    category: Category = Category.WORK
    deadline: Optional[str] = None
    start_time: Optional[str] = None
    duration: Optional[str] = None
    is_all_day: bool = False
    days: Optional[int] = None


class MemoDraft(_Record):
    title: str = Field(default="", validation_alias=AliasChoices("title", "content"))


class CalendarSyncRequest(_Record):
    # Optional so the endpoint can answer 401 before complaining about the body
    task: Optional[str] = None
    start_date: Optional[str] = None
    duration: Optional[str] = None
    category: Optional[str] = None
    is_all_day: bool = False
    days: Optional[int] = None

    @classmethod
    def from_task(cls, task: Union[WorkTask, TimedTask, AllDayTask]) -> "CalendarSyncRequest":
        if isinstance(task, AllDayTask):
            return cls(
                task=task.title,
                start_date=task.deadline.isoformat(),
                category=task.category.value,
                is_all_day=True,
                days=task.days,
            )
        start_time = getattr(task, "start_time", None) or "00:00"
        return cls(
            task=task.title,
            start_date=f"{task.deadline.isoformat()}T{start_time}",
            duration=getattr(task, "duration", None),
            category=task.category.value,
            is_all_day=False,
        )


class RestoreResult(_Record):
    """Outcome of a restore/import. A count of None means that half was skipped or failed."""

    tasks_restored: Optional[int] = None
    memos_restored: Optional[int] = None
    errors: List[str] = Field(default_factory=list)
