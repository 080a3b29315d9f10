"""
Google Calendar utilities.

- Event resolution: task attributes -> concrete start/end and color
- Gateway around the Calendar v3 events.insert call
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Optional, Union

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from helpers.date_utils import (
    format_local_datetime,
    parse_clock,
    parse_duration,
    parse_iso_date,
    parse_iso_datetime,
    to_civil_time,
)
from models.schemas import AllDayTask, CalendarSyncRequest, Category, TimedTask, WorkTask

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Tokyo"

# Color mapping for Google Calendar categories
CATEGORY_COLOR_MAP = {
    Category.OUTING: "11",     # Tomato
    Category.VISITOR: "5",     # Banana
    Category.PB: "10",         # Sage
    Category.WEB: "3",         # Grape
    Category.IMPORTANT: "9",   # Blueberry
    Category.NKE: "8",         # Graphite
}
DEFAULT_COLOR_ID = "1"


class CalendarSyncError(Exception):
    """Raised when Google Calendar rejects or fails an insert."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def category_color(category: Any) -> str:
    parsed = Category.parse(category)
    return CATEGORY_COLOR_MAP.get(parsed, DEFAULT_COLOR_ID)


@dataclass(frozen=True)
class ResolvedEvent:
    summary: str
    start: Union[date, datetime]
    end: Union[date, datetime]
    all_day: bool
    color_id: str

    def to_google_body(self, timezone: str = DEFAULT_TIMEZONE) -> Dict[str, Any]:
        if self.all_day:
            start = {"date": self.start.isoformat()}
            end = {"date": self.end.isoformat()}
        else:
            start = {"dateTime": format_local_datetime(self.start), "timeZone": timezone}
            end = {"dateTime": format_local_datetime(self.end), "timeZone": timezone}
        return {"summary": self.summary, "colorId": self.color_id, "start": start, "end": end}


def resolve_event(
    title: str,
    category: Any,
    deadline: Union[str, date],
    start_time: Optional[str] = None,
    duration: Optional[str] = None,
    is_all_day: bool = False,
    days: Optional[int] = None,
) -> ResolvedEvent:
    """
    Turn task attributes into event boundaries.

    All-day events span `days` whole dates (default 1) starting at the deadline.
    Timed events start at deadline + start_time (midnight when absent) and last
    `duration`, one hour when it is missing or malformed. All arithmetic is done
    on wall-clock values so the server timezone never shifts the day.
    """
    day = parse_iso_date(deadline)
    color_id = category_color(category)

    if is_all_day:
        span = days if days and days > 0 else 1
        return ResolvedEvent(title, day, day + timedelta(days=span), True, color_id)

    start = datetime.combine(day, parse_clock(start_time) or time(0, 0))
    return ResolvedEvent(title, start, start + parse_duration(duration), False, color_id)


def resolve_task_event(task: Union[WorkTask, TimedTask, AllDayTask]) -> ResolvedEvent:
    if isinstance(task, AllDayTask):
        return resolve_event(task.title, task.category, task.deadline, is_all_day=True, days=task.days)
    return resolve_event(
        task.title,
        task.category,
        task.deadline,
        start_time=getattr(task, "start_time", None),
        duration=getattr(task, "duration", None),
    )


def resolve_sync_request(request: CalendarSyncRequest, timezone: str = DEFAULT_TIMEZONE) -> ResolvedEvent:
    """Resolve a wire request whose startDate is a date or an ISO date-time."""
    if request.is_all_day:
        return resolve_event(
            request.task or "",
            request.category,
            request.start_date or "",
            is_all_day=True,
            days=request.days,
        )

    start = to_civil_time(parse_iso_datetime(request.start_date or ""), timezone)
    return resolve_event(
        request.task or "",
        request.category,
        start.date(),
        start_time=start.strftime("%H:%M"),
        duration=request.duration,
    )


class GoogleCalendarGateway:
    """Inserts resolved events into a user's calendar with their OAuth token."""

    def __init__(self, calendar_id: str = "primary", timezone: str = DEFAULT_TIMEZONE) -> None:
        self.calendar_id = calendar_id
        self.timezone = timezone

    def insert_event(self, token: str, event: ResolvedEvent) -> Dict[str, Any]:
        body = event.to_google_body(self.timezone)
        try:
            creds = Credentials(token=token)
            service = build("calendar", "v3", credentials=creds, cache_discovery=False)
            created = service.events().insert(calendarId=self.calendar_id, body=body).execute()
        except Exception as e:
            logger.error("[Calendar] events.insert failed for %r: %s", event.summary, e)
            raise CalendarSyncError(str(e)) from e

        logger.info("[Calendar] Event created: %s (%s)", created.get("id"), event.summary)
        return {"event_id": created.get("id"), "link": created.get("htmlLink")}
