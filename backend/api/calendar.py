"""
Google Calendar endpoints and the background task sync.
"""

import asyncio
import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, Header, HTTPException

from database import get_calendar_gateway
from helpers.calendar_helpers import (
    CalendarSyncError,
    GoogleCalendarGateway,
    resolve_sync_request,
)
from helpers.sse_broker import SseBroker
from models.schemas import AllDayTask, CalendarSyncRequest, TimedTask, WorkTask


router = APIRouter(tags=["Calendar"])
logger = logging.getLogger(__name__)

SYNC_OK = "登録完了しました"
SYNC_FAILED = "Googleカレンダー登録に失敗しました"


@router.post("/calendar/save")
async def save_calendar_event(
    request: CalendarSyncRequest,
    google_token: Optional[str] = Header(None, alias="X-Google-Token"),
    gateway: GoogleCalendarGateway = Depends(get_calendar_gateway),
):
    """
    Create a Google Calendar event from a task.

    - Uses X-Google-Token header for authentication
    - All-day events use bare dates, timed events local date-times in the
      configured timezone
    - Applies the category color (default color when unmapped)
    """
    if not google_token:
        raise HTTPException(status_code=401, detail="未認証です")

    if not request.task or not request.start_date or not request.category:
        raise HTTPException(status_code=400, detail="パラメータ不足")

    try:
        event = resolve_sync_request(request, gateway.timezone)
    except ValueError:
        raise HTTPException(status_code=400, detail="日付の形式が正しくありません")

    try:
        created = await asyncio.to_thread(gateway.insert_event, google_token, event)
    except CalendarSyncError as e:
        logger.error("[Calendar] Save failed: %s", e.reason)
        raise HTTPException(status_code=500, detail="カレンダー登録失敗")

    return {
        "message": "Googleカレンダーに登録しました",
        "eventId": created.get("event_id"),
        "link": created.get("link"),
    }


async def sync_task_to_calendar(
    task: Union[WorkTask, TimedTask, AllDayTask],
    google_token: str,
    gateway: GoogleCalendarGateway,
    broker: SseBroker,
) -> None:
    """
    Push a stored task to Google Calendar after the local save committed.

    The outcome only produces a notification; the stored task never changes.
    """
    request = CalendarSyncRequest.from_task(task)
    try:
        event = resolve_sync_request(request, gateway.timezone)
        await asyncio.to_thread(gateway.insert_event, google_token, event)
    except CalendarSyncError as e:
        logger.warning("[Calendar] Sync failed for task %s: %s", task.id, e.reason)
        await broker.notify("error", f"{SYNC_FAILED}: {e.reason}")
        return
    except ValueError as e:
        logger.warning("[Calendar] Task %s could not be resolved: %s", task.id, e)
        await broker.notify("error", SYNC_FAILED)
        return

    await broker.notify("success", SYNC_OK)
