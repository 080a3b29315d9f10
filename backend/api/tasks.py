"""
Task endpoints.

Creating a task commits it locally first; the Google Calendar push runs
afterwards as a background task and only reports through notifications.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException

from api.calendar import sync_task_to_calendar
from database import get_broker, get_calendar_gateway, get_store
from helpers.calendar_helpers import GoogleCalendarGateway, resolve_task_event
from helpers.sse_broker import SseBroker
from models.schemas import Category, Memo, TaskDraft, dump_record
from store import TrackerStore


router = APIRouter(prefix="/tasks", tags=["Tasks"])
logger = logging.getLogger(__name__)

DELETED = "完全削除しました"


@router.get("")
async def get_tasks(category: Optional[Category] = None, store: TrackerStore = Depends(get_store)):
    """Tasks with open ones first, then by deadline. Optional category filter."""
    tasks = store.list_tasks(category)
    return {"status": "success", "data": [dump_record(t) for t in tasks]}


@router.post("")
async def create_task(
    draft: TaskDraft,
    background_tasks: BackgroundTasks,
    google_token: Optional[str] = Header(None, alias="X-Google-Token"),
    store: TrackerStore = Depends(get_store),
    gateway: GoogleCalendarGateway = Depends(get_calendar_gateway),
    broker: SseBroker = Depends(get_broker),
):
    """
    Submit the task form.

    - Memo category creates a memo instead of a task
    - Incomplete drafts (no title, no deadline) are ignored without error
    - Calendar categories are pushed to Google Calendar when X-Google-Token is
      present; the response does not wait for it
    """
    record = store.submit(draft)
    if record is None:
        return {"status": "success", "message": "No changes", "data": None}

    if isinstance(record, Memo):
        return {"status": "success", "type": "memo", "data": dump_record(record)}

    calendar_sync = "skipped"
    if google_token and record.category.calendar_synced:
        background_tasks.add_task(sync_task_to_calendar, record, google_token, gateway, broker)
        calendar_sync = "queued"

    return {"status": "success", "type": "task", "data": dump_record(record), "calendarSync": calendar_sync}


@router.post("/{task_id}/toggle")
async def toggle_task(task_id: int, store: TrackerStore = Depends(get_store)):
    """Flip the completed flag."""
    task = store.toggle_task(task_id)
    if task is None:
        return {"status": "error", "message": "Task not found"}
    return {"status": "success", "data": dump_record(task)}


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    store: TrackerStore = Depends(get_store),
    broker: SseBroker = Depends(get_broker),
):
    if not store.delete_task(task_id):
        return {"status": "error", "message": "Task not found"}
    await broker.notify("success", DELETED)
    return {"status": "success", "message": DELETED}


@router.get("/{task_id}/event")
async def preview_task_event(
    task_id: int,
    store: TrackerStore = Depends(get_store),
    gateway: GoogleCalendarGateway = Depends(get_calendar_gateway),
):
    """Resolved Google Calendar event body for a stored task."""
    task = store.get_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")

    event = resolve_task_event(task)
    return {
        "status": "success",
        "data": {
            "calendarSynced": task.category.calendar_synced,
            "event": event.to_google_body(gateway.timezone),
        },
    }
