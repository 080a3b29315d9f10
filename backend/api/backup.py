"""
Backup / restore endpoints.
"""

import json
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response

from database import get_broker, get_store
from helpers.backup_helpers import RESTORE_DONE, export_payload, import_payload, restore_backup
from helpers.sse_broker import SseBroker
from models.schemas import dump_record
from store import TrackerStore


router = APIRouter(prefix="/backup", tags=["Backup"])
logger = logging.getLogger(__name__)


@router.post("")
async def create_backup(store: TrackerStore = Depends(get_store)):
    """Snapshot both collections into the backup slots."""
    store.write_backup()
    return {
        "status": "success",
        "data": {"tasks": len(store.tasks), "memos": len(store.list_memos())},
    }


@router.post("/restore")
async def restore(store: TrackerStore = Depends(get_store), broker: SseBroker = Depends(get_broker)):
    """
    Restore tasks and memos from the backup slots.

    - Each half restores independently; a broken half keeps the live data
    - One error notification per broken half
    - A success notification is always sent at the end, even after a
      partial failure (kept as observed)
    """
    result = restore_backup(store)
    for message in result.errors:
        await broker.notify("error", message)
    await broker.notify("success", RESTORE_DONE)
    return {"status": "success", "message": RESTORE_DONE, "data": dump_record(result)}


@router.get("/export")
async def export_backup(store: TrackerStore = Depends(get_store)):
    """Download both collections as a JSON file."""
    payload = export_payload(store)
    filename = f"tasks-backup-{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
    return Response(
        content=json.dumps(payload, ensure_ascii=False, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import")
async def import_backup(
    file: UploadFile = File(...),
    store: TrackerStore = Depends(get_store),
    broker: SseBroker = Depends(get_broker),
):
    """Restore from an exported file with the same per-half tolerance as /restore."""
    raw = await file.read()
    logger.info("[Backup] Importing %s (%d bytes)", file.filename, len(raw))
    result = import_payload(store, raw)
    for message in result.errors:
        await broker.notify("error", message)
    await broker.notify("success", RESTORE_DONE)
    return {"status": "success", "message": RESTORE_DONE, "data": dump_record(result)}
