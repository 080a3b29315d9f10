"""
Memo endpoints.
"""

from fastapi import APIRouter, Depends

from database import get_broker, get_store
from helpers.sse_broker import SseBroker
from models.schemas import MemoDraft, dump_record
from store import TrackerStore


router = APIRouter(prefix="/memos", tags=["Memos"])


@router.get("")
async def get_memos(store: TrackerStore = Depends(get_store)):
    return {"status": "success", "data": [dump_record(m) for m in store.list_memos()]}


@router.post("")
async def create_memo(draft: MemoDraft, store: TrackerStore = Depends(get_store)):
    """Add a memo. An empty title is ignored."""
    memo = store.add_memo(draft)
    if memo is None:
        return {"status": "success", "message": "No changes", "data": None}
    return {"status": "success", "data": dump_record(memo)}


@router.delete("/{memo_id}")
async def delete_memo(
    memo_id: int,
    store: TrackerStore = Depends(get_store),
    broker: SseBroker = Depends(get_broker),
):
    if not store.delete_memo(memo_id):
        return {"status": "error", "message": "Memo not found"}
    await broker.notify("success", "完全削除しました")
    return {"status": "success", "message": "完全削除しました"}
