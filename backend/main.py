import asyncio
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import StreamingResponse

from api.backup import router as backup_router
from api.calendar import router as calendar_router
from api.categories import router as categories_router
from api.memos import router as memos_router
from api.tasks import router as tasks_router
from database import LOG_LEVEL, STORAGE_BACKEND, get_broker
from helpers.sse_broker import SseBroker

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Task Memo Calendar")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tasks_router)
app.include_router(memos_router)
app.include_router(backup_router)
app.include_router(calendar_router)
app.include_router(categories_router)

logger.info("[App] Started with %s storage", STORAGE_BACKEND)


@app.get("/health")
async def health():
    return {"status": "success"}


@app.get("/notifications/stream")
async def stream_notifications(request: Request, broker: SseBroker = Depends(get_broker)):
    """
    Server-Sent Events stream of user notifications.

    - Sends connected event on connection
    - Sends ping events every 15 seconds for keepalive
    - Events: connected, ping, notification
    """
    queue = await broker.subscribe()

    async def _event_generator():
        try:
            yield "event: connected\ndata: {}\n\n"
            while True:
                if await request.is_disconnected():
                    break
                try:
                    message = await asyncio.wait_for(queue.get(), timeout=15)
                    yield message
                except asyncio.TimeoutError:
                    yield "event: ping\ndata: {}\n\n"
        except asyncio.CancelledError:
            pass
        finally:
            await broker.unsubscribe(queue)

    return StreamingResponse(
        _event_generator(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"},
    )
