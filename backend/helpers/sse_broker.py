"""
In-process Server-Sent Events broker for user notifications.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Set

logger = logging.getLogger(__name__)

# Per-listener backlog; a stalled client loses events past this
QUEUE_MAXSIZE = 100


class SseBroker:
    def __init__(self) -> None:
        self._queues: Set[asyncio.Queue] = set()
        self._lock = asyncio.Lock()

    async def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=QUEUE_MAXSIZE)
        async with self._lock:
            self._queues.add(queue)
        logger.debug("[SSE] Subscribed (%d listeners)", len(self._queues))
        return queue

    async def unsubscribe(self, queue: asyncio.Queue) -> None:
        async with self._lock:
            self._queues.discard(queue)

    async def publish(self, event: str, data: Dict[str, Any]) -> None:
        payload = json.dumps(data, ensure_ascii=False)
        message = f"event: {event}\ndata: {payload}\n\n"
        async with self._lock:
            queues = list(self._queues)
        for queue in queues:
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                logger.warning("[SSE] Listener backlog full, dropped %s event", event)

    async def notify(self, level: str, message: str) -> None:
        """Publish a toast-style notification ("success" or "error")."""
        logger.info("[SSE] notification %s: %s", level, message)
        await self.publish("notification", {"level": level, "message": message})


broker = SseBroker()
