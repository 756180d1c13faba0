import asyncio
from typing import Any, Set

import structlog
from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

logger = structlog.get_logger()


class RealtimeHub:
    """Every connected socket receives every broadcast.

    Delivery is best-effort: a socket whose send fails is dropped.
    """

    def __init__(self):
        self._connections: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket):
        async with self._lock:
            self._connections.add(websocket)

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            self._connections.discard(websocket)

    async def broadcast(self, event: str, data: Any):
        frame = {"event": event, "data": jsonable_encoder(data)}
        # Sends happen outside the lock so a slow client never blocks connect/disconnect
        async with self._lock:
            targets = list(self._connections)
        if not targets:
            return
        results = await asyncio.gather(
            *(ws.send_json(frame) for ws in targets), return_exceptions=True
        )
        failed = [ws for ws, result in zip(targets, results) if isinstance(result, Exception)]
        if failed:
            logger.info("realtime_send_failed", event=event, dropped=len(failed))
            async with self._lock:
                for ws in failed:
                    self._connections.discard(ws)
