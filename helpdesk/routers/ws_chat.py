from datetime import datetime, timezone
from typing import Optional
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool
import structlog

from helpdesk.core.database import SessionLocal
from helpdesk.core.deps import get_directory
from helpdesk.core.identity import Credentials, IdentityResolver
from helpdesk.schemas.chat import ChatMessageIn, ChatMessageOut

logger = structlog.get_logger()

router = APIRouter()

CHAT_EVENT = "chat message"

def resolve_username(credentials: Credentials) -> Optional[str]:
    db = SessionLocal()
    try:
        user = IdentityResolver(get_directory()).resolve(credentials, db)
        return user.username if user else None
    finally:
        db.close()

def build_chat_message(payload: ChatMessageIn, username: Optional[str]) -> ChatMessageOut:
    # An authenticated connection's own name beats whatever the client put in the message
    return ChatMessageOut(
        id=uuid.uuid4().hex,
        text=payload.text or "",
        user=username or payload.user or "Anonymous",
        ts=datetime.now(timezone.utc).isoformat(),
    )

def parse_chat_frame(frame) -> Optional[ChatMessageIn]:
    if not isinstance(frame, dict):
        return None
    if "event" in frame:
        if frame.get("event") != CHAT_EVENT:
            return None
        frame = frame.get("data")
        if not isinstance(frame, dict):
            return None
    try:
        return ChatMessageIn.model_validate(frame)
    except PydanticValidationError:
        return None

@router.websocket("/ws")
async def websocket_chat(websocket: WebSocket, token: Optional[str] = Query(None)):
    hub = websocket.app.state.hub
    credentials = Credentials(token=token, headers=dict(websocket.headers))
    # Resolved once; the identity stays bound to this connection
    username = await run_in_threadpool(resolve_username, credentials)

    await websocket.accept()
    await hub.connect(websocket)
    logger.info("socket_connected", user=username or "anon", connections=len(hub))
    try:
        while True:
            try:
                frame = await websocket.receive_json()
            except ValueError:
                continue
            message = parse_chat_frame(frame)
            if message is None:
                continue
            await hub.broadcast(CHAT_EVENT, build_chat_message(message, username).model_dump())
    except WebSocketDisconnect:
        pass
    finally:
        await hub.disconnect(websocket)
        logger.info("socket_disconnected", user=username or "anon")
