from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from roomchat.core.config import settings
from roomchat.db.session import SessionLocal
from roomchat.realtime.message_router import MessageRouter
from roomchat.realtime.presence import PresenceManager
from roomchat.realtime.server import sio
from roomchat.realtime.transport import SocketIOTransport
from roomchat.schemas.events import ChatMessagePayload, JoinRoomPayload, SwitchRoomPayload, TypingPayload
from roomchat.services.history_store import SqlHistoryStore

logger = logging.getLogger(__name__)

history_store = SqlHistoryStore(SessionLocal, history_limit=settings.chat_history_limit)
presence_manager = PresenceManager(SocketIOTransport(sio), history_store)
message_router = MessageRouter(presence_manager, history_store)


@sio.event
async def connect(sid: str, environ: dict[str, Any], auth: dict[str, Any] | None = None) -> None:
    logger.info("New client connected: %s", sid)


@sio.event
async def disconnect(sid: str, reason: Any = None) -> None:
    await presence_manager.disconnect(sid)
    logger.info("Client disconnected: %s", sid)


@sio.on("join_room")
async def handle_join_room(sid: str, data: Any = None) -> None:
    try:
        payload = JoinRoomPayload.model_validate(data)
    except ValidationError:
        logger.debug("Dropping malformed join_room from %s", sid)
        return
    await presence_manager.join_room(sid, payload.username, payload.room_id)


@sio.on("message")
async def handle_message(sid: str, data: Any = None) -> None:
    try:
        payload = ChatMessagePayload.model_validate(data)
    except ValidationError:
        logger.debug("Dropping malformed message from %s", sid)
        return
    await message_router.send_message(sid, payload.text)


@sio.on("typing")
async def handle_typing(sid: str, data: Any = None) -> None:
    try:
        payload = TypingPayload(is_typing=data)
    except ValidationError:
        logger.debug("Dropping malformed typing from %s", sid)
        return
    await message_router.send_typing(sid, payload.is_typing)


@sio.on("switch_room")
async def handle_switch_room(sid: str, data: Any = None) -> None:
    try:
        payload = SwitchRoomPayload(room_id=data)
    except ValidationError:
        logger.debug("Dropping malformed switch_room from %s", sid)
        return
    await presence_manager.switch_room(sid, payload.room_id)
