from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Set

from roomchat.realtime.presence import PresenceManager
from roomchat.services.history_store import ChatMessage, HistoryStore

logger = logging.getLogger(__name__)


class MessageRouter:
    """Fans chat and typing events out to the sender's current room.

    Chat messages are saved in the background; a failed save is logged and never holds up
    delivery.
    """

    def __init__(self, presence: PresenceManager, history: HistoryStore) -> None:
        self._presence = presence
        self._history = history
        self._pending: Set[asyncio.Task[None]] = set()

    async def send_message(self, connection_id: str, text: str) -> Optional[ChatMessage]:
        if not text.strip():
            return None

        async with self._presence.connection(connection_id):
            session = self._presence.sessions.get(connection_id)
            if session is None:
                logger.debug("Dropping message from unknown connection %s", connection_id)
                return None

            message = ChatMessage(
                room_id=session.room_id,
                username=session.username,
                text=text,
                timestamp=datetime.now(tz=timezone.utc),
            )
            self._persist(message)

            async with self._presence.room(session.room_id):
                await self._presence.broadcast(session.room_id, "message", message.as_wire_payload(connection_id))
            return message

    async def send_typing(self, connection_id: str, is_typing: bool) -> bool:
        async with self._presence.connection(connection_id):
            session = self._presence.sessions.get(connection_id)
            if session is None:
                return False

            payload = {"userId": connection_id, "username": session.username, "isTyping": bool(is_typing)}
            async with self._presence.room(session.room_id):
                await self._presence.broadcast(session.room_id, "user_typing", payload, skip=connection_id)
            return True

    async def drain(self) -> None:
        """Wait for every history write scheduled so far."""

        while self._pending:
            pending = list(self._pending)
            await asyncio.gather(*pending)
            self._pending.difference_update(pending)

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    def _persist(self, message: ChatMessage) -> None:
        task = asyncio.create_task(self._save(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _save(self, message: ChatMessage) -> None:
        try:
            await self._history.append(message)
        except Exception:
            logger.exception("Error saving message for room %s", message.room_id)
