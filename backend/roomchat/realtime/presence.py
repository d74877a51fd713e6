from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from roomchat.realtime.locks import KeyedLock
from roomchat.realtime.rooms import Member, RoomRegistry
from roomchat.realtime.sessions import DuplicateSession, Session, SessionTable
from roomchat.realtime.transport import Transport
from roomchat.services.history_store import ChatMessage, HistoryStore

logger = logging.getLogger(__name__)

SYSTEM_USER_ID = "system"
SYSTEM_USERNAME = "System"


def system_message(text: str) -> dict[str, str]:
    return {
        "userId": SYSTEM_USER_ID,
        "username": SYSTEM_USERNAME,
        "text": text,
        "time": datetime.now(tz=timezone.utc).isoformat(),
    }


def _users_payload(members: list[Member]) -> list[dict[str, str]]:
    return [member.payload() for member in members]


class PresenceManager:
    """Owns join, switch and disconnect transitions for every connection.

    Locking: a connection's events run one at a time under its connection lock, and every
    membership change in a room, the member snapshot it produces and the emits that carry it
    happen under that room's lock. A task holds at most one room lock at a time, always taken
    after the connection lock.
    """

    def __init__(
        self,
        transport: Transport,
        history: HistoryStore,
        sessions: Optional[SessionTable] = None,
        rooms: Optional[RoomRegistry] = None,
    ) -> None:
        self._transport = transport
        self._history = history
        self.sessions = sessions if sessions is not None else SessionTable()
        self.rooms = rooms if rooms is not None else RoomRegistry(self.sessions)
        self._connection_locks = KeyedLock()
        self._room_locks = KeyedLock()

    def connection(self, connection_id: str) -> AbstractAsyncContextManager[None]:
        return self._connection_locks.hold(connection_id)

    def room(self, room_id: str) -> AbstractAsyncContextManager[None]:
        return self._room_locks.hold(room_id)

    async def send(self, connection_id: str, event: str, data: Any) -> None:
        await self._transport.emit(event, data, to=connection_id)

    async def broadcast(self, room_id: str, event: str, data: Any, *, skip: Optional[str] = None) -> None:
        """Emit to the current members of ``room_id``; the caller holds that room's lock."""

        for connection_id in self.rooms.member_ids(room_id):
            if connection_id == skip:
                continue
            await self._transport.emit(event, data, to=connection_id)

    def list_members(self, room_id: str) -> list[Member]:
        return self.rooms.list_members(room_id)

    async def join_room(self, connection_id: str, username: str, room_id: str) -> bool:
        username = username.strip()
        room_id = room_id.strip()
        if not username or not room_id:
            logger.debug("Ignoring join from %s with empty username or room", connection_id)
            return False

        async with self.connection(connection_id):
            try:
                self.sessions.create(connection_id, username, room_id)
            except DuplicateSession:
                stale = self.sessions.get(connection_id)
                logger.error(
                    "Connection %s joined %s while already in %s; replacing its session",
                    connection_id,
                    room_id,
                    stale.room_id if stale else None,
                )
                if stale is not None:
                    await self._leave(stale)
                self.sessions.delete(connection_id)
                self.sessions.create(connection_id, username, room_id)

            # History is read outside the room lock.
            history = await self._load_history(room_id)

            async with self.room(room_id):
                self.rooms.add_member(room_id, connection_id)
                if history is not None:
                    await self.send(
                        connection_id,
                        "previous_messages",
                        [message.as_history_payload() for message in history],
                    )
                members = self.rooms.list_members(room_id)
                await self.broadcast(
                    room_id,
                    "user_joined",
                    {"userId": connection_id, "username": username, "users": _users_payload(members)},
                )
                await self.broadcast(
                    room_id,
                    "message",
                    system_message(f"{username} has joined the room"),
                    skip=connection_id,
                )

        logger.info("%s (%s) joined room %s", username, connection_id, room_id)
        return True

    async def switch_room(self, connection_id: str, new_room_id: str) -> bool:
        new_room_id = new_room_id.strip()
        if not new_room_id:
            return False

        async with self.connection(connection_id):
            session = self.sessions.get(connection_id)
            if session is None:
                logger.debug("Ignoring switch_room from unknown connection %s", connection_id)
                return False
            old_room_id = session.room_id
            if new_room_id == old_room_id:
                return False

            await self._leave(session)

            async with self.room(new_room_id):
                self.sessions.update_room(connection_id, new_room_id)
                self.rooms.add_member(new_room_id, connection_id)
                users = _users_payload(self.rooms.list_members(new_room_id))
                await self.broadcast(
                    new_room_id,
                    "user_joined",
                    {"userId": connection_id, "username": session.username, "users": users},
                )
                await self.broadcast(
                    new_room_id,
                    "message",
                    system_message(f"{session.username} has joined the room"),
                    skip=connection_id,
                )
                await self.send(connection_id, "users_list", users)

        logger.info("%s (%s) switched from %s to %s", session.username, connection_id, old_room_id, new_room_id)
        return True

    async def disconnect(self, connection_id: str) -> bool:
        async with self.connection(connection_id):
            session = self.sessions.get(connection_id)
            if session is None:
                return False
            await self._leave(session)
            self.sessions.delete(connection_id)

        logger.info("%s (%s) left room %s", session.username, connection_id, session.room_id)
        return True

    async def _leave(self, session: Session) -> None:
        room_id = session.room_id
        async with self.room(room_id):
            if not self.rooms.remove_member(room_id, session.connection_id):
                logger.error("Connection %s was not listed in room %s", session.connection_id, room_id)
            await self.broadcast(room_id, "message", system_message(f"{session.username} has left the room"))
            await self.broadcast(
                room_id,
                "user_left",
                {"userId": session.connection_id, "users": _users_payload(self.rooms.list_members(room_id))},
            )

    async def _load_history(self, room_id: str) -> Optional[Sequence[ChatMessage]]:
        try:
            return await self._history.fetch_history(room_id)
        except Exception:
            logger.exception("Failed to load history for room %s", room_id)
            return None
