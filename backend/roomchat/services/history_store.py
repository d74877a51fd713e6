from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roomchat.services.message_service import MessageService


@dataclass(frozen=True)
class ChatMessage:
    room_id: str
    username: str
    text: str
    timestamp: datetime

    def as_history_payload(self) -> dict[str, str]:
        return {
            "roomId": self.room_id,
            "username": self.username,
            "message": self.text,
            "timestamp": self.timestamp.isoformat(),
        }

    def as_wire_payload(self, connection_id: str) -> dict[str, str]:
        return {
            "userId": connection_id,
            "username": self.username,
            "text": self.text,
            "time": self.timestamp.isoformat(),
        }


class HistoryStore(Protocol):
    async def append(self, message: ChatMessage) -> None: ...

    async def fetch_history(self, room_id: str) -> Sequence[ChatMessage]: ...


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timezone-aware columns back naive.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlHistoryStore:
    """History store backed by the ``messages`` table, one short-lived session per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], history_limit: int | None = None) -> None:
        self._session_factory = session_factory
        self._history_limit = history_limit

    async def append(self, message: ChatMessage) -> None:
        async with self._session_factory() as session:
            service = MessageService(session)
            await service.add_message(message.room_id, message.username, message.text, message.timestamp)
            await session.commit()

    async def fetch_history(self, room_id: str) -> list[ChatMessage]:
        async with self._session_factory() as session:
            service = MessageService(session)
            rows = await service.list_room_messages(room_id, limit=self._history_limit)
            return [
                ChatMessage(
                    room_id=row.room_id,
                    username=row.username,
                    text=row.message,
                    timestamp=_as_utc(row.timestamp),
                )
                for row in rows
            ]
