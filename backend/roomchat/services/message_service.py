from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roomchat.models import Message


class MessageService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add_message(
        self,
        room_id: str,
        username: str,
        text: str,
        timestamp: datetime | None = None,
    ) -> Message:
        message = Message(room_id=room_id, username=username, message=text)
        if timestamp is not None:
            message.timestamp = timestamp
        self.session.add(message)
        await self.session.flush()
        return message

    async def list_room_messages(self, room_id: str, limit: int | None = None) -> Sequence[Message]:
        """Return the room's messages oldest first; with a limit, only the newest ``limit`` of them."""

        if limit is None:
            result = await self.session.execute(
                select(Message).where(Message.room_id == room_id).order_by(Message.timestamp.asc())
            )
            return result.scalars().all()

        result = await self.session.execute(
            select(Message)
            .where(Message.room_id == room_id)
            .order_by(Message.timestamp.desc())
            .limit(limit)
        )
        newest = list(result.scalars().all())
        newest.reverse()
        return newest
