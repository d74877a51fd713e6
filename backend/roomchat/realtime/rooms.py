from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from roomchat.realtime.sessions import SessionTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Member:
    connection_id: str
    username: str

    def payload(self) -> dict[str, str]:
        return {"userId": self.connection_id, "username": self.username}


class RoomRegistry:
    """Room id to ordered member list. Usernames are looked up in the session table on read."""

    def __init__(self, sessions: SessionTable) -> None:
        self._sessions = sessions
        self._rooms: Dict[str, List[str]] = {}

    def add_member(self, room_id: str, connection_id: str) -> None:
        members = self._rooms.setdefault(room_id, [])
        if connection_id not in members:
            members.append(connection_id)

    def remove_member(self, room_id: str, connection_id: str) -> bool:
        members = self._rooms.get(room_id)
        if not members or connection_id not in members:
            return False
        members.remove(connection_id)
        if not members:
            self._rooms.pop(room_id, None)
        return True

    def list_members(self, room_id: str) -> list[Member]:
        result: list[Member] = []
        for connection_id in self._rooms.get(room_id, ()):
            session = self._sessions.get(connection_id)
            if session is None:
                logger.error("Room %s lists connection %s without a session", room_id, connection_id)
                continue
            result.append(Member(connection_id=connection_id, username=session.username))
        return result

    def member_ids(self, room_id: str) -> list[str]:
        return [member.connection_id for member in self.list_members(room_id)]

    def room_ids(self) -> list[str]:
        return list(self._rooms)

    def snapshot(self) -> dict[str, list[str]]:
        return {room_id: list(members) for room_id, members in self._rooms.items()}

    def room_of(self, connection_id: str) -> Optional[str]:
        for room_id, members in self._rooms.items():
            if connection_id in members:
                return room_id
        return None
