from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


class DuplicateSession(Exception):
    """A session already exists for the connection."""


class SessionNotFound(KeyError):
    """No session exists for the connection."""


@dataclass
class Session:
    connection_id: str
    username: str
    room_id: str


class SessionTable:
    """Connection id to session mapping; the single record of who is in which room."""

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}

    def create(self, connection_id: str, username: str, room_id: str) -> Session:
        if connection_id in self._sessions:
            raise DuplicateSession(connection_id)
        session = Session(connection_id=connection_id, username=username, room_id=room_id)
        self._sessions[connection_id] = session
        return session

    def get(self, connection_id: str) -> Optional[Session]:
        return self._sessions.get(connection_id)

    def update_room(self, connection_id: str, new_room_id: str) -> Session:
        session = self._sessions.get(connection_id)
        if session is None:
            raise SessionNotFound(connection_id)
        session.room_id = new_room_id
        return session

    def delete(self, connection_id: str) -> Optional[Session]:
        return self._sessions.pop(connection_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
