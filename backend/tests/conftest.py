"""Shared fixtures: an in-memory transport and history store wired into fresh managers."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AUTO_CREATE_SCHEMA", "false")

from typing import Any, List, Optional, Tuple

import pytest

from roomchat.realtime.message_router import MessageRouter
from roomchat.realtime.presence import PresenceManager
from roomchat.services.history_store import ChatMessage


class RecordingTransport:
    """Collects every outbound event as (recipient, event, payload)."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str, Any]] = []

    async def emit(self, event: str, data: Any, to: str) -> None:
        self.sent.append((to, event, data))

    def events_for(self, connection_id: str, event: Optional[str] = None) -> List[Tuple[str, Any]]:
        return [
            (name, data)
            for recipient, name, data in self.sent
            if recipient == connection_id and (event is None or name == event)
        ]

    def payloads(self, connection_id: str, event: str) -> List[Any]:
        return [data for _, data in self.events_for(connection_id, event)]

    def texts(self, connection_id: str) -> List[str]:
        return [data["text"] for data in self.payloads(connection_id, "message")]

    def clear(self) -> None:
        self.sent.clear()


class InMemoryHistoryStore:
    def __init__(self) -> None:
        self.messages: List[ChatMessage] = []

    async def append(self, message: ChatMessage) -> None:
        self.messages.append(message)

    async def fetch_history(self, room_id: str) -> List[ChatMessage]:
        return sorted((m for m in self.messages if m.room_id == room_id), key=lambda m: m.timestamp)


class FailingHistoryStore:
    async def append(self, message: ChatMessage) -> None:
        raise RuntimeError("database unavailable")

    async def fetch_history(self, room_id: str) -> List[ChatMessage]:
        raise RuntimeError("database unavailable")


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def history():
    return InMemoryHistoryStore()


@pytest.fixture
def failing_history():
    return FailingHistoryStore()


@pytest.fixture
def presence(transport, history):
    return PresenceManager(transport, history)


@pytest.fixture
def router(presence, history):
    return MessageRouter(presence, history)
