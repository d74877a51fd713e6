from __future__ import annotations

from typing import Any, Protocol

import socketio


class Transport(Protocol):
    async def emit(self, event: str, data: Any, to: str) -> None: ...


class SocketIOTransport:
    """Delivers outbound events to a single Socket.IO connection."""

    def __init__(self, server: socketio.AsyncServer) -> None:
        self._server = server

    async def emit(self, event: str, data: Any, to: str) -> None:
        await self._server.emit(event, data, to=to)
