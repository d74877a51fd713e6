from __future__ import annotations

from typing import Sequence

import socketio
from fastapi import FastAPI

from roomchat.core.config import Settings, settings


def socketio_cors_origins(origins: Sequence[str]) -> Sequence[str] | str:
    """Translate the HTTP CORS origin list into python-socketio's form.

    An empty list disables cross-origin connections, and a ``*`` anywhere in the list allows every origin.
    """

    if not origins:
        return []
    if "*" in origins:
        return "*"
    return list(origins)


def build_server(config: Settings) -> socketio.AsyncServer:
    ping_timeout = config.websocket_ping_timeout or config.websocket_ping_interval * 2
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=socketio_cors_origins(config.cors_allow_origins),
        cors_credentials=config.cors_allow_credentials,
        ping_interval=config.websocket_ping_interval,
        ping_timeout=ping_timeout,
        max_http_buffer_size=config.websocket_max_payload_bytes,
        logger=config.debug,
        engineio_logger=config.debug,
    )


sio = build_server(settings)


def create_socket_app(app: FastAPI) -> socketio.ASGIApp:
    """Serve Socket.IO traffic and hand every other request to the FastAPI application."""

    return socketio.ASGIApp(
        sio,
        other_asgi_app=app,
        socketio_path=settings.socketio_path,
    )
