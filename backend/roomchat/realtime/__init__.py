"""Realtime room chat over Socket.IO: presence, room membership and message fan-out."""

from .server import create_socket_app, sio  # noqa: F401
