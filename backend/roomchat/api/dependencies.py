from roomchat.db.session import get_session
from roomchat.realtime.events import presence_manager
from roomchat.realtime.presence import PresenceManager


def get_presence_manager() -> PresenceManager:
    return presence_manager


__all__ = ["get_presence_manager", "get_session"]
