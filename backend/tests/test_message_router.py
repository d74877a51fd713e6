"""Tests for chat and typing fan-out."""
import asyncio
import logging
from dataclasses import fields

from roomchat.realtime.message_router import MessageRouter
from roomchat.realtime.presence import PresenceManager


async def _seat(presence, *members):
    for connection_id, username, room_id in members:
        await presence.join_room(connection_id, username, room_id)


class TestSendMessage:
    async def test_message_reaches_whole_room_including_sender(self, presence, router, transport):
        await _seat(presence, ("a", "A", "lobby"), ("b", "B", "lobby"), ("c", "C", "den"))
        transport.clear()

        message = await router.send_message("a", "hi")

        assert message.room_id == "lobby"
        assert message.username == "A"
        for connection_id in ("a", "b"):
            payload = transport.payloads(connection_id, "message")
            assert len(payload) == 1
            assert payload[0]["userId"] == "a"
            assert payload[0]["username"] == "A"
            assert payload[0]["text"] == "hi"
            assert payload[0]["time"] == message.timestamp.isoformat()
        assert transport.events_for("c") == []

    async def test_message_is_persisted_without_connection_id(self, presence, router, history):
        await _seat(presence, ("a", "A", "lobby"))
        await router.send_message("a", "hello")
        await router.drain()

        assert len(history.messages) == 1
        saved = history.messages[0]
        assert (saved.room_id, saved.username, saved.text) == ("lobby", "A", "hello")
        assert {field.name for field in fields(saved)} == {"room_id", "username", "text", "timestamp"}
        assert "userId" not in saved.as_history_payload()

    async def test_message_from_unknown_connection_is_dropped(self, router, transport, history):
        assert await router.send_message("ghost", "boo") is None
        await router.drain()
        assert transport.sent == []
        assert history.messages == []

    async def test_blank_message_is_dropped(self, presence, router, transport):
        await _seat(presence, ("a", "A", "lobby"))
        transport.clear()
        assert await router.send_message("a", "   ") is None
        assert transport.sent == []

    async def test_message_after_disconnect_is_dropped(self, presence, router, transport):
        await _seat(presence, ("a", "A", "lobby"), ("b", "B", "lobby"))
        await presence.disconnect("a")
        transport.clear()
        assert await router.send_message("a", "late") is None
        assert transport.sent == []

    async def test_persistence_failure_does_not_block_delivery(self, transport, failing_history, caplog):
        presence = PresenceManager(transport, failing_history)
        router = MessageRouter(presence, failing_history)
        await _seat(presence, ("a", "A", "lobby"), ("b", "B", "lobby"))
        transport.clear()

        with caplog.at_level(logging.ERROR, logger="roomchat.realtime.message_router"):
            message = await router.send_message("a", "still here")
            await router.drain()

        assert message is not None
        assert transport.texts("a") == ["still here"]
        assert transport.texts("b") == ["still here"]
        assert "Error saving message" in caplog.text
        assert router.pending_writes == 0

    async def test_history_replay_contains_only_that_rooms_messages(self, presence, router, transport):
        await _seat(presence, ("a", "A", "lobby"), ("c", "C", "den"))
        await router.send_message("a", "one")
        await router.send_message("c", "elsewhere")
        await router.send_message("a", "two")
        await router.drain()

        await presence.join_room("b", "B", "lobby")

        replay = transport.payloads("b", "previous_messages")[0]
        assert [entry["message"] for entry in replay] == ["one", "two"]
        assert all(entry["roomId"] == "lobby" for entry in replay)

    async def test_message_racing_a_switch_follows_membership(self, presence, router, transport):
        await _seat(presence, ("a", "A", "lobby"), ("b", "B", "lobby"), ("c", "C", "den"))
        transport.clear()

        await asyncio.gather(router.send_message("a", "hi"), presence.switch_room("b", "den"))

        seen_by_a = transport.texts("a")
        hi_first = seen_by_a.index("hi") < seen_by_a.index("B has left the room")
        assert ("hi" in transport.texts("b")) is hi_first
        assert "hi" not in transport.texts("c")


class TestSendTyping:
    async def test_typing_goes_to_other_members_only(self, presence, router, transport):
        await _seat(presence, ("a", "A", "lobby"), ("b", "B", "lobby"), ("c", "C", "den"))
        transport.clear()

        assert await router.send_typing("a", True) is True

        assert transport.payloads("b", "user_typing") == [{"userId": "a", "username": "A", "isTyping": True}]
        assert transport.events_for("a") == []
        assert transport.events_for("c") == []

    async def test_typing_stopped(self, presence, router, transport):
        await _seat(presence, ("a", "A", "lobby"), ("b", "B", "lobby"))
        transport.clear()
        await router.send_typing("a", False)
        assert transport.payloads("b", "user_typing")[0]["isTyping"] is False

    async def test_typing_from_unknown_connection_is_dropped(self, router, transport):
        assert await router.send_typing("ghost", True) is False
        assert transport.sent == []


async def test_same_room_members_see_same_order(presence, router, transport):
    await _seat(presence, ("a", "A", "lobby"), ("b", "B", "lobby"))
    transport.clear()

    await asyncio.gather(
        router.send_message("a", "a1"),
        router.send_message("b", "b1"),
        presence.join_room("c", "C", "lobby"),
        router.send_message("a", "a2"),
        presence.disconnect("c"),
        router.send_message("b", "b2"),
    )

    def stream(connection_id):
        return [
            (name, data.get("text") if isinstance(data, dict) else None)
            for name, data in transport.events_for(connection_id)
            if name in ("message", "user_joined", "user_left")
        ]

    assert stream("a") == stream("b")
