"""Inbound Socket.IO payloads. A failed validation means the event is dropped."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator


class InboundEvent(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore", populate_by_name=True)


class JoinRoomPayload(InboundEvent):
    username: str = Field(min_length=1, max_length=64)
    room_id: str = Field(alias="roomId", min_length=1, max_length=128)


class SwitchRoomPayload(InboundEvent):
    room_id: str = Field(min_length=1, max_length=128)


class ChatMessagePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Text is relayed as typed; only blank messages are rejected.
    text: str

    @field_validator("text")
    @classmethod
    def _reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message text is blank")
        return value


class TypingPayload(BaseModel):
    is_typing: StrictBool
