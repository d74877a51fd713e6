from __future__ import annotations

from datetime import datetime, timezone

from pydantic import Field, field_validator

from roomchat.schemas.common import APIModel


class MessageRead(APIModel):
    room_id: str = Field(alias="roomId")
    username: str
    message: str
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
