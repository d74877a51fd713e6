from __future__ import annotations

from pydantic import Field

from roomchat.schemas.common import APIModel


class RoomMemberRead(APIModel):
    user_id: str = Field(alias="userId", description="Connection identifier of the member")
    username: str


class RoomSummary(APIModel):
    room_id: str = Field(alias="roomId")
    member_count: int = Field(alias="memberCount", ge=0)
