from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from roomchat.api.dependencies import get_presence_manager, get_session
from roomchat.realtime.presence import PresenceManager
from roomchat.schemas.message import MessageRead
from roomchat.schemas.room import RoomMemberRead, RoomSummary
from roomchat.services.message_service import MessageService

router = APIRouter()


@router.get("", response_model=list[RoomSummary])
async def list_rooms(presence: PresenceManager = Depends(get_presence_manager)) -> list[RoomSummary]:
    return [
        RoomSummary(room_id=room_id, member_count=len(presence.list_members(room_id)))
        for room_id in presence.rooms.room_ids()
    ]


@router.get("/{room_id}/users", response_model=list[RoomMemberRead])
async def list_room_users(
    room_id: str,
    presence: PresenceManager = Depends(get_presence_manager),
) -> list[RoomMemberRead]:
    return [
        RoomMemberRead(user_id=member.connection_id, username=member.username)
        for member in presence.list_members(room_id)
    ]


@router.get("/{room_id}/messages", response_model=list[MessageRead])
async def list_room_messages(
    room_id: str,
    limit: int | None = Query(default=None, ge=1, le=1000),
    session: AsyncSession = Depends(get_session),
) -> list[MessageRead]:
    service = MessageService(session)
    messages = await service.list_room_messages(room_id, limit=limit)
    return [MessageRead.model_validate(message) for message in messages]
