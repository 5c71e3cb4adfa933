from fastapi import APIRouter, HTTPException, Request
from schemas.rooms import OnlineUser, RoomDetailsResponse, RoomSummary
from registry import ConnectionRegistry
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


def _registry(request: Request) -> ConnectionRegistry:
    return request.app.state.registry


@rooms_router.get("/", response_model=list[RoomSummary])
async def list_rooms(request: Request):
    """Active rooms with their occupancy. Empty rooms never appear here."""
    registry = _registry(request)
    return [
        RoomSummary(
            room_id=room_id,
            online_users_count=registry.member_count(room_id),
            max_users=registry.capacity,
            is_full=registry.is_full(room_id),
        )
        for room_id in registry.room_ids()
    ]


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request):
    """
    Get room details including the users currently online.

    Returns:
    - room_id: Room identifier
    - max_users: Maximum users allowed
    - online_users_count: Current number of online users
    - online_users: Connection id and profile of each online user
    - is_full: Whether room has reached max capacity
    """
    client_host = request.client.host if request.client else 'unknown'
    logger.info(f"Room details request for {room_id} from {client_host}")

    registry = _registry(request)
    if room_id not in registry:
        logger.warning(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    online_users = [
        OnlineUser(
            connection_id=member.connection_id,
            user_id=member.profile.user_id,
            display_name=member.profile.display_name,
            photo_url=member.profile.photo_url,
        )
        for member in registry.list_members(room_id)
    ]

    logger.info(f"Room details retrieved for {room_id}: {len(online_users)}/{registry.capacity} users online")

    return RoomDetailsResponse(
        room_id=room_id,
        max_users=registry.capacity,
        online_users_count=len(online_users),
        online_users=online_users,
        is_full=registry.is_full(room_id),
    )
