from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional

from schemas.rooms import Profile


class Frame(BaseModel):
    """Envelope of every WebSocket text frame: ``{"event": ..., "data": ...}``."""
    event: str = Field(min_length=1)
    data: Any = None


class JoinRoomEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(alias="roomId", min_length=1)
    profile: Profile = Field(alias="userInfo")


class ChatMessageEvent(BaseModel):
    # Only the room is checked; the rest of the message is relayed untouched
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    room_id: str = Field(alias="roomId", min_length=1)


class SignalEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_id: str = Field(alias="targetId", min_length=1)
    payload: Any = None


class MediaToggleEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(alias="roomId", min_length=1)
    kind: str = Field(min_length=1)
    enabled: bool


class ErrorEvent(BaseModel):
    message: str
    details: Optional[Any] = None
