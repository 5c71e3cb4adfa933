from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class Profile(BaseModel):
    """User metadata attached to a connection while it is in a room.

    Browser clients send camelCase keys (``userId``, ``displayName``,
    ``photoURL``); both spellings are accepted. Unknown keys are kept and
    relayed to the other members as-is.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    user_id: str = Field(alias="userId")
    display_name: str = Field(alias="displayName")
    photo_url: Optional[str] = Field(default=None, alias="photoURL")

    def to_wire(self) -> dict:
        """The profile as clients spell it, limited to the fields they sent."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class Member(BaseModel):
    connection_id: str
    profile: Profile

class OnlineUser(BaseModel):
    connection_id: str
    user_id: str
    display_name: str
    photo_url: Optional[str] = None

class RoomSummary(BaseModel):
    room_id: str
    online_users_count: int
    max_users: int
    is_full: bool

class RoomDetailsResponse(BaseModel):
    room_id: str
    max_users: int
    online_users_count: int
    online_users: list[OnlineUser] = []
    is_full: bool

class HealthResponse(BaseModel):
    status: str
    rooms: int
    connections: int
