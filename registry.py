from typing import Dict, List, NamedTuple, Optional

from logging_config import get_logger
from schemas.rooms import Member, Profile

logger = get_logger(__name__)

MAX_ROOM_MEMBERS = 10


class RoomError(Exception):
    """Base class for room membership errors. None of them are fatal."""


class CapacityExceeded(RoomError):
    def __init__(self, room_id: str, capacity: int):
        super().__init__(f"Room {room_id} is full ({capacity}/{capacity})")
        self.room_id = room_id
        self.capacity = capacity


class MembershipNotFound(RoomError):
    def __init__(self, connection_id: str):
        super().__init__(f"Connection {connection_id} is not in any room")
        self.connection_id = connection_id


class Removal(NamedTuple):
    room_id: str
    profile: Profile


class ConnectionRegistry:
    """Room membership for one relay instance.

    ``rooms`` maps room id -> {connection id -> profile}. A room exists only
    while it has members. ``_room_by_connection`` is the reverse index used to
    find a connection's room on leave; both maps are always updated together.
    """

    def __init__(self, capacity: int = MAX_ROOM_MEMBERS):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.rooms: Dict[str, Dict[str, Profile]] = {}
        self._room_by_connection: Dict[str, str] = {}

    def record(self, connection_id: str, room_id: str, profile: Profile):
        """Associate a connection with a room and profile, overwriting any previous entry."""
        previous_room = self._room_by_connection.get(connection_id)
        if previous_room is not None and previous_room != room_id:
            self._discard(connection_id, previous_room)

        if room_id not in self.rooms:
            self.rooms[room_id] = {}
            logger.info(f"Room {room_id} created")
        self.rooms[room_id][connection_id] = profile
        self._room_by_connection[connection_id] = room_id
        logger.debug(f"Recorded {connection_id} in room {room_id} ({len(self.rooms[room_id])}/{self.capacity})")

    def admit(self, connection_id: str, room_id: str, profile: Profile):
        """Capacity-checked :meth:`record`. Raises CapacityExceeded without touching state."""
        if self.is_full(room_id) and self._room_by_connection.get(connection_id) != room_id:
            raise CapacityExceeded(room_id, self.capacity)
        self.record(connection_id, room_id, profile)

    def remove(self, connection_id: str) -> Removal:
        room_id = self._room_by_connection.get(connection_id)
        if room_id is None:
            raise MembershipNotFound(connection_id)
        profile = self._discard(connection_id, room_id)
        return Removal(room_id=room_id, profile=profile)

    def list_others(self, room_id: str, exclude_connection_id: str) -> List[Member]:
        return [member for member in self.list_members(room_id) if member.connection_id != exclude_connection_id]

    def list_members(self, room_id: str) -> List[Member]:
        members = self.rooms.get(room_id, {})
        return [Member(connection_id=conn_id, profile=profile) for conn_id, profile in members.items()]

    def is_full(self, room_id: str) -> bool:
        return self.member_count(room_id) >= self.capacity

    def room_of(self, connection_id: str) -> Optional[str]:
        return self._room_by_connection.get(connection_id)

    def members(self, room_id: str) -> List[str]:
        return list(self.rooms.get(room_id, {}))

    def member_count(self, room_id: str) -> int:
        return len(self.rooms.get(room_id, {}))

    def room_ids(self) -> List[str]:
        return list(self.rooms)

    def __contains__(self, room_id: str) -> bool:
        return room_id in self.rooms

    def __len__(self) -> int:
        return len(self.rooms)

    def _discard(self, connection_id: str, room_id: str) -> Profile:
        members = self.rooms[room_id]
        profile = members.pop(connection_id)
        del self._room_by_connection[connection_id]
        if not members:
            del self.rooms[room_id]
            logger.info(f"Room {room_id} deleted (empty)")
        else:
            logger.debug(f"Removed {connection_id} from room {room_id} ({len(members)} left)")
        return profile
