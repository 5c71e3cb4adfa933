from typing import Any, Iterable, Optional

import event_names
from logging_config import get_logger
from registry import CapacityExceeded, ConnectionRegistry, MembershipNotFound, Removal
from schemas.rooms import Profile

logger = get_logger(__name__)


class RoomBroadcaster:
    """Applies room events to the registry and decides who receives what.

    ``transport`` is anything with a non-blocking
    ``send(connection_id, event, data)``. Every method here runs to completion
    without awaiting, so events for a room are applied and queued for
    delivery in the order they arrive.
    """

    def __init__(self, registry: ConnectionRegistry, transport):
        self.registry = registry
        self.transport = transport

    def join(self, connection_id: str, room_id: str, profile: Profile) -> bool:
        """Admit ``connection_id`` to ``room_id``. Returns False if the room was full.

        A connection already in a room leaves it first, so it is only ever in
        one room. If the target room is full the connection stays where it was.
        """
        previous_room = self.registry.room_of(connection_id)
        try:
            if previous_room is not None:
                if previous_room != room_id and self.registry.is_full(room_id):
                    raise CapacityExceeded(room_id, self.registry.capacity)
                logger.info(f"{connection_id} is already in room {previous_room}, leaving before joining {room_id}")
                self.disconnect(connection_id)
            self.registry.admit(connection_id, room_id, profile)
        except CapacityExceeded as e:
            logger.warning(f"Join rejected for {connection_id}: {e}")
            self.transport.send(connection_id, event_names.ROOM_FULL, {"room_id": room_id})
            return False

        logger.info(f"{profile.display_name} ({connection_id}) joined room {room_id}")

        existing_users = [
            {"connection_id": member.connection_id, "profile": member.profile.to_wire()}
            for member in self.registry.list_others(room_id, connection_id)
        ]
        joined = {"connection_id": connection_id, "profile": profile.to_wire()}
        self._send_many(
            (member["connection_id"] for member in existing_users),
            event_names.USER_JOINED,
            joined,
        )
        self.transport.send(connection_id, event_names.EXISTING_USERS, existing_users)

        logger.debug(f"Users in room {room_id}: {self.registry.member_count(room_id)}")
        return True

    def chat_message(self, room_id: str, payload: Any) -> int:
        """Relay ``payload`` unchanged to every member of the room, sender included."""
        recipients = self.registry.members(room_id)
        if not recipients:
            logger.debug(f"Chat message for unknown room {room_id} dropped")
            return 0
        self._send_many(recipients, event_names.CHAT_MESSAGE, payload)
        logger.debug(f"Relayed chat message to {len(recipients)} members of room {room_id}")
        return len(recipients)

    def signal(self, kind: str, target_id: str, payload: Any, sender_id: str):
        """Forward a peer negotiation message to exactly one connection."""
        if kind not in event_names.SIGNAL_KINDS:
            raise ValueError(f"Unknown signal kind: {kind}")
        if self.registry.room_of(target_id) is None:
            logger.debug(f"Signal {kind} from {sender_id} to {target_id}: target is not in a room")
        self.transport.send(
            target_id,
            event_names.signal_event(kind),
            {"from": sender_id, "payload": payload},
        )
        logger.debug(f"Relayed signal {kind} from {sender_id} to {target_id}")

    def media_toggle(self, room_id: str, kind: str, enabled: bool, sender_id: str) -> int:
        """Tell everyone else in the room that the sender switched a media track."""
        recipients = [conn_id for conn_id in self.registry.members(room_id) if conn_id != sender_id]
        self._send_many(
            recipients,
            event_names.PEER_MEDIA_TOGGLE,
            {"connection_id": sender_id, "kind": kind, "enabled": enabled},
        )
        logger.debug(f"{sender_id} toggled {kind}={enabled} in room {room_id}, notified {len(recipients)}")
        return len(recipients)

    def disconnect(self, connection_id: str) -> Optional[Removal]:
        """Remove the connection from its room and notify whoever is left.

        Returns None when the connection was not in any room.
        """
        try:
            removal = self.registry.remove(connection_id)
        except MembershipNotFound:
            logger.debug(f"Disconnect of {connection_id}: not in any room")
            return None

        self._send_many(
            self.registry.members(removal.room_id),
            event_names.USER_LEFT,
            {"connection_id": connection_id, "profile": removal.profile.to_wire()},
        )
        logger.info(f"{removal.profile.display_name} ({connection_id}) left room {removal.room_id}")
        return removal

    def _send_many(self, connection_ids: Iterable[str], event: str, data: Any):
        for conn_id in connection_ids:
            self.transport.send(conn_id, event, data)
