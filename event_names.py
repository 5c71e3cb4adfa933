# Inbound (client -> server)
JOIN_ROOM = "join:room"
CHAT_MESSAGE = "chat:message"  # also relayed outbound unchanged
MEDIA_TOGGLE = "media:toggle"
SIGNAL_PREFIX = "signal:"  # signal:offer, signal:answer, signal:ice-candidate

# Outbound (server -> client)
CONNECTION_READY = "connection:ready"  # own connection id, sent on accept
ROOM_FULL = "room:full"  # requester only
EXISTING_USERS = "existing:users"  # requester only
USER_JOINED = "user:joined"  # room minus requester
USER_LEFT = "user:left"  # room minus departed connection
PEER_MEDIA_TOGGLE = "peer:media-toggle"  # room minus sender
ERROR = "error"  # undecodable or invalid frame, sender only

SIGNAL_KINDS = ("offer", "answer", "ice-candidate")


def signal_event(kind: str) -> str:
    return f"{SIGNAL_PREFIX}{kind}"
