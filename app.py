import json
import uuid
from typing import Optional, Union

from fastapi import APIRouter, FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

import event_names
from broadcaster import RoomBroadcaster
from constants import LOG_FILE, LOG_LEVEL, ORIGINS, ROOM_CAPACITY
from logging_config import get_logger, setup_logging
from registry import ConnectionRegistry
from routers.rooms import rooms_router
from schemas.events import ChatMessageEvent, ErrorEvent, Frame, JoinRoomEvent, MediaToggleEvent, SignalEvent
from schemas.rooms import HealthResponse
from transport import WebSocketTransport

setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)

realtime_router = APIRouter()


class UnknownEvent(Exception):
    pass


def dispatch_frame(broadcaster: RoomBroadcaster, connection_id: str, raw: Union[str, bytes]):
    """Decode one inbound frame and hand it to the broadcaster.

    Frames that are not JSON, miss required fields or name an unknown event
    are answered with an ``error`` event to the sender only.
    """
    try:
        frame = Frame.model_validate_json(raw)
        _dispatch(broadcaster, connection_id, frame)
    except ValidationError as e:
        logger.warning(f"Invalid frame from connection {connection_id}: {e.error_count()} error(s)")
        error = ErrorEvent(message="Invalid frame", details=json.loads(e.json(include_url=False, include_input=False)))
        broadcaster.transport.send(connection_id, event_names.ERROR, error.model_dump())
    except UnknownEvent as e:
        logger.warning(f"Unknown event {e} from connection {connection_id}")
        error = ErrorEvent(message=f"Unknown event: {e}")
        broadcaster.transport.send(connection_id, event_names.ERROR, error.model_dump())


def _dispatch(broadcaster: RoomBroadcaster, connection_id: str, frame: Frame):
    event = frame.event
    logger.debug(f"Received {event} from connection {connection_id}")

    if event == event_names.JOIN_ROOM:
        join = JoinRoomEvent.model_validate(frame.data)
        broadcaster.join(connection_id, join.room_id, join.profile)
    elif event == event_names.CHAT_MESSAGE:
        chat = ChatMessageEvent.model_validate(frame.data)
        broadcaster.chat_message(chat.room_id, frame.data)
    elif event == event_names.MEDIA_TOGGLE:
        toggle = MediaToggleEvent.model_validate(frame.data)
        broadcaster.media_toggle(toggle.room_id, toggle.kind, toggle.enabled, connection_id)
    elif event.startswith(event_names.SIGNAL_PREFIX) and event.removeprefix(event_names.SIGNAL_PREFIX) in event_names.SIGNAL_KINDS:
        signal = SignalEvent.model_validate(frame.data)
        kind = event.removeprefix(event_names.SIGNAL_PREFIX)
        broadcaster.signal(kind, signal.target_id, signal.payload, connection_id)
    else:
        raise UnknownEvent(event)


@realtime_router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """One relay session. The connection id is generated here and sent back as ``connection:ready``."""
    broadcaster: RoomBroadcaster = websocket.app.state.broadcaster
    transport: WebSocketTransport = websocket.app.state.transport

    await websocket.accept()
    connection_id = uuid.uuid4().hex
    transport.register(connection_id, websocket)
    transport.send(connection_id, event_names.CONNECTION_READY, {"connection_id": connection_id})
    logger.info(f"User connected: {connection_id}")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"User disconnected: {connection_id} (code {message.get('code')})")
                break
            # Binary frames carry the same JSON envelope as text frames
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            dispatch_frame(broadcaster, connection_id, raw)
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
    finally:
        broadcaster.disconnect(connection_id)
        await transport.unregister(connection_id)


@realtime_router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    return HealthResponse(
        status="ok",
        rooms=len(request.app.state.registry),
        connections=len(request.app.state.transport),
    )


def create_app(registry: Optional[ConnectionRegistry] = None) -> FastAPI:
    """Build the relay app. Each app owns its own registry and transport."""
    app = FastAPI(title="Huddle Relay")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    if registry is None:
        registry = ConnectionRegistry(capacity=ROOM_CAPACITY)
    transport = WebSocketTransport()
    app.state.registry = registry
    app.state.transport = transport
    app.state.broadcaster = RoomBroadcaster(registry, transport)

    app.include_router(rooms_router)
    app.include_router(realtime_router)

    logger.info(f"FastAPI application initialized (room capacity {registry.capacity}, origins {ORIGINS})")
    return app


app = create_app()
