import asyncio
from typing import Any, Dict

from fastapi import WebSocket

from logging_config import get_logger

logger = get_logger(__name__)


class WebSocketTransport:
    """Live WebSocket connections of this process, keyed by connection id.

    Each connection gets its own FIFO queue drained by a writer task, so
    ``send`` never blocks the caller and frames reach a given socket in the
    order they were queued. A socket that fails to send only loses its own
    writer; other connections are unaffected.
    """

    def __init__(self):
        self._connections: Dict[str, WebSocket] = {}
        self._queues: Dict[str, asyncio.Queue] = {}
        self._writers: Dict[str, asyncio.Task] = {}

    def register(self, connection_id: str, websocket: WebSocket):
        queue: asyncio.Queue = asyncio.Queue()
        self._connections[connection_id] = websocket
        self._queues[connection_id] = queue
        self._writers[connection_id] = asyncio.create_task(self._write_loop(connection_id, websocket, queue))
        logger.debug(f"Registered connection {connection_id} (active connections: {len(self._connections)})")

    def send(self, connection_id: str, event: str, data: Any) -> bool:
        queue = self._queues.get(connection_id)
        if queue is None:
            logger.debug(f"Dropping {event} for unknown connection {connection_id}")
            return False
        queue.put_nowait({"event": event, "data": data})
        return True

    async def unregister(self, connection_id: str):
        self._connections.pop(connection_id, None)
        self._queues.pop(connection_id, None)
        task = self._writers.pop(connection_id, None)
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.debug(f"Unregistered connection {connection_id} (active connections: {len(self._connections)})")

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._queues

    def __len__(self) -> int:
        return len(self._connections)

    async def _write_loop(self, connection_id: str, websocket: WebSocket, queue: asyncio.Queue):
        try:
            while True:
                message = await queue.get()
                await websocket.send_json(message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Stop queueing for a socket we can no longer write to
            self._queues.pop(connection_id, None)
            logger.warning(f"Error sending to connection {connection_id}, dropping its outbound queue: {e}")
