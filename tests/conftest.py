import pytest
from fastapi.testclient import TestClient

from app import create_app
from broadcaster import RoomBroadcaster
from registry import ConnectionRegistry
from schemas.rooms import Profile


class RecordingTransport:
    """Stands in for the WebSocket transport and remembers every send."""

    def __init__(self):
        self.sent = []

    def send(self, connection_id, event, data):
        self.sent.append((connection_id, event, data))
        return True

    def to(self, connection_id):
        return [(event, data) for conn_id, event, data in self.sent if conn_id == connection_id]

    def events(self, connection_id):
        return [event for event, _ in self.to(connection_id)]

    def clear(self):
        self.sent.clear()


def make_profile(name: str, **extra) -> Profile:
    return Profile(user_id=f"user-{name}", display_name=name, **extra)


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def broadcaster(registry, transport):
    return RoomBroadcaster(registry, transport)


@pytest.fixture
def client():
    # A single TestClient context keeps every WebSocket session on one event loop
    with TestClient(create_app()) as test_client:
        yield test_client
