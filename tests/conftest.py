"""Shared test fixtures and configuration."""
import pytest
from fastapi.testclient import TestClient

from roomcall.core import state
from roomcall.main import app
from roomcall.services.connection_manager import ConnectionManager
from roomcall.services.coordinator import Coordinator
from roomcall.services.moderation import Moderation

ADMIN_PASSWORD = "admin-pass"


def drain(coordinator, session_id):
    """Pop every frame queued for a session, oldest first."""
    queue = coordinator.connections.queues[session_id]
    frames = []
    while not queue.empty():
        frames.append(queue.get_nowait())
    return frames


def of_type(frames, event):
    return [frame["data"] for frame in frames if frame["type"] == event]


@pytest.fixture
def coordinator():
    """A standalone coordinator with one room, "general" (password "pw")."""
    return Coordinator(ConnectionManager(), default_rooms=[("general", "pw")])


@pytest.fixture
def fresh_state(monkeypatch):
    """Swap the process-wide coordinator and moderation layer for clean ones."""
    coordinator = Coordinator(ConnectionManager(), default_rooms=[("general", "pw")])
    moderation = Moderation(coordinator, admin_password=ADMIN_PASSWORD)
    monkeypatch.setattr(state, "coordinator", coordinator)
    monkeypatch.setattr(state, "moderation", moderation)
    return coordinator


@pytest.fixture
def client(fresh_state):
    """TestClient used as a context manager so HTTP and WebSocket handlers share one loop."""
    with TestClient(app) as test_client:
        yield test_client
