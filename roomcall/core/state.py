# roomcall/core/state.py
from __future__ import annotations

from datetime import datetime, timezone

from roomcall.core.config import settings
from roomcall.services.connection_manager import ConnectionManager
from roomcall.services.coordinator import Coordinator
from roomcall.services.moderation import Moderation


def build() -> tuple[Coordinator, Moderation]:
    """Construct a fresh coordinator (with default rooms) and its moderation layer."""
    connections = ConnectionManager(queue_size=settings.OUTBOUND_QUEUE_SIZE)
    coordinator = Coordinator.from_settings(connections, settings)
    return coordinator, Moderation(coordinator, admin_password=settings.ADMIN_PASSWORD)


# Process-wide singletons; everything goes through the coordinator
coordinator, moderation = build()

app_start_time: datetime = datetime.now(timezone.utc)
