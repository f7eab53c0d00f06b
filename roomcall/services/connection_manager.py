# roomcall/services/connection_manager.py

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

# ============================================================================
# OUTBOUND EVENT FAN-OUT
# ============================================================================

class ConnectionManager:
    """
    Owns the outbound side of every connection and the per-room broadcast groups.

    Nothing here awaits. Events are pushed onto a bounded asyncio.Queue per
    session with put_nowait, and the WebSocket endpoint runs a writer task
    that drains that queue onto the socket. Handlers can therefore fan out
    while staying atomic with respect to each other, and each session sees
    events in exactly the order the coordinator produced them.

    Data Structures:
        queues: Maps session_id -> outbound queue of {"type", "data"} frames
                Example: {"a1b2": <Queue maxsize=256>}

        groups: Maps room name -> session ids subscribed to that room's broadcasts
                (a dict used as an ordered set, so fan-out order is join order)
                Example: {"lobby": {"a1b2": None, "c3d4": None}}
    """

    def __init__(self, queue_size: int = 256) -> None:
        self.queue_size = queue_size
        self.queues: Dict[str, asyncio.Queue] = {}
        self.groups: Dict[str, Dict[str, None]] = {}

    def open(self, session_id: str) -> asyncio.Queue:
        """Create the outbound queue for a new session."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self.queues[session_id] = queue
        logger.info("✓ Session %s connected. Total: %d", session_id, len(self.queues))
        return queue

    def close(self, session_id: str) -> None:
        """Drop the session's queue and any group subscription left behind."""
        for room in list(self.groups):
            self.remove_from_group(room, session_id)
        if self.queues.pop(session_id, None) is not None:
            logger.info("✗ Session %s disconnected. Total: %d", session_id, len(self.queues))

    def queue_for(self, session_id: str) -> Optional[asyncio.Queue]:
        return self.queues.get(session_id)

    # ------------------------------------------------------------------
    # Broadcast groups
    # ------------------------------------------------------------------

    def add_to_group(self, room: str, session_id: str) -> None:
        self.groups.setdefault(room, {})[session_id] = None

    def remove_from_group(self, room: str, session_id: str) -> None:
        members = self.groups.get(room)
        if members is None:
            return
        members.pop(session_id, None)
        # Clean up empty group
        if not members:
            del self.groups[room]

    def drop_group(self, room: str) -> None:
        self.groups.pop(room, None)

    def group_members(self, room: str) -> list[str]:
        return list(self.groups.get(room, ()))

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def send(self, session_id: str, event: str, data: Any = None, **extra: Any) -> None:
        """
        Queue one frame for a single session.

        Sessions that are already gone are skipped. A full queue means the
        client stopped reading; the frame is dropped (delivery is best effort).
        """
        queue = self.queues.get(session_id)
        if queue is None:
            return
        frame = {"type": event, "data": data}
        frame.update(extra)
        try:
            queue.put_nowait(frame)
        except asyncio.QueueFull:
            logger.warning("Outbound queue full for %s, dropping '%s'", session_id, event)

    def send_many(self, session_ids: Iterable[str], event: str, data: Any = None) -> None:
        for session_id in session_ids:
            self.send(session_id, event, data)

    def broadcast_to_room(
        self, room: str, event: str, data: Any = None, exclude: Optional[str] = None
    ) -> None:
        """Send to every session in the room's broadcast group, optionally skipping one."""
        members = self.group_members(room)
        if not members:
            logger.debug("[routing] Skipped '%s': room=%s has 0 subscribers", event, room)
            return
        self.send_many((sid for sid in members if sid != exclude), event, data)

    def broadcast(self, event: str, data: Any = None) -> None:
        """Send to every connected session, joined or not."""
        self.send_many(list(self.queues), event, data)
