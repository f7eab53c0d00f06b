# roomcall/services/history.py

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Dict, List

from roomcall.models.models import ChatEntry

logger = logging.getLogger(__name__)


class HistoryBuffer:
    """
    Recent chat entries per room, replayed to whoever joins.

    Each room gets a deque bounded at ``limit``; appending past the bound
    evicts from the left, so the oldest entry always goes first.
    """

    def __init__(self, limit: int = 500) -> None:
        self.limit = limit
        self.buffers: Dict[str, Deque[ChatEntry]] = {}

    def create(self, room: str) -> None:
        self.buffers.setdefault(room, deque(maxlen=self.limit))

    def append(self, room: str, entry: ChatEntry) -> None:
        self.buffers.setdefault(room, deque(maxlen=self.limit)).append(entry)

    def get(self, room: str) -> List[ChatEntry]:
        return list(self.buffers.get(room, ()))

    def payload(self, room: str) -> List[dict]:
        return [entry.to_payload() for entry in self.get(room)]

    def drop(self, room: str) -> None:
        self.buffers.pop(room, None)

    def drain(self) -> List[str]:
        """Empty every buffer; return the rooms that actually had entries."""
        cleared = [room for room, entries in self.buffers.items() if entries]
        for room in cleared:
            self.buffers[room].clear()
        if cleared:
            logger.info("🧹 Cleared chat history for %d room(s)", len(cleared))
        return cleared
