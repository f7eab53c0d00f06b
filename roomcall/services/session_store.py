# roomcall/services/session_store.py

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from roomcall.models.models import Profile


@dataclass
class Session:
    """One live connection. The display name falls back to the id until set."""

    id: str
    address: Optional[str]
    user: str = ""
    icon: Optional[str] = None
    room: Optional[str] = None
    connected_at: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if not self.user:
            self.user = self.id

    def profile(self) -> Profile:
        return Profile(id=self.id, user=self.user, icon=self.icon)


class SessionStore:
    """Identity/profile entries keyed by session id."""

    def __init__(self) -> None:
        self.sessions: Dict[str, Session] = {}

    def create(self, address: Optional[str]) -> Session:
        session = Session(id=uuid.uuid4().hex, address=address)
        self.sessions[session.id] = session
        return session

    def get(self, session_id: str) -> Optional[Session]:
        return self.sessions.get(session_id)

    def remove(self, session_id: str) -> Optional[Session]:
        return self.sessions.pop(session_id, None)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self.sessions

    def __len__(self) -> int:
        return len(self.sessions)
