# roomcall/services/moderation.py
"""
Admin authentication and room moderation.

Tokens are opaque random strings handed out on a correct admin password and
kept until logout (no expiry). Every room operation checks the token first
and then delegates to the coordinator; this layer has no other state.
"""

from __future__ import annotations

import logging
import secrets
from typing import Callable, Optional, Set

from roomcall.core.errors import ErrorCode, Result
from roomcall.services.coordinator import Coordinator

logger = logging.getLogger(__name__)


class Moderation:
    def __init__(self, coordinator: Coordinator, admin_password: str = "") -> None:
        self.coordinator = coordinator
        self.admin_password = admin_password
        self.tokens: Set[str] = set()

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def login(self, password: str) -> Result:
        """Exchange the admin password for a token. Disabled when no password is configured."""
        if not self.admin_password:
            return Result.failure(ErrorCode.UNAUTHENTICATED, "Admin login is disabled")
        if not secrets.compare_digest((password or "").encode(), self.admin_password.encode()):
            logger.warning("Rejected admin login")
            return Result.failure(ErrorCode.UNAUTHENTICATED, "Wrong admin password")

        token = secrets.token_urlsafe(32)
        self.tokens.add(token)
        logger.info("Admin logged in: %s...", token[:10])
        return Result.success({"token": token, "rooms": self.coordinator.list_admin()})

    def logout(self, token: Optional[str]) -> Result:
        if not self.is_authenticated(token):
            return Result.failure(ErrorCode.UNAUTHENTICATED)
        self.tokens.discard(token)
        logger.info("Admin logged out: %s...", token[:10])
        return Result.success()

    def is_authenticated(self, token: Optional[str]) -> bool:
        return bool(token) and token in self.tokens

    def _guarded(self, token: Optional[str], operation: Callable[[], Result]) -> Result:
        if not self.is_authenticated(token):
            return Result.failure(ErrorCode.UNAUTHENTICATED)
        return operation()

    # ------------------------------------------------------------------
    # Room operations
    # ------------------------------------------------------------------

    def list_rooms(self, token: Optional[str]) -> Result:
        return self._guarded(token, lambda: Result.success({"rooms": self.coordinator.list_admin()}))

    def create_room(self, token: Optional[str], name: str, password: str) -> Result:
        return self._guarded(token, lambda: self.coordinator.create_room(name, password))

    def delete_room(self, token: Optional[str], name: str) -> Result:
        return self._guarded(token, lambda: self.coordinator.delete_room(name))

    def block_address(self, token: Optional[str], name: str, address: str) -> Result:
        return self._guarded(token, lambda: self.coordinator.block_address(name, address))

    def unblock_address(self, token: Optional[str], name: str, address: str) -> Result:
        return self._guarded(token, lambda: self.coordinator.unblock_address(name, address))

    def kick(self, token: Optional[str], name: str, session_id: str) -> Result:
        return self._guarded(token, lambda: self.coordinator.kick(name, session_id))
