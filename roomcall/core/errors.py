# roomcall/core/errors.py
"""
Error taxonomy shared by every core operation.

Expected failures are never raised. Operations return a ``Result`` carrying
either a value or an ``ErrorCode``; the transport layer decides how to
surface it (WebSocket reply, HTTP status, or silently dropped).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    VALIDATION = "ValidationError"
    NOT_FOUND = "NotFoundError"
    CONFLICT = "ConflictError"
    AUTH = "AuthError"
    STATE = "StateError"


class ErrorCode(str, Enum):
    MISSING_ROOM = "MissingRoom"
    ROOM_NOT_FOUND = "RoomNotFound"
    BLOCKED = "Blocked"
    WRONG_PASSWORD = "WrongPassword"
    MISSING_NAME = "MissingName"
    ROOM_FULL = "RoomFull"
    NOT_JOINED = "NotJoined"
    INVALID_NAME = "InvalidName"
    MISSING_PASSWORD = "MissingPassword"
    ALREADY_EXISTS = "AlreadyExists"
    NOT_FOUND = "NotFound"
    INVALID_ADDRESS = "InvalidAddress"
    NOT_BLOCKED = "NotBlocked"
    UNAUTHENTICATED = "Unauthenticated"

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORIES[self]

    @property
    def default_message(self) -> str:
        return _MESSAGES[self]


_CATEGORIES = {
    ErrorCode.MISSING_ROOM: ErrorCategory.VALIDATION,
    ErrorCode.MISSING_NAME: ErrorCategory.VALIDATION,
    ErrorCode.INVALID_NAME: ErrorCategory.VALIDATION,
    ErrorCode.MISSING_PASSWORD: ErrorCategory.VALIDATION,
    ErrorCode.INVALID_ADDRESS: ErrorCategory.VALIDATION,
    ErrorCode.ROOM_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorCode.NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorCode.NOT_BLOCKED: ErrorCategory.NOT_FOUND,
    ErrorCode.ALREADY_EXISTS: ErrorCategory.CONFLICT,
    ErrorCode.ROOM_FULL: ErrorCategory.CONFLICT,
    ErrorCode.WRONG_PASSWORD: ErrorCategory.AUTH,
    ErrorCode.BLOCKED: ErrorCategory.AUTH,
    ErrorCode.UNAUTHENTICATED: ErrorCategory.AUTH,
    ErrorCode.NOT_JOINED: ErrorCategory.STATE,
}

_MESSAGES = {
    ErrorCode.MISSING_ROOM: "Room name is required",
    ErrorCode.ROOM_NOT_FOUND: "Room not found",
    ErrorCode.BLOCKED: "You are blocked from this room",
    ErrorCode.WRONG_PASSWORD: "Wrong password",
    ErrorCode.MISSING_NAME: "Display name is required",
    ErrorCode.ROOM_FULL: "Room is full",
    ErrorCode.NOT_JOINED: "You are not in a room",
    ErrorCode.INVALID_NAME: "Invalid room name",
    ErrorCode.MISSING_PASSWORD: "Room password is required",
    ErrorCode.ALREADY_EXISTS: "Room name exists",
    ErrorCode.NOT_FOUND: "Room not found",
    ErrorCode.INVALID_ADDRESS: "Invalid IP address",
    ErrorCode.NOT_BLOCKED: "Address is not blocked",
    ErrorCode.UNAUTHENTICATED: "Not authenticated",
}


@dataclass(frozen=True)
class Result:
    """Tagged success/failure value returned by core operations."""

    ok: bool
    value: Any = None
    error: Optional[ErrorCode] = None
    message: str = ""

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ErrorCode, message: Optional[str] = None) -> "Result":
        return cls(ok=False, error=error, message=message or error.default_message)

    def to_reply(self) -> dict:
        """Shape used for WebSocket replies to request/response actions."""
        if self.ok:
            reply = {"ok": True}
            if isinstance(self.value, dict):
                reply.update(self.value)
            return reply
        return {"ok": False, "error": self.message, "code": self.error.value}
