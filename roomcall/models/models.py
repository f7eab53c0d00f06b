# roomcall/models/models.py
from __future__ import annotations

import math
from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Set

from pydantic import BaseModel, BeforeValidator, Field, field_validator

from roomcall.core.config import settings


def validate_icon(value: Any) -> Optional[str]:
    """
    Avatars travel as image data URLs. Anything else, or anything larger
    than MAX_ICON_LENGTH, is rejected before it reaches the profile store.
    """
    if value is None or value == "":
        return None
    if not isinstance(value, str) or not value.startswith("data:image/"):
        raise ValueError("Icon must be an image data URL")
    if len(value) > settings.MAX_ICON_LENGTH:
        raise ValueError("Icon is too large")
    return value


Icon = Annotated[Optional[str], BeforeValidator(validate_icon)]


# ============================================================================
# DOMAIN MODELS
# ============================================================================

class Room(BaseModel):
    name: str
    password: str
    created_at: datetime
    blocked: Set[str] = Field(default_factory=set)


class Profile(BaseModel):
    """Snapshot of a session's identity used by room and call rosters."""

    id: str
    user: str
    icon: Optional[str] = None


class Location(BaseModel):
    latitude: float
    longitude: float

    @field_validator("latitude")
    @classmethod
    def _check_latitude(cls, value: float) -> float:
        if not math.isfinite(value) or not -90 <= value <= 90:
            raise ValueError("latitude out of range")
        return value

    @field_validator("longitude")
    @classmethod
    def _check_longitude(cls, value: float) -> float:
        if not math.isfinite(value) or not -180 <= value <= 180:
            raise ValueError("longitude out of range")
        return value


class ChatEntry(BaseModel, frozen=True):
    user: str
    time: int
    text: Optional[str] = None
    icon: Optional[str] = None
    location: Optional[Location] = None

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


# ============================================================================
# WEBSOCKET REQUESTS
# ============================================================================

class JoinRequest(BaseModel):
    action: Literal["join"] = "join"
    room: str = Field(default="", max_length=settings.MAX_ROOM_NAME_LENGTH)
    user: str = Field(default="", max_length=settings.MAX_NAME_LENGTH)
    password: str = ""
    icon: Icon = None


class LeaveRoomRequest(BaseModel):
    action: Literal["leave-room"] = "leave-room"


class MessageRequest(BaseModel):
    action: Literal["message"] = "message"
    text: Optional[str] = Field(default=None, max_length=settings.MAX_MESSAGE_LENGTH)
    location: Optional[Location] = None
    icon: Icon = None


class CallParticipationRequest(BaseModel):
    action: Literal["call-participation"] = "call-participation"
    mode: Literal["join", "update", "leave"]
    user: Optional[str] = Field(default=None, max_length=settings.MAX_NAME_LENGTH)
    icon: Icon = None


class ProfileUpdateRequest(BaseModel):
    action: Literal["profile-update"] = "profile-update"
    user: Optional[str] = Field(default=None, max_length=settings.MAX_NAME_LENGTH)
    icon: Icon = None


class WebRTCRequest(BaseModel):
    action: Literal["webrtc"] = "webrtc"
    data: Any = None
    target: Optional[str] = None


# ============================================================================
# HTTP BODIES
# ============================================================================

class CreateRoomRequest(BaseModel):
    name: str = ""
    password: str = ""


class AdminLoginRequest(BaseModel):
    password: str = ""


class BlockAddressRequest(BaseModel):
    address: str = ""
