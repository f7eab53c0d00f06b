# roomcall/api/websocket.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from roomcall.core import state
from roomcall.core.config import settings
from roomcall.models.models import (
    CallParticipationRequest,
    JoinRequest,
    LeaveRoomRequest,
    MessageRequest,
    ProfileUpdateRequest,
    WebRTCRequest,
)
from roomcall.services.coordinator import UNCHANGED, Coordinator

logger = logging.getLogger(__name__)

router = APIRouter()

REQUEST_TYPES = {
    "join": JoinRequest,
    "leave-room": LeaveRoomRequest,
    "message": MessageRequest,
    "call-participation": CallParticipationRequest,
    "profile-update": ProfileUpdateRequest,
    "webrtc": WebRTCRequest,
}

# Actions that get a reply frame; everything else is fire-and-forget
REPLYING_ACTIONS = {"join", "leave-room", "profile-update"}


def client_address(websocket: WebSocket) -> Optional[str]:
    if settings.TRUST_PROXY_HEADERS:
        forwarded = websocket.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return websocket.client.host if websocket.client else None


def describe_validation_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ())) or "request"
    return f"Invalid {field}: {error.get('msg', 'bad value')}"


def _icon_argument(request: Any) -> Any:
    # An explicit "icon": null clears the avatar; a missing key keeps it
    return request.icon if "icon" in request.model_fields_set else UNCHANGED


def handle_frame(coordinator: Coordinator, session_id: str, raw: str) -> None:
    """Decode one client frame and run it through the coordinator."""
    connections = coordinator.connections

    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        connections.send(session_id, "error", {"message": "Invalid JSON"})
        return
    if not isinstance(message, dict):
        connections.send(session_id, "error", {"message": "Frame must be a JSON object"})
        return

    action = message.get("action")
    request_type = REQUEST_TYPES.get(action)
    if request_type is None:
        connections.send(session_id, "error", {"message": f"Unknown action: {action}"})
        return

    ack = message.get("ack")

    def reply(payload: dict) -> None:
        extra = {"ack": ack} if ack is not None else {}
        connections.send(session_id, action, payload, **extra)

    try:
        request = request_type.model_validate(message)
    except ValidationError as exc:
        if action in REPLYING_ACTIONS:
            reply({"ok": False, "error": describe_validation_error(exc), "code": "ValidationError"})
        else:
            logger.debug("Dropped invalid '%s' frame from %s", action, session_id)
        return

    logger.debug("Websocket input: session=%s action=%s", session_id, action)

    if isinstance(request, JoinRequest):
        result = coordinator.join(
            session_id, request.room, request.password, request.user, _icon_argument(request)
        )
        reply(result.to_reply())

    elif isinstance(request, LeaveRoomRequest):
        reply(coordinator.leave(session_id).to_reply())

    elif isinstance(request, MessageRequest):
        coordinator.send_message(session_id, request.text, request.location, request.icon)

    elif isinstance(request, CallParticipationRequest):
        coordinator.call_participation(
            session_id, request.mode, request.user, _icon_argument(request)
        )

    elif isinstance(request, ProfileUpdateRequest):
        result = coordinator.update_profile(session_id, request.user, _icon_argument(request))
        reply(result.to_reply())

    elif isinstance(request, WebRTCRequest):
        coordinator.relay_signal(session_id, request.data, request.target)


async def forward_events(
    websocket: WebSocket, queue: asyncio.Queue, coordinator: Coordinator, session_id: str
) -> None:
    """
    Writer task: drain the session's outbound queue onto the socket, in order.

    A failed send means the client is gone. The session is torn down right
    away so its room stops queueing frames for it; the receive loop's own
    disconnect later finds nothing left to do.
    """
    while True:
        frame = await queue.get()
        try:
            await websocket.send_json(frame)
        except Exception as e:
            logger.error("Send error for %s: %s", session_id, e)
            coordinator.disconnect(session_id)
            return


# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for room chat, presence, call rosters and signaling.

    Protocol:
    =========

    Client -> Server frames: {"action": "...", "ack"?: <echoed in the reply>, ...}
    -------------------------
    Join Room:
        {"action": "join", "room": "lobby", "user": "alice", "password": "secret", "icon": "data:image/..."}
        Reply: {"type": "join", "data": {"ok": true, "room": "lobby", "messages": [...]}}

    Leave Room:
        {"action": "leave-room"}
        Reply: {"type": "leave-room", "data": {"ok": true, "room": "lobby"}}

    Chat / Location:
        {"action": "message", "text": "hi", "location": {"latitude": 35.6, "longitude": 139.7}}

    Call Roster:
        {"action": "call-participation", "mode": "join" | "update" | "leave", "user"?: "...", "icon"?: "..."}

    Profile:
        {"action": "profile-update", "user"?: "...", "icon"?: "..."}
        Reply: {"type": "profile-update", "data": {"ok": true, "profile": {...}}}

    Signaling:
        {"action": "webrtc", "data": {...}, "target"?: "<session id>"}

    Server -> Client frames: {"type": "...", "data": ...}
    -------------------------
    connected, system, message, room-users, call-participants, profile-updated,
    webrtc, rooms-update, room-deleted, room-blocked, room-kicked,
    clear-history, error

    Lifecycle:
    ==========
    1. Connection accepted, session id assigned and pushed as "connected"
    2. Client joins a room with its password
    3. Room events fan out to every member through per-session queues
    4. On disconnect the session is torn down from its room and forgotten
    """
    await websocket.accept()

    coordinator = state.coordinator
    session = coordinator.connect(client_address(websocket))
    queue = coordinator.connections.queue_for(session.id)
    writer = asyncio.create_task(forward_events(websocket, queue, coordinator, session.id))

    try:
        while True:
            data = await websocket.receive_text()
            handle_frame(coordinator, session.id, data)

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error("WebSocket error: %s", e)
    finally:
        coordinator.disconnect(session.id)
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer
