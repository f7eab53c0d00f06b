# roomcall/api/routes/admin.py

from typing import Optional

from fastapi import APIRouter, Header

from roomcall.api.routes.utils import raise_for_result
from roomcall.core import state
from roomcall.models.models import AdminLoginRequest, BlockAddressRequest, CreateRoomRequest

router = APIRouter(prefix="/api/admin", tags=["Admin"])

# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================
# Every route except login expects the token in the x-admin-token header and
# answers 401 without a valid one.


@router.post("/login")
async def login(request: AdminLoginRequest):
    """Exchange the admin password for a token plus the current room list."""
    result = raise_for_result(state.moderation.login(request.password))
    return {"ok": True, **result.value}


@router.post("/logout")
async def logout(x_admin_token: Optional[str] = Header(None)):
    raise_for_result(state.moderation.logout(x_admin_token))
    return {"ok": True}


@router.get("/rooms")
async def list_rooms(x_admin_token: Optional[str] = Header(None)):
    """Full room metadata: passwords, blocked addresses and current members."""
    result = raise_for_result(state.moderation.list_rooms(x_admin_token))
    return {"ok": True, **result.value}


@router.post("/rooms", status_code=201)
async def create_room(request: CreateRoomRequest, x_admin_token: Optional[str] = Header(None)):
    raise_for_result(state.moderation.create_room(x_admin_token, request.name, request.password))
    return {"ok": True, "rooms": state.coordinator.list_admin()}


@router.delete("/rooms/{name}")
async def delete_room(name: str, x_admin_token: Optional[str] = Header(None)):
    """
    Delete a room.

    Side Effects:
        - Every member is evicted and sent "room-deleted"
        - History, call roster and blocklist are discarded
        - "rooms-update" broadcast to every connected client
    """
    raise_for_result(state.moderation.delete_room(x_admin_token, name))
    return {"ok": True, "rooms": state.coordinator.list_admin()}


@router.post("/rooms/{name}/blocks")
async def block_address(
    name: str, request: BlockAddressRequest, x_admin_token: Optional[str] = Header(None)
):
    """Block an IP address; members connected from it are evicted immediately."""
    result = raise_for_result(state.moderation.block_address(x_admin_token, name, request.address))
    return {"ok": True, **result.value}


@router.delete("/rooms/{name}/blocks/{address}")
async def unblock_address(name: str, address: str, x_admin_token: Optional[str] = Header(None)):
    result = raise_for_result(state.moderation.unblock_address(x_admin_token, name, address))
    return {"ok": True, **result.value}


@router.delete("/rooms/{name}/members/{session_id}")
async def kick_member(name: str, session_id: str, x_admin_token: Optional[str] = Header(None)):
    raise_for_result(state.moderation.kick(x_admin_token, name, session_id))
    return {"ok": True, "rooms": state.coordinator.list_admin()}
