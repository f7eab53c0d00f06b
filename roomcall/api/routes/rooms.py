# roomcall/api/routes/rooms.py

from fastapi import APIRouter

from roomcall.api.routes.utils import raise_for_result
from roomcall.core import state
from roomcall.models.models import CreateRoomRequest

router = APIRouter(prefix="/api")

# ============================================================================
# PUBLIC ROOM ENDPOINTS
# ============================================================================

@router.get("/rooms")
async def list_rooms():
    """
    List room names for the join form.

    Passwords and blocklists are never exposed here.
    """
    return {"ok": True, "rooms": state.coordinator.list_public()}


@router.post("/rooms", status_code=201)
async def create_room(request: CreateRoomRequest):
    """
    Create a password-protected room.

    Raises:
        HTTPException: 400 if the name is empty or taken, or the password is missing

    Side Effects:
        - "rooms-update" broadcast to every connected client
    """
    result = raise_for_result(state.coordinator.create_room(request.name, request.password))
    return {"ok": True, "room": result.value["room"], "rooms": state.coordinator.list_public()}
