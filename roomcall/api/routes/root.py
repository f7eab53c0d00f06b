# roomcall/api/routes/root.py

from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root():
    """
    Service information for anyone poking at the server.

    Lists the features and where the websocket and REST endpoints live.
    """
    return {
        "message": "roomcall - room chat and voice call relay",
        "version": "1.0",
        "features": ["password_rooms", "presence", "call_roster", "location_sharing", "moderation"],
        "endpoints": {
            "websocket": "/ws",
            "rooms": "/api/rooms",
            "admin": "/api/admin",
            "health": "/health",
        },
    }
