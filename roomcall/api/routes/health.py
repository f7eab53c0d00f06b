# roomcall/api/routes/health.py

from datetime import datetime, timezone

from fastapi import APIRouter

from roomcall.core import state

router = APIRouter()

@router.get("/health")
async def health():
    """
    Health check endpoint.

    Returns current system status, connection counts and room counts.

    Returns:
        dict: Status, uptime, connections, rooms, rooms with members, messages accepted
    """
    uptime_seconds = (datetime.now(timezone.utc) - state.app_start_time).total_seconds()
    return {
        "status": "healthy",
        "uptime_seconds": round(uptime_seconds, 1),
        **state.coordinator.stats(),
    }
