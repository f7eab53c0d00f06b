# roomcall/core/config.py
import os
from typing import List, Tuple

from dotenv import load_dotenv


def _parse_default_rooms(raw: str) -> List[Tuple[str, str]]:
    """Parse ``name:password`` pairs separated by commas."""
    rooms: List[Tuple[str, str]] = []
    for chunk in raw.split(","):
        name, sep, password = chunk.partition(":")
        name = name.strip()
        if name and sep and password:
            rooms.append((name, password))
    return rooms


class Settings:
    """
    Setup environment variables.
        - HOST / PORT where uvicorn listens
        - ADMIN_PASSWORD password for the admin API (empty disables admin login)
        - DEFAULT_ROOMS rooms created at startup, "name:password,name:password"
        - MAX_ROOM_MEMBERS how many sessions can be in one room at once
        - HISTORY_LIMIT how many chat entries each room keeps for replay
        - HISTORY_CLEAR_INTERVAL_SECONDS how often every room's history is wiped
        - TRUST_PROXY_HEADERS use X-Forwarded-For as the client address
        - LOG_LEVEL root log level (DEBUG, INFO, WARNING, ...)
    """

    # Load environment variables from the .env file
    load_dotenv()

    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))

    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")
    DEFAULT_ROOMS: List[Tuple[str, str]] = _parse_default_rooms(
        os.getenv("DEFAULT_ROOMS", "General:general,Welcome:welcome")
    )

    MAX_ROOM_MEMBERS: int = int(os.getenv("MAX_ROOM_MEMBERS", "5"))
    HISTORY_LIMIT: int = int(os.getenv("HISTORY_LIMIT", "500"))
    HISTORY_CLEAR_INTERVAL_SECONDS: float = float(
        os.getenv("HISTORY_CLEAR_INTERVAL_SECONDS", str(12 * 60 * 60))
    )

    MAX_ICON_LENGTH: int = int(os.getenv("MAX_ICON_LENGTH", "512000"))
    MAX_MESSAGE_LENGTH: int = int(os.getenv("MAX_MESSAGE_LENGTH", "2000"))
    MAX_NAME_LENGTH: int = int(os.getenv("MAX_NAME_LENGTH", "64"))
    MAX_ROOM_NAME_LENGTH: int = int(os.getenv("MAX_ROOM_NAME_LENGTH", "64"))

    OUTBOUND_QUEUE_SIZE: int = int(os.getenv("OUTBOUND_QUEUE_SIZE", "256"))
    TRUST_PROXY_HEADERS: bool = os.getenv("TRUST_PROXY_HEADERS", "false").lower() == "true"

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
