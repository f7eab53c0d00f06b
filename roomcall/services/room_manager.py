# roomcall/services/room_manager.py

from __future__ import annotations

import ipaddress
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from roomcall.core.errors import ErrorCode, Result
from roomcall.models.models import Room

logger = logging.getLogger(__name__)


def normalize_address(address: Optional[str]) -> Optional[str]:
    """
    Canonical text form of an IP address, or None if it is not one.

    IPv4-mapped IPv6 addresses ("::ffff:10.0.0.1") collapse to plain IPv4 so
    a block on either spelling matches the same client.
    """
    if not address:
        return None
    try:
        ip = ipaddress.ip_address(address.strip())
    except ValueError:
        return None
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return str(ip)


# ============================================================================
# ROOM DIRECTORY
# ============================================================================
class RoomManager:
    """
    Room metadata, passwords and per-room IP blocklists, held in memory.

    Only the directory lives here. Membership, history and call rosters are
    kept by their own registries and cleaned up by the coordinator, which is
    also the one that broadcasts room list changes.

    Attributes:
        rooms: Dictionary mapping room name -> Room, in creation order
        max_name_length: Longest accepted room name
    """

    def __init__(self, max_name_length: int = 64):
        self.rooms: Dict[str, Room] = {}
        self.max_name_length = max_name_length

    def create_room(self, name: str, password: str) -> Result:
        """
        Validate and store a new room.

        Args:
            name: Room name; surrounding whitespace is trimmed and the
                comparison with existing names is case-sensitive
            password: Password members must present to join

        Returns:
            Result: the new Room on success, otherwise InvalidName (empty or
            longer than max_name_length), MissingPassword or AlreadyExists

        Note:
            History buffers and the rooms-update broadcast are the
            coordinator's job.
        """
        name = (name or "").strip()
        if not name or len(name) > self.max_name_length:
            return Result.failure(ErrorCode.INVALID_NAME)
        if not password:
            return Result.failure(ErrorCode.MISSING_PASSWORD)
        if name in self.rooms:
            return Result.failure(ErrorCode.ALREADY_EXISTS)

        room = Room(name=name, password=password, created_at=datetime.now(timezone.utc))
        self.rooms[name] = room
        logger.info("✓ Created room: %s", name)
        return Result.success(room)

    def get_room(self, name: str) -> Optional[Room]:
        """
        Look up a room by exact name.

        Returns:
            Room if it exists, None otherwise
        """
        return self.rooms.get(name)

    def list_rooms(self) -> List[Room]:
        """All rooms in creation order, passwords and blocklists included (admin view)."""
        return list(self.rooms.values())

    def list_names(self) -> List[str]:
        """Public view: names only, never passwords."""
        return list(self.rooms)

    def delete_room(self, name: str) -> Optional[Room]:
        """
        Remove a room from the directory.

        Args:
            name: Room to delete

        Returns:
            The removed Room, or None if there was no such room

        Side Effects:
            - The room's blocklist goes with it; a room later created under
              the same name starts with an empty one
        """
        room = self.rooms.pop(name, None)
        if room is not None:
            logger.info("✓ Deleted room: %s", name)
        return room

    def block(self, name: str, address: str) -> Result:
        """
        Add an address to the room's blocklist.

        Args:
            name: Room to block the address from
            address: IPv4 or IPv6 address in any spelling

        Returns:
            Result: the normalized address on success (blocking twice is
            fine), otherwise NotFound or InvalidAddress

        Note:
            Evicting members already connected from the address is left to
            the coordinator.
        """
        room = self.rooms.get(name)
        if room is None:
            return Result.failure(ErrorCode.NOT_FOUND)
        normalized = normalize_address(address)
        if normalized is None:
            return Result.failure(ErrorCode.INVALID_ADDRESS)
        room.blocked.add(normalized)
        logger.info("⛔ Blocked %s in '%s'", normalized, name)
        return Result.success(normalized)

    def unblock(self, name: str, address: str) -> Result:
        """
        Remove an address from the room's blocklist.

        Returns:
            Result: the normalized address on success, otherwise NotFound,
            InvalidAddress or NotBlocked
        """
        room = self.rooms.get(name)
        if room is None:
            return Result.failure(ErrorCode.NOT_FOUND)
        normalized = normalize_address(address)
        if normalized is None:
            return Result.failure(ErrorCode.INVALID_ADDRESS)
        if normalized not in room.blocked:
            return Result.failure(ErrorCode.NOT_BLOCKED)
        room.blocked.discard(normalized)
        logger.info("Unblocked %s in '%s'", normalized, name)
        return Result.success(normalized)

    def is_blocked(self, name: str, address: Optional[str]) -> bool:
        """
        Check a client address against the room's blocklist.

        Addresses that don't parse as IPs (no peer info, test clients) are
        never considered blocked.
        """
        room = self.rooms.get(name)
        normalized = normalize_address(address)
        return room is not None and normalized is not None and normalized in room.blocked
