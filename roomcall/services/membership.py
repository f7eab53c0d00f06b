# roomcall/services/membership.py

from __future__ import annotations

from typing import Dict, List, Optional

from roomcall.models.models import Profile


class MembershipRegistry:
    """
    Which sessions are in which room, with the profile snapshot shown in the
    room roster.

    Data Structures:
        rooms: Maps room name -> {session_id: Profile}
               Dict order is join order, so the roster lists the oldest
               member first. Empty rooms have no entry.
               Example: {"lobby": {"a1b2": Profile(id="a1b2", user="alice")}}
    """

    def __init__(self, capacity: int = 5) -> None:
        self.capacity = capacity
        self.rooms: Dict[str, Dict[str, Profile]] = {}

    def is_member(self, room: str, session_id: str) -> bool:
        return session_id in self.rooms.get(room, {})

    def is_full(self, room: str) -> bool:
        return len(self.rooms.get(room, {})) >= self.capacity

    def can_join(self, room: str, session_id: str) -> bool:
        """
        Capacity check for a join.

        Args:
            room: Room being joined
            session_id: Session asking to join

        Returns:
            bool: True if the room has a free slot, or if the session is
            already a member (rejoining never counts against the cap)
        """
        return self.is_member(room, session_id) or not self.is_full(room)

    def upsert(self, room: str, profile: Profile) -> None:
        """
        Add a member or refresh its roster snapshot.

        Args:
            room: Room name
            profile: Snapshot to store under profile.id

        Side Effects:
            - A refresh keeps the member's original position in the roster

        Note:
            No capacity check here; callers check can_join first.
        """
        self.rooms.setdefault(room, {})[profile.id] = profile

    def remove(self, room: str, session_id: str) -> Optional[Profile]:
        """
        Remove one member.

        Returns:
            The member's last Profile, or None if it wasn't in the room

        Side Effects:
            - The room's entry is deleted once its last member is gone
        """
        members = self.rooms.get(room)
        if members is None:
            return None
        profile = members.pop(session_id, None)
        if not members:
            del self.rooms[room]
        return profile

    def drop_room(self, room: str) -> List[str]:
        """Forget every member of a room and return their ids."""
        return list(self.rooms.pop(room, {}))

    def member_ids(self, room: str) -> List[str]:
        return list(self.rooms.get(room, {}))

    def roster(self, room: str) -> List[dict]:
        """
        Room roster as sent in "room-users".

        Returns:
            list: [{"id", "user", "icon"}, ...] in join order; [] for an
            unknown or empty room
        """
        return [profile.model_dump() for profile in self.rooms.get(room, {}).values()]

    def count(self, room: str) -> int:
        return len(self.rooms.get(room, {}))
