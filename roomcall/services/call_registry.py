# roomcall/services/call_registry.py

from __future__ import annotations

from typing import Dict, List

from roomcall.models.models import Profile
from roomcall.services.membership import MembershipRegistry


class CallRegistry:
    """
    Sessions whose microphone is live in each room's call.

    A room nobody is calling from has no entry at all. ``roster`` hides that
    by always answering with a list, so "never called" and "everyone hung up"
    look the same to callers.

    Data Structures:
        rooms: Maps room name -> {session_id: Profile} for call participants
               Example: {"lobby": {"a1b2": Profile(id="a1b2", user="alice")}}
        membership: Registry consulted so only room members can join a call
    """

    def __init__(self, membership: MembershipRegistry) -> None:
        self.membership = membership
        self.rooms: Dict[str, Dict[str, Profile]] = {}

    def set_participant(self, room: str, profile: Profile) -> bool:
        """
        Put a member on the call, or refresh its snapshot if already there.

        Args:
            room: Room whose call is being joined
            profile: Participant snapshot (id, display name, avatar)

        Returns:
            bool: True if the roster was written. False if profile.id is not
            a member of the room, in which case nothing changes.
        """
        if not self.membership.is_member(room, profile.id):
            return False
        self.rooms.setdefault(room, {})[profile.id] = profile
        return True

    def remove_participant(self, room: str, session_id: str) -> bool:
        """
        Take a session off the room's call.

        Returns:
            bool: True if the session was on the call

        Side Effects:
            - The room's entry is deleted when its last participant leaves
        """
        participants = self.rooms.get(room)
        if participants is None or session_id not in participants:
            return False
        del participants[session_id]
        if not participants:
            del self.rooms[room]
        return True

    def is_participant(self, room: str, session_id: str) -> bool:
        return session_id in self.rooms.get(room, {})

    def has_roster(self, room: str) -> bool:
        return room in self.rooms

    def roster(self, room: str) -> List[dict]:
        """
        Call roster as sent in "call-participants".

        Returns:
            list: [{"id", "user", "icon"}, ...]; always a list, [] when the
            room has no call going
        """
        return [profile.model_dump() for profile in self.rooms.get(room, {}).values()]

    def drop_room(self, room: str) -> None:
        self.rooms.pop(room, None)
