# roomcall/services/coordinator.py
"""
Session lifecycle coordinator.

This is the only code path that mutates rooms, sessions, membership, call
rosters or history. Every public method is synchronous and never awaits, so
on a single event loop each one runs to completion before the next handler
starts: the cap check and the insert that follows it can't interleave with
another join, and a teardown is never observed half done.

Outbound traffic goes through ConnectionManager, which only queues frames.

Lifecycle per session:
    connect()     -> session exists, no room
    join()        -> member of exactly one room
    leave()/kick()/block/delete -> back to no room
    disconnect()  -> session and its queue are gone

Every path out of a room goes through ``_detach`` so membership, call
roster and broadcast group always change together.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from typing import Any, Iterable, List, Optional, Tuple

from roomcall.core.errors import ErrorCode, Result
from roomcall.models.models import ChatEntry, Location, Profile
from roomcall.services.call_registry import CallRegistry
from roomcall.services.connection_manager import ConnectionManager
from roomcall.services.history import HistoryBuffer
from roomcall.services.membership import MembershipRegistry
from roomcall.services.room_manager import RoomManager, normalize_address
from roomcall.services.session_store import Session, SessionStore

logger = logging.getLogger(__name__)

# Marks an avatar argument that was not supplied at all, as opposed to None
# which clears the avatar.
UNCHANGED: Any = object()

CALL_MODES = ("join", "update", "leave")


class Coordinator:
    """
    Owns every piece of chat state for the process.

    Attributes:
        connections: Outbound queues and per-room broadcast groups
        rooms: Room directory (names, passwords, blocklists)
        sessions: Identity/profile store, one entry per live connection
        members: Room membership with roster snapshots, capped per room
        history: Bounded per-room chat history
        calls: Per-room call rosters
        message_count: Chat entries accepted since startup (for /health)
    """

    def __init__(
        self,
        connections: ConnectionManager,
        *,
        max_members: int = 5,
        history_limit: int = 500,
        max_room_name_length: int = 64,
        max_message_length: int = 2000,
        default_rooms: Iterable[Tuple[str, str]] = (),
    ) -> None:
        self.connections = connections
        self.rooms = RoomManager(max_name_length=max_room_name_length)
        self.sessions = SessionStore()
        self.members = MembershipRegistry(capacity=max_members)
        self.history = HistoryBuffer(limit=history_limit)
        self.calls = CallRegistry(self.members)
        self.max_message_length = max_message_length
        self.message_count = 0

        for name, password in default_rooms:
            result = self.rooms.create_room(name, password)
            if result.ok:
                self.history.create(result.value.name)
            else:
                logger.warning("Skipping default room %r: %s", name, result.message)

    @classmethod
    def from_settings(cls, connections: ConnectionManager, settings) -> "Coordinator":
        return cls(
            connections,
            max_members=settings.MAX_ROOM_MEMBERS,
            history_limit=settings.HISTORY_LIMIT,
            max_room_name_length=settings.MAX_ROOM_NAME_LENGTH,
            max_message_length=settings.MAX_MESSAGE_LENGTH,
            default_rooms=settings.DEFAULT_ROOMS,
        )

    # ========================================================================
    # CONNECTION LIFECYCLE
    # ========================================================================

    def connect(self, address: Optional[str]) -> Session:
        """Register a new connection and tell the client its session id."""
        session = self.sessions.create(normalize_address(address) or address)
        self.connections.open(session.id)
        self.connections.send(session.id, "connected", {"id": session.id})
        return session

    def disconnect(self, session_id: str) -> None:
        """Transport went away. Safe for sessions that never joined or are already gone."""
        session = self.sessions.get(session_id)
        if session is None:
            return
        self._detach(session, notify=True)
        self.sessions.remove(session_id)
        self.connections.close(session_id)

    # ========================================================================
    # ROOM MEMBERSHIP
    # ========================================================================

    def join(
        self,
        session_id: str,
        room_name: str,
        password: str,
        user: str,
        icon: Any = UNCHANGED,
    ) -> Result:
        """
        Join (or rejoin) a room.

        All checks run before anything is mutated. On success the reply value
        is {"room": name, "messages": [history...]}.
        """
        session = self.sessions.get(session_id)
        if session is None:
            return Result.failure(ErrorCode.NOT_JOINED, "Unknown session")

        room_name = (room_name or "").strip()
        if not room_name:
            return Result.failure(ErrorCode.MISSING_ROOM)
        room = self.rooms.get_room(room_name)
        if room is None:
            return Result.failure(ErrorCode.ROOM_NOT_FOUND)
        if self.rooms.is_blocked(room_name, session.address):
            return Result.failure(ErrorCode.BLOCKED)
        if not secrets.compare_digest((password or "").encode(), room.password.encode()):
            return Result.failure(ErrorCode.WRONG_PASSWORD)
        name = (user or "").strip()
        if not name:
            return Result.failure(ErrorCode.MISSING_NAME)
        if not self.members.can_join(room_name, session_id):
            return Result.failure(ErrorCode.ROOM_FULL)

        # One room at a time: switching rooms leaves the old one first
        if session.room is not None and session.room != room_name:
            self._detach(session, notify=True)

        session.room = room_name
        self._apply_profile(session, name, icon)
        self.connections.add_to_group(room_name, session_id)

        in_call = self.calls.is_participant(room_name, session_id)
        if in_call:
            self.calls.set_participant(room_name, session.profile())

        self.connections.broadcast_to_room(
            room_name, "system", f"{name} joined {room_name}", exclude=session_id
        )
        if in_call:
            self._broadcast_call_roster(room_name, exclude=session_id)
        self.connections.send(session_id, "call-participants", self.calls.roster(room_name))
        self._broadcast_room_users(room_name)

        logger.info(
            "→ %s joined '%s' (%d members)", name, room_name, self.members.count(room_name)
        )
        return Result.success({"room": room_name, "messages": self.history.payload(room_name)})

    def leave(self, session_id: str) -> Result:
        session = self.sessions.get(session_id)
        if session is None or session.room is None:
            return Result.failure(ErrorCode.NOT_JOINED)
        room = self._detach(session, notify=True)
        return Result.success({"room": room})

    def kick(self, room_name: str, session_id: str) -> Result:
        """Evict one member, notifying the rest of the room and the member."""
        if self.rooms.get_room(room_name) is None:
            return Result.failure(ErrorCode.NOT_FOUND)
        session = self.sessions.get(session_id)
        if session is None or session.room != room_name:
            return Result.failure(ErrorCode.NOT_JOINED, "Session is not in this room")
        self._detach(session, notify=True)
        self.connections.send(session_id, "room-kicked", {"room": room_name})
        logger.info("⛔ Kicked %s from '%s'", session_id, room_name)
        return Result.success({"room": room_name, "session": session_id})

    def _detach(self, session: Session, notify: bool) -> Optional[str]:
        """
        Single teardown primitive: membership, call roster, broadcast group
        and the session's room pointer go together.

        With notify=False (room deletion) nobody is told; everyone in the
        room is being evicted anyway.
        """
        room = session.room
        if room is None:
            return None

        self.members.remove(room, session.id)
        self.connections.remove_from_group(room, session.id)
        left_call = self.calls.remove_participant(room, session.id)
        session.room = None

        if notify:
            if left_call:
                self._broadcast_call_roster(room)
            self.connections.broadcast_to_room(room, "system", f"{session.user} left {room}")
            self._broadcast_room_users(room)

        logger.info("← %s left '%s' (%d members)", session.user, room, self.members.count(room))
        return room

    # ========================================================================
    # IN-ROOM EVENTS
    # ========================================================================

    def send_message(
        self,
        session_id: str,
        text: Optional[str] = None,
        location: Optional[Location] = None,
        icon: Optional[str] = None,
    ) -> Optional[ChatEntry]:
        """
        Append a chat entry and broadcast it to the whole room, sender included.

        Fire-and-forget: non-members, oversized text and entries with neither
        text nor a location are dropped without a reply.
        """
        session = self.sessions.get(session_id)
        if session is None or session.room is None:
            logger.debug("Dropped message from non-member %s", session_id)
            return None

        text = text.strip() if isinstance(text, str) else None
        if text and len(text) > self.max_message_length:
            logger.debug("Dropped oversized message from %s", session_id)
            return None
        if not text and location is None:
            return None

        room = session.room
        entry = ChatEntry(
            user=session.user,
            time=int(time.time() * 1000),
            text=text or None,
            icon=icon if icon is not None else session.icon,
            location=location,
        )
        self.history.append(room, entry)
        self.message_count += 1
        self.connections.broadcast_to_room(room, "message", entry.to_payload())
        return entry

    def call_participation(
        self,
        session_id: str,
        mode: str,
        user: Optional[str] = None,
        icon: Any = UNCHANGED,
    ) -> bool:
        """
        Join, refresh or leave the room's call. Returns whether the roster changed.

        A name or avatar carried along changes the profile for the whole room,
        so presence (profile-updated, room-users) is refreshed before the call
        roster goes out.
        """
        session = self.sessions.get(session_id)
        if session is None or session.room is None or mode not in CALL_MODES:
            return False
        room = session.room

        if mode == "leave":
            changed = self.calls.remove_participant(room, session_id)
        else:
            before = session.profile()
            name = user.strip() if user and user.strip() else session.user
            self._apply_profile(session, name, icon)
            profile = session.profile()
            if profile != before:
                self._broadcast_profile(room, profile)
            changed = self.calls.set_participant(room, profile)

        if changed:
            self._broadcast_call_roster(room)
        return changed

    def update_profile(
        self, session_id: str, user: Optional[str] = None, icon: Any = UNCHANGED
    ) -> Result:
        """
        Change display name and/or avatar. A blank name keeps the current one.

        Works before joining too; once joined the room sees the change in its
        roster, and in the call roster if the session is on the call.
        """
        session = self.sessions.get(session_id)
        if session is None:
            return Result.failure(ErrorCode.NOT_JOINED, "Unknown session")

        name = user.strip() if isinstance(user, str) else ""
        self._apply_profile(session, name or session.user, icon)
        profile = session.profile()

        room = session.room
        if room is not None:
            self._broadcast_profile(room, profile)
            if self.calls.is_participant(room, session_id):
                self.calls.set_participant(room, profile)
                self._broadcast_call_roster(room)

        return Result.success({"profile": profile.model_dump()})

    def relay_signal(self, session_id: str, data: Any, target: Optional[str] = None) -> bool:
        """
        Forward an opaque WebRTC signaling payload to the sender's room.

        With a target, only that member gets it; targets outside the room are
        dropped.
        """
        session = self.sessions.get(session_id)
        if session is None or session.room is None:
            return False
        room = session.room

        if target is not None:
            if target == session_id or not self.members.is_member(room, target):
                return False
            recipients = [target]
        else:
            recipients = [sid for sid in self.connections.group_members(room) if sid != session_id]

        self.connections.send_many(recipients, "webrtc", {"sender": session_id, "data": data})
        return True

    def _apply_profile(self, session: Session, name: str, icon: Any) -> None:
        session.user = name
        if icon is not UNCHANGED:
            session.icon = icon
        if session.room is not None:
            self.members.upsert(session.room, session.profile())

    def _broadcast_profile(self, room: str, profile: Profile) -> None:
        """A changed name or avatar: the profile itself, then the refreshed roster."""
        self.connections.broadcast_to_room(room, "profile-updated", profile.model_dump())
        self._broadcast_room_users(room)

    def _broadcast_room_users(self, room: str) -> None:
        self.connections.broadcast_to_room(room, "room-users", self.members.roster(room))

    def _broadcast_call_roster(self, room: str, exclude: Optional[str] = None) -> None:
        self.connections.broadcast_to_room(
            room, "call-participants", self.calls.roster(room), exclude=exclude
        )

    # ========================================================================
    # ROOM DIRECTORY
    # ========================================================================

    def create_room(self, name: str, password: str) -> Result:
        result = self.rooms.create_room(name, password)
        if not result.ok:
            return result
        room = result.value
        self.history.create(room.name)
        self._broadcast_room_list()
        return Result.success({"room": room.name})

    def delete_room(self, name: str) -> Result:
        """
        Remove a room and everything hanging off it.

        Members are evicted silently (the room is gone, there is nobody left
        to tell) and each gets a direct room-deleted notice.
        """
        if self.rooms.get_room(name) is None:
            return Result.failure(ErrorCode.NOT_FOUND)

        evicted = self.members.member_ids(name)
        for session_id in evicted:
            session = self.sessions.get(session_id)
            if session is not None:
                self._detach(session, notify=False)
            self.connections.send(session_id, "room-deleted", {"room": name})

        self.members.drop_room(name)
        self.calls.drop_room(name)
        self.history.drop(name)
        self.connections.drop_group(name)
        self.rooms.delete_room(name)

        self._broadcast_room_list()
        return Result.success({"room": name, "evicted": len(evicted)})

    def block_address(self, name: str, address: str) -> Result:
        """Blocklist an address and evict every member connecting from it."""
        result = self.rooms.block(name, address)
        if not result.ok:
            return result
        blocked = result.value

        members = (self.sessions.get(session_id) for session_id in self.members.member_ids(name))
        evicted = [session for session in members if session is not None and session.address == blocked]
        for session in evicted:
            self._detach(session, notify=True)
            self.connections.send(session.id, "room-blocked", {"room": name})

        return Result.success({"room": name, "address": blocked, "evicted": len(evicted)})

    def unblock_address(self, name: str, address: str) -> Result:
        result = self.rooms.unblock(name, address)
        if not result.ok:
            return result
        return Result.success({"room": name, "address": result.value})

    def list_public(self) -> List[str]:
        return self.rooms.list_names()

    def list_admin(self) -> List[dict]:
        """Full room metadata for the admin console, passwords included."""
        rooms = []
        for room in self.rooms.list_rooms():
            members = []
            for session_id, profile in self.members.rooms.get(room.name, {}).items():
                session = self.sessions.get(session_id)
                members.append(
                    {
                        "id": session_id,
                        "user": profile.user,
                        "address": session.address if session is not None else None,
                    }
                )
            rooms.append(
                {
                    "name": room.name,
                    "password": room.password,
                    "created_at": room.created_at.isoformat(),
                    "blocked": sorted(room.blocked),
                    "members": members,
                    "call_participants": len(self.calls.roster(room.name)),
                }
            )
        return rooms

    def _broadcast_room_list(self) -> None:
        self.connections.broadcast("rooms-update", self.rooms.list_names())

    # ========================================================================
    # HISTORY
    # ========================================================================

    def clear_history(self) -> List[str]:
        """
        Wipe every room's history. Only rooms that had entries announce it;
        the notice goes to every client so they can drop their local copy.
        """
        cleared = self.history.drain()
        for room in cleared:
            self.connections.broadcast("clear-history", {"room": room})
        return cleared

    def stats(self) -> dict:
        return {
            "connections": len(self.sessions),
            "rooms": len(self.rooms.rooms),
            "active_rooms_with_members": len(self.members.rooms),
            "messages": self.message_count,
        }


async def periodic_history_clear(coordinator_getter, interval: float) -> None:
    """Background task: clear chat history every ``interval`` seconds."""
    while True:
        await asyncio.sleep(interval)
        try:
            coordinator_getter().clear_history()
        except Exception:
            logger.exception("History clear failed")
