"""Tests for the room directory and address normalization."""
import pytest

from roomcall.core.errors import ErrorCode
from roomcall.services.room_manager import RoomManager, normalize_address


class TestNormalizeAddress:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("10.0.0.1", "10.0.0.1"),
            ("  10.0.0.1 ", "10.0.0.1"),
            ("::ffff:10.0.0.1", "10.0.0.1"),
            ("2001:db8:0:0:0:0:0:1", "2001:db8::1"),
        ],
    )
    def test_valid_addresses(self, raw, expected):
        assert normalize_address(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "testclient", "10.0.0", "999.1.1.1"])
    def test_invalid_addresses(self, raw):
        assert normalize_address(raw) is None


class TestRoomManager:
    def test_create_room_trims_name(self):
        manager = RoomManager()
        result = manager.create_room("  lobby  ", "secret")
        assert result.ok
        assert result.value.name == "lobby"
        assert manager.list_names() == ["lobby"]

    def test_create_room_rejects_blank_name(self):
        result = RoomManager().create_room("   ", "secret")
        assert result.error == ErrorCode.INVALID_NAME

    def test_create_room_rejects_long_name(self):
        result = RoomManager(max_name_length=5).create_room("abcdef", "secret")
        assert result.error == ErrorCode.INVALID_NAME

    def test_create_room_requires_password(self):
        result = RoomManager().create_room("lobby", "")
        assert result.error == ErrorCode.MISSING_PASSWORD

    def test_duplicate_name_is_case_sensitive(self):
        manager = RoomManager()
        manager.create_room("lobby", "secret")
        assert manager.create_room("lobby", "other").error == ErrorCode.ALREADY_EXISTS
        assert manager.create_room("Lobby", "other").ok

    def test_list_names_keeps_creation_order(self):
        manager = RoomManager()
        for name in ("b", "a", "c"):
            manager.create_room(name, "pw")
        assert manager.list_names() == ["b", "a", "c"]

    def test_block_and_unblock(self):
        manager = RoomManager()
        manager.create_room("lobby", "secret")

        assert manager.block("lobby", "::ffff:192.168.1.5").value == "192.168.1.5"
        assert manager.is_blocked("lobby", "192.168.1.5")

        assert manager.unblock("lobby", "192.168.1.5").ok
        assert not manager.is_blocked("lobby", "192.168.1.5")

    def test_block_is_idempotent(self):
        manager = RoomManager()
        manager.create_room("lobby", "secret")
        manager.block("lobby", "10.0.0.1")
        assert manager.block("lobby", "10.0.0.1").ok
        assert manager.get_room("lobby").blocked == {"10.0.0.1"}

    def test_block_errors(self):
        manager = RoomManager()
        manager.create_room("lobby", "secret")
        assert manager.block("missing", "10.0.0.1").error == ErrorCode.NOT_FOUND
        assert manager.block("lobby", "not-an-ip").error == ErrorCode.INVALID_ADDRESS
        assert manager.unblock("lobby", "not-an-ip").error == ErrorCode.INVALID_ADDRESS
        assert manager.unblock("lobby", "10.0.0.1").error == ErrorCode.NOT_BLOCKED

    def test_unparseable_client_address_is_never_blocked(self):
        manager = RoomManager()
        manager.create_room("lobby", "secret")
        manager.block("lobby", "10.0.0.1")
        assert not manager.is_blocked("lobby", "testclient")
        assert not manager.is_blocked("lobby", None)
