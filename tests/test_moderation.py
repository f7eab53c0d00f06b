"""Tests for admin authentication and the guarded room operations."""
import pytest

from conftest import ADMIN_PASSWORD, drain, of_type
from roomcall.core.errors import ErrorCode
from roomcall.services.moderation import Moderation


@pytest.fixture
def moderation(coordinator):
    return Moderation(coordinator, admin_password=ADMIN_PASSWORD)


@pytest.fixture
def token(moderation):
    return moderation.login(ADMIN_PASSWORD).value["token"]


def test_login_returns_token_and_rooms(moderation):
    result = moderation.login(ADMIN_PASSWORD)

    assert result.ok
    assert moderation.is_authenticated(result.value["token"])
    assert [room["name"] for room in result.value["rooms"]] == ["general"]
    assert result.value["rooms"][0]["password"] == "pw"


def test_each_login_gets_its_own_token(moderation):
    first = moderation.login(ADMIN_PASSWORD).value["token"]
    second = moderation.login(ADMIN_PASSWORD).value["token"]
    assert first != second
    assert moderation.is_authenticated(first) and moderation.is_authenticated(second)


@pytest.mark.parametrize("password", ["", "wrong", ADMIN_PASSWORD.upper()])
def test_wrong_password(moderation, password):
    result = moderation.login(password)
    assert result.error == ErrorCode.UNAUTHENTICATED
    assert not moderation.tokens


def test_login_disabled_without_password(coordinator):
    moderation = Moderation(coordinator, admin_password="")
    assert moderation.login("").error == ErrorCode.UNAUTHENTICATED
    assert moderation.login("anything").error == ErrorCode.UNAUTHENTICATED


def test_logout_revokes_token(moderation, token):
    assert moderation.logout(token).ok
    assert not moderation.is_authenticated(token)
    assert moderation.logout(token).error == ErrorCode.UNAUTHENTICATED
    assert moderation.list_rooms(token).error == ErrorCode.UNAUTHENTICATED


@pytest.mark.parametrize("bad_token", [None, "", "forged"])
def test_operations_require_token(moderation, coordinator, bad_token):
    assert moderation.list_rooms(bad_token).error == ErrorCode.UNAUTHENTICATED
    assert moderation.create_room(bad_token, "lobby", "x").error == ErrorCode.UNAUTHENTICATED
    assert moderation.delete_room(bad_token, "general").error == ErrorCode.UNAUTHENTICATED
    assert moderation.block_address(bad_token, "general", "10.0.0.1").error == ErrorCode.UNAUTHENTICATED
    assert moderation.unblock_address(bad_token, "general", "10.0.0.1").error == ErrorCode.UNAUTHENTICATED
    assert moderation.kick(bad_token, "general", "someone").error == ErrorCode.UNAUTHENTICATED
    # Nothing changed
    assert coordinator.list_public() == ["general"]
    assert coordinator.rooms.get_room("general").blocked == set()


def test_guarded_operations_reach_coordinator(moderation, coordinator, token):
    session = coordinator.connect("10.0.0.2")
    coordinator.join(session.id, "general", "pw", "bob")
    drain(coordinator, session.id)

    assert moderation.create_room(token, "lobby", "secret").ok
    assert moderation.block_address(token, "general", "10.0.0.2").value["evicted"] == 1
    assert of_type(drain(coordinator, session.id), "room-blocked") == [{"room": "general"}]
    assert moderation.unblock_address(token, "general", "10.0.0.2").ok
    assert moderation.delete_room(token, "lobby").ok

    rooms = moderation.list_rooms(token).value["rooms"]
    assert [room["name"] for room in rooms] == ["general"]
    assert rooms[0]["blocked"] == []


def test_errors_pass_through(moderation, token):
    assert moderation.delete_room(token, "nope").error == ErrorCode.NOT_FOUND
    assert moderation.create_room(token, "general", "x").error == ErrorCode.ALREADY_EXISTS
    assert moderation.kick(token, "general", "ghost").error == ErrorCode.NOT_JOINED
