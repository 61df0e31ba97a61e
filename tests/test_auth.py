"""
Tests for the admin session: login, forced password change, logout.
"""
import pytest

from taskboard.auth import AdminSession, LoginResult, PasswordChangeError, ValidationError
from taskboard.config import Config
from taskboard.state import BoardStateManager
from taskboard.storage import (
    MemoryStorage,
    ADMIN_SESSION_KEY,
    ADMIN_PASSWORD_KEY,
    PASSWORD_CHANGED_KEY,
)


def test_new_session_is_viewer(session):
    assert not session.is_admin
    assert session.requires_password_change
    assert session.admin_password == "password123"


def test_default_password_login_forces_change(session, storage):
    """First login with the default password does not grant edit rights"""
    assert session.login("admin", "password123") == LoginResult.PASSWORD_CHANGE_REQUIRED
    assert not session.is_admin
    assert storage.get_item(ADMIN_SESSION_KEY, False) is False


def test_wrong_credentials_rejected(session):
    assert session.login("admin", "nope") == LoginResult.REJECTED
    assert session.login("root", "password123") == LoginResult.REJECTED
    assert not session.is_admin


def test_change_password_then_login(session, storage):
    session.change_password("password123", "s3cret!", "s3cret!")
    assert session.is_admin
    assert storage.get_item(ADMIN_PASSWORD_KEY) == "s3cret!"
    assert storage.get_item(PASSWORD_CHANGED_KEY) is True
    assert not session.requires_password_change

    session.logout()
    assert not session.is_admin
    assert session.login("admin", "password123") == LoginResult.REJECTED
    assert session.login("admin", "s3cret!") == LoginResult.GRANTED
    assert session.is_admin


def test_change_password_wrong_current(session, storage):
    """A wrong current password is rejected and nothing is stored"""
    with pytest.raises(PasswordChangeError, match="Current password is incorrect"):
        session.change_password("guess", "abcdef", "abcdef")
    assert storage.get_item(ADMIN_PASSWORD_KEY) is None
    assert session.admin_password == "password123"
    assert not session.is_admin


def test_change_password_too_short(session):
    with pytest.raises(PasswordChangeError, match="at least 6"):
        session.change_password("password123", "abc", "abc")


def test_change_password_mismatch(session):
    with pytest.raises(ValidationError, match="do not match"):
        session.change_password("password123", "abcdef", "abcdeg")
    assert session.requires_password_change


def test_minimum_length_from_config(storage):
    session = AdminSession(storage, Config(min_password_length=10))
    with pytest.raises(PasswordChangeError, match="at least 10"):
        session.change_password("password123", "ninechars", "ninechars")


def test_changed_back_to_default_still_grants(storage):
    """Once changed, even the default string logs in directly"""
    session = AdminSession(storage, Config())
    session.change_password("password123", "temporary", "temporary")
    session.change_password("temporary", "password123", "password123")
    session.logout()
    assert session.login("admin", "password123") == LoginResult.GRANTED


def test_session_flag_persists(storage):
    AdminSession(storage).change_password("password123", "abcdef", "abcdef")
    assert AdminSession(storage).is_admin


def test_session_gates_manager(storage):
    """The manager follows the session's edit rights as they change"""
    session = AdminSession(storage)
    manager = BoardStateManager(storage, session=session)
    assert manager.add_board("blocked") is None

    session.change_password("password123", "abcdef", "abcdef")
    board = manager.add_board("allowed")
    assert board is not None

    session.logout()
    assert manager.add_column(board.id, "nope") is None


def test_custom_username(storage):
    session = AdminSession(storage, Config(admin_username="boss"))
    assert session.login("admin", "password123") == LoginResult.REJECTED
    assert session.login("boss", "password123") == LoginResult.PASSWORD_CHANGE_REQUIRED


def test_non_string_stored_password_uses_default():
    storage = MemoryStorage()
    storage.set_item(ADMIN_PASSWORD_KEY, 12345)
    assert AdminSession(storage).admin_password == "password123"
