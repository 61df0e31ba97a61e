"""Shared test fixtures for board state, session and server tests."""

import sys
from pathlib import Path

import pytest

# Ensure board_server.py at the repo root is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskboard.auth import AdminSession
from taskboard.config import Config
from taskboard.state import BoardStateManager
from taskboard.storage import MemoryStorage, ADMIN_SESSION_KEY


class StubSession:
    """Session double with a fixed edit-rights flag."""

    def __init__(self, is_admin: bool = True):
        self.is_admin = is_admin


class ScriptedConfirm:
    """Confirm callback that answers from a preset value and records prompts."""

    def __init__(self, answer: bool = True):
        self.answer = answer
        self.messages = []

    def __call__(self, message: str) -> bool:
        self.messages.append(message)
        return self.answer


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def confirm():
    return ScriptedConfirm(True)


@pytest.fixture
def admin(storage, confirm):
    return BoardStateManager(storage, session=StubSession(True), confirm=confirm)


@pytest.fixture
def viewer(storage):
    return BoardStateManager(storage, session=StubSession(False))


@pytest.fixture
def session(storage):
    return AdminSession(storage, Config())


@pytest.fixture
def logged_in(storage):
    storage.set_item(ADMIN_SESSION_KEY, True)
    return AdminSession(storage, Config())
