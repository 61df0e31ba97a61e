"""
Tests for the terminal front-end.
"""
import getpass

import pytest

from taskboard import cli
from taskboard.state import BoardStateManager
from taskboard.storage import SQLiteStorage


class Prompts:
    """Feeds getpass answers in order."""

    def __init__(self, *answers):
        self.answers = list(answers)

    def __call__(self, prompt=""):
        return self.answers.pop(0)


@pytest.fixture
def db(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("TASKBOARD_CONFIG", raising=False)
    monkeypatch.delenv("TASKBOARD_DB", raising=False)
    return str(tmp_path / "board.db")


def run(db, *argv):
    return cli.main(["--db", db, *argv])


def login(db, monkeypatch):
    monkeypatch.setattr(getpass, "getpass", Prompts("password123", "hunter22", "hunter22"))
    assert run(db, "login") == 0


def load(db):
    return BoardStateManager(SQLiteStorage(db))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Session commands
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_first_login_forces_password_change(db, monkeypatch, capsys):
    login(db, monkeypatch)
    out = capsys.readouterr().out
    assert "change the default password" in out
    assert "Logged in as admin" in out


def test_login_wrong_password(db, monkeypatch, capsys):
    monkeypatch.setattr(getpass, "getpass", Prompts("wrong"))
    assert run(db, "login") == 1
    assert "Invalid username or password" in capsys.readouterr().out


def test_password_change_retries_then_gives_up(db, monkeypatch, capsys):
    monkeypatch.setattr(getpass, "getpass", Prompts(
        "password123",
        "short", "short",                        # too short
        "password123", "longenough", "mismatch",  # confirmation differs
        "nope", "longenough", "longenough",       # wrong current
    ))
    assert run(db, "login") == 1
    out = capsys.readouterr().out
    assert "at least 6" in out
    assert "do not match" in out
    assert "Current password is incorrect" in out


def test_logout_returns_to_viewer(db, monkeypatch, capsys):
    login(db, monkeypatch)
    assert run(db, "logout") == 0
    assert run(db, "board", "add", "Nope") == 1
    assert "Read-only session" in capsys.readouterr().out


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Board commands
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_viewer_cannot_mutate(db, capsys):
    assert run(db, "board", "add", "Sprint") == 1
    assert load(db).boards == []


def test_show_empty(db, capsys):
    assert run(db, "show") == 0
    assert "No boards yet" in capsys.readouterr().out


def test_full_workflow(db, monkeypatch, capsys):
    """Create a board, columns and tasks, then move a task across"""
    login(db, monkeypatch)
    assert run(db, "board", "add", "Sprint") == 0
    board = load(db).current_board

    assert run(db, "column", "add", "Todo") == 0
    assert run(db, "column", "add", "Done") == 0
    todo, done = load(db).columns_for(board.id)

    assert run(db, "task", "add", todo.id, "Write tests") == 0
    task = load(db).tasks_for(todo.id)[0]
    assert run(db, "task", "edit", task.id, "--status", "in-progress", "--description", "pytest") == 0
    assert run(db, "task", "move", task.id, done.id) == 0

    manager = load(db)
    moved = manager.get_task(task.id)
    assert moved.column_id == done.id
    assert moved.status.value == "in-progress"
    assert moved.description == "pytest"

    capsys.readouterr()
    assert run(db, "show") == 0
    out = capsys.readouterr().out
    assert "Sprint" in out
    assert "[~] Write tests" in out
    assert "Todo [0]" in out
    assert "Done [1]" in out


def test_column_move_and_rename(db, monkeypatch):
    login(db, monkeypatch)
    run(db, "board", "add", "B")
    run(db, "column", "add", "A")
    run(db, "column", "add", "C")
    board = load(db).current_board
    a, c = load(db).columns_for(board.id)

    assert run(db, "column", "move", c.id, a.id) == 0
    assert run(db, "column", "rename", a.id, "Alpha") == 0
    assert run(db, "column", "rename", a.id, "   ") == 1
    assert [col.name for col in load(db).columns_for(board.id)] == ["C", "Alpha"]


def test_delete_asks_for_confirmation(db, monkeypatch, capsys):
    login(db, monkeypatch)
    run(db, "board", "add", "Doomed")
    board = load(db).current_board

    monkeypatch.setattr("builtins.input", lambda prompt="": "n")
    assert run(db, "board", "delete", board.id) == 1
    assert load(db).get_board(board.id) is not None

    monkeypatch.setattr("builtins.input", lambda prompt="": "y")
    assert run(db, "board", "delete", board.id) == 0
    assert load(db).boards == []


def test_closed_stdin_cancels_delete(db, monkeypatch):
    """EOF at the confirmation prompt counts as a no"""
    login(db, monkeypatch)
    run(db, "board", "add", "Kept")
    board = load(db).current_board

    def closed(prompt=""):
        raise EOFError

    monkeypatch.setattr("builtins.input", closed)
    assert run(db, "board", "delete", board.id) == 1
    assert load(db).get_board(board.id) is not None


def test_yes_flag_skips_prompt(db, monkeypatch):
    login(db, monkeypatch)
    run(db, "board", "add", "B")
    column_added = run(db, "column", "add", "Only")
    assert column_added == 0
    column = load(db).columns_for(load(db).current_board_id)[0]

    def fail(prompt=""):
        raise AssertionError("should not prompt")

    monkeypatch.setattr("builtins.input", fail)
    assert run(db, "--yes", "column", "delete", column.id) == 0
    assert load(db).get_column(column.id) is None


def test_boards_and_select(db, monkeypatch, capsys):
    login(db, monkeypatch)
    run(db, "board", "add", "One")
    run(db, "board", "add", "Two")
    one = load(db).boards[0]

    assert run(db, "board", "select", one.id) == 0
    capsys.readouterr()
    run(db, "boards")
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("* One")
    assert lines[1].startswith("  Two")

    assert run(db, "board", "select", "board-missing") == 1


def test_bad_config_exits_with_code_2(db, tmp_path, capsys):
    assert cli.main(["--config", str(tmp_path / "absent.yaml"), "show"]) == 2
    assert "Config error" in capsys.readouterr().err
