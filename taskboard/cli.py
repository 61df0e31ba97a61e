"""
Terminal front-end for the board.

Usage:
    taskboard login
    taskboard show
    taskboard board add "Sprint 12"
    taskboard column add "To Do"
    taskboard task add <column-id> "Write release notes"
    taskboard task move <task-id> <column-id> --before <task-id>

Viewers can list and show boards; every other command needs `taskboard login`.
"""
import argparse
import getpass
import sys
from typing import List, Optional

from .auth import AdminSession, LoginResult, PasswordChangeError
from .config import Config, ConfigError, setup_logging
from .schema import TaskStatus
from .state import BoardStateManager
from .storage import SQLiteStorage

STATUS_MARK = {
    TaskStatus.TODO: "[ ]",
    TaskStatus.IN_PROGRESS: "[~]",
    TaskStatus.DONE: "[x]",
}

PASSWORD_ATTEMPTS = 3


def make_confirm(assume_yes: bool):
    def confirm(message: str) -> bool:
        if assume_yes:
            return True
        try:
            answer = input(f"{message} [y/N] ").strip().lower()
        except EOFError:
            print()
            return False
        return answer in ("y", "yes")
    return confirm


def render_board(manager: BoardStateManager) -> str:
    """Format the current board as plain text, one column per block."""
    board = manager.current_board
    if board is None:
        return "No boards yet. Create one with: taskboard board add NAME"

    lines = [f"📋 {board.name} ({board.id})"]
    columns = manager.columns_for(board.id)
    if not columns:
        lines.append("  (no columns)")
    for column in columns:
        tasks = manager.tasks_for(column.id)
        lines.append("")
        lines.append(f"■ {column.name} [{len(tasks)}]  ({column.id})")
        if not tasks:
            lines.append("    (empty)")
        for task in tasks:
            lines.append(f"    {STATUS_MARK[task.status]} {task.title}  ({task.id})")
            if task.description:
                lines.append(f"        {task.description}")
    return "\n".join(lines)


def render_boards(manager: BoardStateManager) -> str:
    if not manager.boards:
        return "No boards found."
    lines = []
    for board in manager.boards:
        marker = "*" if board.id == manager.current_board_id else " "
        lines.append(f"{marker} {board.name}  ({board.id})")
    return "\n".join(lines)


# ──────────────────────────────────────────
# Password flow
# ──────────────────────────────────────────


def _change_password_interactive(session: AdminSession, current: Optional[str] = None) -> bool:
    for _ in range(PASSWORD_ATTEMPTS):
        try:
            session.change_password(
                current if current is not None else getpass.getpass("Current password: "),
                getpass.getpass("New password: "),
                getpass.getpass("Confirm new password: "),
            )
        except PasswordChangeError as e:
            print(f"❌ {e}")
            current = None
            continue
        print("✅ Password changed.")
        return True
    return False


def cmd_login(args, session: AdminSession, manager: BoardStateManager) -> int:
    password = getpass.getpass("Password: ")
    result = session.login(args.username or session.config.admin_username, password)
    if result == LoginResult.REJECTED:
        print("❌ Invalid username or password.")
        return 1
    if result == LoginResult.PASSWORD_CHANGE_REQUIRED:
        print("⚠️  Please change the default password before continuing.")
        if not _change_password_interactive(session, current=password):
            return 1
    print("🔓 Logged in as admin.")
    return 0


def cmd_logout(args, session, manager) -> int:
    session.logout()
    print("🔒 Logged out. Viewer mode.")
    return 0


def cmd_passwd(args, session, manager) -> int:
    return 0 if _change_password_interactive(session) else 1


# ──────────────────────────────────────────
# Read commands
# ──────────────────────────────────────────


def cmd_show(args, session, manager) -> int:
    if args.board and not manager.select_board(args.board):
        print(f"Board {args.board} not found.")
        return 1
    print(render_board(manager))
    return 0


def cmd_boards(args, session, manager) -> int:
    print(render_boards(manager))
    return 0


def cmd_board_select(args, session, manager) -> int:
    if not manager.select_board(args.board_id):
        print(f"Board {args.board_id} not found.")
        return 1
    print(f"Current board: {manager.current_board.name}")
    return 0


# ──────────────────────────────────────────
# Mutations
# ──────────────────────────────────────────


def _report(ok, success: str, failure: str) -> int:
    if ok:
        print(success)
        return 0
    print(failure)
    return 1


def cmd_board_add(args, session, manager) -> int:
    board = manager.add_board(args.name)
    return _report(board, f"Created board {board.id}" if board else "", "Board name is required.")


def cmd_board_delete(args, session, manager) -> int:
    return _report(manager.delete_board(args.board_id), "Board deleted.", "Nothing deleted.")


def cmd_column_add(args, session, manager) -> int:
    board_id = args.board or manager.current_board_id
    if not board_id:
        print("No board selected.")
        return 1
    column = manager.add_column(board_id, args.name)
    return _report(
        column,
        f"Created column {column.id}" if column else "",
        "Column not created (check the name and board).",
    )


def cmd_column_rename(args, session, manager) -> int:
    return _report(
        manager.rename_column(args.column_id, args.name),
        "Column renamed.",
        "Column not renamed (unknown column or empty name).",
    )


def cmd_column_delete(args, session, manager) -> int:
    return _report(manager.delete_column(args.column_id), "Column deleted.", "Nothing deleted.")


def cmd_column_move(args, session, manager) -> int:
    return _report(
        manager.reorder_column(args.column_id, args.target_id),
        "Column moved.",
        "Column not moved (columns must differ and share a board).",
    )


def cmd_task_add(args, session, manager) -> int:
    task = manager.add_task(args.column_id, args.title)
    return _report(
        task,
        f"Created task {task.id}" if task else "",
        "Task not created (check the title and column).",
    )


def cmd_task_edit(args, session, manager) -> int:
    task = manager.update_task(
        args.task_id,
        title=args.title,
        description=args.description,
        status=args.status,
    )
    return _report(task, "Task updated.", f"Task {args.task_id} not found.")


def cmd_task_delete(args, session, manager) -> int:
    return _report(manager.delete_task(args.task_id), "Task deleted.", "Nothing deleted.")


def cmd_task_move(args, session, manager) -> int:
    return _report(
        manager.move_task(args.task_id, args.column_id, args.before),
        "Task moved.",
        "Task not moved (unknown task or column).",
    )


MUTATIONS = {
    cmd_board_add, cmd_board_delete,
    cmd_column_add, cmd_column_rename, cmd_column_delete, cmd_column_move,
    cmd_task_add, cmd_task_edit, cmd_task_delete, cmd_task_move,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskboard", description="Kanban board in your terminal")
    parser.add_argument("--config", help="Path to taskboard.yaml (overrides TASKBOARD_CONFIG)")
    parser.add_argument("--db", help="Path to board.db (overrides TASKBOARD_DB)")
    parser.add_argument("-y", "--yes", action="store_true", help="Do not ask before deleting")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at the configured level")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login", help="Start an admin session")
    p.add_argument("--username", help="Admin username (default from config)")
    p.set_defaults(func=cmd_login)
    sub.add_parser("logout", help="End the admin session").set_defaults(func=cmd_logout)
    sub.add_parser("passwd", help="Change the admin password").set_defaults(func=cmd_passwd)

    p = sub.add_parser("show", help="Show the current board")
    p.add_argument("--board", help="Board id to select first")
    p.set_defaults(func=cmd_show)
    sub.add_parser("boards", help="List boards").set_defaults(func=cmd_boards)

    board = sub.add_parser("board", help="Manage boards").add_subparsers(dest="action", required=True)
    p = board.add_parser("add")
    p.add_argument("name")
    p.set_defaults(func=cmd_board_add)
    p = board.add_parser("delete")
    p.add_argument("board_id")
    p.set_defaults(func=cmd_board_delete)
    p = board.add_parser("select")
    p.add_argument("board_id")
    p.set_defaults(func=cmd_board_select)

    column = sub.add_parser("column", help="Manage columns").add_subparsers(dest="action", required=True)
    p = column.add_parser("add")
    p.add_argument("name")
    p.add_argument("--board", help="Board id (default: current board)")
    p.set_defaults(func=cmd_column_add)
    p = column.add_parser("rename")
    p.add_argument("column_id")
    p.add_argument("name")
    p.set_defaults(func=cmd_column_rename)
    p = column.add_parser("delete")
    p.add_argument("column_id")
    p.set_defaults(func=cmd_column_delete)
    p = column.add_parser("move", help="Move a column to another column's position")
    p.add_argument("column_id")
    p.add_argument("target_id")
    p.set_defaults(func=cmd_column_move)

    task = sub.add_parser("task", help="Manage tasks").add_subparsers(dest="action", required=True)
    p = task.add_parser("add")
    p.add_argument("column_id")
    p.add_argument("title")
    p.set_defaults(func=cmd_task_add)
    p = task.add_parser("edit")
    p.add_argument("task_id")
    p.add_argument("--title")
    p.add_argument("--description")
    p.add_argument("--status", choices=[s.value for s in TaskStatus])
    p.set_defaults(func=cmd_task_edit)
    p = task.add_parser("delete")
    p.add_argument("task_id")
    p.set_defaults(func=cmd_task_delete)
    p = task.add_parser("move")
    p.add_argument("task_id")
    p.add_argument("column_id")
    p.add_argument("--before", help="Place before this task (same column only)")
    p.set_defaults(func=cmd_task_move)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = Config.load(args.config)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2
    if args.db:
        cfg.db_path = args.db
    setup_logging(cfg.log_level if args.verbose else "WARNING")

    storage = SQLiteStorage(cfg.db_path)
    session = AdminSession(storage, cfg)
    manager = BoardStateManager(storage, session=session, confirm=make_confirm(args.yes))

    if args.func in MUTATIONS and not session.is_admin:
        print("🔒 Read-only session. Run `taskboard login` first.")
        return 1
    return args.func(args, session, manager)


if __name__ == "__main__":
    sys.exit(main())
