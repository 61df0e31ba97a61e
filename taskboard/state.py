"""
Board state manager.

Owns the three collections (boards, columns, tasks) and the current-board
pointer. Loads them from storage once, and writes them back after every
applied mutation.

Ordering:
  - column `order` is dense and zero-based within a board
  - task `order` is dense and zero-based within a column

Mutations require an admin session; for viewers they are ignored and
return None/False. Deletions additionally go through the confirm callback.
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from .schema import Board, Column, Task, TaskStatus, make_id
from .storage import (
    KeyValueStorage,
    BOARDS_KEY,
    COLUMNS_KEY,
    TASKS_KEY,
    CURRENT_BOARD_KEY,
)

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str], bool]

EDITABLE_TASK_FIELDS = ("title", "description", "status")


def always_confirm(message: str) -> bool:
    return True


def _load_records(storage: KeyValueStorage, key: str, factory) -> list:
    raw = storage.get_item(key, [])
    if not isinstance(raw, list):
        logger.warning(f"Stored '{key}' is not a list, starting empty")
        return []
    records = []
    for item in raw:
        try:
            records.append(factory(item))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed entry in '{key}': {e}")
    return records


def _renumber(items: Iterable) -> None:
    for index, item in enumerate(items):
        item.order = index


def _next_order(items: Iterable) -> int:
    orders = [item.order for item in items]
    return max(orders) + 1 if orders else 0


class BoardStateManager:
    """CRUD and ordering over boards, columns and tasks."""

    def __init__(
        self,
        storage: KeyValueStorage,
        session=None,
        confirm: Optional[ConfirmFn] = None,
    ):
        self.storage = storage
        self.session = session
        self.confirm = confirm or always_confirm
        self.subscribers: Dict[str, list] = {}  # event_type -> list of callbacks

        self._boards: List[Board] = []
        self._columns: List[Column] = []
        self._tasks: List[Task] = []
        self._current_board_id: Optional[str] = None
        self.load()

    # ──────────────────────────────────────────
    # Persistence
    # ──────────────────────────────────────────

    def load(self) -> None:
        """Read all collections from storage and validate the current board."""
        self._boards = _load_records(self.storage, BOARDS_KEY, Board.from_dict)
        self._columns = _load_records(self.storage, COLUMNS_KEY, Column.from_dict)
        self._tasks = self._attach_tasks(
            _load_records(self.storage, TASKS_KEY, Task.from_dict)
        )

        stored_id = self.storage.get_item(CURRENT_BOARD_KEY, None)
        self._current_board_id = stored_id if isinstance(stored_id, str) and stored_id else None
        self._resolve_current_board()
        logger.debug(
            f"Loaded {len(self._boards)} boards, {len(self._columns)} columns, "
            f"{len(self._tasks)} tasks (current={self._current_board_id})"
        )

    def _attach_tasks(self, tasks: List[Task]) -> List[Task]:
        """Drop tasks whose column is gone; take a missing board id from the column."""
        boards_by_column = {c.id: c.board_id for c in self._columns}
        attached = []
        for task in tasks:
            if task.column_id not in boards_by_column:
                logger.warning(f"Skipping task {task.id}: unknown column {task.column_id}")
                continue
            if not task.board_id:
                task.board_id = boards_by_column[task.column_id]
            attached.append(task)
        return attached

    def save(self) -> None:
        self.storage.set_items({
            BOARDS_KEY: [b.to_dict() for b in self._boards],
            COLUMNS_KEY: [c.to_dict() for c in self._columns],
            TASKS_KEY: [t.to_dict() for t in self._tasks],
            CURRENT_BOARD_KEY: self._current_board_id,
        })

    def _resolve_current_board(self) -> None:
        """Fall back to the first board when the pointer is stale or unset."""
        if self._current_board_id and self.get_board(self._current_board_id):
            return
        self._current_board_id = self._boards[0].id if self._boards else None

    # ──────────────────────────────────────────
    # Observers
    # ──────────────────────────────────────────

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Register a callback for an event type ("*" for every event)."""
        if event_type not in self.subscribers:
            self.subscribers[event_type] = []
        self.subscribers[event_type].append(callback)

    def _emit(self, event_type: str, **kwargs) -> None:
        callbacks = self.subscribers.get(event_type, []) + self.subscribers.get("*", [])
        for callback in callbacks:
            try:
                callback(event_type, **kwargs)
            except Exception as e:
                logger.error(f"Error in {event_type} callback: {e}")

    def _commit(self, event_type: str, **kwargs) -> None:
        """Persist, then notify subscribers."""
        self.save()
        logger.info(f"{event_type}: {kwargs}")
        self._emit(event_type, **kwargs)
        if event_type != "state_changed":
            self._emit("state_changed", operation=event_type)

    # ──────────────────────────────────────────
    # Permission + confirmation
    # ──────────────────────────────────────────

    @property
    def can_edit(self) -> bool:
        return bool(self.session is not None and self.session.is_admin)

    def _denied(self, operation: str) -> bool:
        if self.can_edit:
            return False
        logger.debug(f"Ignoring {operation}: session has no edit rights")
        return True

    def _confirmed(self, message: str) -> bool:
        if self.confirm(message):
            return True
        logger.debug(f"Cancelled: {message}")
        return False

    # ──────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────

    @property
    def boards(self) -> List[Board]:
        return list(self._boards)

    @property
    def current_board_id(self) -> Optional[str]:
        return self._current_board_id

    @property
    def current_board(self) -> Optional[Board]:
        return self.get_board(self._current_board_id) if self._current_board_id else None

    def get_board(self, board_id: str) -> Optional[Board]:
        return next((b for b in self._boards if b.id == board_id), None)

    def get_column(self, column_id: str) -> Optional[Column]:
        return next((c for c in self._columns if c.id == column_id), None)

    def get_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self._tasks if t.id == task_id), None)

    def columns_for(self, board_id: str) -> List[Column]:
        """Columns of a board, left to right."""
        return sorted((c for c in self._columns if c.board_id == board_id), key=lambda c: c.order)

    def tasks_for(self, column_id: str) -> List[Task]:
        """Tasks of a column, top to bottom."""
        return sorted((t for t in self._tasks if t.column_id == column_id), key=lambda t: t.order)

    def snapshot(self) -> Dict[str, Any]:
        """Current board with its ordered columns and tasks, JSON-ready."""
        board = self.current_board
        if board is None:
            return {"board": None, "columns": []}
        return {
            "board": board.to_dict(),
            "columns": [
                {**col.to_dict(), "tasks": [t.to_dict() for t in self.tasks_for(col.id)]}
                for col in self.columns_for(board.id)
            ],
        }

    def select_board(self, board_id: str) -> bool:
        """Make a board current. Allowed for viewers."""
        if not self.get_board(board_id):
            return False
        if board_id == self._current_board_id:
            return True
        self._current_board_id = board_id
        self._commit("board_selected", board_id=board_id)
        return True

    # ──────────────────────────────────────────
    # Boards
    # ──────────────────────────────────────────

    def add_board(self, name: str) -> Optional[Board]:
        if self._denied("add_board") or not name or not name.strip():
            return None
        board = Board(id=make_id("board"), name=name)
        self._boards.append(board)
        self._current_board_id = board.id
        self._commit("board_added", board_id=board.id)
        return board

    def delete_board(self, board_id: str) -> bool:
        """Delete a board with all of its columns and tasks."""
        if self._denied("delete_board") or not self.get_board(board_id):
            return False
        if not self._confirmed(
            "Delete this board and all of its columns and tasks?"
        ):
            return False
        self._boards = [b for b in self._boards if b.id != board_id]
        removed = {c.id for c in self._columns if c.board_id == board_id}
        self._columns = [c for c in self._columns if c.id not in removed]
        self._tasks = [
            t for t in self._tasks
            if t.board_id != board_id and t.column_id not in removed
        ]
        self._resolve_current_board()
        self._commit("board_deleted", board_id=board_id)
        return True

    # ──────────────────────────────────────────
    # Columns
    # ──────────────────────────────────────────

    def add_column(self, board_id: str, name: str) -> Optional[Column]:
        if self._denied("add_column") or not name or not name.strip():
            return None
        if not self.get_board(board_id):
            return None
        column = Column(
            id=make_id("column"),
            name=name,
            board_id=board_id,
            order=_next_order(self.columns_for(board_id)),
        )
        self._columns.append(column)
        self._commit("column_added", column_id=column.id, board_id=board_id)
        return column

    def rename_column(self, column_id: str, name: str) -> bool:
        if self._denied("rename_column") or not name or not name.strip():
            return False
        column = self.get_column(column_id)
        if not column:
            return False
        column.name = name
        self._commit("column_renamed", column_id=column_id)
        return True

    def delete_column(self, column_id: str) -> bool:
        """Delete a column and its tasks; the board's columns are renumbered."""
        if self._denied("delete_column"):
            return False
        column = self.get_column(column_id)
        if not column:
            return False
        if not self._confirmed("Delete this column and all of its tasks?"):
            return False
        self._columns = [c for c in self._columns if c.id != column_id]
        self._tasks = [t for t in self._tasks if t.column_id != column_id]
        _renumber(self.columns_for(column.board_id))
        self._commit("column_deleted", column_id=column_id, board_id=column.board_id)
        return True

    def reorder_column(self, source_column_id: str, target_column_id: str) -> bool:
        """Move the source column to the target column's position."""
        if self._denied("reorder_column") or source_column_id == target_column_id:
            return False
        source = self.get_column(source_column_id)
        target = self.get_column(target_column_id)
        if not source or not target or source.board_id != target.board_id:
            return False

        ordered = self.columns_for(source.board_id)
        target_index = ordered.index(target)
        ordered.remove(source)
        ordered.insert(target_index, source)
        _renumber(ordered)
        self._commit("column_reordered", column_id=source_column_id, board_id=source.board_id)
        return True

    # ──────────────────────────────────────────
    # Tasks
    # ──────────────────────────────────────────

    def add_task(self, column_id: str, title: str) -> Optional[Task]:
        if self._denied("add_task") or not title or not title.strip():
            return None
        column = self.get_column(column_id)
        if not column:
            return None
        task = Task(
            id=make_id("task"),
            title=title,
            column_id=column_id,
            board_id=column.board_id,
            order=_next_order(self.tasks_for(column_id)),
        )
        self._tasks.append(task)
        self._commit("task_added", task_id=task.id, column_id=column_id)
        return task

    def update_task(self, task_id: str, **fields) -> Optional[Task]:
        """Shallow-merge title/description/status into a task."""
        if self._denied("update_task"):
            return None
        task = self.get_task(task_id)
        if not task:
            return None
        changes = {k: v for k, v in fields.items() if k in EDITABLE_TASK_FIELDS and v is not None}
        unknown = set(fields) - set(EDITABLE_TASK_FIELDS)
        if unknown:
            logger.debug(f"update_task ignoring fields: {sorted(unknown)}")
        if "status" in changes and not isinstance(changes["status"], TaskStatus):
            try:
                changes["status"] = TaskStatus(changes["status"])
            except ValueError:
                logger.warning(f"update_task ignoring unknown status: {changes['status']!r}")
                del changes["status"]
        if not changes:
            return task
        for key, value in changes.items():
            setattr(task, key, value)
        self._commit("task_updated", task_id=task_id, fields=sorted(changes))
        return task

    def delete_task(self, task_id: str) -> bool:
        """Delete a task; the rest of its column is renumbered."""
        if self._denied("delete_task"):
            return False
        task = self.get_task(task_id)
        if not task:
            return False
        if not self._confirmed("Delete this task?"):
            return False
        self._tasks = [t for t in self._tasks if t.id != task_id]
        _renumber(self.tasks_for(task.column_id))
        self._commit("task_deleted", task_id=task_id, column_id=task.column_id)
        return True

    def move_task(
        self,
        task_id: str,
        target_column_id: str,
        before_task_id: Optional[str] = None,
    ) -> bool:
        """
        Move a task within its column or to another column.

        Same column: the task is placed before `before_task_id`, or at the
        end when none is given. Other column: the task is appended to the
        target and the source column is compacted.
        """
        if self._denied("move_task"):
            return False
        task = self.get_task(task_id)
        target = self.get_column(target_column_id)
        if not task or not target:
            return False
        source_column_id = task.column_id

        if source_column_id == target_column_id:
            if before_task_id == task_id:
                return False
            ordered = self.tasks_for(source_column_id)
            ordered.remove(task)
            anchor = next((i for i, t in enumerate(ordered) if t.id == before_task_id), None)
            ordered.insert(len(ordered) if anchor is None else anchor, task)
            _renumber(ordered)
        else:
            task.order = _next_order(self.tasks_for(target_column_id))
            task.column_id = target_column_id
            task.board_id = target.board_id
            _renumber(self.tasks_for(source_column_id))

        self._commit(
            "task_moved",
            task_id=task_id,
            from_column=source_column_id,
            to_column=target_column_id,
        )
        return True

    # Name used by drag-and-drop front-ends
    reorder_task = move_task
