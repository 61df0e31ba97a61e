"""
Board, column and task schema.

Hierarchy:
  Board → Column → Task

Serialized field names match the stored JSON (camelCase) so a saved
collection round-trips without translation tables.
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any
import time
import uuid


def utc_now() -> str:
    """ISO-8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()


def make_id(kind: str) -> str:
    """Generate a sortable unique ID (ms-precision timestamp + random hex)."""
    ts = int(time.time() * 1000)
    rand = uuid.uuid4().hex[:8]
    return f"{kind}-{ts}-{rand}"


class TaskStatus(Enum):
    """Task status. Any state may move to any other by explicit edit."""
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"

    @classmethod
    def from_str(cls, value: str) -> "TaskStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.TODO


@dataclass
class Board:
    """Top-level container for one kanban workspace."""
    id: str
    name: str
    created_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "createdAt": self.created_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Board":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            created_at=data.get("createdAt") or utc_now(),
        )


@dataclass
class Column:
    """Ordered lane within a board. `order` is dense and zero-based per board."""
    id: str
    name: str
    board_id: str
    order: int = 0
    created_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "boardId": self.board_id,
            "order": self.order,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Column":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            board_id=str(data["boardId"]),
            order=int(data.get("order", 0)),
            created_at=data.get("createdAt") or utc_now(),
        )


@dataclass
class Task:
    """Unit of work. `order` is dense and zero-based per column."""
    id: str
    title: str
    column_id: str
    board_id: Optional[str]
    description: str = ""
    order: int = 0
    status: TaskStatus = TaskStatus.TODO
    created_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "columnId": self.column_id,
            "boardId": self.board_id,
            "order": self.order,
            "status": self.status.value,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        board_id = data.get("boardId")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            description=data.get("description") or "",
            column_id=str(data["columnId"]),
            board_id=str(board_id) if board_id is not None else None,
            order=int(data.get("order", 0)),
            status=TaskStatus.from_str(data.get("status") or "todo"),
            created_at=data.get("createdAt") or utc_now(),
        )
