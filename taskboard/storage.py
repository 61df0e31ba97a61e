"""
Key-value storage backend.

Every value is stored JSON-encoded under a string key. Reads never fail:
a missing or malformed entry yields the caller's default.
"""
import sqlite3
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

# Storage keys
BOARDS_KEY = "boards"
COLUMNS_KEY = "columns"
TASKS_KEY = "tasks"
CURRENT_BOARD_KEY = "currentBoardId"
ADMIN_SESSION_KEY = "isAdminSession"
ADMIN_PASSWORD_KEY = "adminPassword"
PASSWORD_CHANGED_KEY = "passwordHasBeenChanged"

DEFAULT_DB = Path.home() / ".local" / "share" / "taskboard" / "board.db"


def _decode(key: str, raw: Optional[str], default: Any) -> Any:
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"Malformed value for '{key}', using default: {e}")
        return default


class KeyValueStorage:
    """Interface shared by the storage backends."""

    def get_item(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def set_items(self, items: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def set_item(self, key: str, value: Any) -> None:
        self.set_items({key: value})


class MemoryStorage(KeyValueStorage):
    """Process-local storage. Values are still JSON-encoded so behaviour
    matches the SQLite backend (no shared mutable objects)."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str, default: Any = None) -> Any:
        return _decode(key, self._data.get(key), default)

    def set_items(self, items: Mapping[str, Any]) -> None:
        for key, value in items.items():
            self._data[key] = json.dumps(value)

    def raw(self, key: str) -> Optional[str]:
        return self._data.get(key)


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection in WAL mode."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


class SQLiteStorage(KeyValueStorage):
    """SQLite-backed key-value store (single `kv_store` table)."""

    def __init__(self, db_path: str = None):
        """Initialize store and create the table if needed."""
        if db_path is None:
            db_path = str(DEFAULT_DB)
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        with _connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()

    def get_item(self, key: str, default: Any = None) -> Any:
        try:
            with _connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ? LIMIT 1",
                    (key,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"Error reading '{key}', using default: {e}")
            return default
        return _decode(key, row["value"] if row else None, default)

    def set_items(self, items: Mapping[str, Any]) -> None:
        """Write all items in one transaction."""
        now = datetime.now(timezone.utc).isoformat()
        with _connect(self.db_path) as conn:
            for key, value in items.items():
                conn.execute("""
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """, (key, json.dumps(value), now))
            conn.commit()

    def set_raw(self, key: str, raw: str) -> None:
        """Store an undecoded value. Used to repair or seed entries by hand."""
        now = datetime.now(timezone.utc).isoformat()
        with _connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
            """, (key, raw, now))
            conn.commit()
