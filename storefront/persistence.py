"""SQLite-backed client storage for persisted UI state."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Protocol

from storefront.config import DB_PATH, STORAGE_SCHEMA_VERSION

logger = logging.getLogger(__name__)

Migration = Callable[[dict[str, Any]], dict[str, Any]]


class Storage(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class LocalStorage:
    """Key/value blobs kept in a local SQLite file, like browser localStorage."""

    def __init__(self, db_path: str | Path = DB_PATH) -> None:
        self.db_path = Path(db_path)
        self.bootstrap_schema()

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(self.db_path)

    def bootstrap_schema(self) -> None:
        """Create the storage table if it does not already exist."""
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )

    def get_item(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        return None if row is None else str(row[0])

    def set_item(self, key: str, value: str) -> None:
        with self._connect() as conn:
            with conn:
                conn.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (key, value, _utc_now_iso()),
                )

    def remove_item(self, key: str) -> None:
        with self._connect() as conn:
            with conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))


class MemoryStorage:
    """In-process storage with the same interface as LocalStorage."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


def dump_state(state: dict[str, Any]) -> str:
    """Serialize a state snapshot inside a versioned envelope."""
    return json.dumps({"version": STORAGE_SCHEMA_VERSION, "state": state}, separators=(",", ":"))


def load_state(raw: str | None, migrations: dict[int, Migration] | None = None) -> dict[str, Any] | None:
    """
    Unwrap a versioned envelope.

    Older versions are upgraded through ``migrations`` (keyed by the version
    they upgrade from, one step at a time). Unknown or newer versions and
    malformed blobs are rejected with ``None``.
    """
    if raw is None:
        return None
    try:
        envelope = json.loads(raw)
    except ValueError:
        logger.warning("Rejected persisted state: not valid JSON")
        return None
    if not isinstance(envelope, dict) or not isinstance(envelope.get("state"), dict):
        logger.warning("Rejected persisted state: missing state object")
        return None

    version = envelope.get("version", 0)
    state = envelope["state"]
    if not isinstance(version, int):
        logger.warning("Rejected persisted state: version %r is not an integer", version)
        return None

    migrations = migrations or {}
    while version < STORAGE_SCHEMA_VERSION:
        migrate = migrations.get(version)
        if migrate is None:
            logger.warning("Rejected persisted state: no upgrade from version %s", version)
            return None
        state = migrate(state)
        version += 1

    if version != STORAGE_SCHEMA_VERSION:
        logger.warning("Rejected persisted state: unsupported version %s", version)
        return None
    return state
