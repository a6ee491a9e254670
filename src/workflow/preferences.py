"""
Per-user UI preferences: default order handler and favorite ids.

Stores are plain key/value: an in-memory dict for tests and a small SQLite
table for the CLI. Favorite lists are stored as JSON arrays of ids.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Protocol

logger = logging.getLogger("recon.preferences")

FAVORITE_CUSTOMERS_KEY = "favoriteCustomerIds"
FAVORITE_ACCOUNTS_KEY = "favoriteAccountIds"


class PreferenceStore(Protocol):
    """Key/value preference storage."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def clear(self, key: str) -> None:
        ...


class InMemoryPreferenceStore:
    """Dict-backed store; for tests and one-shot CLI runs."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def clear(self, key: str) -> None:
        self._values.pop(key, None)


class SqlitePreferenceStore:
    """Preferences persisted in a single SQLite table (restart-safe)."""

    def __init__(self, state_path: str | Path) -> None:
        self._path = Path(state_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._path), timeout=10.0)

    def _init_schema(self) -> None:
        with self._conn() as c:
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS preferences (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    def get(self, key: str) -> str | None:
        with self._conn() as c:
            row = c.execute("SELECT value FROM preferences WHERE key = ?", (key,)).fetchone()
            return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._conn() as c:
            c.execute(
                "INSERT OR REPLACE INTO preferences (key, value) VALUES (?, ?)",
                (key, value),
            )

    def clear(self, key: str) -> None:
        with self._conn() as c:
            c.execute("DELETE FROM preferences WHERE key = ?", (key,))


# ---------------------------------------------------------------------------
# Default handler
# ---------------------------------------------------------------------------


def default_handler_key(user_id: int | None) -> str:
    return f"otc_default_handler_{user_id if user_id is not None else 'anonymous'}"


def get_default_handler(store: PreferenceStore, user_id: int | None) -> int | None:
    """Saved handler id for *user_id*; a corrupt value reads as unset."""
    raw = store.get(default_handler_key(user_id))
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid default handler %r for user %s", raw, user_id)
        return None


def save_default_handler(store: PreferenceStore, user_id: int | None, handler_id: int) -> None:
    store.set(default_handler_key(user_id), str(handler_id))


def clear_default_handler(store: PreferenceStore, user_id: int | None) -> None:
    store.clear(default_handler_key(user_id))


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------


def get_favorite_ids(store: PreferenceStore, key: str) -> list[int]:
    raw = store.get(key)
    if not raw:
        return []
    try:
        values = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring unreadable favorites under %s", key)
        return []
    if not isinstance(values, list):
        return []
    return [int(v) for v in values if isinstance(v, int) and not isinstance(v, bool)]


def toggle_favorite(store: PreferenceStore, key: str, item_id: int) -> list[int]:
    """Add *item_id* to the favorites under *key*, or remove it if present."""
    ids = get_favorite_ids(store, key)
    if item_id in ids:
        ids = [i for i in ids if i != item_id]
    else:
        ids.append(item_id)
    store.set(key, json.dumps(ids))
    return ids
