"""Key-value settings persistence backed by SQLite."""

from __future__ import annotations

import json
import os
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

DEFAULT_DB_PATH = "testchat_settings.db"


def _utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SettingsStore:
    """JSON values keyed by name. One connection per call; safe to share across threads."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path or os.getenv("TESTCHAT_DB_PATH", DEFAULT_DB_PATH)
        self._lock = threading.Lock()
        self._init()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init(self) -> None:
        conn = self._connect()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def get(self, key: str, default: Any = None) -> Any:
        conn = self._connect()
        try:
            row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        if row is None or row["value"] is None:
            return default
        return json.loads(row["value"])

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            conn = self._connect()
            try:
                conn.execute(
                    """
                    INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (key, json.dumps(value), _utc_iso()),
                )
                conn.commit()
            finally:
                conn.close()

    def delete(self, key: str) -> None:
        with self._lock:
            conn = self._connect()
            try:
                conn.execute("DELETE FROM settings WHERE key = ?", (key,))
                conn.commit()
            finally:
                conn.close()

    def append(self, key: str, item: Any) -> None:
        """Append to a list-valued key, creating it when missing."""
        with self._lock:
            conn = self._connect()
            try:
                row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
                items = json.loads(row["value"]) if row and row["value"] else []
                items.append(item)
                conn.execute(
                    """
                    INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (key, json.dumps(items), _utc_iso()),
                )
                conn.commit()
            finally:
                conn.close()

    def all(self) -> Dict[str, Any]:
        conn = self._connect()
        try:
            rows = conn.execute("SELECT key, value FROM settings ORDER BY key").fetchall()
        finally:
            conn.close()
        return {row["key"]: json.loads(row["value"]) if row["value"] else None for row in rows}


_settings_store: Optional[SettingsStore] = None


def get_settings_store() -> SettingsStore:
    global _settings_store
    if _settings_store is None:
        _settings_store = SettingsStore()
    return _settings_store
