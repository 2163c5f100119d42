"""
SQLite key/value persistence for saved matches.

Every operation fails silently: errors are logged as warnings and a neutral
value is returned. Loaded snapshots are untrusted and must go through the
Hydrate command before use.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Optional

from engine.state import Match
from schemas.match_state import to_snapshot

logger = logging.getLogger(__name__)

MATCH_KEY = "bloktris.match.v1"


class MatchStore:
    def __init__(self, path: str = "bloktris.db", key: str = MATCH_KEY):
        self.path = path
        self.key = key
        self._conn: Optional[sqlite3.Connection] = None
        try:
            self._conn = sqlite3.connect(self.path)
            self._init_schema()
        except (sqlite3.Error, OSError) as e:
            logger.warning(f"[persist] could not open {self.path}: {e}")
            self._conn = None

    def _init_schema(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )
        self._conn.commit()

    def save(self, match: Match) -> bool:
        """Persist a match snapshot under the store key."""
        if self._conn is None:
            return False
        try:
            payload = json.dumps(to_snapshot(match))
            self._conn.execute(
                "INSERT OR REPLACE INTO kv (key, value, updated_at) VALUES (?, ?, ?)",
                (self.key, payload, datetime.now(timezone.utc).isoformat()),
            )
            self._conn.commit()
        except (sqlite3.Error, TypeError, ValueError) as e:
            logger.warning(f"[persist] save failed: {e}")
            return False
        return True

    def load(self) -> Optional[Any]:
        """Return the previously saved raw snapshot, or None."""
        if self._conn is None:
            return None
        try:
            row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (self.key,)).fetchone()
            if row is None:
                return None
            return json.loads(row[0])
        except (sqlite3.Error, ValueError) as e:
            logger.warning(f"[persist] load failed: {e}")
            return None

    def clear(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.execute("DELETE FROM kv WHERE key = ?", (self.key,))
            self._conn.commit()
        except sqlite3.Error as e:
            logger.warning(f"[persist] clear failed: {e}")

    def has_saved_match(self) -> bool:
        if self._conn is None:
            return False
        try:
            row = self._conn.execute("SELECT 1 FROM kv WHERE key = ?", (self.key,)).fetchone()
        except sqlite3.Error:
            return False
        return row is not None

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
