"""SQLite store of places a user has already saved or dismissed."""
from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Set, Tuple

from .errors import LookupUnavailableError

SAVED = "saved"
DISMISSED = "dismissed"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


class ReviewedPlacesStore:
    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        # Lookups may come from the orchestrator's thread, not the creator's.
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._configure_conn()
        self._init_db()

    def _configure_conn(self) -> None:
        cur = self.conn.cursor()
        try:
            cur.execute("PRAGMA journal_mode=WAL")
            cur.fetchone()
        except sqlite3.DatabaseError:
            pass

    def _init_db(self) -> None:
        cur = self.conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS reviewed_places (
                user_id TEXT NOT NULL,
                place_id TEXT NOT NULL,
                state TEXT NOT NULL,
                updated_at TEXT,
                PRIMARY KEY (user_id, place_id)
            )
            """
        )
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "ReviewedPlacesStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def mark_saved(self, user_id: str, place_id: str) -> None:
        self._set_state(user_id, place_id, SAVED)

    def mark_dismissed(self, user_id: str, place_id: str) -> None:
        self._set_state(user_id, place_id, DISMISSED)

    def unmark(self, user_id: str, place_id: str) -> bool:
        cur = self.conn.cursor()
        cur.execute(
            "DELETE FROM reviewed_places WHERE user_id = ? AND place_id = ?",
            (user_id, place_id),
        )
        self.conn.commit()
        return cur.rowcount > 0

    def get_saved_and_dismissed(self, user_id: str) -> Tuple[Set[str], Set[str]]:
        try:
            cur = self.conn.cursor()
            cur.execute(
                "SELECT place_id, state FROM reviewed_places WHERE user_id = ?",
                (user_id,),
            )
            rows = cur.fetchall()
        except sqlite3.Error as exc:
            raise LookupUnavailableError(f"Reviewed-places lookup failed: {exc}") from exc
        saved = {row["place_id"] for row in rows if row["state"] == SAVED}
        dismissed = {row["place_id"] for row in rows if row["state"] == DISMISSED}
        return saved, dismissed

    def _set_state(self, user_id: str, place_id: str, state: str) -> None:
        cur = self.conn.cursor()
        cur.execute(
            """
            INSERT OR REPLACE INTO reviewed_places (user_id, place_id, state, updated_at)
            VALUES (?, ?, ?, ?)
            """,
            (user_id, place_id, state, utc_now_iso()),
        )
        self.conn.commit()
