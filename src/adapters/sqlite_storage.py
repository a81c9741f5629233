"""SQLite storage adapter.

Implements the core DedupStorePort using a simple SQLite database.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import List, Optional

from core.models import DedupRecord


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the DedupStorePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - subscription_cursors: per-account last seen post reference
        """

        with self._connect() as conn:
            # One row per tracked account so restarts never re-push a post
            # that was already delivered.
            # Fields:
            # - account_handle: normalized handle without '@' (PRIMARY KEY)
            # - last_seen_reference: canonical URL of the newest pushed post
            # - updated_at: when the cursor last moved, for debugging
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS subscription_cursors (
                    account_handle TEXT PRIMARY KEY,
                    last_seen_reference TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )

    def get(self, account_handle: str) -> Optional[DedupRecord]:
        """Return the dedup cursor for an account, if any."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT account_handle, last_seen_reference FROM subscription_cursors WHERE account_handle = ?",
                (account_handle,),
            ).fetchone()
        if row is None:
            return None
        return DedupRecord(account_handle=row["account_handle"], last_seen_reference=row["last_seen_reference"])

    def upsert(self, record: DedupRecord) -> None:
        """Insert or move the dedup cursor for an account."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO subscription_cursors (account_handle, last_seen_reference, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(account_handle) DO UPDATE SET
                    last_seen_reference = excluded.last_seen_reference,
                    updated_at = excluded.updated_at
                """,
                (record.account_handle, record.last_seen_reference, now.isoformat()),
            )

    def list_records(self) -> List[DedupRecord]:
        """Return every stored cursor ordered by account."""

        with self._connect() as conn:
            rows = conn.execute(
                "SELECT account_handle, last_seen_reference FROM subscription_cursors ORDER BY account_handle"
            ).fetchall()
        return [
            DedupRecord(account_handle=row["account_handle"], last_seen_reference=row["last_seen_reference"])
            for row in rows
        ]
