"""SQLite-backed record sink for clip outcomes and broadcaster tokens."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from zapclip.models.clip import ClipOutcome
from zapclip.models.oauth import AccessCredential
from zapclip.services.token_cipher import TokenCipherService


class SQLiteRecordSink:
    """Append-only clip history plus an encrypted token table keyed by broadcaster."""

    def __init__(self, db_path: str, token_cipher: TokenCipherService) -> None:
        self._db_path = Path(db_path)
        self._cipher = token_cipher
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS clip_outcomes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    broadcaster_id TEXT NOT NULL,
                    clip_id TEXT,
                    url TEXT,
                    requested_by TEXT NOT NULL,
                    requested_by_id TEXT,
                    note TEXT,
                    status TEXT NOT NULL,
                    error TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_clip_outcomes_broadcaster
                ON clip_outcomes (broadcaster_id, id)
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS oauth_tokens (
                    broadcaster_id TEXT PRIMARY KEY,
                    access_token_encrypted TEXT NOT NULL,
                    refresh_token_encrypted TEXT NOT NULL,
                    expires_at TEXT NOT NULL,
                    scopes TEXT NOT NULL,
                    token_type TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def save_clip(self, outcome: ClipOutcome) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO clip_outcomes (
                    broadcaster_id, clip_id, url, requested_by, requested_by_id,
                    note, status, error, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    outcome.broadcaster_id,
                    outcome.clip_id,
                    outcome.url,
                    outcome.requested_by,
                    outcome.requested_by_id,
                    outcome.note,
                    outcome.status.value,
                    outcome.error,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )

    def list_clips(self, broadcaster_id: str, *, limit: int = 50) -> List[Dict[str, Any]]:
        """Return appended outcomes for a broadcaster, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, broadcaster_id, clip_id, url, requested_by,
                       requested_by_id, note, status, error, created_at
                FROM clip_outcomes
                WHERE broadcaster_id = ?
                ORDER BY id DESC
                LIMIT ?
                """,
                (broadcaster_id, limit),
            ).fetchall()
        return [dict(row) for row in rows]

    def list_outcomes_after(self, last_id: int) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM clip_outcomes WHERE id > ? ORDER BY id",
                (last_id,),
            ).fetchall()
        return [dict(row) for row in rows]

    def get_token(self, broadcaster_id: str) -> Optional[AccessCredential]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM oauth_tokens WHERE broadcaster_id = ?",
                (broadcaster_id,),
            ).fetchone()
        if not row:
            return None

        expires_at = datetime.fromisoformat(row["expires_at"])
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)

        return AccessCredential(
            broadcaster_id=row["broadcaster_id"],
            access_token=self._cipher.decrypt(row["access_token_encrypted"]),
            refresh_token=self._cipher.decrypt(row["refresh_token_encrypted"]),
            expires_at=expires_at,
            scopes=row["scopes"],
            token_type=row["token_type"],
        )

    def upsert_token(self, credential: AccessCredential) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO oauth_tokens (
                    broadcaster_id, access_token_encrypted, refresh_token_encrypted,
                    expires_at, scopes, token_type, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(broadcaster_id) DO UPDATE SET
                    access_token_encrypted = excluded.access_token_encrypted,
                    refresh_token_encrypted = excluded.refresh_token_encrypted,
                    expires_at = excluded.expires_at,
                    scopes = excluded.scopes,
                    token_type = excluded.token_type,
                    updated_at = excluded.updated_at
                """,
                (
                    credential.broadcaster_id,
                    self._cipher.encrypt(credential.access_token),
                    self._cipher.encrypt(credential.refresh_token),
                    credential.expires_at.isoformat(),
                    credential.scopes,
                    credential.token_type,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )


__all__ = ["SQLiteRecordSink"]
