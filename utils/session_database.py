"""
Screening Database Module for Play Scope.

Provides the shared, multi-device store for session records and child
profiles.

Key features:
- Centralized SQLite database for all submitted sessions
- Append-only session log (sessions are never edited or deleted)
- Raw record payloads kept verbatim as JSON, normalized on read
- Child profile table keyed by case-normalized name
- Aggregate statistics for the API
"""

import sqlite3
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from sessions.models import ChildProfile, SessionRecord, normalize_child_id, parse_sessions
from sessions.stores import ProfileStore, RemoteSessionStore

logger = logging.getLogger(__name__)


class ScreeningDatabase(RemoteSessionStore, ProfileStore):
    """
    SQLite-backed remote session store and profile store.

    Stores all sessions submitted from any device for:
    - Reconciliation: the remote half of every report
    - Auditability: an append-only record of what each game reported
    - Reporting: aggregate statistics across children
    """

    def __init__(self, db_path: str = "data/screening/play_scope.db"):
        """
        Initialize screening database.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_database()

        logger.info(f"Screening database initialized: {self.db_path}")

    def _init_database(self):
        """Create database tables if they don't exist."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    child_id TEXT PRIMARY KEY,
                    age INTEGER,
                    created_at TEXT
                )
            """)

            # One row per submitted session; payload is the raw wire record
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    child_id TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    game TEXT NOT NULL,
                    score REAL,
                    status TEXT,
                    payload JSON NOT NULL,
                    received_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_sessions_child
                ON sessions(child_id)
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_sessions_timestamp
                ON sessions(timestamp)
            """)

            conn.commit()

    def append_one(self, child_id: str, record: SessionRecord) -> None:
        """
        Append one session for a child.

        Args:
            child_id: Owning child (normalized before storage)
            record: Normalized session record
        """
        child_id = normalize_child_id(child_id)
        payload = record.to_dict()
        payload['kid'] = child_id

        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO sessions (child_id, timestamp, game, score, status, payload)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                child_id,
                record.timestamp_iso,
                record.game_label,
                record.score,
                record.status,
                json.dumps(payload),
            ))
            conn.commit()

        logger.info(f"✓ Session stored: {child_id} / {record.game_name} @ {record.timestamp_iso}")

    def load_all(self, child_id: str) -> List[SessionRecord]:
        """
        Load every stored session for a child, in insertion order.

        Payloads that no longer parse are skipped with a warning.
        """
        child_id = normalize_child_id(child_id)
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT payload FROM sessions WHERE child_id = ? ORDER BY id",
                (child_id,)
            )
            rows = cursor.fetchall()

        raw_records = []
        for (payload,) in rows:
            try:
                raw_records.append(json.loads(payload))
            except ValueError as e:
                logger.warning(f"Corrupt session payload for '{child_id}': {e}")

        return parse_sessions(raw_records, child_id=child_id)

    def get(self, child_id: str) -> Optional[ChildProfile]:
        """Get a child profile, or None if not found."""
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()
            cursor.execute(
                "SELECT child_id, age, created_at FROM profiles WHERE child_id = ?",
                (normalize_child_id(child_id),)
            )
            row = cursor.fetchone()

        if not row:
            return None
        return ChildProfile(name=row['child_id'], age=row['age'], created_at=row['created_at'])

    def save(self, profile: ChildProfile) -> None:
        """Create or update a child profile; a missing age keeps the stored one."""
        created_at = profile.created_at or datetime.now(timezone.utc).isoformat()
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO profiles (child_id, age, created_at)
                VALUES (?, ?, ?)
                ON CONFLICT(child_id) DO UPDATE SET age = COALESCE(excluded.age, profiles.age)
            """, (profile.name, profile.age, created_at))
            conn.commit()

        logger.info(f"✓ Profile saved: {profile.name} (age {profile.age})")

    def list_children(self) -> List[Dict]:
        """
        List known children with their session counts.

        Returns:
            List of dicts with child_id, age, created_at and session_count
        """
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()
            cursor.execute("""
                SELECT p.child_id, p.age, p.created_at, COUNT(s.id) AS session_count
                FROM profiles p
                LEFT JOIN sessions s ON s.child_id = p.child_id
                GROUP BY p.child_id
                ORDER BY p.child_id
            """)
            return [dict(row) for row in cursor.fetchall()]

    def get_statistics(self) -> Dict:
        """
        Get aggregate statistics across all children.

        Returns:
            Dictionary with summary statistics
        """
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()

            cursor.execute("SELECT COUNT(*) FROM profiles")
            total_children = cursor.fetchone()[0]

            cursor.execute("SELECT COUNT(*), AVG(score) FROM sessions")
            total_sessions, avg_score = cursor.fetchone()

            cursor.execute("""
                SELECT game, COUNT(*) FROM sessions
                GROUP BY game
                ORDER BY game
            """)
            sessions_by_game = {game: count for game, count in cursor.fetchall()}

            return {
                'total_children': total_children,
                'total_sessions': total_sessions,
                'avg_score': avg_score,
                'sessions_by_game': sessions_by_game,
            }
