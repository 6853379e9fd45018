"""SQLite-backed learner profiles for PixelLearn."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from pixellearn.engine.adaptive import DEFAULT_MAX_LEVEL, DEFAULT_MIN_LEVEL
from pixellearn.engine.questions import Subject
from pixellearn.engine.session import QuizSession

logger = logging.getLogger(__name__)

DEFAULT_AVATAR = "person.fill"


@dataclass
class Profile:
    id: int
    name: str
    avatar: str
    total_correct: int
    total_answered: int
    wins: int
    gold: int
    silver: int
    bronze: int
    created_at: str
    last_played_at: str
    levels: dict[str, int] = field(default_factory=dict)

    def level_for(self, subject: Subject) -> int:
        return self.levels.get(subject.value, DEFAULT_MIN_LEVEL)

    @property
    def accuracy(self) -> float:
        if self.total_answered == 0:
            return 0.0
        return self.total_correct / self.total_answered

    @property
    def highest_level(self) -> int:
        return max(self.levels.values(), default=DEFAULT_MIN_LEVEL)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "avatar": self.avatar,
            "levels": {s.value: self.level_for(s) for s in Subject},
            "totalCorrect": self.total_correct,
            "totalAnswered": self.total_answered,
            "accuracy": self.accuracy,
            "wins": self.wins,
            "trophies": {"gold": self.gold, "silver": self.silver, "bronze": self.bronze},
            "lastPlayedAt": self.last_played_at,
        }


class ProfileStore:
    def __init__(
        self,
        db_path: Optional[Path] = None,
        min_level: int = DEFAULT_MIN_LEVEL,
        max_level: int = DEFAULT_MAX_LEVEL,
    ):
        self.db_path = db_path or (Path.home() / ".pixellearn" / "profiles.db")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.min_level = min_level
        self.max_level = max_level
        self._init_db()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    avatar TEXT DEFAULT 'person.fill',
                    total_correct INTEGER DEFAULT 0,
                    total_answered INTEGER DEFAULT 0,
                    wins INTEGER DEFAULT 0,
                    gold INTEGER DEFAULT 0,
                    silver INTEGER DEFAULT 0,
                    bronze INTEGER DEFAULT 0,
                    created_at TEXT NOT NULL,
                    last_played_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS levels (
                    profile_id INTEGER NOT NULL,
                    subject TEXT NOT NULL,
                    level INTEGER NOT NULL,
                    PRIMARY KEY (profile_id, subject)
                )
            """)

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _clamp(self, level: int) -> int:
        return max(self.min_level, min(self.max_level, level))

    def _row_to_profile(self, conn: sqlite3.Connection, row) -> Profile:
        levels = dict(conn.execute(
            "SELECT subject, level FROM levels WHERE profile_id = ?", (row[0],)
        ).fetchall())
        return Profile(
            id=row[0], name=row[1], avatar=row[2], total_correct=row[3],
            total_answered=row[4], wins=row[5], gold=row[6], silver=row[7],
            bronze=row[8], created_at=row[9], last_played_at=row[10], levels=levels,
        )

    def create_profile(self, name: str, avatar: str = DEFAULT_AVATAR) -> Profile:
        now = datetime.now().isoformat()
        with self._conn() as conn:
            try:
                cur = conn.execute(
                    """INSERT INTO profiles (name, avatar, created_at, last_played_at)
                       VALUES (?, ?, ?, ?)""",
                    (name, avatar, now, now),
                )
            except sqlite3.IntegrityError:
                raise ValueError(f"Profile already exists: {name}") from None
            profile_id = cur.lastrowid
        logger.info("Created profile %s (%d)", name, profile_id)
        return self.get_profile(profile_id)

    def get_profile(self, profile_id: int) -> Optional[Profile]:
        with self._conn() as conn:
            row = conn.execute("SELECT * FROM profiles WHERE id = ?", (profile_id,)).fetchone()
            if not row:
                return None
            return self._row_to_profile(conn, row)

    def find_by_name(self, name: str) -> Optional[Profile]:
        with self._conn() as conn:
            row = conn.execute("SELECT * FROM profiles WHERE name = ?", (name,)).fetchone()
            if not row:
                return None
            return self._row_to_profile(conn, row)

    def list_profiles(self) -> list[Profile]:
        with self._conn() as conn:
            rows = conn.execute("SELECT * FROM profiles ORDER BY name").fetchall()
            return [self._row_to_profile(conn, r) for r in rows]

    def get_level(self, profile_id: int, subject: Subject) -> int:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT level FROM levels WHERE profile_id = ? AND subject = ?",
                (profile_id, subject.value),
            ).fetchone()
        return row[0] if row else self.min_level

    def set_level(self, profile_id: int, subject: Subject, level: int) -> int:
        level = self._clamp(level)
        with self._conn() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO levels (profile_id, subject, level) VALUES (?, ?, ?)",
                (profile_id, subject.value, level),
            )
        return level

    def record_session(self, profile_id: int, session: QuizSession) -> None:
        """Write back the final level and answer totals of an ended session."""
        self.set_level(profile_id, session.subject, session.current_level)
        with self._conn() as conn:
            conn.execute(
                """UPDATE profiles
                   SET total_correct = total_correct + ?,
                       total_answered = total_answered + ?,
                       last_played_at = ?
                   WHERE id = ?""",
                (session.correct_count, session.total_questions,
                 (session.ended_at or datetime.now()).isoformat(), profile_id),
            )

    def award_placement(self, profile_id: int, placement: int) -> None:
        """1st place earns gold and a win, 2nd silver, 3rd bronze."""
        column = {1: "gold", 2: "silver", 3: "bronze"}.get(placement)
        if column is None:
            return
        wins = 1 if placement == 1 else 0
        with self._conn() as conn:
            conn.execute(
                f"UPDATE profiles SET {column} = {column} + 1, wins = wins + ? WHERE id = ?",
                (wins, profile_id),
            )

    def delete_profile(self, profile_id: int) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM levels WHERE profile_id = ?", (profile_id,))
            conn.execute("DELETE FROM profiles WHERE id = ?", (profile_id,))
