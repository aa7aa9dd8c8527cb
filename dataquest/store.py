"""
Progress persistence on top of sqlite3.

Storage failures are never fatal: they are logged and the caller gets a
neutral default, so a play session keeps going on in-memory state.
"""

import logging
import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS questions (
    question_key TEXT PRIMARY KEY,
    completed INTEGER NOT NULL DEFAULT 0,
    stars INTEGER NOT NULL DEFAULT 0,
    attempts INTEGER NOT NULL DEFAULT 0,
    best_time REAL
);
CREATE TABLE IF NOT EXISTS attempts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    question_key TEXT NOT NULL,
    played_at REAL NOT NULL,
    stars INTEGER NOT NULL,
    time_spent REAL NOT NULL
);
CREATE TABLE IF NOT EXISTS levels (
    number INTEGER PRIMARY KEY,
    unlocked INTEGER NOT NULL DEFAULT 0
);
"""


@dataclass(frozen=True)
class QuestionProgress:
    question_key: str
    completed: bool = False
    stars: int = 0
    attempts: int = 0
    best_time: Optional[float] = None


@dataclass(frozen=True)
class Attempt:
    question_key: str
    played_at: float
    stars: int
    time_spent: float


class ProgressStore:
    def __init__(self, db_path=":memory:"):
        self.db_path = str(db_path)
        try:
            self.conn = self._open(self.db_path)
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Could not open {self.db_path} ({e}), progress will not survive this session")
            self.db_path = ":memory:"
            self.conn = self._open(self.db_path)
        logger.info(f"Progress store ready at {self.db_path}")

    @staticmethod
    def _open(db_path: str) -> sqlite3.Connection:
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(db_path)
        conn.row_factory = sqlite3.Row
        conn.executescript(SCHEMA)
        conn.commit()
        return conn

    def close(self):
        self.conn.close()

    def record_completion(self, question_key: str, stars: int, time_spent: float) -> Optional[QuestionProgress]:
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                "INSERT INTO attempts (question_key, played_at, stars, time_spent) VALUES (?, ?, ?, ?)",
                (question_key, time.time(), stars, time_spent),
            )
            cursor.execute(
                """
                INSERT INTO questions (question_key, completed, stars, attempts, best_time)
                VALUES (?, 1, ?, 1, ?)
                ON CONFLICT(question_key) DO UPDATE SET
                    completed = 1,
                    stars = MAX(stars, excluded.stars),
                    attempts = attempts + 1,
                    best_time = CASE
                        WHEN best_time IS NULL THEN excluded.best_time
                        ELSE MIN(best_time, excluded.best_time)
                    END
                """,
                (question_key, stars, time_spent),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Could not record completion of {question_key}: {e}")
            return None
        return self.get_question_progress(question_key)

    def get_question_progress(self, question_key: str) -> QuestionProgress:
        try:
            row = self.conn.execute(
                "SELECT * FROM questions WHERE question_key = ?", (question_key,)
            ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Could not read progress for {question_key}: {e}")
            row = None
        if row is None:
            return QuestionProgress(question_key)
        return QuestionProgress(
            question_key=row["question_key"],
            completed=bool(row["completed"]),
            stars=row["stars"],
            attempts=row["attempts"],
            best_time=row["best_time"],
        )

    def get_history(self, question_key: str) -> List[Attempt]:
        try:
            rows = self.conn.execute(
                "SELECT * FROM attempts WHERE question_key = ? ORDER BY played_at DESC, id DESC",
                (question_key,),
            ).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Could not read history for {question_key}: {e}")
            return []
        return [Attempt(r["question_key"], r["played_at"], r["stars"], r["time_spent"]) for r in rows]

    def total_stars(self) -> int:
        try:
            row = self.conn.execute("SELECT COALESCE(SUM(stars), 0) FROM questions").fetchone()
        except sqlite3.Error as e:
            logger.error(f"Could not total stars: {e}")
            return 0
        return int(row[0])

    def set_level_unlocked(self, number: int, unlocked: bool = True) -> bool:
        try:
            self.conn.execute(
                "INSERT INTO levels (number, unlocked) VALUES (?, ?) "
                "ON CONFLICT(number) DO UPDATE SET unlocked = excluded.unlocked",
                (number, int(unlocked)),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Could not update unlock flag for level {number}: {e}")
            return False
        return True

    def is_level_unlocked(self, number: int) -> bool:
        try:
            row = self.conn.execute("SELECT unlocked FROM levels WHERE number = ?", (number,)).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Could not read unlock flag for level {number}: {e}")
            return False
        return bool(row and row["unlocked"])

    def reset(self):
        try:
            self.conn.executescript("DELETE FROM attempts; DELETE FROM questions; DELETE FROM levels;")
            self.conn.commit()
            logger.info("Progress reset")
        except sqlite3.Error as e:
            logger.error(f"Could not reset progress: {e}")
