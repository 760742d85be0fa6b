"""
store.py – sqlite persistence for tests and attempts.

One row per test with its questions, answer key and marking embedded as JSON.
One row per (user, test) attempt; the UNIQUE constraint is what prevents a
participant from holding two attempts at the same test.
"""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from . import config
from .models import Attempt, ScoreBreakdown, TestDefinition

logger = logging.getLogger(__name__)


def to_timestamp(dt: datetime) -> str:
    """Fixed-width UTC ISO string; sorts lexicographically in time order."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_timestamp(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class Store:
    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or config.DB_PATH

    def get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def init_db(self):
        """Create tables and indexes if they do not exist."""
        with self.get_connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tests (
                    id                INTEGER PRIMARY KEY AUTOINCREMENT,
                    title             TEXT    NOT NULL,
                    questions         TEXT    NOT NULL,
                    answer_key        TEXT    NOT NULL,
                    marking           TEXT    NOT NULL,
                    duration_minutes  INTEGER NOT NULL,
                    start_time        TEXT    NOT NULL,
                    end_time          TEXT    NOT NULL,
                    defaulted_answers TEXT    NOT NULL DEFAULT '[]',
                    bilingual         INTEGER NOT NULL DEFAULT 1,
                    created_at        TEXT    NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS attempts (
                    id                   INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id              INTEGER NOT NULL,
                    test_id              INTEGER NOT NULL REFERENCES tests(id),
                    answers              TEXT    NOT NULL DEFAULT '{}',
                    status               TEXT    NOT NULL DEFAULT 'ongoing'
                                                 CHECK(status IN ('ongoing','submitted')),
                    started_at           TEXT    NOT NULL,
                    submitted_at         TEXT,
                    allowed_time_seconds INTEGER NOT NULL DEFAULT 0,
                    score                REAL    NOT NULL DEFAULT 0,
                    correct_count        INTEGER NOT NULL DEFAULT 0,
                    wrong_count          INTEGER NOT NULL DEFAULT 0,
                    skipped_count        INTEGER NOT NULL DEFAULT 0,
                    accuracy             REAL    NOT NULL DEFAULT 0,
                    time_taken           INTEGER NOT NULL DEFAULT 0,
                    rank                 INTEGER,
                    UNIQUE(user_id, test_id)
                )
                """
            )
            conn.execute(
                """CREATE INDEX IF NOT EXISTS idx_attempts_ranking
                   ON attempts(test_id, status, score DESC, time_taken, submitted_at, id)"""
            )
            conn.commit()
        logger.debug("Database ready at %s", self.db_path)

    # ── Tests ─────────────────────────────────────────────────────────────────

    def save_test(self, test: TestDefinition) -> TestDefinition:
        """Insert a new test or overwrite an existing one; returns it with its id."""
        values = {
            "title":             test.title,
            "questions":         json.dumps([q.model_dump(mode="json") for q in test.questions],
                                            ensure_ascii=False),
            "answer_key":        json.dumps({str(k): v for k, v in test.answer_key.items()}),
            "marking":           test.marking.model_dump_json(),
            "duration_minutes":  test.duration_minutes,
            "start_time":        to_timestamp(test.start_time),
            "end_time":          to_timestamp(test.end_time),
            "defaulted_answers": json.dumps(test.defaulted_answers),
            "bilingual":         int(test.bilingual),
            "created_at":        to_timestamp(test.created_at),
        }
        with self.get_connection() as conn:
            if test.id is None:
                cur = conn.execute(
                    """INSERT INTO tests
                           (title, questions, answer_key, marking, duration_minutes,
                            start_time, end_time, defaulted_answers, bilingual, created_at)
                       VALUES
                           (:title, :questions, :answer_key, :marking, :duration_minutes,
                            :start_time, :end_time, :defaulted_answers, :bilingual, :created_at)""",
                    values,
                )
                test_id = cur.lastrowid
            else:
                conn.execute(
                    """UPDATE tests
                       SET title = :title, questions = :questions, answer_key = :answer_key,
                           marking = :marking, duration_minutes = :duration_minutes,
                           start_time = :start_time, end_time = :end_time,
                           defaulted_answers = :defaulted_answers, bilingual = :bilingual
                       WHERE id = :id""",
                    {**values, "id": test.id},
                )
                test_id = test.id
            conn.commit()
        return test.model_copy(update={"id": test_id})

    @staticmethod
    def _test_from_row(row: sqlite3.Row) -> TestDefinition:
        return TestDefinition.model_validate({
            "id":                row["id"],
            "title":             row["title"],
            "questions":         json.loads(row["questions"]),
            "answer_key":        json.loads(row["answer_key"]),
            "marking":           json.loads(row["marking"]),
            "duration_minutes":  row["duration_minutes"],
            "start_time":        row["start_time"],
            "end_time":          row["end_time"],
            "defaulted_answers": json.loads(row["defaulted_answers"]),
            "bilingual":         bool(row["bilingual"]),
            "created_at":        row["created_at"],
        })

    def get_test(self, test_id: int) -> Optional[TestDefinition]:
        with self.get_connection() as conn:
            row = conn.execute("SELECT * FROM tests WHERE id = ?", (test_id,)).fetchone()
        return self._test_from_row(row) if row else None

    def list_tests(self) -> list[TestDefinition]:
        with self.get_connection() as conn:
            rows = conn.execute("SELECT * FROM tests ORDER BY start_time DESC, id DESC").fetchall()
        return [self._test_from_row(r) for r in rows]

    # ── Attempts ──────────────────────────────────────────────────────────────

    @staticmethod
    def _attempt_from_row(row: sqlite3.Row) -> Attempt:
        data = dict(row)
        data["answers"] = json.loads(data["answers"] or "{}")
        data["started_at"] = from_timestamp(data["started_at"])
        data["submitted_at"] = from_timestamp(data["submitted_at"])
        return Attempt.model_validate(data)

    def get_attempt(self, user_id: int, test_id: int) -> Optional[Attempt]:
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM attempts WHERE user_id = ? AND test_id = ?",
                (user_id, test_id),
            ).fetchone()
        return self._attempt_from_row(row) if row else None

    def get_user_attempts(self, user_id: int) -> dict[int, Attempt]:
        """The caller's attempts keyed by test id."""
        with self.get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM attempts WHERE user_id = ?", (user_id,)
            ).fetchall()
        return {r["test_id"]: self._attempt_from_row(r) for r in rows}

    def create_attempt(self, attempt: Attempt) -> Attempt:
        """Insert unless (user, test) already has an attempt; return the stored one."""
        with self.get_connection() as conn:
            conn.execute(
                """INSERT OR IGNORE INTO attempts
                       (user_id, test_id, status, started_at, allowed_time_seconds)
                   VALUES (?, ?, 'ongoing', ?, ?)""",
                (attempt.user_id, attempt.test_id,
                 to_timestamp(attempt.started_at), attempt.allowed_time_seconds),
            )
            conn.commit()
        return self.get_attempt(attempt.user_id, attempt.test_id)

    def finalize_attempt(self, attempt_id: int, answers: dict[int, str],
                         result: ScoreBreakdown, submitted_at: datetime) -> bool:
        """Terminal write.  False if the attempt was already submitted."""
        with self.get_connection() as conn:
            cur = conn.execute(
                """UPDATE attempts
                   SET status        = 'submitted',
                       answers       = ?,
                       submitted_at  = ?,
                       score         = ?,
                       correct_count = ?,
                       wrong_count   = ?,
                       skipped_count = ?,
                       accuracy      = ?,
                       time_taken    = ?
                   WHERE id = ? AND status = 'ongoing'""",
                (json.dumps({str(k): v for k, v in answers.items()}),
                 to_timestamp(submitted_at),
                 result.score, result.correct_count, result.wrong_count,
                 result.skipped_count, result.accuracy, result.time_taken,
                 attempt_id),
            )
            conn.commit()
            return cur.rowcount == 1

    # ── Ranking ───────────────────────────────────────────────────────────────

    def ranked_page(self, test_id: int, after: Optional[tuple] = None, limit: int = 1000) -> list[dict]:
        """One page of submitted attempts in rank order, starting after ``after``.

        ``after`` is the ``(score, time_taken, submitted_at, id)`` of the last
        row of the previous page.
        """
        sql = """SELECT id, score, time_taken, submitted_at FROM attempts
                 WHERE test_id = ? AND status = 'submitted'"""
        params: list = [test_id]
        if after is not None:
            score, time_taken, submitted_at, last_id = after
            sql += """ AND (score < ?
                        OR (score = ? AND time_taken > ?)
                        OR (score = ? AND time_taken = ? AND submitted_at > ?)
                        OR (score = ? AND time_taken = ? AND submitted_at = ? AND id > ?))"""
            params += [score,
                       score, time_taken,
                       score, time_taken, submitted_at,
                       score, time_taken, submitted_at, last_id]
        sql += " ORDER BY score DESC, time_taken ASC, submitted_at ASC, id ASC LIMIT ?"
        params.append(limit)
        with self.get_connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [dict(r) for r in rows]

    def write_ranks(self, updates: list[tuple[int, int]]):
        """``updates`` is a list of ``(rank, attempt_id)``."""
        with self.get_connection() as conn:
            conn.executemany("UPDATE attempts SET rank = ? WHERE id = ?", updates)
            conn.commit()

    def top_attempts(self, test_id: int, limit: int = 50) -> list[Attempt]:
        with self.get_connection() as conn:
            rows = conn.execute(
                """SELECT * FROM attempts
                   WHERE test_id = ? AND status = 'submitted'
                   ORDER BY score DESC, time_taken ASC, submitted_at ASC, id ASC
                   LIMIT ?""",
                (test_id, limit),
            ).fetchall()
        return [self._attempt_from_row(r) for r in rows]

    def submission_stats(self, test_id: int) -> tuple[float, int]:
        """``(topper_score, total_submitted)`` for a test."""
        with self.get_connection() as conn:
            row = conn.execute(
                """SELECT COALESCE(MAX(score), 0) AS topper, COUNT(*) AS total
                   FROM attempts WHERE test_id = ? AND status = 'submitted'""",
                (test_id,),
            ).fetchone()
        return float(row["topper"]), int(row["total"])
