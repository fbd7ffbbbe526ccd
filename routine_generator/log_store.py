"""
SQLite persistence for logged workout sessions.
"""

import os
import sqlite3
from contextlib import contextmanager

from routine_generator.performance_history import parse_timestamp


TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


def format_timestamp(value):
    """Store timestamps as naive UTC ISO strings so they compare lexically."""
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValueError(f"Unparseable timestamp: {value!r}")
    return parsed.strftime(TIMESTAMP_FORMAT)


class WorkoutLogStore:
    """Small SQLite wrapper for per-user workout session logs."""

    def __init__(self, db_path):
        self.db_path = db_path
        parent = os.path.dirname(db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        self.conn = sqlite3.connect(db_path)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")

    def close(self):
        self.conn.close()

    @contextmanager
    def transaction(self):
        """Context manager for atomic write operations."""
        try:
            yield
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise

    def init_schema(self):
        """Create core schema if it does not already exist."""
        self.conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS workout_sessions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                routine_id TEXT NOT NULL,
                day_key TEXT,
                logged_at TEXT NOT NULL,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS exercise_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                session_id INTEGER NOT NULL,
                position INTEGER NOT NULL DEFAULT 0,
                exercise_id TEXT,
                exercise_name TEXT NOT NULL,
                target_reps TEXT,
                target_weight TEXT,
                completed INTEGER NOT NULL DEFAULT 0,
                FOREIGN KEY(session_id) REFERENCES workout_sessions(id) ON DELETE CASCADE
            );

            CREATE TABLE IF NOT EXISTS set_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                exercise_log_id INTEGER NOT NULL,
                set_number INTEGER NOT NULL,
                performed_reps TEXT,
                performed_weight TEXT,
                FOREIGN KEY(exercise_log_id) REFERENCES exercise_logs(id) ON DELETE CASCADE
            );

            CREATE INDEX IF NOT EXISTS idx_workout_sessions_user_routine
                ON workout_sessions(user_id, routine_id, logged_at);
            CREATE INDEX IF NOT EXISTS idx_exercise_logs_session_id ON exercise_logs(session_id);
            CREATE INDEX IF NOT EXISTS idx_set_logs_exercise_log_id ON set_logs(exercise_log_id);
            """
        )
        self.conn.commit()

    def add_session(self, user_id, routine_id, logged_at, day_key=None):
        """Insert a session and return its id."""
        cursor = self.conn.execute(
            """
            INSERT INTO workout_sessions (user_id, routine_id, day_key, logged_at)
            VALUES (?, ?, ?, ?)
            """,
            (user_id, routine_id, day_key, format_timestamp(logged_at)),
        )
        return int(cursor.lastrowid)

    def add_exercise_log(
        self,
        session_id,
        exercise_name,
        target_reps=None,
        target_weight=None,
        completed=False,
        exercise_id=None,
        sets=None,
        position=0,
    ):
        """
        Insert one exercise occurrence with its performed sets.

        Args:
            sets: list of dicts with 'reps' and 'weight' as logged (free-form)
        """
        cursor = self.conn.execute(
            """
            INSERT INTO exercise_logs (
                session_id,
                position,
                exercise_id,
                exercise_name,
                target_reps,
                target_weight,
                completed
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session_id,
                position,
                exercise_id,
                exercise_name.strip(),
                None if target_reps is None else str(target_reps),
                None if target_weight is None else str(target_weight),
                1 if completed else 0,
            ),
        )
        exercise_log_id = int(cursor.lastrowid)

        for set_number, performed in enumerate(sets or [], start=1):
            reps = performed.get("reps")
            weight = performed.get("weight")
            self.conn.execute(
                """
                INSERT INTO set_logs (exercise_log_id, set_number, performed_reps, performed_weight)
                VALUES (?, ?, ?, ?)
                """,
                (
                    exercise_log_id,
                    set_number,
                    None if reps is None else str(reps),
                    None if weight is None else str(weight),
                ),
            )
        return exercise_log_id

    def fetch_recent_sessions(self, user_id, routine_id, since=None, until=None, limit=30):
        """
        Return the newest sessions for (user, routine), each with its exercises and sets.

        Returns:
            List[dict] with keys: id, day_key, logged_at, exercises
            where each exercise has exercise_id, exercise_name, target_reps,
            target_weight, completed, sets (list of {reps, weight}).
        """
        clauses = ["user_id = ?", "routine_id = ?"]
        params = [user_id, routine_id]
        if since is not None:
            clauses.append("logged_at >= ?")
            params.append(format_timestamp(since))
        if until is not None:
            clauses.append("logged_at <= ?")
            params.append(format_timestamp(until))
        params.append(limit)

        session_rows = self.conn.execute(
            f"""
            SELECT id, day_key, logged_at
            FROM workout_sessions
            WHERE {" AND ".join(clauses)}
            ORDER BY logged_at DESC, id DESC
            LIMIT ?
            """,
            params,
        ).fetchall()

        sessions = []
        for row in session_rows:
            exercise_rows = self.conn.execute(
                """
                SELECT id, exercise_id, exercise_name, target_reps, target_weight, completed
                FROM exercise_logs
                WHERE session_id = ?
                ORDER BY position, id
                """,
                (row["id"],),
            ).fetchall()

            exercises = []
            for exercise_row in exercise_rows:
                set_rows = self.conn.execute(
                    """
                    SELECT performed_reps, performed_weight
                    FROM set_logs
                    WHERE exercise_log_id = ?
                    ORDER BY set_number
                    """,
                    (exercise_row["id"],),
                ).fetchall()
                exercises.append(
                    {
                        "exercise_id": exercise_row["exercise_id"],
                        "exercise_name": exercise_row["exercise_name"],
                        "target_reps": exercise_row["target_reps"],
                        "target_weight": exercise_row["target_weight"],
                        "completed": bool(exercise_row["completed"]),
                        "sets": [
                            {"reps": s["performed_reps"], "weight": s["performed_weight"]}
                            for s in set_rows
                        ],
                    }
                )

            sessions.append(
                {
                    "id": int(row["id"]),
                    "day_key": row["day_key"],
                    "logged_at": row["logged_at"],
                    "exercises": exercises,
                }
            )
        return sessions
