"""SQLite database connection and schema management.

Provides connection management, write transactions and schema initialization
for the exam portal.

Write operations on attempts and answers run inside ``transaction()``, which
opens the connection with ``BEGIN IMMEDIATE``. SQLite then holds the database
write lock for the whole read-check-write sequence, so two operations on the
same attempt never interleave.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

from examportal.config.app_config import load_app_config

logger = structlog.get_logger(__name__)

# Current database path (module-level, set by init_db)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> Path:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to the configured path.

    Returns:
        The path of the initialized database
    """
    global _db_path
    _db_path = db_path or load_app_config().database.path

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))
    return _db_path


def get_db_path() -> Path:
    """Return the active database path."""
    return _db_path or load_app_config().database.path


def reset_db_path() -> None:
    """Forget the path set by init_db (for testing)."""
    global _db_path
    _db_path = None


def _connect(isolation_level: str | None = "") -> sqlite3.Connection:
    db_path = get_db_path()

    # Ensure directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(
        db_path,
        timeout=load_app_config().database.busy_timeout_seconds,
        isolation_level=isolation_level,
        check_same_thread=False,
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            cursor = conn.execute("SELECT * FROM exams")
            rows = cursor.fetchall()
    """
    conn = _connect()

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def transaction() -> Generator[sqlite3.Connection, None, None]:
    """Open a write transaction holding the database lock from the first statement.

    Commits on normal exit, rolls back if the block raises.
    """
    conn = _connect(isolation_level=None)

    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.execute("COMMIT")
    except Exception:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        -- Students: identity only, registration lives elsewhere
        CREATE TABLE IF NOT EXISTS students (
            student_id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS exams (
            exam_id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            duration_minutes INTEGER NOT NULL CHECK(duration_minutes >= 1),
            total_marks INTEGER NOT NULL CHECK(total_marks >= 1),
            passing_marks INTEGER NOT NULL CHECK(passing_marks >= 1),
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS questions (
            question_id INTEGER PRIMARY KEY AUTOINCREMENT,
            exam_id INTEGER NOT NULL REFERENCES exams(exam_id) ON DELETE CASCADE,
            question_text TEXT NOT NULL,
            option_a TEXT NOT NULL,
            option_b TEXT NOT NULL,
            option_c TEXT NOT NULL,
            option_d TEXT NOT NULL,
            correct_option TEXT NOT NULL CHECK(correct_option IN ('A', 'B', 'C', 'D')),
            marks INTEGER NOT NULL CHECK(marks >= 1),
            difficulty TEXT NOT NULL DEFAULT 'MEDIUM' CHECK(difficulty IN ('EASY', 'MEDIUM', 'HARD')),
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        -- Attempts: end_time is NULL iff status is IN_PROGRESS,
        -- obtained_marks is NULL while IN_PROGRESS
        CREATE TABLE IF NOT EXISTS attempts (
            attempt_id INTEGER PRIMARY KEY AUTOINCREMENT,
            student_id INTEGER NOT NULL REFERENCES students(student_id),
            exam_id INTEGER NOT NULL REFERENCES exams(exam_id),
            start_time TEXT NOT NULL,
            end_time TEXT,
            status TEXT NOT NULL DEFAULT 'IN_PROGRESS'
                CHECK(status IN ('IN_PROGRESS', 'COMPLETED', 'SUBMITTED', 'EXPIRED')),
            obtained_marks INTEGER CHECK(obtained_marks IS NULL OR obtained_marks >= 0),
            CHECK((status = 'IN_PROGRESS') = (end_time IS NULL)),
            CHECK(status != 'IN_PROGRESS' OR obtained_marks IS NULL)
        );

        -- Answer ledger: one row per (attempt, question)
        CREATE TABLE IF NOT EXISTS answers (
            answer_id INTEGER PRIMARY KEY AUTOINCREMENT,
            attempt_id INTEGER NOT NULL REFERENCES attempts(attempt_id) ON DELETE CASCADE,
            question_id INTEGER NOT NULL REFERENCES questions(question_id),
            selected_option TEXT CHECK(selected_option IS NULL OR selected_option IN ('A', 'B', 'C', 'D')),
            is_correct INTEGER NOT NULL DEFAULT 0,
            answered_at TEXT NOT NULL,
            UNIQUE(attempt_id, question_id)
        );

        -- Indexes
        CREATE UNIQUE INDEX IF NOT EXISTS idx_attempts_one_in_progress
            ON attempts(student_id, exam_id) WHERE status = 'IN_PROGRESS';
        CREATE INDEX IF NOT EXISTS idx_attempts_student_exam ON attempts(student_id, exam_id);
        CREATE INDEX IF NOT EXISTS idx_attempts_status ON attempts(status);
        CREATE INDEX IF NOT EXISTS idx_questions_exam ON questions(exam_id);
        """
    )
