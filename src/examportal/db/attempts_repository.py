"""Repository functions for attempts and the answer ledger.

Every function takes an open connection: callers run them inside
``examportal.db.database.transaction()`` so that status checks and the writes
depending on them happen under the same lock.

Answer ledger:
- One row per (attempt_id, question_id), enforced by a UNIQUE constraint
- ``upsert_answer`` creates the row or overwrites option and correctness in place
"""

from __future__ import annotations

import sqlite3
from datetime import datetime

import structlog

from examportal.core.models import AnswerRecord, Attempt, AttemptStatus, Option

logger = structlog.get_logger(__name__)


def _to_db_time(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _from_db_time(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


# =============================================================================
# ATTEMPTS
# =============================================================================


def insert_attempt(
    conn: sqlite3.Connection,
    student_id: int,
    exam_id: int,
    start_time: datetime,
) -> Attempt:
    """Insert a new IN_PROGRESS attempt.

    Raises:
        sqlite3.IntegrityError: If the pair already has an IN_PROGRESS attempt
    """
    cursor = conn.execute(
        """
        INSERT INTO attempts (student_id, exam_id, start_time, status)
        VALUES (?, ?, ?, ?)
        """,
        (student_id, exam_id, _to_db_time(start_time), AttemptStatus.IN_PROGRESS.value),
    )
    logger.debug("attempts.inserted", attempt_id=cursor.lastrowid)
    return Attempt(
        attempt_id=cursor.lastrowid,
        student_id=student_id,
        exam_id=exam_id,
        start_time=start_time,
    )


def get_attempt(conn: sqlite3.Connection, attempt_id: int) -> Attempt | None:
    """Get attempt by ID, or None if not found."""
    row = conn.execute(
        "SELECT * FROM attempts WHERE attempt_id = ?", (attempt_id,)
    ).fetchone()
    if row is None:
        return None
    return _row_to_attempt(row)


def find_in_progress_attempt(
    conn: sqlite3.Connection, student_id: int, exam_id: int
) -> Attempt | None:
    """Get the IN_PROGRESS attempt of a student at an exam, if any."""
    row = conn.execute(
        """
        SELECT * FROM attempts
        WHERE student_id = ? AND exam_id = ? AND status = ?
        """,
        (student_id, exam_id, AttemptStatus.IN_PROGRESS.value),
    ).fetchone()
    if row is None:
        return None
    return _row_to_attempt(row)


def list_attempts_for_exam(
    conn: sqlite3.Connection, student_id: int, exam_id: int
) -> list[Attempt]:
    """Get every attempt of a student at an exam, oldest first."""
    rows = conn.execute(
        """
        SELECT * FROM attempts
        WHERE student_id = ? AND exam_id = ?
        ORDER BY attempt_id
        """,
        (student_id, exam_id),
    ).fetchall()
    return [_row_to_attempt(row) for row in rows]


def list_student_attempts(
    conn: sqlite3.Connection,
    student_id: int,
    statuses: tuple[AttemptStatus, ...] | None = None,
) -> list[Attempt]:
    """Get attempts of a student, optionally filtered by status, oldest first."""
    query = "SELECT * FROM attempts WHERE student_id = ?"
    params: list[object] = [student_id]
    if statuses:
        query += f" AND status IN ({', '.join('?' for _ in statuses)})"
        params.extend(s.value for s in statuses)
    query += " ORDER BY attempt_id"

    rows = conn.execute(query, params).fetchall()
    return [_row_to_attempt(row) for row in rows]


def list_in_progress_attempts(conn: sqlite3.Connection) -> list[Attempt]:
    """Get every IN_PROGRESS attempt."""
    rows = conn.execute(
        "SELECT * FROM attempts WHERE status = ? ORDER BY attempt_id",
        (AttemptStatus.IN_PROGRESS.value,),
    ).fetchall()
    return [_row_to_attempt(row) for row in rows]


def close_attempt(
    conn: sqlite3.Connection,
    attempt: Attempt,
    status: AttemptStatus,
    end_time: datetime,
    obtained_marks: int,
) -> Attempt:
    """Move an IN_PROGRESS attempt to a terminal status with its final mark.

    Raises:
        ValueError: If status is not terminal
        LookupError: If the row is no longer IN_PROGRESS
    """
    if not status.is_terminal:
        raise ValueError(f"Cannot close attempt with status {status.value}")

    cursor = conn.execute(
        """
        UPDATE attempts
        SET status = ?, end_time = ?, obtained_marks = ?
        WHERE attempt_id = ? AND status = ?
        """,
        (
            status.value,
            _to_db_time(end_time),
            obtained_marks,
            attempt.attempt_id,
            AttemptStatus.IN_PROGRESS.value,
        ),
    )
    if cursor.rowcount != 1:
        raise LookupError(f"Attempt {attempt.attempt_id} is not in progress")

    attempt.status = status
    attempt.end_time = end_time
    attempt.obtained_marks = obtained_marks
    return attempt


# =============================================================================
# ANSWER LEDGER
# =============================================================================


def upsert_answer(
    conn: sqlite3.Connection,
    attempt_id: int,
    question_id: int,
    selected_option: Option | None,
    is_correct: bool,
    answered_at: datetime,
) -> AnswerRecord:
    """Create or overwrite the answer for (attempt_id, question_id).

    The row keeps its answer_id across overwrites.
    """
    conn.execute(
        """
        INSERT INTO answers (attempt_id, question_id, selected_option, is_correct, answered_at)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(attempt_id, question_id) DO UPDATE SET
            selected_option = excluded.selected_option,
            is_correct = excluded.is_correct,
            answered_at = excluded.answered_at
        """,
        (
            attempt_id,
            question_id,
            selected_option.value if selected_option else None,
            int(is_correct),
            _to_db_time(answered_at),
        ),
    )

    row = conn.execute(
        "SELECT * FROM answers WHERE attempt_id = ? AND question_id = ?",
        (attempt_id, question_id),
    ).fetchone()
    return _row_to_answer(row)


def list_answers(conn: sqlite3.Connection, attempt_id: int) -> list[AnswerRecord]:
    """Get all answers of an attempt, ordered by question_id."""
    rows = conn.execute(
        "SELECT * FROM answers WHERE attempt_id = ? ORDER BY question_id",
        (attempt_id,),
    ).fetchall()
    return [_row_to_answer(row) for row in rows]


def _row_to_attempt(row: sqlite3.Row) -> Attempt:
    return Attempt(
        attempt_id=row["attempt_id"],
        student_id=row["student_id"],
        exam_id=row["exam_id"],
        start_time=_from_db_time(row["start_time"]),
        status=AttemptStatus(row["status"]),
        end_time=_from_db_time(row["end_time"]),
        obtained_marks=row["obtained_marks"],
    )


def _row_to_answer(row: sqlite3.Row) -> AnswerRecord:
    selected = row["selected_option"]
    return AnswerRecord(
        answer_id=row["answer_id"],
        attempt_id=row["attempt_id"],
        question_id=row["question_id"],
        selected_option=Option(selected) if selected else None,
        is_correct=bool(row["is_correct"]),
        answered_at=_from_db_time(row["answered_at"]),
    )
