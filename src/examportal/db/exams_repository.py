"""Repository functions for exams and questions tables.

Exams are returned fully materialized: the Exam carries its ordered
question tuple, so scoring never triggers further reads.
"""

from __future__ import annotations

import sqlite3

import structlog

from examportal.core.models import Difficulty, Exam, Option, Question
from examportal.db.database import get_db

logger = structlog.get_logger(__name__)


def insert_exam(
    title: str,
    total_marks: int,
    passing_marks: int,
    duration_minutes: int,
    description: str = "",
    is_active: bool = True,
) -> int:
    """Insert a new exam record.

    Args:
        title: Exam title
        total_marks: Maximum obtainable marks
        passing_marks: Marks required to pass
        duration_minutes: Time limit of an attempt
        description: Free text description
        is_active: Whether students may start attempts

    Returns:
        The new exam_id

    Raises:
        sqlite3.IntegrityError: If a CHECK constraint fails
    """
    with get_db() as conn:
        cursor = conn.execute(
            """
            INSERT INTO exams (
                title, description, duration_minutes,
                total_marks, passing_marks, is_active
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (title, description, duration_minutes, total_marks, passing_marks, int(is_active)),
        )
        exam_id = cursor.lastrowid

    logger.debug("exams.inserted", exam_id=exam_id)
    return exam_id


def insert_question(
    exam_id: int,
    text: str,
    options: tuple[str, str, str, str],
    correct_option: str,
    marks: int = 1,
    difficulty: str = "MEDIUM",
) -> int:
    """Insert a question into an exam.

    Args:
        exam_id: Owning exam
        text: Question text
        options: Texts of options A, B, C and D
        correct_option: One of 'A', 'B', 'C', 'D'
        marks: Positive mark value
        difficulty: EASY, MEDIUM or HARD

    Returns:
        The new question_id
    """
    option_a, option_b, option_c, option_d = options
    with get_db() as conn:
        cursor = conn.execute(
            """
            INSERT INTO questions (
                exam_id, question_text, option_a, option_b, option_c, option_d,
                correct_option, marks, difficulty
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                exam_id,
                text,
                option_a,
                option_b,
                option_c,
                option_d,
                Option(correct_option).value,
                marks,
                Difficulty(difficulty).value,
            ),
        )
        question_id = cursor.lastrowid

    logger.debug("questions.inserted", exam_id=exam_id, question_id=question_id)
    return question_id


def set_exam_active(exam_id: int, is_active: bool) -> bool:
    """Activate or deactivate an exam.

    Returns:
        True if the exam exists
    """
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE exams SET is_active = ? WHERE exam_id = ?",
            (int(is_active), exam_id),
        )
    return cursor.rowcount > 0


def get_exam(exam_id: int, conn: sqlite3.Connection | None = None) -> Exam | None:
    """Get an exam with all of its questions, ordered by question_id.

    Args:
        exam_id: Exam identifier
        conn: Open connection to reuse (optional)

    Returns:
        Exam if found, None otherwise
    """
    if conn is None:
        with get_db() as own_conn:
            return get_exam(exam_id, own_conn)

    row = conn.execute("SELECT * FROM exams WHERE exam_id = ?", (exam_id,)).fetchone()
    if row is None:
        return None

    question_rows = conn.execute(
        "SELECT * FROM questions WHERE exam_id = ? ORDER BY question_id",
        (exam_id,),
    ).fetchall()

    return _row_to_exam(row, tuple(_row_to_question(q) for q in question_rows))


def list_active_exams() -> list[Exam]:
    """Get all active exams with their questions."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT exam_id FROM exams WHERE is_active = 1 ORDER BY exam_id"
        ).fetchall()
        return [get_exam(row["exam_id"], conn) for row in rows]


def _row_to_question(row: sqlite3.Row) -> Question:
    return Question(
        question_id=row["question_id"],
        exam_id=row["exam_id"],
        text=row["question_text"],
        option_a=row["option_a"],
        option_b=row["option_b"],
        option_c=row["option_c"],
        option_d=row["option_d"],
        correct_option=Option(row["correct_option"]),
        marks=row["marks"],
        difficulty=Difficulty(row["difficulty"]),
    )


def _row_to_exam(row: sqlite3.Row, questions: tuple[Question, ...]) -> Exam:
    return Exam(
        exam_id=row["exam_id"],
        title=row["title"],
        description=row["description"],
        total_marks=row["total_marks"],
        passing_marks=row["passing_marks"],
        duration_minutes=row["duration_minutes"],
        is_active=bool(row["is_active"]),
        questions=questions,
    )
