"""Repository functions for students table.

The engine only needs to resolve student existence; inserting is provided
for seeding local databases and tests.
"""

from __future__ import annotations

import sqlite3

import structlog

from examportal.core.models import Student
from examportal.db.database import get_db

logger = structlog.get_logger(__name__)


def insert_student(name: str, email: str = "") -> Student:
    """Insert a new student record.

    Args:
        name: Display name
        email: Contact email (optional)

    Returns:
        The created Student
    """
    with get_db() as conn:
        cursor = conn.execute(
            "INSERT INTO students (name, email) VALUES (?, ?)",
            (name, email),
        )
        student_id = cursor.lastrowid

    logger.debug("students.inserted", student_id=student_id)
    return Student(student_id=student_id, name=name, email=email)


def get_student_by_id(
    student_id: int, conn: sqlite3.Connection | None = None
) -> Student | None:
    """Get student by ID.

    Args:
        student_id: Student identifier
        conn: Open connection to reuse (optional)

    Returns:
        Student if found, None otherwise
    """
    if conn is None:
        with get_db() as own_conn:
            return get_student_by_id(student_id, own_conn)

    row = conn.execute(
        "SELECT student_id, name, email FROM students WHERE student_id = ?",
        (student_id,),
    ).fetchone()

    if row is None:
        return None

    return Student(student_id=row["student_id"], name=row["name"], email=row["email"])
