"""Attempt registry and retake policy.

Decides, for a (student, exam) pair, whether start returns an existing
attempt, creates a new one, or is refused.

Policies (``attempts.retake_policy``):
- multiple: finished attempts are kept as history and a new one may start,
  up to ``attempts.max_attempts`` when set
- single: once an attempt has finished, no new attempt may start
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime

import structlog

from examportal.config.app_config import AttemptsConfig
from examportal.core.errors import NotFoundError
from examportal.core.expiry import expire_attempt, is_past_deadline
from examportal.core.models import Attempt, Exam
from examportal.db.attempts_repository import (
    find_in_progress_attempt,
    list_attempts_for_exam,
)
from examportal.db.exams_repository import get_exam
from examportal.db.students_repository import get_student_by_id

logger = structlog.get_logger(__name__)


@dataclass
class StartDecision:
    """Outcome of resolving a start request."""

    exam: Exam
    existing: Attempt | None = None
    refusal: str | None = None


def retake_refusal(history: list[Attempt], config: AttemptsConfig) -> str | None:
    """Return why a new attempt may not start, or None if it may.

    Args:
        history: Every attempt of the pair, none of them IN_PROGRESS
        config: Attempt policy
    """
    finished = [a for a in history if a.status.is_terminal]

    if finished and config.retake_policy == "single":
        return "Exam already attempted; retakes are not allowed"

    if config.max_attempts is not None and len(history) >= config.max_attempts:
        return f"Maximum of {config.max_attempts} attempts reached"

    return None


def resolve_start(
    conn: sqlite3.Connection,
    student_id: int,
    exam_id: int,
    now: datetime,
    config: AttemptsConfig,
) -> StartDecision:
    """Resolve a start request for (student_id, exam_id).

    Must run inside a write transaction: an overdue in-progress attempt is
    expired on the way. A refusal by the retake policy is returned in the
    decision rather than raised, so that the expiry still commits.

    Raises:
        NotFoundError: Unknown student, unknown or inactive exam
    """
    if get_student_by_id(student_id, conn) is None:
        raise NotFoundError("Student", student_id)

    exam = get_exam(exam_id, conn)
    if exam is None or not exam.is_active:
        raise NotFoundError("Exam", exam_id)

    in_progress = find_in_progress_attempt(conn, student_id, exam_id)
    if in_progress is not None:
        if config.enforce_deadline and is_past_deadline(
            in_progress, exam, now, config.grace_seconds
        ):
            expire_attempt(conn, in_progress, exam)
        else:
            return StartDecision(exam=exam, existing=in_progress)

    history = list_attempts_for_exam(conn, student_id, exam_id)
    refusal = retake_refusal(history, config)
    if refusal is not None:
        logger.info(
            "attempt.start_refused",
            student_id=student_id,
            exam_id=exam_id,
            reason=refusal,
        )
        return StartDecision(exam=exam, refusal=refusal)

    return StartDecision(exam=exam)
