"""Time-limit enforcement for attempts.

An attempt's deadline is ``start_time + exam.duration_minutes`` (plus the
configured grace period). Past the deadline an IN_PROGRESS attempt accepts
no more writes: it is moved to EXPIRED and scored on the answers recorded so
far, with ``end_time`` set to the deadline.

Expiry happens in two places:
- on write, when record_answer/submit/start meet an overdue attempt
- in ``sweep_expired``, run periodically by the CLI or the web layer
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

import structlog

from examportal.config.app_config import AttemptsConfig, load_app_config
from examportal.core.models import Attempt, AttemptStatus, Exam
from examportal.core.scoring import exam_marks
from examportal.db.attempts_repository import (
    close_attempt,
    list_answers,
    list_in_progress_attempts,
)
from examportal.db.database import transaction
from examportal.db.exams_repository import get_exam

logger = structlog.get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_past_deadline(
    attempt: Attempt,
    exam: Exam,
    now: datetime,
    grace_seconds: int = 0,
) -> bool:
    """Check whether an IN_PROGRESS attempt has run out of time."""
    if attempt.status is not AttemptStatus.IN_PROGRESS:
        return False
    return now > attempt.deadline(exam.duration_minutes, grace_seconds)


def expire_attempt(conn: sqlite3.Connection, attempt: Attempt, exam: Exam) -> Attempt:
    """Move an overdue attempt to EXPIRED and store its mark.

    Must run inside a write transaction.
    """
    answers = list_answers(conn, attempt.attempt_id)
    obtained = exam_marks(exam, answers)
    close_attempt(
        conn,
        attempt,
        status=AttemptStatus.EXPIRED,
        end_time=attempt.deadline(exam.duration_minutes),
        obtained_marks=obtained,
    )

    logger.info(
        "attempt.expired",
        attempt_id=attempt.attempt_id,
        exam_id=exam.exam_id,
        obtained_marks=obtained,
    )
    return attempt


def sweep_expired(
    now: datetime | None = None,
    config: AttemptsConfig | None = None,
) -> list[Attempt]:
    """Expire every IN_PROGRESS attempt past its deadline.

    Args:
        now: Reference instant (defaults to current UTC time)
        config: Attempt policy (defaults to loaded app config)

    Returns:
        The attempts moved to EXPIRED; empty when deadlines are not enforced
    """
    now = now or utc_now()
    config = config or load_app_config().attempts

    if not config.enforce_deadline:
        logger.info("attempts.sweep_skipped", reason="enforce_deadline disabled")
        return []

    expired: list[Attempt] = []
    with transaction() as conn:
        exams: dict[int, Exam | None] = {}
        for attempt in list_in_progress_attempts(conn):
            if attempt.exam_id not in exams:
                exams[attempt.exam_id] = get_exam(attempt.exam_id, conn)
            exam = exams[attempt.exam_id]
            if exam is None:
                continue
            if is_past_deadline(attempt, exam, now, config.grace_seconds):
                expired.append(expire_attempt(conn, attempt, exam))

    logger.info("attempts.sweep_completed", expired_count=len(expired))
    return expired
