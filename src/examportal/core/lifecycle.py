"""Attempt lifecycle manager.

Responsibilities:
- Start attempts (through the registry and its retake policy)
- Record answers into the answer ledger while an attempt is IN_PROGRESS
- Submit attempts: close them and persist the obtained mark
- Read attempts back with their exam and answers

States:
    IN_PROGRESS --submit--> COMPLETED
    IN_PROGRESS --deadline--> EXPIRED
SUBMITTED exists in the data model but no operation here produces it.

Each write runs in one ``transaction()``; submit reads the ledger under the
same lock that flips the status, so it sees every acknowledged answer and no
answer can land after it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from examportal.config.app_config import AttemptsConfig, load_app_config
from examportal.core.errors import (
    AttemptExpiredError,
    InvalidStateError,
    NotFoundError,
)
from examportal.core.expiry import expire_attempt, is_past_deadline, utc_now
from examportal.core.models import (
    AnswerRecord,
    Attempt,
    AttemptDetail,
    AttemptStatus,
    Exam,
    parse_option,
)
from examportal.core.registry import resolve_start
from examportal.core.scoring import exam_marks, summarize
from examportal.db.attempts_repository import (
    close_attempt,
    get_attempt,
    insert_attempt,
    list_answers,
    upsert_answer,
)
from examportal.db.database import get_db, transaction
from examportal.db.exams_repository import get_exam

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


class AttemptLifecycleManager:
    """Owns the state machine of exam attempts.

    Args:
        config: Attempt policy. Defaults to the loaded app config.
        clock: Returns the current aware datetime. Defaults to UTC now.
    """

    def __init__(self, config: AttemptsConfig | None = None, clock: Clock | None = None):
        self._config = config
        self._clock = clock or utc_now

    @property
    def config(self) -> AttemptsConfig:
        return self._config or load_app_config().attempts

    def now(self) -> datetime:
        """Current instant according to the manager's clock."""
        return self._clock()

    def _is_overdue(self, attempt: Attempt, exam: Exam, now: datetime) -> bool:
        if not self.config.enforce_deadline:
            return False
        return is_past_deadline(attempt, exam, now, self.config.grace_seconds)

    # -------------------------------------------------------------------------
    # start
    # -------------------------------------------------------------------------

    def open_attempt(self, student_id: int, exam_id: int) -> tuple[Attempt, bool]:
        """Start or resume an attempt.

        Returns:
            (attempt, created): created is False when an in-progress attempt
            was returned

        Raises:
            NotFoundError: Unknown student, unknown or inactive exam
            InvalidStateError: Retake policy refuses a new attempt
        """
        now = self.now()

        with transaction() as conn:
            decision = resolve_start(conn, student_id, exam_id, now, self.config)
            if decision.existing is not None:
                attempt, created = decision.existing, False
            elif decision.refusal is None:
                attempt, created = insert_attempt(conn, student_id, exam_id, now), True

        if decision.refusal is not None:
            raise InvalidStateError(decision.refusal)

        logger.info(
            "attempt.started" if created else "attempt.resumed",
            attempt_id=attempt.attempt_id,
            student_id=student_id,
            exam_id=exam_id,
        )
        return attempt, created

    def start(self, student_id: int, exam_id: int) -> Attempt:
        """Start an attempt, or return the student's in-progress one."""
        attempt, _ = self.open_attempt(student_id, exam_id)
        return attempt

    # -------------------------------------------------------------------------
    # record_answer
    # -------------------------------------------------------------------------

    def record_answer(
        self,
        attempt_id: int,
        question_id: int,
        selected_option: str | None,
    ) -> AnswerRecord:
        """Record (or overwrite) the answer to one question.

        Args:
            attempt_id: Attempt identifier
            question_id: Question of the attempt's exam
            selected_option: 'A'-'D', or None to mark the question skipped

        Returns:
            The stored AnswerRecord

        Raises:
            ValidationError: Malformed option, nothing is written
            NotFoundError: Unknown attempt, or question outside the exam
            InvalidStateError: Attempt already closed
            AttemptExpiredError: Attempt past its deadline (it is expired)
        """
        option = parse_option(selected_option)
        now = self.now()
        expired = False

        with transaction() as conn:
            attempt = get_attempt(conn, attempt_id)
            if attempt is None:
                raise NotFoundError("Attempt", attempt_id)
            if attempt.status is not AttemptStatus.IN_PROGRESS:
                raise InvalidStateError(
                    f"Attempt '{attempt_id}' is {attempt.status.value}; answers are closed"
                )

            exam = get_exam(attempt.exam_id, conn)
            if exam is None:
                raise NotFoundError("Exam", attempt.exam_id)

            if self._is_overdue(attempt, exam, now):
                expire_attempt(conn, attempt, exam)
                expired = True
            else:
                question = exam.get_question(question_id)
                if question is None:
                    raise NotFoundError("Question", question_id)

                is_correct = option is not None and option == question.correct_option
                record = upsert_answer(
                    conn,
                    attempt_id=attempt_id,
                    question_id=question_id,
                    selected_option=option,
                    is_correct=is_correct,
                    answered_at=now,
                )

        if expired:
            raise AttemptExpiredError(attempt_id)

        logger.info(
            "answer.recorded",
            attempt_id=attempt_id,
            question_id=question_id,
            skipped=option is None,
        )
        return record

    # -------------------------------------------------------------------------
    # submit
    # -------------------------------------------------------------------------

    def submit(self, attempt_id: int) -> Attempt:
        """Close an attempt and persist its obtained mark.

        Raises:
            NotFoundError: Unknown attempt
            InvalidStateError: Attempt not IN_PROGRESS (mark untouched)
            AttemptExpiredError: Attempt past its deadline (it is expired)
        """
        now = self.now()
        expired = False

        with transaction() as conn:
            attempt = get_attempt(conn, attempt_id)
            if attempt is None:
                raise NotFoundError("Attempt", attempt_id)
            if attempt.status is not AttemptStatus.IN_PROGRESS:
                raise InvalidStateError(
                    f"Attempt '{attempt_id}' is already {attempt.status.value}"
                )

            exam = get_exam(attempt.exam_id, conn)
            if exam is None:
                raise NotFoundError("Exam", attempt.exam_id)

            if self._is_overdue(attempt, exam, now):
                expire_attempt(conn, attempt, exam)
                expired = True
            else:
                answers = list_answers(conn, attempt_id)
                obtained = exam_marks(exam, answers)
                close_attempt(
                    conn,
                    attempt,
                    status=AttemptStatus.COMPLETED,
                    end_time=now,
                    obtained_marks=obtained,
                )

        if expired:
            raise AttemptExpiredError(attempt_id)

        logger.info(
            "attempt.submitted",
            attempt_id=attempt_id,
            exam_id=attempt.exam_id,
            obtained_marks=attempt.obtained_marks,
            answers_count=len(answers),
        )
        return attempt

    # -------------------------------------------------------------------------
    # reads
    # -------------------------------------------------------------------------

    def get_attempt(self, attempt_id: int) -> Attempt:
        """Get an attempt.

        Raises:
            NotFoundError: Unknown attempt
        """
        with get_db() as conn:
            attempt = get_attempt(conn, attempt_id)
        if attempt is None:
            raise NotFoundError("Attempt", attempt_id)
        return attempt

    def get_attempt_detail(self, attempt_id: int) -> AttemptDetail:
        """Get an attempt with its exam, answers and (when closed) score summary.

        Raises:
            NotFoundError: Unknown attempt
        """
        with get_db() as conn:
            attempt = get_attempt(conn, attempt_id)
            if attempt is None:
                raise NotFoundError("Attempt", attempt_id)
            exam = get_exam(attempt.exam_id, conn)
            answers = list_answers(conn, attempt_id)

        if exam is None:
            raise NotFoundError("Exam", attempt.exam_id)

        summary = None
        if attempt.obtained_marks is not None:
            summary = summarize(exam, answers, attempt.obtained_marks)

        return AttemptDetail(
            attempt=attempt,
            exam=exam,
            answers=answers,
            summary=summary,
            deadline=attempt.deadline(exam.duration_minutes, self.config.grace_seconds),
            overdue=self._is_overdue(attempt, exam, self.now()),
        )


# Global instance for the web layer
_lifecycle_manager: AttemptLifecycleManager | None = None


def get_lifecycle_manager() -> AttemptLifecycleManager:
    """Get the global lifecycle manager instance."""
    global _lifecycle_manager
    if _lifecycle_manager is None:
        _lifecycle_manager = AttemptLifecycleManager()
    return _lifecycle_manager


def reset_lifecycle_manager() -> None:
    """Reset the lifecycle manager (for testing)."""
    global _lifecycle_manager
    _lifecycle_manager = None
