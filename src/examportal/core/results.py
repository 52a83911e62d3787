"""Read-side views over closed attempts.

Never writes. Every scored terminal attempt is part of a student's history,
so retakes appear as separate results.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

from examportal.config.app_config import AttemptsConfig, load_app_config
from examportal.core.errors import NotFoundError
from examportal.core.expiry import is_past_deadline, utc_now
from examportal.core.models import Attempt, AttemptStatus, Exam
from examportal.core.registry import retake_refusal
from examportal.core.scoring import is_passed, percentage
from examportal.db.attempts_repository import list_attempts_for_exam, list_student_attempts
from examportal.db.database import get_db
from examportal.db.exams_repository import get_exam, list_active_exams
from examportal.db.students_repository import get_student_by_id

_SCORED_STATUSES = (
    AttemptStatus.COMPLETED,
    AttemptStatus.SUBMITTED,
    AttemptStatus.EXPIRED,
)


@dataclass
class StudentResult:
    """One closed attempt as shown in a student's results."""

    attempt_id: int
    exam_id: int
    exam_title: str
    status: AttemptStatus
    obtained_marks: int
    total_marks: int
    passing_marks: int
    percentage: float
    passed: bool
    completed_at: datetime | None
    duration_minutes: int


@dataclass
class StudentResults:
    """All results of a student plus aggregate figures."""

    student_id: int
    results: list[StudentResult] = field(default_factory=list)

    @property
    def total_results(self) -> int:
        return len(self.results)

    @property
    def passed_count(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed_count(self) -> int:
        return self.total_results - self.passed_count

    @property
    def average_percentage(self) -> float:
        if not self.results:
            return 0.0
        return round(sum(r.percentage for r in self.results) / len(self.results), 1)

    @property
    def pass_rate(self) -> float:
        if not self.results:
            return 0.0
        return round(self.passed_count / self.total_results * 100, 1)


def list_student_results(student_id: int) -> StudentResults:
    """Get every scored attempt of a student, oldest first.

    Raises:
        NotFoundError: Unknown student
    """
    with get_db() as conn:
        if get_student_by_id(student_id, conn) is None:
            raise NotFoundError("Student", student_id)

        attempts = list_student_attempts(conn, student_id, _SCORED_STATUSES)
        exams: dict[int, Exam | None] = {}
        for attempt in attempts:
            if attempt.exam_id not in exams:
                exams[attempt.exam_id] = get_exam(attempt.exam_id, conn)

    results = StudentResults(student_id=student_id)
    for attempt in attempts:
        exam = exams.get(attempt.exam_id)
        if exam is None or attempt.obtained_marks is None:
            continue
        results.results.append(
            StudentResult(
                attempt_id=attempt.attempt_id,
                exam_id=exam.exam_id,
                exam_title=exam.title,
                status=attempt.status,
                obtained_marks=attempt.obtained_marks,
                total_marks=exam.total_marks,
                passing_marks=exam.passing_marks,
                percentage=percentage(attempt.obtained_marks, exam.total_marks),
                passed=is_passed(attempt.obtained_marks, exam.passing_marks),
                completed_at=attempt.end_time,
                duration_minutes=exam.duration_minutes,
            )
        )
    return results


def list_available_exams(
    student_id: int,
    config: AttemptsConfig | None = None,
    now: datetime | None = None,
) -> list[Exam]:
    """Get active exams the student may start or resume.

    An exam is hidden when the student has no resumable attempt and the
    retake policy would refuse a new one. An in-progress attempt past its
    deadline is not resumable: start would expire it, so it counts as
    finished here.

    Raises:
        NotFoundError: Unknown student
    """
    config = config or load_app_config().attempts
    now = now or utc_now()

    with get_db() as conn:
        if get_student_by_id(student_id, conn) is None:
            raise NotFoundError("Student", student_id)

        available: list[Exam] = []
        for exam in list_active_exams():
            history = list_attempts_for_exam(conn, student_id, exam.exam_id)
            resumable = [
                a
                for a in history
                if a.status is AttemptStatus.IN_PROGRESS
                and not (
                    config.enforce_deadline
                    and is_past_deadline(a, exam, now, config.grace_seconds)
                )
            ]
            if resumable:
                available.append(exam)
                continue

            closed = [_as_finished(a) for a in history]
            if retake_refusal(closed, config) is None:
                available.append(exam)

    return available


def _as_finished(attempt: Attempt) -> Attempt:
    if attempt.status is not AttemptStatus.IN_PROGRESS:
        return attempt
    return replace(attempt, status=AttemptStatus.EXPIRED)
