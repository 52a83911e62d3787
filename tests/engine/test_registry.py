"""Tests for start resolution and the retake policy."""

import pytest

from examportal.config.app_config import AttemptsConfig
from examportal.core.errors import InvalidStateError, NotFoundError
from examportal.core.lifecycle import AttemptLifecycleManager
from examportal.core.models import AttemptStatus
from examportal.core.registry import retake_refusal
from examportal.db.attempts_repository import list_attempts_for_exam
from examportal.db.database import get_db
from examportal.db.exams_repository import set_exam_active


def _manager(clock, **policy) -> AttemptLifecycleManager:
    return AttemptLifecycleManager(config=AttemptsConfig(**policy), clock=clock)


class TestMultiplePolicy:
    """Default policy: finished attempts stay as history."""

    def test_retake_creates_new_attempt(self, manager, student, sample_exam):
        first = manager.start(student.student_id, sample_exam.exam_id)
        manager.submit(first.attempt_id)

        second = manager.start(student.student_id, sample_exam.exam_id)

        assert second.attempt_id != first.attempt_id
        assert second.status is AttemptStatus.IN_PROGRESS

    def test_history_is_kept(self, manager, student, sample_exam):
        first = manager.start(student.student_id, sample_exam.exam_id)
        manager.submit(first.attempt_id)
        manager.start(student.student_id, sample_exam.exam_id)

        with get_db() as conn:
            history = list_attempts_for_exam(conn, student.student_id, sample_exam.exam_id)

        assert [a.status for a in history] == [AttemptStatus.COMPLETED, AttemptStatus.IN_PROGRESS]

    def test_max_attempts_caps_retakes(self, db, clock, student, sample_exam):
        manager = _manager(clock, max_attempts=2)
        for _ in range(2):
            attempt = manager.start(student.student_id, sample_exam.exam_id)
            manager.submit(attempt.attempt_id)

        with pytest.raises(InvalidStateError, match="Maximum of 2"):
            manager.start(student.student_id, sample_exam.exam_id)

    def test_max_attempts_still_resumes_in_progress(self, db, clock, student, sample_exam):
        manager = _manager(clock, max_attempts=1)
        first = manager.start(student.student_id, sample_exam.exam_id)

        assert manager.start(student.student_id, sample_exam.exam_id).attempt_id == first.attempt_id


class TestSinglePolicy:
    """One attempt per student and exam."""

    def test_single_policy_refuses_retake(self, db, clock, student, sample_exam):
        manager = _manager(clock, retake_policy="single")
        attempt = manager.start(student.student_id, sample_exam.exam_id)
        manager.submit(attempt.attempt_id)

        with pytest.raises(InvalidStateError, match="retakes are not allowed"):
            manager.start(student.student_id, sample_exam.exam_id)

    def test_single_policy_resumes_in_progress(self, db, clock, student, sample_exam):
        manager = _manager(clock, retake_policy="single")
        first = manager.start(student.student_id, sample_exam.exam_id)

        assert manager.start(student.student_id, sample_exam.exam_id).attempt_id == first.attempt_id

    def test_single_policy_is_per_exam(self, db, clock, student, sample_exam, other_exam):
        manager = _manager(clock, retake_policy="single")
        attempt = manager.start(student.student_id, sample_exam.exam_id)
        manager.submit(attempt.attempt_id)

        other = manager.start(student.student_id, other_exam.exam_id)
        assert other.exam_id == other_exam.exam_id

    def test_expired_attempt_is_persisted_even_when_refused(
        self, db, clock, student, sample_exam
    ):
        manager = _manager(clock, retake_policy="single")
        attempt = manager.start(student.student_id, sample_exam.exam_id)
        clock.advance(minutes=61)

        with pytest.raises(InvalidStateError):
            manager.start(student.student_id, sample_exam.exam_id)

        assert manager.get_attempt(attempt.attempt_id).status is AttemptStatus.EXPIRED


class TestInactiveExam:
    def test_inactive_exam_cannot_start(self, manager, student, sample_exam):
        set_exam_active(sample_exam.exam_id, False)

        with pytest.raises(NotFoundError, match="Exam"):
            manager.start(student.student_id, sample_exam.exam_id)


class TestRetakeRefusal:
    """Tests for the pure policy helper."""

    def test_no_history_allowed(self):
        assert retake_refusal([], AttemptsConfig(retake_policy="single")) is None

    def test_single_with_finished_attempt(self, manager, student, sample_exam):
        attempt = manager.start(student.student_id, sample_exam.exam_id)
        manager.submit(attempt.attempt_id)
        with get_db() as conn:
            history = list_attempts_for_exam(conn, student.student_id, sample_exam.exam_id)

        assert retake_refusal(history, AttemptsConfig(retake_policy="single")) is not None
        assert retake_refusal(history, AttemptsConfig(retake_policy="multiple")) is None
