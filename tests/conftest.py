"""Shared fixtures.

Every test gets its own SQLite database under tmp_path and an explicit
configuration, so the repository's data/config file is never read.

The sample exam mirrors the reference scenario: three questions worth
2, 3 and 2 marks (total 7, passing 4), keyed A, B, C.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from examportal.config.app_config import (
    AppConfig,
    AttemptsConfig,
    DatabaseConfig,
    clear_config_cache,
    set_app_config,
)
from examportal.core import lifecycle
from examportal.core.lifecycle import AttemptLifecycleManager
from examportal.db.database import init_db, reset_db_path
from examportal.db.exams_repository import get_exam, insert_exam, insert_question
from examportal.db.students_repository import insert_student

START = datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@dataclass
class SampleExam:
    exam_id: int
    question_ids: list[int]
    correct: list[str]
    marks: list[int]


@pytest.fixture
def app_config(tmp_path):
    """Explicit configuration pointing at a temporary database."""
    config = AppConfig(
        database=DatabaseConfig(path=tmp_path / "db" / "examportal.db", busy_timeout_seconds=10.0),
        attempts=AttemptsConfig(),
    )
    set_app_config(config)
    reset_db_path()
    lifecycle.reset_lifecycle_manager()
    yield config
    clear_config_cache()
    reset_db_path()
    lifecycle.reset_lifecycle_manager()


@pytest.fixture
def db(app_config):
    """Initialized database."""
    return init_db(app_config.database.path)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager(app_config, db, clock):
    """Lifecycle manager with a controllable clock."""
    return AttemptLifecycleManager(config=app_config.attempts, clock=clock)


@pytest.fixture
def student(db):
    return insert_student("Ana Torres", "ana@example.com")


@pytest.fixture
def other_student(db):
    return insert_student("Luis Pardo")


def _make_exam(title: str, marks: list[int], correct: list[str], **kwargs) -> SampleExam:
    exam_id = insert_exam(
        title=title,
        total_marks=sum(marks),
        passing_marks=kwargs.pop("passing_marks", 4),
        duration_minutes=kwargs.pop("duration_minutes", 60),
        **kwargs,
    )
    question_ids = [
        insert_question(
            exam_id,
            text=f"{title} question {n}",
            options=("first", "second", "third", "fourth"),
            correct_option=key,
            marks=mark,
        )
        for n, (mark, key) in enumerate(zip(marks, correct), start=1)
    ]
    return SampleExam(exam_id=exam_id, question_ids=question_ids, correct=correct, marks=marks)


@pytest.fixture
def sample_exam(db) -> SampleExam:
    """Exam with questions worth 2, 3, 2 (total 7, passing 4)."""
    return _make_exam("Networking basics", marks=[2, 3, 2], correct=["A", "B", "C"])


@pytest.fixture
def other_exam(db) -> SampleExam:
    return _make_exam("Databases", marks=[1, 1], correct=["D", "A"], passing_marks=1)


@pytest.fixture
def exam_snapshot(sample_exam):
    return get_exam(sample_exam.exam_id)
