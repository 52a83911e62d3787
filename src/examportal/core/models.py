"""Domain types for the attempt engine.

Exams and questions are read-only snapshots loaded fully materialized.
Attempts and answer records mirror the rows owned by the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from examportal.core.errors import ValidationError


class AttemptStatus(str, Enum):
    """Lifecycle states of an attempt."""

    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    SUBMITTED = "SUBMITTED"
    EXPIRED = "EXPIRED"

    @property
    def is_terminal(self) -> bool:
        return self is not AttemptStatus.IN_PROGRESS


class Option(str, Enum):
    """Answer option symbols."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


def parse_option(value: str | None) -> Option | None:
    """Parse a selected option.

    None and empty strings mean the question was skipped. Letters are
    accepted in either case.

    Raises:
        ValidationError: If the value is not one of A, B, C, D
    """
    if value is None:
        return None
    if isinstance(value, Option):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"Invalid option type: {type(value).__name__}")

    cleaned = value.strip().upper()
    if not cleaned:
        return None
    try:
        return Option(cleaned)
    except ValueError:
        raise ValidationError(
            f"Invalid option '{value}'. Expected one of: A, B, C, D"
        ) from None


@dataclass(frozen=True)
class Question:
    """A multiple-choice question."""

    question_id: int
    exam_id: int
    text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_option: Option
    marks: int
    difficulty: Difficulty = Difficulty.MEDIUM

    @property
    def options(self) -> dict[str, str]:
        return {
            Option.A.value: self.option_a,
            Option.B.value: self.option_b,
            Option.C.value: self.option_c,
            Option.D.value: self.option_d,
        }


@dataclass(frozen=True)
class Exam:
    """An exam with its full question set."""

    exam_id: int
    title: str
    total_marks: int
    passing_marks: int
    duration_minutes: int
    is_active: bool = True
    description: str = ""
    questions: tuple[Question, ...] = ()

    @property
    def question_marks_total(self) -> int:
        """Sum of marks over every question."""
        return sum(q.marks for q in self.questions)

    def get_question(self, question_id: int) -> Question | None:
        for question in self.questions:
            if question.question_id == question_id:
                return question
        return None


@dataclass(frozen=True)
class Student:
    student_id: int
    name: str
    email: str = ""


@dataclass
class Attempt:
    """One student's run at one exam."""

    attempt_id: int
    student_id: int
    exam_id: int
    start_time: datetime
    status: AttemptStatus = AttemptStatus.IN_PROGRESS
    end_time: datetime | None = None
    obtained_marks: int | None = None

    def deadline(self, duration_minutes: int, grace_seconds: int = 0) -> datetime:
        """Instant after which the attempt no longer accepts writes."""
        return self.start_time + timedelta(minutes=duration_minutes, seconds=grace_seconds)


@dataclass
class AnswerRecord:
    """The recorded choice (or skip) for one question within one attempt."""

    answer_id: int
    attempt_id: int
    question_id: int
    selected_option: Option | None
    is_correct: bool
    answered_at: datetime | None = None


@dataclass(frozen=True)
class ScoreSummary:
    """Score of a closed attempt."""

    obtained_marks: int
    total_marks: int
    passing_marks: int
    percentage: float
    passed: bool
    correct_count: int
    answered_count: int
    question_count: int


@dataclass
class AttemptDetail:
    """Attempt together with its exam and recorded answers."""

    attempt: Attempt
    exam: Exam
    answers: list[AnswerRecord] = field(default_factory=list)
    summary: ScoreSummary | None = None
    deadline: datetime | None = None
    # IN_PROGRESS but past the deadline, not yet swept
    overdue: bool = False
