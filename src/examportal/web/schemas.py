"""Pydantic schemas for Web API.

Serialization models for attempts, answers, score summaries and results.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from examportal.core.errors import ValidationError
from examportal.core.models import (
    AnswerRecord,
    Attempt,
    AttemptDetail,
    AttemptStatus,
    Exam,
    Question,
    ScoreSummary,
    parse_option,
)
from examportal.core.results import StudentResult, StudentResults


# =============================================================================
# ATTEMPT SCHEMAS
# =============================================================================


class AttemptStartRequest(BaseModel):
    """Request to start (or resume) an attempt."""

    student_id: int = Field(..., ge=1)
    exam_id: int = Field(..., ge=1)


class AttemptResponse(BaseModel):
    """Response for an attempt."""

    attempt_id: int
    student_id: int
    exam_id: int
    start_time: datetime
    end_time: datetime | None = None
    status: AttemptStatus
    obtained_marks: int | None = None

    @classmethod
    def from_attempt(cls, attempt: Attempt) -> AttemptResponse:
        return cls(
            attempt_id=attempt.attempt_id,
            student_id=attempt.student_id,
            exam_id=attempt.exam_id,
            start_time=attempt.start_time,
            end_time=attempt.end_time,
            status=attempt.status,
            obtained_marks=attempt.obtained_marks,
        )


class ScoreSummaryResponse(BaseModel):
    """Score of a closed attempt."""

    obtained_marks: int
    total_marks: int
    passing_marks: int
    percentage: float
    passed: bool
    correct_count: int
    answered_count: int
    question_count: int

    model_config = {"from_attributes": True}


class SubmitResponse(BaseModel):
    """Response after closing an attempt."""

    attempt: AttemptResponse
    summary: ScoreSummaryResponse


# =============================================================================
# ANSWER SCHEMAS
# =============================================================================


class AnswerRequest(BaseModel):
    """Request body to record an answer. Null marks the question skipped."""

    selected_option: str | None = Field(...)

    @field_validator("selected_option")
    @classmethod
    def _check_option(cls, value: str | None) -> str | None:
        try:
            option = parse_option(value)
        except ValidationError as e:
            raise ValueError(str(e)) from e
        return option.value if option else None


class AnswerResponse(BaseModel):
    """Response for an answer record."""

    answer_id: int
    attempt_id: int
    question_id: int
    selected_option: str | None = None
    is_correct: bool
    answered_at: datetime | None = None

    @classmethod
    def from_record(cls, record: AnswerRecord) -> AnswerResponse:
        return cls(
            answer_id=record.answer_id,
            attempt_id=record.attempt_id,
            question_id=record.question_id,
            selected_option=record.selected_option.value if record.selected_option else None,
            is_correct=record.is_correct,
            answered_at=record.answered_at,
        )


class StudentAnswerResponse(BaseModel):
    """Answer as shown while the attempt is in progress (no correctness)."""

    question_id: int
    selected_option: str | None = None


# =============================================================================
# EXAM SCHEMAS
# =============================================================================


class QuestionResponse(BaseModel):
    """Question as shown to a student. The key is only set on closed attempts."""

    question_id: int
    text: str
    options: dict[str, str]
    marks: int
    difficulty: str
    correct_option: str | None = None

    @classmethod
    def from_question(cls, question: Question, reveal: bool = False) -> QuestionResponse:
        return cls(
            question_id=question.question_id,
            text=question.text,
            options=question.options,
            marks=question.marks,
            difficulty=question.difficulty.value,
            correct_option=question.correct_option.value if reveal else None,
        )


class ExamResponse(BaseModel):
    """Response for an exam (without questions)."""

    exam_id: int
    title: str
    description: str = ""
    total_marks: int
    passing_marks: int
    duration_minutes: int
    question_count: int

    @classmethod
    def from_exam(cls, exam: Exam) -> ExamResponse:
        return cls(
            exam_id=exam.exam_id,
            title=exam.title,
            description=exam.description,
            total_marks=exam.total_marks,
            passing_marks=exam.passing_marks,
            duration_minutes=exam.duration_minutes,
            question_count=len(exam.questions),
        )


class ExamListResponse(BaseModel):
    """Response for list of exams."""

    exams: list[ExamResponse]
    count: int


class AttemptDetailResponse(BaseModel):
    """Attempt with its exam questions and recorded answers."""

    attempt: AttemptResponse
    exam: ExamResponse
    deadline: datetime | None = None
    overdue: bool = False
    questions: list[QuestionResponse]
    answers: list[AnswerResponse | StudentAnswerResponse]
    summary: ScoreSummaryResponse | None = None

    @classmethod
    def from_detail(cls, detail: AttemptDetail) -> AttemptDetailResponse:
        closed = detail.attempt.status.is_terminal
        answers: list[AnswerResponse | StudentAnswerResponse]
        if closed:
            answers = [AnswerResponse.from_record(a) for a in detail.answers]
        else:
            answers = [
                StudentAnswerResponse(
                    question_id=a.question_id,
                    selected_option=a.selected_option.value if a.selected_option else None,
                )
                for a in detail.answers
            ]

        return cls(
            attempt=AttemptResponse.from_attempt(detail.attempt),
            exam=ExamResponse.from_exam(detail.exam),
            deadline=detail.deadline,
            overdue=detail.overdue,
            questions=[
                QuestionResponse.from_question(q, reveal=closed) for q in detail.exam.questions
            ],
            answers=answers,
            summary=_summary(detail.summary),
        )


def _summary(summary: ScoreSummary | None) -> ScoreSummaryResponse | None:
    if summary is None:
        return None
    return ScoreSummaryResponse.model_validate(summary)


class ExpireResponse(BaseModel):
    """Attempts moved to EXPIRED by a sweep."""

    expired: list[AttemptResponse]
    count: int


# =============================================================================
# RESULT SCHEMAS
# =============================================================================


class StudentResultResponse(BaseModel):
    """One closed attempt in a student's results."""

    attempt_id: int
    exam_id: int
    exam_title: str
    status: AttemptStatus
    obtained_marks: int
    total_marks: int
    passing_marks: int
    percentage: float
    passed: bool
    completed_at: datetime | None = None
    duration_minutes: int

    model_config = {"from_attributes": True}

    @classmethod
    def from_result(cls, result: StudentResult) -> StudentResultResponse:
        return cls.model_validate(result)


class StudentResultsResponse(BaseModel):
    """A student's results with aggregate figures."""

    student_id: int
    results: list[StudentResultResponse]
    total_results: int
    average_percentage: float
    passed_count: int
    failed_count: int
    pass_rate: float

    @classmethod
    def from_results(cls, results: StudentResults) -> StudentResultsResponse:
        return cls(
            student_id=results.student_id,
            results=[StudentResultResponse.from_result(r) for r in results.results],
            total_results=results.total_results,
            average_percentage=results.average_percentage,
            passed_count=results.passed_count,
            failed_count=results.failed_count,
            pass_rate=results.pass_rate,
        )


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
