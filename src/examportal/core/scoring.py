"""Scoring engine.

Pure functions: no database access, no clock. Given the exam's questions and
the answer records of an attempt, compute the obtained mark.

Rules:
- A question contributes its marks only when its answer record is correct
- Skipped questions (no record, or a record without option) contribute 0
- Records for questions outside the exam are ignored
- The result is clamped to [0, sum of question marks]
"""

from __future__ import annotations

from collections.abc import Iterable

from examportal.core.models import AnswerRecord, Exam, Question, ScoreSummary


def score(questions: Iterable[Question], answers: Iterable[AnswerRecord]) -> int:
    """Compute obtained marks.

    Args:
        questions: Full question set of the exam
        answers: Answer records of the attempt

    Returns:
        Obtained marks, between 0 and the sum of question marks
    """
    marks_by_question = {q.question_id: q.marks for q in questions}
    max_marks = sum(marks_by_question.values())

    correct_questions = {
        a.question_id
        for a in answers
        if a.is_correct and a.selected_option is not None and a.question_id in marks_by_question
    }
    obtained = sum(marks_by_question[qid] for qid in correct_questions)

    return max(0, min(obtained, max_marks))


def exam_marks(exam: Exam, answers: Iterable[AnswerRecord]) -> int:
    """Obtained marks of an attempt, never above the exam's declared total."""
    return min(score(exam.questions, answers), exam.total_marks)


def is_passed(obtained_marks: int, passing_marks: int) -> bool:
    return obtained_marks >= passing_marks


def percentage(obtained_marks: int, total_marks: int) -> float:
    """Percentage of total marks, rounded to one decimal."""
    if total_marks <= 0:
        return 0.0
    return round(obtained_marks / total_marks * 100, 1)


def summarize(
    exam: Exam,
    answers: Iterable[AnswerRecord],
    obtained_marks: int | None = None,
) -> ScoreSummary:
    """Build a ScoreSummary for an attempt.

    Args:
        exam: Exam with its questions
        answers: Answer records of the attempt
        obtained_marks: Persisted mark; recomputed from answers when None
    """
    answers = list(answers)
    question_ids = {q.question_id for q in exam.questions}
    in_exam = [a for a in answers if a.question_id in question_ids]

    if obtained_marks is None:
        obtained_marks = exam_marks(exam, in_exam)

    return ScoreSummary(
        obtained_marks=obtained_marks,
        total_marks=exam.total_marks,
        passing_marks=exam.passing_marks,
        percentage=percentage(obtained_marks, exam.total_marks),
        passed=is_passed(obtained_marks, exam.passing_marks),
        correct_count=sum(1 for a in in_exam if a.is_correct),
        answered_count=sum(1 for a in in_exam if a.selected_option is not None),
        question_count=len(exam.questions),
    )
