"""Tests for the scoring engine (pure functions)."""

import pytest

from examportal.core.models import AnswerRecord, Exam, Option, Question
from examportal.core.scoring import exam_marks, is_passed, percentage, score, summarize


def _question(qid: int, marks: int, key: str = "A") -> Question:
    return Question(
        question_id=qid,
        exam_id=1,
        text=f"Q{qid}",
        option_a="a",
        option_b="b",
        option_c="c",
        option_d="d",
        correct_option=Option(key),
        marks=marks,
    )


def _answer(qid: int, option: str | None, correct: bool, answer_id: int | None = None) -> AnswerRecord:
    return AnswerRecord(
        answer_id=answer_id or qid,
        attempt_id=1,
        question_id=qid,
        selected_option=Option(option) if option else None,
        is_correct=correct,
    )


@pytest.fixture
def questions() -> list[Question]:
    return [_question(1, 2, "A"), _question(2, 3, "B"), _question(3, 2, "C")]


@pytest.fixture
def exam(questions) -> Exam:
    return Exam(
        exam_id=1,
        title="Sample",
        total_marks=7,
        passing_marks=4,
        duration_minutes=30,
        questions=tuple(questions),
    )


class TestScore:
    """Tests for score function."""

    def test_no_answers_scores_zero(self, questions):
        assert score(questions, []) == 0

    def test_all_correct_scores_total(self, questions):
        answers = [_answer(1, "A", True), _answer(2, "B", True), _answer(3, "C", True)]
        assert score(questions, answers) == 7

    def test_mixed_answers(self, questions):
        """Q1 correct, Q2 wrong, Q3 correct -> 2 + 2."""
        answers = [_answer(1, "A", True), _answer(2, "D", False), _answer(3, "C", True)]
        assert score(questions, answers) == 4

    def test_skipped_record_counts_as_incorrect(self, questions):
        """A record without option never scores, whatever its flag says."""
        answers = [_answer(1, None, True)]
        assert score(questions, answers) == 0

    def test_answers_for_other_questions_ignored(self, questions):
        answers = [_answer(99, "A", True)]
        assert score(questions, answers) == 0

    def test_duplicate_records_count_once(self, questions):
        answers = [_answer(2, "B", True, answer_id=1), _answer(2, "B", True, answer_id=2)]
        assert score(questions, answers) == 3

    def test_never_exceeds_question_total(self, questions):
        answers = [_answer(q.question_id, q.correct_option.value, True) for q in questions] * 3
        assert score(questions, answers) == sum(q.marks for q in questions)

    def test_empty_exam(self):
        assert score([], [_answer(1, "A", True)]) == 0


class TestExamMarks:
    """Tests for exam_marks (declared total cap)."""

    def test_capped_at_declared_total(self, questions):
        exam = Exam(
            exam_id=1,
            title="Understated total",
            total_marks=5,
            passing_marks=3,
            duration_minutes=30,
            questions=tuple(questions),
        )
        answers = [_answer(1, "A", True), _answer(2, "B", True), _answer(3, "C", True)]
        assert exam_marks(exam, answers) == 5


class TestPassAndPercentage:
    @pytest.mark.parametrize(
        "obtained,passing,expected",
        [(4, 4, True), (3, 4, False), (0, 4, False), (7, 4, True)],
    )
    def test_is_passed(self, obtained, passing, expected):
        assert is_passed(obtained, passing) is expected

    def test_percentage_rounded_to_one_decimal(self):
        assert percentage(4, 7) == 57.1

    def test_percentage_zero_total(self):
        assert percentage(0, 0) == 0.0


class TestSummarize:
    """Tests for summarize function."""

    def test_summary_for_reference_scenario(self, exam):
        answers = [_answer(1, "A", True), _answer(2, "D", False), _answer(3, "C", True)]
        summary = summarize(exam, answers)

        assert summary.obtained_marks == 4
        assert summary.total_marks == 7
        assert summary.passed is True
        assert summary.correct_count == 2
        assert summary.answered_count == 3
        assert summary.question_count == 3

    def test_summary_uses_persisted_marks(self, exam):
        summary = summarize(exam, [], obtained_marks=2)
        assert summary.obtained_marks == 2
        assert summary.passed is False

    def test_summary_counts_skips_as_unanswered(self, exam):
        summary = summarize(exam, [_answer(1, None, False)])
        assert summary.answered_count == 0
        assert summary.obtained_marks == 0
