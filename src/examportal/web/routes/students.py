"""Student read endpoints: results and available exams."""

from fastapi import APIRouter

from examportal.core.errors import ExamPortalError
from examportal.core.lifecycle import get_lifecycle_manager
from examportal.core.results import list_available_exams, list_student_results
from examportal.web.routes.attempts import to_http_error
from examportal.web.schemas import (
    ExamListResponse,
    ExamResponse,
    StudentResultsResponse,
)

router = APIRouter(prefix="/api/students", tags=["students"])


@router.get("/{student_id}/results", response_model=StudentResultsResponse)
def get_results(student_id: int) -> StudentResultsResponse:
    """List a student's closed attempts with aggregate figures."""
    try:
        results = list_student_results(student_id)
    except ExamPortalError as e:
        raise to_http_error(e) from e

    return StudentResultsResponse.from_results(results)


@router.get("/{student_id}/exams", response_model=ExamListResponse)
def get_available_exams(student_id: int) -> ExamListResponse:
    """List active exams the student may start or resume."""
    try:
        manager = get_lifecycle_manager()
        exams = list_available_exams(student_id, manager.config, now=manager.now())
    except ExamPortalError as e:
        raise to_http_error(e) from e

    return ExamListResponse(
        exams=[ExamResponse.from_exam(e) for e in exams],
        count=len(exams),
    )
