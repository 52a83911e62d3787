"""Attempt endpoints."""

from fastapi import APIRouter, HTTPException, Response, status

from examportal.core.errors import (
    ExamPortalError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from examportal.core.expiry import sweep_expired
from examportal.core.lifecycle import get_lifecycle_manager
from examportal.web.schemas import (
    AnswerRequest,
    AnswerResponse,
    AttemptDetailResponse,
    AttemptResponse,
    AttemptStartRequest,
    ExpireResponse,
    ScoreSummaryResponse,
    SubmitResponse,
)

router = APIRouter(prefix="/api/attempts", tags=["attempts"])


def to_http_error(error: ExamPortalError) -> HTTPException:
    """Map an engine error to an HTTP error."""
    if isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, InvalidStateError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, ValidationError):
        code = 422  # Unprocessable Content
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(error))


@router.post("", response_model=AttemptResponse, status_code=status.HTTP_201_CREATED)
def start_attempt(request: AttemptStartRequest, response: Response) -> AttemptResponse:
    """Start an attempt, or return the student's in-progress attempt (200)."""
    manager = get_lifecycle_manager()

    try:
        attempt, created = manager.open_attempt(request.student_id, request.exam_id)
    except ExamPortalError as e:
        raise to_http_error(e) from e

    if not created:
        response.status_code = status.HTTP_200_OK

    return AttemptResponse.from_attempt(attempt)


@router.post("/expire", response_model=ExpireResponse)
def expire_attempts() -> ExpireResponse:
    """Expire every in-progress attempt past its deadline."""
    manager = get_lifecycle_manager()
    expired = sweep_expired(now=manager.now(), config=manager.config)
    return ExpireResponse(
        expired=[AttemptResponse.from_attempt(a) for a in expired],
        count=len(expired),
    )


@router.get("/{attempt_id}", response_model=AttemptDetailResponse)
def get_attempt(attempt_id: int) -> AttemptDetailResponse:
    """Get attempt details with questions and recorded answers."""
    manager = get_lifecycle_manager()

    try:
        detail = manager.get_attempt_detail(attempt_id)
    except ExamPortalError as e:
        raise to_http_error(e) from e

    return AttemptDetailResponse.from_detail(detail)


@router.put("/{attempt_id}/answers/{question_id}", response_model=AnswerResponse)
def submit_answer(attempt_id: int, question_id: int, request: AnswerRequest) -> AnswerResponse:
    """Record or overwrite the answer to one question."""
    manager = get_lifecycle_manager()

    try:
        record = manager.record_answer(attempt_id, question_id, request.selected_option)
    except ExamPortalError as e:
        raise to_http_error(e) from e

    return AnswerResponse.from_record(record)


@router.post("/{attempt_id}/submit", response_model=SubmitResponse)
def close_attempt(attempt_id: int) -> SubmitResponse:
    """Close an attempt and return its score."""
    manager = get_lifecycle_manager()

    try:
        manager.submit(attempt_id)
        detail = manager.get_attempt_detail(attempt_id)
    except ExamPortalError as e:
        raise to_http_error(e) from e

    return SubmitResponse(
        attempt=AttemptResponse.from_attempt(detail.attempt),
        summary=ScoreSummaryResponse.model_validate(detail.summary),
    )
