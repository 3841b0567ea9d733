"""Assignment and submission endpoints used by the command-line client."""

from __future__ import annotations

import logging
from typing import Dict

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from .api_models import (
    AssignmentPayload,
    CompletedAssignmentsPayload,
    ErrorPayload,
    SubmissionRequest,
    SubmissionSummaryPayload,
)
from .attempts import AttemptValidator
from .catalog import DEMO_ASSIGNMENT, Curriculum
from .db.session import session_scope
from .dependencies import (
    authenticate,
    get_attempt_validator,
    get_curriculum,
    get_progress_tracker,
    get_unsubmit_engine,
    require_user,
    require_user_from_query_or_body,
)
from .domain import User
from .progress import ProgressTracker
from .repositories.submissions import submission_repository
from .unsubmit import UnsubmitEngine, UnsubmitOutcome

router = APIRouter(tags=["assignments"])
logger = logging.getLogger(__name__)

_UNSUBMIT_STATUS = {
    UnsubmitOutcome.NOTHING_TO_UNSUBMIT: status.HTTP_404_NOT_FOUND,
    UnsubmitOutcome.SUBMISSION_DONE: status.HTTP_403_FORBIDDEN,
    UnsubmitOutcome.SUBMISSION_HAS_NITS: status.HTTP_403_FORBIDDEN,
    UnsubmitOutcome.SUBMISSION_TOO_OLD: status.HTTP_403_FORBIDDEN,
}

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorPayload},
    status.HTTP_401_UNAUTHORIZED: {"model": ErrorPayload},
}


@router.get("/assignments/demo", response_model=AssignmentPayload, status_code=status.HTTP_200_OK)
def demo_assignment() -> AssignmentPayload:
    return AssignmentPayload.from_content(DEMO_ASSIGNMENT)


@router.get(
    "/assignments/{track}/{slug}",
    response_model=AssignmentPayload,
    status_code=status.HTTP_200_OK,
    responses=_ERROR_RESPONSES,
)
def fetch_assignment(
    track: str,
    slug: str,
    curriculum: Curriculum = Depends(get_curriculum),
) -> AssignmentPayload:
    return AssignmentPayload.from_content(curriculum.assignment(track, slug))


@router.get(
    "/user/assignments/current",
    response_model=Dict[str, AssignmentPayload],
    status_code=status.HTTP_200_OK,
    responses=_ERROR_RESPONSES,
)
def current_assignments(
    user: User = Depends(require_user),
    tracker: ProgressTracker = Depends(get_progress_tracker),
) -> Dict[str, AssignmentPayload]:
    current = tracker.current_assignments(user)
    return {track: AssignmentPayload.from_content(content) for track, content in current.items()}


@router.get(
    "/user/assignments/completed",
    response_model=CompletedAssignmentsPayload,
    status_code=status.HTTP_200_OK,
    responses=_ERROR_RESPONSES,
)
def completed_assignments(
    user: User = Depends(require_user),
    tracker: ProgressTracker = Depends(get_progress_tracker),
) -> CompletedAssignmentsPayload:
    with session_scope(commit=False) as session:
        done = submission_repository.done_exercises(session, user.id)
    return CompletedAssignmentsPayload(assignments=tracker.completed_assignments(user, done))


@router.get("/user/assignments/next", status_code=status.HTTP_410_GONE)
def peek_next_assignment() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_410_GONE,
        content={"error": "Peeking at the next assignment is no longer supported. Fetch current assignments instead."},
    )


@router.post(
    "/user/assignments",
    response_model=SubmissionSummaryPayload,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
)
def submit_assignment(
    payload: SubmissionRequest,
    validator: AttemptValidator = Depends(get_attempt_validator),
) -> SubmissionSummaryPayload:
    user = authenticate(payload.key)
    submission = validator.submit(user, payload.code, payload.path)
    logger.info("Accepted %s/%s from %s", submission.track, submission.slug, user.username or user.id)
    return SubmissionSummaryPayload.from_submission(submission)


@router.delete(
    "/user/assignments",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorPayload},
        status.HTTP_403_FORBIDDEN: {"model": ErrorPayload},
        status.HTTP_404_NOT_FOUND: {"model": ErrorPayload},
    },
)
def unsubmit_assignment(
    user: User = Depends(require_user_from_query_or_body),
    engine: UnsubmitEngine = Depends(get_unsubmit_engine),
) -> Response:
    result = engine.unsubmit(user)
    if result.ok:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return JSONResponse(status_code=_UNSUBMIT_STATUS[result.outcome], content={"error": result.message})


__all__ = ["router"]
