"""Pydantic request and response payloads for the assignments API."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .catalog import ExerciseContent
from .domain import Submission


class AssignmentPayload(BaseModel):
    track: str
    slug: str
    name: str = ""
    readme: str = ""
    test_file: str = ""
    tests: str = ""

    @classmethod
    def from_content(cls, content: ExerciseContent) -> "AssignmentPayload":
        return cls(
            track=content.track,
            slug=content.slug,
            name=content.name,
            readme=content.readme,
            test_file=content.test_file,
            tests=content.tests,
        )


class CompletedAssignmentsPayload(BaseModel):
    assignments: Dict[str, List[str]] = Field(default_factory=dict)


class SubmissionRequest(BaseModel):
    key: Optional[str] = None
    code: str
    path: str = Field(..., min_length=1)


class UnsubmitRequest(BaseModel):
    key: Optional[str] = None


class SubmissionSummaryPayload(BaseModel):
    status: str = "saved"
    id: str
    track: str
    slug: str
    state: str
    submitted_at: datetime
    submission_path: str

    @classmethod
    def from_submission(cls, submission: Submission) -> "SubmissionSummaryPayload":
        owner = submission.username or submission.user_id
        return cls(
            id=submission.key,
            track=submission.track,
            slug=submission.slug,
            state=submission.state,
            submitted_at=submission.created_at,
            submission_path=f"/{owner}/{submission.track}/{submission.slug}",
        )


class ErrorPayload(BaseModel):
    error: str


__all__ = [
    "AssignmentPayload",
    "CompletedAssignmentsPayload",
    "ErrorPayload",
    "SubmissionRequest",
    "SubmissionSummaryPayload",
    "UnsubmitRequest",
]
