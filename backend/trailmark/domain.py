"""Domain records handed between repositories, services and routes."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .catalog import Exercise

SubmissionState = Literal["pending", "done"]


class User(BaseModel):
    id: str
    username: Optional[str] = None
    github_id: int
    key: str
    current: Dict[str, Optional[str]] = Field(default_factory=dict)
    completed: Dict[str, List[str]] = Field(default_factory=dict)

    def completed_in(self, track: str) -> List[str]:
        return list(self.completed.get(track, []))


class Submission(BaseModel):
    id: int
    key: str
    user_id: str
    username: Optional[str] = None
    track: str
    slug: str
    code: str
    state: SubmissionState = "pending"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def exercise(self) -> Exercise:
        return Exercise(self.track, self.slug)


class Team(BaseModel):
    id: str
    slug: str
    creator_id: str
    member_ids: List[str] = Field(default_factory=list)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


__all__ = ["Submission", "SubmissionState", "Team", "User", "as_utc"]
