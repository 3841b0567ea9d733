"""Database-backed user and team repositories."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..catalog import Curriculum, Exercise
from ..db.models import TeamModel, UserModel
from ..domain import Team, User

logger = logging.getLogger(__name__)


def _normalize_username(username: Optional[str]) -> Optional[str]:
    if username is None:
        return None
    normalized = username.strip().lower()
    if not normalized:
        raise ValueError("Username cannot be empty.")
    return normalized


class UserRepository:
    """Per-user progress records; pointers only change through this class."""

    def create(
        self,
        session: Session,
        *,
        github_id: int,
        username: Optional[str] = None,
        current: Optional[Dict[str, Optional[str]]] = None,
        completed: Optional[Dict[str, List[str]]] = None,
    ) -> User:
        model = UserModel(
            github_id=github_id,
            username=_normalize_username(username),
            current=dict(current or {}),
            completed={track: list(slugs) for track, slugs in (completed or {}).items()},
        )
        session.add(model)
        session.flush()
        logger.info("Created user %s (github_id=%s)", model.username or model.id, github_id)
        return self.to_domain(model)

    def get(self, session: Session, user_id: str) -> User | None:
        model = session.get(UserModel, user_id)
        return self.to_domain(model) if model is not None else None

    def get_by_key(self, session: Session, key: str) -> User | None:
        if not key:
            return None
        stmt = select(UserModel).where(UserModel.key == key)
        model = session.execute(stmt).scalar_one_or_none()
        return self.to_domain(model) if model is not None else None

    def get_by_username(self, session: Session, username: str) -> User | None:
        stmt = select(UserModel).where(UserModel.username == _normalize_username(username))
        model = session.execute(stmt).scalar_one_or_none()
        return self.to_domain(model) if model is not None else None

    def lock(self, session: Session, user_id: str) -> UserModel:
        """Load the user row with a write lock held until the transaction ends."""
        stmt = select(UserModel).where(UserModel.id == user_id).with_for_update()
        model = session.execute(stmt).scalar_one_or_none()
        if model is None:
            raise LookupError(f"User '{user_id}' does not exist.")
        return model

    def complete(
        self,
        session: Session,
        user_id: str,
        exercise: Exercise,
        curriculum: Curriculum,
    ) -> User:
        """Record a completion and move the track pointer past it.

        The pointer becomes ``None`` once the last exercise of the trail is
        completed, which drops the track from the current assignments.
        """
        model = self.lock(session, user_id)
        completed = {track: list(slugs) for track, slugs in (model.completed or {}).items()}
        slugs = completed.setdefault(exercise.track, [])
        if exercise.slug not in slugs:
            slugs.append(exercise.slug)
        model.completed = completed

        current = dict(model.current or {})
        if exercise.track not in current or current[exercise.track] == exercise.slug:
            upcoming = curriculum.next_after(exercise)
            current[exercise.track] = upcoming.slug if upcoming is not None else None
        model.current = current
        session.flush()
        logger.info(
            "Recorded completion of %s/%s for %s", exercise.track, exercise.slug, model.username or model.id
        )
        return self.to_domain(model)

    @staticmethod
    def to_domain(model: UserModel) -> User:
        return User(
            id=model.id,
            username=model.username,
            github_id=model.github_id,
            key=model.key,
            current=dict(model.current or {}),
            completed={track: list(slugs) for track, slugs in (model.completed or {}).items()},
        )


class TeamRepository:
    def create(
        self,
        session: Session,
        *,
        slug: str,
        creator_id: str,
        member_ids: Iterable[str],
    ) -> Team:
        normalized = slug.strip().lower()
        if not normalized:
            raise ValueError("Team slug cannot be empty.")
        members = [session.get(UserModel, member_id) for member_id in member_ids]
        missing = [member for member in members if member is None]
        if missing:
            raise LookupError(f"Team '{normalized}' references unknown users.")
        model = TeamModel(slug=normalized, creator_id=creator_id, members=members)
        session.add(model)
        session.flush()
        return self.to_domain(model)

    def teams_for(self, session: Session, user_id: str) -> List[Team]:
        stmt = (
            select(TeamModel)
            .options(selectinload(TeamModel.members))
            .where(TeamModel.members.any(UserModel.id == user_id))
            .order_by(TeamModel.slug)
        )
        return [self.to_domain(model) for model in session.execute(stmt).scalars().all()]

    @staticmethod
    def to_domain(model: TeamModel) -> Team:
        return Team(
            id=model.id,
            slug=model.slug,
            creator_id=model.creator_id,
            member_ids=[member.id for member in model.members],
        )


user_repository = UserRepository()
team_repository = TeamRepository()

__all__ = ["TeamRepository", "UserRepository", "team_repository", "user_repository"]
