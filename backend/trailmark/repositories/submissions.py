"""Submission store: attempt history per user with pending/done lifecycle."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Set, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, selectinload

from ..catalog import Exercise
from ..db.models import CommentModel, NotificationModel, SubmissionModel
from ..domain import Submission, SubmissionState

logger = logging.getLogger(__name__)


class SubmissionRepository:
    def create(
        self,
        session: Session,
        *,
        user_id: str,
        exercise: Exercise,
        code: str,
        state: SubmissionState = "pending",
        created_at: Optional[datetime] = None,
    ) -> Submission:
        model = SubmissionModel(
            user_id=user_id,
            track=exercise.track,
            slug=exercise.slug,
            code=code,
            state=state,
            created_at=created_at or datetime.now(timezone.utc),
        )
        session.add(model)
        session.flush()
        logger.info(
            "Stored %s submission %s for %s/%s", state, model.key, exercise.track, exercise.slug
        )
        return self.to_domain(model)

    def latest(self, session: Session, user_id: str) -> SubmissionModel | None:
        """Most recently created submission of the user, across all tracks."""
        stmt = (
            select(SubmissionModel)
            .where(SubmissionModel.user_id == user_id)
            .order_by(SubmissionModel.id.desc())
            .limit(1)
        )
        return session.execute(stmt).scalar_one_or_none()

    def list_user(self, session: Session, user_id: str) -> List[Submission]:
        stmt = (
            select(SubmissionModel)
            .options(selectinload(SubmissionModel.user))
            .where(SubmissionModel.user_id == user_id)
            .order_by(SubmissionModel.id.desc())
        )
        return [self.to_domain(model) for model in session.execute(stmt).scalars().all()]

    def done_exercises(self, session: Session, user_id: str) -> List[Tuple[str, str]]:
        """(track, slug) of every done submission, oldest first."""
        stmt = (
            select(SubmissionModel.track, SubmissionModel.slug)
            .where(SubmissionModel.user_id == user_id, SubmissionModel.state == "done")
            .order_by(SubmissionModel.id)
        )
        return [(track, slug) for track, slug in session.execute(stmt).all()]

    def participants(self, session: Session, exercise: Exercise) -> Set[str]:
        stmt = select(SubmissionModel.user_id).where(
            SubmissionModel.track == exercise.track,
            SubmissionModel.slug == exercise.slug,
        )
        return set(session.execute(stmt).scalars().all())

    def mark_done(self, session: Session, submission_id: int) -> Submission:
        model = self._require(session, submission_id)
        model.state = "done"
        session.flush()
        logger.info("Marked submission %s as done", model.key)
        return self.to_domain(model)

    def add_nit(
        self,
        session: Session,
        submission_id: int,
        body: str,
        *,
        author_id: Optional[str] = None,
    ) -> None:
        text = body.strip()
        if not text:
            raise ValueError("Nits need a body.")
        self._require(session, submission_id)
        session.add(CommentModel(submission_id=submission_id, author_id=author_id, body=text))
        session.flush()

    def nit_count(self, session: Session, submission_id: int) -> int:
        stmt = select(func.count(CommentModel.id)).where(CommentModel.submission_id == submission_id)
        return int(session.execute(stmt).scalar_one())

    def delete(self, session: Session, model: SubmissionModel) -> None:
        """Remove a submission along with its nits and the notifications it caused."""
        session.execute(delete(CommentModel).where(CommentModel.submission_id == model.id))
        session.execute(delete(NotificationModel).where(NotificationModel.submission_id == model.id))
        session.delete(model)
        session.flush()
        logger.info("Deleted submission %s for %s/%s", model.key, model.track, model.slug)

    def _require(self, session: Session, submission_id: int) -> SubmissionModel:
        model = session.get(SubmissionModel, submission_id)
        if model is None:
            raise LookupError(f"Submission '{submission_id}' was not found.")
        return model

    @staticmethod
    def to_domain(model: SubmissionModel) -> Submission:
        return Submission(
            id=model.id,
            key=model.key,
            user_id=model.user_id,
            username=model.user.username if model.user is not None else None,
            track=model.track,
            slug=model.slug,
            code=model.code,
            state=model.state,  # type: ignore[arg-type]
            created_at=model.created_at,
        )


submission_repository = SubmissionRepository()

__all__ = ["SubmissionRepository", "submission_repository"]
