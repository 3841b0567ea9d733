"""Teammate fan-out for new submissions."""

from __future__ import annotations

import logging
from typing import AbstractSet, List, Literal, Protocol, Set

from sqlalchemy import select
from sqlalchemy.orm import Session

from .catalog import Exercise
from .db.models import NotificationModel, SubmissionModel
from .db.session import session_scope
from .domain import Submission
from .repositories.submissions import submission_repository
from .repositories.users import team_repository

logger = logging.getLogger(__name__)

NotifyScope = Literal["team", "reviewers"]


class Notifier(Protocol):
    def notify(self, recipient_ids: AbstractSet[str], submission: Submission) -> None:  # pragma: no cover - protocol definition
        ...


def team_recipients(
    session: Session,
    user_id: str,
    exercise: Exercise,
    scope: NotifyScope = "team",
) -> Set[str]:
    """Everyone sharing a team with the submitter, each counted once.

    Team creators count as teammates. With ``scope="reviewers"`` members only
    qualify when they have submitted the same exercise themselves.
    """
    teams = team_repository.teams_for(session, user_id)
    if not teams:
        return set()

    reviewers: Set[str] | None = None
    if scope == "reviewers":
        reviewers = submission_repository.participants(session, exercise)

    recipients: Set[str] = set()
    for team in teams:
        recipients.add(team.creator_id)
        for member_id in team.member_ids:
            if reviewers is None or member_id in reviewers:
                recipients.add(member_id)
    recipients.discard(user_id)
    return recipients


class InboxNotifier:
    """Writes one inbox row per recipient in its own transaction."""

    regarding = "code"

    def notify(self, recipient_ids: AbstractSet[str], submission: Submission) -> None:
        with session_scope() as session:
            # An unsubmit may land between the submit commit and this fan-out.
            if session.get(SubmissionModel, submission.id) is None:
                logger.info("Submission %s was withdrawn; no notifications queued", submission.key)
                return
            for recipient_id in sorted(recipient_ids):
                session.add(
                    NotificationModel(
                        user_id=recipient_id,
                        submission_id=submission.id,
                        regarding=self.regarding,
                    )
                )
        logger.info(
            "Queued %d notifications for submission %s", len(recipient_ids), submission.key
        )


def inbox_for(session: Session, user_id: str) -> List[NotificationModel]:
    stmt = (
        select(NotificationModel)
        .where(NotificationModel.user_id == user_id)
        .order_by(NotificationModel.created_at)
    )
    return list(session.execute(stmt).scalars().all())


__all__ = ["InboxNotifier", "Notifier", "NotifyScope", "inbox_for", "team_recipients"]
