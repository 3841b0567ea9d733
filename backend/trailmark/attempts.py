"""Attempt validation and recording for code submissions."""

from __future__ import annotations

import logging
from typing import AbstractSet, Optional, Tuple

from .catalog import Curriculum, Exercise
from .db.session import user_write_scope
from .domain import Submission, User
from .errors import DuplicateAttempt, TrailmarkError, UnrecognizedPath
from .notifications import InboxNotifier, Notifier, NotifyScope, team_recipients
from .repositories.submissions import submission_repository
from .telemetry import SubmissionEvent, emit_event

logger = logging.getLogger(__name__)


def parse_submission_path(path: str) -> Tuple[str, str, str]:
    """Split ``[.../]slug/filename.ext`` into ``(slug, filename, ext)``."""
    parts = [part for part in path.strip().replace("\\", "/").split("/") if part]
    if len(parts) < 2:
        raise UnrecognizedPath(path)
    slug, filename = parts[-2], parts[-1]
    stem, dot, extension = filename.rpartition(".")
    if not dot or not stem or not extension:
        raise UnrecognizedPath(path)
    return slug.lower(), filename, extension.lower()


class AttemptValidator:
    def __init__(
        self,
        curriculum: Curriculum,
        notifier: Optional[Notifier] = None,
        notify_scope: NotifyScope = "team",
    ) -> None:
        self.curriculum = curriculum
        self.notifier: Notifier = notifier or InboxNotifier()
        self.notify_scope = notify_scope

    def resolve(self, path: str) -> Exercise:
        slug, _, extension = parse_submission_path(path)
        trail = self.curriculum.trail_for_extension(extension)
        return self.curriculum.assignment(trail.language, slug).exercise

    def submit(self, user: User, code: str, path: str) -> Submission:
        """Validate and store an attempt, then notify the submitter's teammates.

        Nothing is written when validation fails. The duplicate check and the
        insert share one transaction under the user's write lock.
        """
        try:
            exercise = self.resolve(path)
            with user_write_scope(user.id) as session:
                previous = submission_repository.latest(session, user.id)
                if (
                    previous is not None
                    and previous.track == exercise.track
                    and previous.slug == exercise.slug
                    and previous.code == code
                ):
                    raise DuplicateAttempt()
                submission = submission_repository.create(
                    session,
                    user_id=user.id,
                    exercise=exercise,
                    code=code,
                )
                recipients = team_recipients(session, user.id, exercise, self.notify_scope)
        except TrailmarkError as exc:
            emit_event(
                SubmissionEvent.REJECTED,
                username=user.username,
                path=path,
                reason=exc.__class__.__name__,
            )
            raise

        emit_event(
            SubmissionEvent.RECORDED,
            username=user.username,
            track=exercise.track,
            slug=exercise.slug,
            submission=submission.key,
        )
        self._dispatch(recipients, submission)
        return submission

    def _dispatch(self, recipients: AbstractSet[str], submission: Submission) -> None:
        if not recipients:
            return
        try:
            self.notifier.notify(frozenset(recipients), submission)
        except Exception:  # noqa: BLE001
            logger.exception("Notifier failed for submission %s", submission.key)
            return
        emit_event(
            SubmissionEvent.NOTIFIED,
            username=submission.username,
            submission=submission.key,
            recipients=len(recipients),
        )


__all__ = ["AttemptValidator", "parse_submission_path"]
