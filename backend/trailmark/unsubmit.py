"""Reversal of a user's most recent submission."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional

from .db.session import user_write_scope
from .domain import Submission, User, as_utc
from .repositories.submissions import submission_repository
from .telemetry import SubmissionEvent, emit_event

logger = logging.getLogger(__name__)

DEFAULT_UNSUBMIT_WINDOW = timedelta(minutes=10)


class UnsubmitOutcome(str, Enum):
    UNSUBMITTED = "unsubmitted"
    NOTHING_TO_UNSUBMIT = "nothing_to_unsubmit"
    SUBMISSION_DONE = "submission_done"
    SUBMISSION_HAS_NITS = "submission_has_nits"
    SUBMISSION_TOO_OLD = "submission_too_old"


_MESSAGES = {
    UnsubmitOutcome.UNSUBMITTED: "The submission was removed.",
    UnsubmitOutcome.NOTHING_TO_UNSUBMIT: "There is nothing to unsubmit.",
    UnsubmitOutcome.SUBMISSION_DONE: "The exercise is already done and cannot be unsubmitted.",
    UnsubmitOutcome.SUBMISSION_HAS_NITS: "The submission has nits and cannot be unsubmitted.",
    UnsubmitOutcome.SUBMISSION_TOO_OLD: "The submission is too old to unsubmit.",
}


@dataclass(frozen=True)
class UnsubmitResult:
    outcome: UnsubmitOutcome
    submission: Optional[Submission] = None

    @property
    def ok(self) -> bool:
        return self.outcome is UnsubmitOutcome.UNSUBMITTED

    @property
    def message(self) -> str:
        return _MESSAGES[self.outcome]


class UnsubmitEngine:
    """Decides whether the latest submission may be withdrawn, and withdraws it.

    Checks run in a fixed order: existence, completion, nits, age. The first
    failing check names the outcome.
    """

    def __init__(
        self,
        window: timedelta = DEFAULT_UNSUBMIT_WINDOW,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.window = window
        self.clock = clock

    def unsubmit(self, user: User) -> UnsubmitResult:
        with user_write_scope(user.id) as session:
            latest = submission_repository.latest(session, user.id)
            if latest is None:
                result = UnsubmitResult(UnsubmitOutcome.NOTHING_TO_UNSUBMIT)
            else:
                submission = submission_repository.to_domain(latest)
                outcome = self._check(session, submission)
                if outcome is UnsubmitOutcome.UNSUBMITTED:
                    submission_repository.delete(session, latest)
                result = UnsubmitResult(outcome, submission)

        emit_event(
            SubmissionEvent.UNSUBMIT,
            username=user.username,
            outcome=result.outcome,
            submission=result.submission.key if result.submission else None,
        )
        return result

    def _check(self, session, submission: Submission) -> UnsubmitOutcome:
        if submission.state == "done":
            return UnsubmitOutcome.SUBMISSION_DONE
        if submission_repository.nit_count(session, submission.id) > 0:
            return UnsubmitOutcome.SUBMISSION_HAS_NITS
        age = as_utc(self.clock()) - as_utc(submission.created_at)
        if age > self.window:
            return UnsubmitOutcome.SUBMISSION_TOO_OLD
        return UnsubmitOutcome.UNSUBMITTED


__all__ = ["DEFAULT_UNSUBMIT_WINDOW", "UnsubmitEngine", "UnsubmitOutcome", "UnsubmitResult"]
