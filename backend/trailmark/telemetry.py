"""Submission lifecycle events.

Each event is written as one ``TELEMETRY {json}`` log line and handed to
in-process subscribers. Subscribers pick the events they care about.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from threading import Lock
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger("trailmark.telemetry")


class SubmissionEvent(str, Enum):
    RECORDED = "submission_recorded"
    REJECTED = "submission_rejected"
    NOTIFIED = "notifications_dispatched"
    UNSUBMIT = "unsubmit_attempt"


@dataclass(frozen=True)
class TelemetryEvent:
    name: SubmissionEvent
    username: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    def log_line(self) -> str:
        body = {"event": self.name.value, "username": self.username, **self.payload}
        return json.dumps(body, default=str, sort_keys=False)


Subscriber = Callable[[TelemetryEvent], None]

_subscriptions: List[Tuple[Subscriber, frozenset]] = []
_guard = Lock()


def subscribe(subscriber: Subscriber, *events: SubmissionEvent) -> Callable[[], None]:
    """Deliver ``events`` (all events when none are given) to ``subscriber``.

    Returns a callable that cancels the subscription.
    """
    entry = (subscriber, frozenset(SubmissionEvent(name) for name in events))
    with _guard:
        _subscriptions.append(entry)

    def cancel() -> None:
        with _guard:
            if entry in _subscriptions:
                _subscriptions.remove(entry)

    return cancel


def clear_subscribers() -> None:
    with _guard:
        _subscriptions.clear()


def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def emit_event(name: SubmissionEvent, *, username: Optional[str] = None, **fields: Any) -> TelemetryEvent:
    event = TelemetryEvent(
        name=SubmissionEvent(name),
        username=username,
        payload={key: _plain(value) for key, value in fields.items()},
    )
    with _guard:
        targets = [sub for sub, wanted in _subscriptions if not wanted or event.name in wanted]

    for subscriber in targets:
        try:
            subscriber(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry subscriber failed for %s", event.name.value)

    logger.info("TELEMETRY %s", event.log_line())
    return event


__all__ = [
    "SubmissionEvent",
    "TelemetryEvent",
    "clear_subscribers",
    "emit_event",
    "subscribe",
]
