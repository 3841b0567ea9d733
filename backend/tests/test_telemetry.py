from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Iterator, List

import pytest

from trailmark.telemetry import (
    SubmissionEvent,
    TelemetryEvent,
    clear_subscribers,
    emit_event,
    subscribe,
)
from trailmark.unsubmit import UnsubmitOutcome


@pytest.fixture(autouse=True)
def _isolated_subscribers() -> Iterator[None]:
    clear_subscribers()
    yield
    clear_subscribers()


def test_subscribers_receive_plain_payload() -> None:
    received: List[TelemetryEvent] = []
    subscribe(received.append)

    emit_event(
        SubmissionEvent.UNSUBMIT,
        username="alice",
        outcome=UnsubmitOutcome.SUBMISSION_TOO_OLD,
        at=datetime(2026, 10, 19, tzinfo=timezone.utc),
    )

    assert received == [
        TelemetryEvent(
            name=SubmissionEvent.UNSUBMIT,
            username="alice",
            payload={"outcome": "submission_too_old", "at": "2026-10-19T00:00:00+00:00"},
        )
    ]


def test_subscription_can_be_limited_to_some_events() -> None:
    rejected: List[TelemetryEvent] = []
    subscribe(rejected.append, SubmissionEvent.REJECTED)

    emit_event(SubmissionEvent.RECORDED, username="alice", submission="abc")
    emit_event(SubmissionEvent.REJECTED, username="alice", reason="DuplicateAttempt")

    assert [event.payload["reason"] for event in rejected] == ["DuplicateAttempt"]


def test_event_names_are_checked() -> None:
    with pytest.raises(ValueError):
        emit_event("lesson_started")  # type: ignore[arg-type]


def test_failing_subscriber_does_not_block_others(caplog: pytest.LogCaptureFixture) -> None:
    received: List[str] = []

    def broken(event: TelemetryEvent) -> None:
        raise ValueError("subscriber exploded")

    subscribe(broken)
    subscribe(lambda event: received.append(event.name.value))

    with caplog.at_level(logging.INFO, logger="trailmark.telemetry"):
        emit_event(SubmissionEvent.RECORDED, username="bob", submission_id=7)

    assert received == ["submission_recorded"]
    assert "Telemetry subscriber failed" in caplog.text
    line = next(r.getMessage() for r in caplog.records if r.getMessage().startswith("TELEMETRY "))
    assert json.loads(line[len("TELEMETRY "):]) == {
        "event": "submission_recorded",
        "username": "bob",
        "submission_id": 7,
    }


def test_cancelled_subscription_stops_delivery() -> None:
    received: List[SubmissionEvent] = []
    cancel = subscribe(lambda event: received.append(event.name))
    emit_event(SubmissionEvent.RECORDED)
    cancel()
    emit_event(SubmissionEvent.NOTIFIED)
    assert received == [SubmissionEvent.RECORDED]
