"""Progress tracking: current and completed assignments per track."""

from __future__ import annotations

from sqlalchemy.engine import Engine

from trailmark.catalog import Curriculum, Exercise
from trailmark.db.session import session_scope
from trailmark.domain import User
from trailmark.progress import ProgressTracker
from trailmark.repositories.users import user_repository

from conftest import make_user


def _user(**fields) -> User:
    return User(id="u-1", username="alice", github_id=1, key="k", **fields)


def _slugs(assignments) -> dict:
    return {track: content.slug for track, content in assignments.items()}


def test_new_user_starts_every_track_at_the_first_exercise(curriculum: Curriculum) -> None:
    tracker = ProgressTracker(curriculum)
    assert _slugs(tracker.current_assignments(_user())) == {"ruby": "one", "go": "one", "scala": "one"}


def test_recorded_pointers_pick_the_current_exercise(curriculum: Curriculum) -> None:
    tracker = ProgressTracker(curriculum)
    user = _user(current={"ruby": "one", "go": "two"}, completed={"go": ["one"]})
    assert _slugs(tracker.current_assignments(user)) == {"ruby": "one", "go": "two", "scala": "one"}


def test_pointer_skips_exercises_already_completed(curriculum: Curriculum) -> None:
    tracker = ProgressTracker(curriculum)
    user = _user(current={"go": "one"}, completed={"go": ["one", "two"]})
    assert tracker.current_assignments(user)["go"].slug == "three"


def test_finished_track_drops_out_of_current(curriculum: Curriculum) -> None:
    tracker = ProgressTracker(curriculum)
    finished_pointer = _user(current={"ruby": None})
    all_completed = _user(completed={"ruby": ["one", "two"]})
    assert "ruby" not in tracker.current_assignments(finished_pointer)
    assert "ruby" not in tracker.current_assignments(all_completed)
    assert tracker.completed_assignments(all_completed) == {"ruby": ["one", "two"]}


def test_unknown_pointer_restarts_the_trail(curriculum: Curriculum) -> None:
    tracker = ProgressTracker(curriculum)
    user = _user(current={"scala": "retired-exercise"})
    assert tracker.current_assignments(user)["scala"].slug == "one"


def test_completed_merges_recorded_and_done_submissions_in_order(curriculum: Curriculum) -> None:
    tracker = ProgressTracker(curriculum)
    user = _user(completed={"go": ["one"]})
    done = [("go", "one"), ("ruby", "one"), ("go", "two"), ("python", "one"), ("ruby", "one")]

    completed = tracker.completed_assignments(user, done)

    assert completed == {"go": ["one", "two"], "ruby": ["one"], "python": ["one"]}
    assert list(completed["go"]) == ["one", "two"]


def test_completed_is_empty_without_history(curriculum: Curriculum) -> None:
    tracker = ProgressTracker(curriculum)
    assert tracker.completed_assignments(_user()) == {}
    assert tracker.completed_assignments(_user(completed={"ruby": []})) == {}


def test_completing_the_last_exercise_finishes_the_track(database: Engine, curriculum: Curriculum) -> None:
    bob = make_user(github_id=2, current={"ruby": "two"})
    with session_scope() as session:
        bob = user_repository.complete(session, bob.id, Exercise("ruby", "two"), curriculum)

    assert bob.current["ruby"] is None
    assert bob.completed == {"ruby": ["two"]}
    tracker = ProgressTracker(curriculum)
    assert "ruby" not in tracker.current_assignments(bob)
    assert tracker.completed_assignments(bob) == {"ruby": ["two"]}


def test_completing_the_current_exercise_advances_the_pointer(database: Engine, curriculum: Curriculum) -> None:
    user = make_user(github_id=3)
    with session_scope() as session:
        user = user_repository.complete(session, user.id, Exercise("go", "one"), curriculum)
        user = user_repository.complete(session, user.id, Exercise("go", "one"), curriculum)

    assert user.current == {"go": "two"}
    assert user.completed == {"go": ["one"]}
    assert ProgressTracker(curriculum).current_assignments(user)["go"].slug == "two"
