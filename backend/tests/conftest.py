"""Shared fixtures: a throwaway SQLite database and a small three-track curriculum."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from trailmark.catalog import Curriculum, Exercise, ExerciseContent, Trail
from trailmark.config import get_settings
from trailmark.db import models  # noqa: F401
from trailmark.db.base import Base
from trailmark.db.session import dispose_engine, get_engine, session_scope
from trailmark.dependencies import get_curriculum
from trailmark.domain import Submission, User
from trailmark.main import app
from trailmark.repositories.submissions import submission_repository
from trailmark.repositories.users import team_repository, user_repository
from trailmark.telemetry import clear_subscribers


def _trail(language: str, extension: str, slugs: List[str]) -> Trail:
    return Trail(
        language=language,
        extension=extension,
        exercises=[
            ExerciseContent(
                track=language,
                slug=slug,
                name=slug.title(),
                readme=f"# {slug.title()}\n\nThe {slug} exercise for {language}.",
                test_file=f"{slug}_test.{extension}",
                tests=f"# tests for {language}/{slug}",
            )
            for slug in slugs
        ],
    )


def build_curriculum() -> Curriculum:
    return Curriculum(
        [
            _trail("ruby", "rb", ["one", "two"]),
            _trail("go", "go", ["one", "two", "three"]),
            _trail("scala", "scala", ["one", "two"]),
        ]
    )


@pytest.fixture
def curriculum() -> Curriculum:
    return build_curriculum()


@pytest.fixture
def database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Engine]:
    monkeypatch.setenv("TRAILMARK_DATABASE_URL", f"sqlite:///{tmp_path / 'trailmark.db'}")
    get_settings.cache_clear()
    dispose_engine()
    engine = get_engine()
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        clear_subscribers()
        dispose_engine()
        get_settings.cache_clear()


@pytest.fixture
def client(database: Engine, curriculum: Curriculum) -> Iterator[TestClient]:
    app.dependency_overrides[get_curriculum] = lambda: curriculum
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_user(
    github_id: int,
    username: Optional[str] = None,
    current: Optional[Dict[str, Optional[str]]] = None,
    completed: Optional[Dict[str, List[str]]] = None,
) -> User:
    with session_scope() as session:
        return user_repository.create(
            session,
            github_id=github_id,
            username=username,
            current=current,
            completed=completed,
        )


def make_submission(
    user: User,
    track: str,
    slug: str,
    code: str = "CODE",
    state: str = "pending",
    created_at: Optional[datetime] = None,
) -> Submission:
    with session_scope() as session:
        return submission_repository.create(
            session,
            user_id=user.id,
            exercise=Exercise(track, slug),
            code=code,
            state=state,  # type: ignore[arg-type]
            created_at=created_at,
        )


def make_team(slug: str, creator: User, members: List[User]) -> None:
    with session_scope() as session:
        team_repository.create(
            session,
            slug=slug,
            creator_id=creator.id,
            member_ids=[member.id for member in members],
        )


def reload_user(user: User) -> User:
    with session_scope(commit=False) as session:
        refreshed = user_repository.get(session, user.id)
    assert refreshed is not None
    return refreshed
