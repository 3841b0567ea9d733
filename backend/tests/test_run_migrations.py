from __future__ import annotations

import types

import pytest
from sqlalchemy import create_engine, inspect

from scripts import run_migrations as runner


def _load_test_config(monkeypatch, url: str = "sqlite://"):
    monkeypatch.setenv("TRAILMARK_DATABASE_URL", url)
    return runner.get_alembic_config(str(runner.BACKEND_ROOT / "alembic.ini"))


def test_config_points_at_the_bundled_scripts() -> None:
    config = runner.get_alembic_config(str(runner.BACKEND_ROOT / "alembic.ini"))
    assert config.get_main_option("script_location") == str(runner.BACKEND_ROOT / "alembic")
    assert config.get_main_option("sqlalchemy.url") == runner.URL_PLACEHOLDER


def test_resolve_database_url_prefers_env(monkeypatch) -> None:
    config = _load_test_config(monkeypatch)
    assert runner.resolve_database_url(config) == "sqlite://"
    assert config.get_main_option("sqlalchemy.url") == "sqlite://"


def test_resolve_database_url_requires_env(monkeypatch) -> None:
    monkeypatch.delenv("TRAILMARK_DATABASE_URL", raising=False)
    config = runner.get_alembic_config(str(runner.BACKEND_ROOT / "alembic.ini"))
    with pytest.raises(RuntimeError):
        runner.resolve_database_url(config)


def test_wait_for_database_succeeds_with_sqlite(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'probe.sqlite'}"
    runner.wait_for_database(url, timeout=2, poll_interval=0.1)


def test_wait_for_database_times_out(monkeypatch) -> None:
    class DummyEngine:
        def connect(self) -> types.SimpleNamespace:
            raise runner.OperationalError("SELECT 1", {}, Exception("boom"))

        def dispose(self) -> None:
            pass

    monkeypatch.setattr(runner, "create_engine", lambda *_, **__: DummyEngine())
    with pytest.raises(RuntimeError):
        runner.wait_for_database("postgresql://example", timeout=0, poll_interval=0)


def test_run_migrations_invokes_upgrade(monkeypatch) -> None:
    config = _load_test_config(monkeypatch)
    recorded: dict[str, object] = {}

    def fake_wait(url: str, *, timeout: int, poll_interval: float) -> None:
        recorded["wait"] = (url, timeout, poll_interval)

    def fake_upgrade(cfg, revision: str) -> None:
        recorded["upgrade"] = (cfg, revision)

    monkeypatch.setattr(runner, "wait_for_database", fake_wait)
    monkeypatch.setattr(runner.command, "upgrade", fake_upgrade)

    runner.run_migrations("head", timeout=5, poll_interval=0.5, config=config)

    assert recorded["wait"] == ("sqlite://", 5, 0.5)
    assert recorded["upgrade"] == (config, "head")


def test_check_flag_skips_upgrade(monkeypatch) -> None:
    monkeypatch.setenv("TRAILMARK_DATABASE_URL", "sqlite://")
    calls: list[str] = []
    monkeypatch.setattr(runner, "wait_for_database", lambda url, **_: calls.append(url))
    monkeypatch.setattr(runner.command, "upgrade", lambda *_: calls.append("upgrade"))

    assert runner.main(["--check"]) == 0
    assert calls == ["sqlite://"]


def test_main_reports_failure(monkeypatch) -> None:
    monkeypatch.delenv("TRAILMARK_DATABASE_URL", raising=False)
    assert runner.main([]) == 1


def test_upgrade_creates_the_submission_store(monkeypatch, tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'migrated.sqlite'}"
    config = _load_test_config(monkeypatch, url)

    runner.run_migrations("head", timeout=2, poll_interval=0.1, config=config)

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names())
        indexes = {index["name"] for index in inspector.get_indexes("submissions")}
    finally:
        engine.dispose()
    assert {"users", "teams", "team_memberships", "submissions", "comments", "notifications"} <= tables
    assert {"ix_submissions_user_exercise", "ix_submissions_state"} <= indexes
