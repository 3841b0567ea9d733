"""FastAPI dependency providers for the assignment services."""

from __future__ import annotations

import logging
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Optional

from fastapi import Depends, Query, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from .api_models import UnsubmitRequest
from .attempts import AttemptValidator
from .catalog import Curriculum, default_curriculum, load_curriculum
from .config import Settings, get_settings
from .db.session import session_scope
from .domain import User
from .errors import Unauthorized
from .notifications import InboxNotifier, Notifier
from .progress import ProgressTracker
from .repositories.users import user_repository
from .unsubmit import UnsubmitEngine

logger = logging.getLogger(__name__)


@lru_cache
def get_curriculum() -> Curriculum:
    settings = get_settings()
    if settings.curriculum_path:
        return load_curriculum(Path(settings.curriculum_path))
    logger.info("No TRAILMARK_CURRICULUM_PATH configured; using the built-in trails")
    return default_curriculum()


def get_notifier() -> Notifier:
    return InboxNotifier()


def get_progress_tracker(curriculum: Curriculum = Depends(get_curriculum)) -> ProgressTracker:
    return ProgressTracker(curriculum)


def get_attempt_validator(
    curriculum: Curriculum = Depends(get_curriculum),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> AttemptValidator:
    return AttemptValidator(curriculum, notifier=notifier, notify_scope=settings.notify_scope)


def get_unsubmit_engine(settings: Settings = Depends(get_settings)) -> UnsubmitEngine:
    return UnsubmitEngine(window=timedelta(seconds=settings.unsubmit_window_seconds))


def authenticate(key: Optional[str]) -> User:
    if not key or not key.strip():
        raise Unauthorized()
    with session_scope(commit=False) as session:
        user = user_repository.get_by_key(session, key.strip())
    if user is None:
        raise Unauthorized()
    return user


def require_user(key: Optional[str] = Query(default=None)) -> User:
    return authenticate(key)


async def require_user_from_query_or_body(
    request: Request,
    key: Optional[str] = Query(default=None),
) -> User:
    """Accept the key as a query parameter or in a JSON body (DELETE clients send either).

    The body is read on the event loop; the user lookup runs in the threadpool.
    """
    if not key:
        raw = await request.body()
        if raw:
            try:
                key = UnsubmitRequest.model_validate_json(raw).key
            except ValidationError:
                logger.info("Ignoring unreadable DELETE body")
    return await run_in_threadpool(authenticate, key)


__all__ = [
    "authenticate",
    "get_attempt_validator",
    "get_curriculum",
    "get_notifier",
    "get_progress_tracker",
    "get_unsubmit_engine",
    "require_user",
    "require_user_from_query_or_body",
]
