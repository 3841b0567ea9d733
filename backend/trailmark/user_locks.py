"""Process-local per-user write locks for submit/unsubmit."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock, RLock
from typing import Dict, Iterator


@dataclass
class _Entry:
    lock: RLock = field(default_factory=RLock)
    holders: int = 0


_registry_lock = Lock()
_entries: Dict[str, _Entry] = {}


def _acquire_entry(user_id: str) -> _Entry:
    with _registry_lock:
        entry = _entries.setdefault(user_id, _Entry())
        entry.holders += 1
        return entry


def _release_entry(user_id: str, entry: _Entry) -> None:
    with _registry_lock:
        entry.holders -= 1
        if entry.holders == 0:
            del _entries[user_id]


def active_user_locks() -> int:
    """Number of users with a writer holding or waiting on their lock."""
    with _registry_lock:
        return len(_entries)


@contextmanager
def user_lock(user_id: str) -> Iterator[None]:
    """Serialize writes for one user inside this process.

    Entries are dropped once no thread holds or waits on them. Cross-process
    writers are serialized by the row lock taken in ``user_write_scope``.
    """
    entry = _acquire_entry(user_id)
    try:
        with entry.lock:
            yield
    finally:
        _release_entry(user_id, entry)


__all__ = ["active_user_locks", "user_lock"]
