"""Per-track progress: what a user should work on next and what is finished."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from .catalog import Curriculum, ExerciseContent, Trail
from .domain import User

logger = logging.getLogger(__name__)


class ProgressTracker:
    def __init__(self, curriculum: Curriculum) -> None:
        self.curriculum = curriculum

    def current_assignments(self, user: User) -> Dict[str, ExerciseContent]:
        """Current exercise per track, in catalog order.

        Tracks the user has finished are left out. Pending submissions play no
        part; only the recorded pointer and completions do.
        """
        assignments: Dict[str, ExerciseContent] = {}
        for trail in self.curriculum:
            current = self._current_in(trail, user)
            if current is not None:
                assignments[trail.language] = current
        return assignments

    def completed_assignments(
        self,
        user: User,
        done_exercises: Iterable[Tuple[str, str]] = (),
    ) -> Dict[str, List[str]]:
        completed: Dict[str, List[str]] = {}

        def _add(track: str, slug: str) -> None:
            slugs = completed.setdefault(track, [])
            if slug not in slugs:
                slugs.append(slug)

        for track, slugs in user.completed.items():
            for slug in slugs:
                _add(track, slug)
        for track, slug in done_exercises:
            _add(track, slug)
        return {track: slugs for track, slugs in completed.items() if slugs}

    def _current_in(self, trail: Trail, user: User) -> Optional[ExerciseContent]:
        if trail.language in user.current:
            pointer = user.current[trail.language]
            if pointer is None:
                return None
            start = trail.index(pointer)
            if start is None:
                logger.warning(
                    "Pointer %s/%s for %s is not in the catalog; restarting the trail",
                    trail.language,
                    pointer,
                    user.username or user.id,
                )
                start = 0
        else:
            start = 0

        done = set(user.completed_in(trail.language))
        for content in trail.exercises[start:]:
            if content.slug not in done:
                return content
        return None


__all__ = ["ProgressTracker"]
