"""User-facing errors raised by the assignment services.

Each error carries the HTTP status it is rendered with; the application's
exception handler turns it into ``{"error": message}``.
"""

from __future__ import annotations

from fastapi import status


class TrailmarkError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UnknownTrack(TrailmarkError):
    def __init__(self, track: str) -> None:
        self.track = track
        super().__init__(f"Sorry, there is no track for '{track}'.")


class UnknownExercise(TrailmarkError):
    def __init__(self, track: str, slug: str) -> None:
        self.track = track
        self.slug = slug
        super().__init__(f"Sorry, '{slug}' is not an exercise in the {track} track.")


class UnrecognizedPath(TrailmarkError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Sorry, we could not tell which exercise '{path}' belongs to.")


class DuplicateAttempt(TrailmarkError):
    default_message = "This attempt is a duplicate of the previous one."


class Unauthorized(TrailmarkError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Please provide a valid API key."


__all__ = [
    "DuplicateAttempt",
    "TrailmarkError",
    "Unauthorized",
    "UnknownExercise",
    "UnknownTrack",
    "UnrecognizedPath",
]
