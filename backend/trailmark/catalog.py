"""Track catalog: ordered exercise trails per language.

The catalog is a plain value handed to the services that need it. Production
loads it once from ``TRAILMARK_CURRICULUM_PATH`` (or falls back to the
built-in trails); tests build their own and override the dependency.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field

from .errors import UnknownExercise, UnknownTrack

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Exercise:
    track: str
    slug: str


@dataclass(frozen=True)
class ExerciseContent:
    track: str
    slug: str
    name: str = ""
    readme: str = ""
    test_file: str = ""
    tests: str = ""

    @property
    def exercise(self) -> Exercise:
        return Exercise(self.track, self.slug)


@dataclass
class Trail:
    language: str
    extension: str
    exercises: List[ExerciseContent] = field(default_factory=list)

    @property
    def slugs(self) -> List[str]:
        return [entry.slug for entry in self.exercises]

    def get(self, slug: str) -> Optional[ExerciseContent]:
        for entry in self.exercises:
            if entry.slug == slug:
                return entry
        return None

    def index(self, slug: str) -> Optional[int]:
        for position, entry in enumerate(self.exercises):
            if entry.slug == slug:
                return position
        return None

    def first(self) -> Optional[ExerciseContent]:
        return self.exercises[0] if self.exercises else None

    def after(self, slug: str) -> Optional[ExerciseContent]:
        position = self.index(slug)
        if position is None or position + 1 >= len(self.exercises):
            return None
        return self.exercises[position + 1]


class Curriculum:
    """Collection of trails keyed by language, in registration order."""

    def __init__(self, trails: Optional[List[Trail]] = None) -> None:
        self._trails: Dict[str, Trail] = {}
        for trail in trails or []:
            self.add(trail)

    def add(self, trail: Trail) -> None:
        language = trail.language.strip().lower()
        extension = trail.extension.strip().lstrip(".").lower()
        if not language or not extension:
            raise ValueError("Trails need both a language and a file extension.")
        for existing in self._trails.values():
            if existing.extension == extension and existing.language != language:
                raise ValueError(
                    f"Extension '.{extension}' is already used by the {existing.language} track."
                )
        trail.language = language
        trail.extension = extension
        self._trails[language] = trail

    def __iter__(self) -> Iterator[Trail]:
        return iter(list(self._trails.values()))

    @property
    def languages(self) -> List[str]:
        return list(self._trails)

    def in_language(self, language: str) -> Trail:
        trail = self._trails.get(language.strip().lower())
        if trail is None:
            raise UnknownTrack(language)
        return trail

    def trail_for_extension(self, extension: str) -> Trail:
        normalized = extension.strip().lstrip(".").lower()
        for trail in self._trails.values():
            if trail.extension == normalized:
                return trail
        raise UnknownTrack(normalized or extension)

    def assignment(self, track: str, slug: str) -> ExerciseContent:
        trail = self.in_language(track)
        content = trail.get(slug)
        if content is None:
            raise UnknownExercise(trail.language, slug)
        return content

    def exists(self, exercise: Exercise) -> bool:
        trail = self._trails.get(exercise.track)
        return trail is not None and trail.get(exercise.slug) is not None

    def next_after(self, exercise: Exercise) -> Optional[Exercise]:
        trail = self.in_language(exercise.track)
        upcoming = trail.after(exercise.slug)
        return upcoming.exercise if upcoming is not None else None


class _ExerciseDocument(BaseModel):
    slug: str = Field(..., min_length=1)
    name: str = ""
    readme: str = ""
    test_file: str = ""
    tests: str = ""


class _TrailDocument(BaseModel):
    language: str = Field(..., min_length=1)
    extension: str = Field(..., min_length=1)
    exercises: List[_ExerciseDocument] = Field(default_factory=list)


class _CurriculumDocument(BaseModel):
    trails: List[_TrailDocument] = Field(default_factory=list)


def curriculum_from_dict(payload: Dict) -> Curriculum:
    document = _CurriculumDocument.model_validate(payload)
    curriculum = Curriculum()
    for trail in document.trails:
        language = trail.language.strip().lower()
        curriculum.add(
            Trail(
                language=language,
                extension=trail.extension,
                exercises=[
                    ExerciseContent(
                        track=language,
                        slug=entry.slug,
                        name=entry.name or entry.slug.replace("-", " ").title(),
                        readme=entry.readme,
                        test_file=entry.test_file,
                        tests=entry.tests,
                    )
                    for entry in trail.exercises
                ],
            )
        )
    return curriculum


def load_curriculum(path: Path) -> Curriculum:
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    curriculum = curriculum_from_dict(payload)
    logger.info("Loaded %d trails from %s", len(curriculum.languages), path)
    return curriculum


_BUILTIN_TRAILS: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = (
    ("ruby", "rb", ("bob", "word-count", "anagram", "beer-song", "nucleotide-count")),
    ("python", "py", ("bob", "word-count", "anagram", "beer-song", "rna-transcription")),
    ("go", "go", ("leap", "bob", "hamming", "anagram")),
    ("javascript", "js", ("bob", "word-count", "anagram")),
)


def _builtin_readme(name: str, language: str) -> str:
    return f"# {name}\n\nSolve the {name} exercise in {language.title()} and submit your solution."


def default_curriculum() -> Curriculum:
    curriculum = Curriculum()
    for language, extension, slugs in _BUILTIN_TRAILS:
        exercises = []
        for slug in slugs:
            name = slug.replace("-", " ").title()
            exercises.append(
                ExerciseContent(
                    track=language,
                    slug=slug,
                    name=name,
                    readme=_builtin_readme(name, language),
                    test_file=f"{slug.replace('-', '_')}_test.{extension}",
                )
            )
        curriculum.add(Trail(language=language, extension=extension, exercises=exercises))
    return curriculum


DEMO_ASSIGNMENT = ExerciseContent(
    track="ruby",
    slug="bob",
    name="Bob",
    readme=(
        "# Bob\n\n"
        "Bob is a lackadaisical teenager. In conversation, his responses are very limited.\n\n"
        "Bob answers 'Sure.' if you ask him a question.\n"
        "He answers 'Whoa, chill out!' if you yell at him.\n"
        "He says 'Fine. Be that way!' if you address him without actually saying anything.\n"
        "He answers 'Whatever.' to anything else.\n"
    ),
    test_file="bob_test.rb",
    tests=(
        "require 'minitest/autorun'\n"
        "require_relative 'bob'\n\n"
        "class BobTest < Minitest::Test\n"
        "  def test_stating_something\n"
        "    assert_equal 'Whatever.', Bob.new.hey('Tom-ay-to, tom-aaaah-to.')\n"
        "  end\n"
        "end\n"
    ),
)


__all__ = [
    "Curriculum",
    "DEMO_ASSIGNMENT",
    "Exercise",
    "ExerciseContent",
    "Trail",
    "curriculum_from_dict",
    "default_curriculum",
    "load_curriculum",
]
