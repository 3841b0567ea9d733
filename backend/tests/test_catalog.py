from __future__ import annotations

import json
from pathlib import Path

import pytest

from trailmark.catalog import (
    Curriculum,
    DEMO_ASSIGNMENT,
    Exercise,
    Trail,
    curriculum_from_dict,
    default_curriculum,
    load_curriculum,
)
from trailmark.errors import UnknownExercise, UnknownTrack


def test_exercises_compare_structurally() -> None:
    assert Exercise("ruby", "one") == Exercise("ruby", "one")
    assert Exercise("ruby", "one") != Exercise("go", "one")
    assert len({Exercise("ruby", "one"), Exercise("ruby", "one")}) == 1


def test_lookup_by_language_and_extension(curriculum: Curriculum) -> None:
    assert curriculum.languages == ["ruby", "go", "scala"]
    assert curriculum.in_language("Ruby").slugs == ["one", "two"]
    assert curriculum.trail_for_extension(".go").language == "go"
    assert curriculum.assignment("scala", "two").test_file == "two_test.scala"


def test_unknown_track_and_exercise_messages_apologise(curriculum: Curriculum) -> None:
    with pytest.raises(UnknownTrack) as track_error:
        curriculum.assignment("nosuch", "one")
    assert "sorry" in track_error.value.message.lower()

    with pytest.raises(UnknownExercise) as exercise_error:
        curriculum.assignment("ruby", "million")
    assert "sorry" in exercise_error.value.message.lower()
    assert exercise_error.value.status_code == 400

    with pytest.raises(UnknownTrack):
        curriculum.trail_for_extension("cobol")


def test_next_after_and_existence(curriculum: Curriculum) -> None:
    assert curriculum.next_after(Exercise("go", "one")) == Exercise("go", "two")
    assert curriculum.next_after(Exercise("go", "three")) is None
    assert curriculum.exists(Exercise("ruby", "two"))
    assert not curriculum.exists(Exercise("ruby", "five"))
    assert not curriculum.exists(Exercise("python", "one"))


def test_extension_can_only_belong_to_one_track() -> None:
    curriculum = Curriculum([Trail(language="ruby", extension="rb")])
    with pytest.raises(ValueError):
        curriculum.add(Trail(language="crystal", extension=".rb"))


def test_load_curriculum_from_json(tmp_path: Path) -> None:
    document = {
        "trails": [
            {
                "language": "Elixir",
                "extension": "exs",
                "exercises": [
                    {"slug": "hello-world", "readme": "# Hello"},
                    {"slug": "bob", "name": "Bob", "test_file": "bob_test.exs"},
                ],
            }
        ]
    }
    path = tmp_path / "curriculum.json"
    path.write_text(json.dumps(document), encoding="utf-8")

    curriculum = load_curriculum(path)

    trail = curriculum.in_language("elixir")
    assert trail.slugs == ["hello-world", "bob"]
    assert trail.exercises[0].name == "Hello World"
    assert curriculum.assignment("elixir", "bob").test_file == "bob_test.exs"


def test_curriculum_document_requires_extensions() -> None:
    with pytest.raises(ValueError):
        curriculum_from_dict({"trails": [{"language": "ruby", "extension": "", "exercises": []}]})


def test_builtin_curriculum_and_demo_are_available() -> None:
    curriculum = default_curriculum()
    assert "ruby" in curriculum.languages
    assert curriculum.in_language("ruby").first() is not None
    assert DEMO_ASSIGNMENT.exercise == Exercise("ruby", "bob")
    assert DEMO_ASSIGNMENT.readme.startswith("# Bob")
