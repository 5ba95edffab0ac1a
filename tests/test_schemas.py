# tests/test_schemas.py
import random
from dataclasses import replace

import pytest
from pydantic import ValidationError

from vocabboost.fsrs import State
from vocabboost.languages import LANGUAGES, SITE_LANGUAGE, get_language
from vocabboost.schemas import ContentStatus, Course, Exercise, ExerciseType, StudySet, Word


def test_check_answer_ignores_case_and_whitespace(make_exercise):
    exercise = make_exercise("Fiets")
    assert exercise.check_answer("  fiets ")
    assert exercise.check_answer("FIETS")
    assert not exercise.check_answer("fietsen")


def test_display_options_include_answer_once(make_exercise):
    exercise = make_exercise("dog", options=["cat", "Dog", "horse", "cat"])
    options = exercise.display_options(random.Random(4))

    assert len(options) == 3
    assert {o.lower() for o in options} == {"cat", "dog", "horse"}


def test_display_options_shuffle_is_seeded(make_exercise):
    exercise = make_exercise("dog", options=["cat", "cow", "horse"])
    assert exercise.display_options(random.Random(4)) == exercise.display_options(random.Random(4))
    assert "dog" in exercise.display_options(random.Random(4))


def test_exercises_are_immutable(make_exercise):
    exercise = make_exercise("dog")
    with pytest.raises(ValidationError):
        exercise.correct_answer = "cat"


def test_word_practicable_needs_ready_content_and_exercises(make_word, t0):
    assert make_word("a", t0).is_practicable
    assert not make_word("b", t0, n_exercises=0).is_practicable
    assert not make_word("c", t0, status=ContentStatus.PENDING).is_practicable


def test_card_state_serializes_as_json(make_word, t0):
    word = make_word("huis", t0)
    data = word.model_dump(mode="json")

    assert data["srs"]["state"] == 0
    assert data["srs"]["due"].startswith("2026-03-02T09:00:00")
    assert data["srs"]["last_review"] is None
    assert data["content_status"] == "ready"
    assert data["exercises"][0]["type"] == "TRANSLATE_MC"


def test_word_round_trips_through_json(make_word, t0):
    word = make_word("huis", t0)
    word.srs = replace(word.srs, state=State.REVIEW, reps=3, lapses=1, last_review=t0)

    restored = Word.model_validate_json(word.model_dump_json())

    assert restored.srs == word.srs
    assert restored.srs.state == State.REVIEW
    assert restored.srs.due.tzinfo is not None


def test_word_rejects_invalid_card_state(make_word, t0):
    data = make_word("huis", t0).model_dump(mode="json")
    data["srs"]["stability"] = -3
    with pytest.raises(ValidationError):
        Word.model_validate(data)


def test_course_iter_words(make_word, t0):
    course = Course(
        learning_language=get_language("nl"),
        native_language=SITE_LANGUAGE,
        study_sets=[
            StudySet(name="A", words=[make_word("een", t0)]),
            StudySet(name="B", words=[make_word("twee", t0), make_word("drie", t0)]),
        ],
    )
    assert [(s.name, w.learning_word) for s, w in course.iter_words()] == [
        ("A", "een"), ("B", "twee"), ("B", "drie"),
    ]


def test_languages():
    assert SITE_LANGUAGE.code == "en"
    assert len(LANGUAGES) == 10
    assert get_language(" NL ").name == "Dutch"
    assert get_language("zh").name == "Mandarin"
    with pytest.raises(ValueError):
        get_language("xx")


def test_exercise_type_values():
    assert {t.value for t in ExerciseType} == {
        "TRANSLATE_MC", "FILL_BLANK_MC", "FILL_BLANK_TYPE", "PRONOUNCE_WORD", "PRONOUNCE_SENTENCE",
    }
    assert Exercise(type="PRONOUNCE_WORD", question="huis", correct_answer="huis").type == ExerciseType.PRONOUNCE_WORD
