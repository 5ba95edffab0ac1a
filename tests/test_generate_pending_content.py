# tests/test_generate_pending_content.py
import pytest

from scripts import generate_pending_content as script
from vocabboost import course_repo
from vocabboost.errors import ContentGenerationError
from vocabboost.schemas import ContentStatus

USER = "learner@example.com"


@pytest.fixture
def pending_store(store, t0):
    study_set = store.add_study_set("Home")
    store.add_word(study_set.id, "huis", "house", now=t0)
    store.add_word(study_set.id, "xyzzy", "nonsense", now=t0)
    return store


def test_pending_words_are_finished(pending_store, fake_generator, monkeypatch, capsys):
    def generate(learning_word, native_word, learning_language, native_language, model):
        if learning_word == "xyzzy":
            raise ContentGenerationError("not a word")
        return fake_generator(learning_word, native_word, learning_language, native_language)

    monkeypatch.setattr(script, "generate_exercises", generate)

    script.generate_pending_content()

    words = course_repo.load_course(USER).study_sets[0].words
    assert [(w.learning_word, w.content_status) for w in words] == [("huis", ContentStatus.READY)]
    output = capsys.readouterr().out
    assert "Ready:   1" in output
    assert "Removed: 1" in output


def test_dry_run_changes_nothing(pending_store, monkeypatch, capsys):
    def fail(*args, **kwargs):
        raise AssertionError("content service must not be called")

    monkeypatch.setattr(script, "generate_exercises", fail)

    script.generate_pending_content(user_key=USER, dry_run=True)

    words = course_repo.load_course(USER).study_sets[0].words
    assert all(w.content_status == ContentStatus.PENDING for w in words)
    assert "DRY RUN" in capsys.readouterr().out


def test_nothing_pending(store, capsys):
    script.generate_pending_content()
    assert "No pending words found" in capsys.readouterr().out
