"""Shared fixtures: a fixed clock, an in-memory Mongo collection, word builders."""

import copy
import random
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from vocabboost import course_repo
from vocabboost.fsrs import Scheduler, new_card
from vocabboost.schemas import ContentStatus, Example, Exercise, ExerciseType, ProcessedWord, Word
from vocabboost.store import VocabularyStore


# ---- Fake MongoDB collection ----

def _resolve(value, parts):
    """Values at a dotted path, walking into arrays the way Mongo queries do."""
    if not parts:
        return [value]
    if isinstance(value, list):
        return [found for item in value for found in _resolve(item, parts)]
    if isinstance(value, dict) and parts[0] in value:
        return _resolve(value[parts[0]], parts[1:])
    return []


def _matches(doc, query):
    return all(expected in _resolve(doc, key.split(".")) for key, expected in query.items())


class FakeCollection:
    """Just enough of pymongo's Collection for the course repository."""

    def __init__(self):
        self.docs = {}
        self.fail_with = None  # exception raised by every call while set

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    def find_one(self, query):
        self._check()
        doc = self.docs.get(query["_id"])
        if doc is None or not _matches(doc, query):
            return None
        return copy.deepcopy(doc)

    def find(self, query, projection=None):
        self._check()
        for doc in list(self.docs.values()):
            if _matches(doc, query):
                yield {"_id": doc["_id"]} if projection else copy.deepcopy(doc)

    def insert_one(self, doc):
        self._check()
        if doc["_id"] in self.docs:
            raise DuplicateKeyError(f"duplicate key: {doc['_id']}")
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    def find_one_and_update(self, query, update, upsert=False, return_document=ReturnDocument.BEFORE):
        self._check()
        key = query["_id"]
        doc = self.docs.get(key)
        if doc is None and upsert:
            before, doc = None, {"_id": key}
        elif doc is None or not _matches(doc, query):
            return None
        else:
            before = copy.deepcopy(doc)

        for field, value in update.get("$set", {}).items():
            doc[field] = copy.deepcopy(value)
        for field, amount in update.get("$inc", {}).items():
            doc[field] = doc.get(field, 0) + amount
        self.docs[key] = doc

        return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before

    def delete_one(self, query):
        self._check()
        removed = self.docs.pop(query["_id"], None)
        return SimpleNamespace(deleted_count=0 if removed is None else 1)


@pytest.fixture
def fake_collection(monkeypatch):
    collection = FakeCollection()
    monkeypatch.setattr(course_repo, "_collection", collection)
    return collection


# ---- Clock & scheduler ----

@pytest.fixture
def t0():
    return datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def scheduler():
    return Scheduler(enable_fuzzing=False)


# ---- Word builders ----

@pytest.fixture
def make_exercise():
    def _make(answer="huis", exercise_type=ExerciseType.TRANSLATE_MC, **kwargs):
        kwargs.setdefault("question", f"What does '{answer}' mean?")
        return Exercise(type=exercise_type, correct_answer=answer, **kwargs)
    return _make


@pytest.fixture
def make_word(make_exercise):
    def _make(learning_word, due, n_exercises=1, status=ContentStatus.READY, native_word="word"):
        return Word(
            learning_word=learning_word,
            native_word=native_word,
            srs=new_card(due),
            exercises=[make_exercise(f"{learning_word}-{i}") for i in range(n_exercises)],
            content_status=status,
            created_at=due,
        )
    return _make


@pytest.fixture
def fake_generator(make_exercise):
    """Exercise generator that records its calls instead of calling the AI service."""
    calls = []

    def _generate(learning_word, native_word, learning_language, native_language):
        calls.append((learning_word, native_word, learning_language.code, native_language.code))
        return [
            make_exercise(native_word, ExerciseType.TRANSLATE_MC, question=learning_word, options=["a", "b", "c"]),
            make_exercise(learning_word, ExerciseType.PRONOUNCE_WORD, question=learning_word),
        ]

    _generate.calls = calls
    return _generate


@pytest.fixture
def fake_processor():
    """Word processor that maps typed forms to lemmas without calling the AI service."""
    lemmas = {"liep": ("lopen", "to walk"), "huizen": ("huis", "house")}
    calls = []

    def _process(word, learning_language, native_language):
        calls.append((word, learning_language.code, native_language.code))
        learning_word, native_word = lemmas[word.strip().lower()]
        return ProcessedWord(
            learning_word=learning_word,
            native_word=native_word,
            examples=[Example(sentence=f"Ik zeg {learning_word}.", translation=f"I say {native_word}.")],
        )

    _process.calls = calls
    return _process


@pytest.fixture
def store(fake_collection, scheduler):
    """Store for one learner with a fresh Dutch course."""
    vocab_store = VocabularyStore("learner@example.com", scheduler=scheduler, rng=random.Random(7))
    vocab_store.create_course("nl")
    return vocab_store
