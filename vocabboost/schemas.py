"""
Pydantic models for the vocabulary course.

These models define the structure of the course document stored in MongoDB
and the structured outputs requested from the AI content service.
"""

from __future__ import annotations

import random
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vocabboost.fsrs.memory_state import CardState, new_card, validate_card


# Configuration
EXAMPLES_PER_WORD = 3  # Example sentences requested for every new word


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExerciseType(str, Enum):
    """Kinds of exercise generated for each word."""
    TRANSLATE_MC = "TRANSLATE_MC"              # word -> pick the translation
    FILL_BLANK_MC = "FILL_BLANK_MC"            # sentence with a gap -> pick the word
    FILL_BLANK_TYPE = "FILL_BLANK_TYPE"        # sentence with a gap -> type the word
    PRONOUNCE_WORD = "PRONOUNCE_WORD"          # say the word
    PRONOUNCE_SENTENCE = "PRONOUNCE_SENTENCE"  # say a sentence containing the word


class ContentStatus(str, Enum):
    """Where a word is in the content generation pipeline."""
    PENDING = "pending"  # added, exercises not generated yet
    READY = "ready"      # exercises attached, eligible for practice
    FAILED = "failed"    # generation failed, word is about to be removed


# ---- Languages ----

class Language(BaseModel):
    """A language as shown to the learner."""
    code: str = Field(..., description="ISO 639-1 code, e.g. 'nl'")
    name: str = Field(..., description="English display name, e.g. 'Dutch'")


# ---- Example Sentences ----

class Example(BaseModel):
    """A bilingual example sentence pair."""
    sentence: str = Field(..., description="Sentence in the learning language")
    translation: str = Field(..., description="Translation in the native language")


# ---- Exercises ----

def normalize_answer(text: str) -> str:
    return text.strip().casefold()


class Exercise(BaseModel):
    """A single practice question tied to one word."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    type: ExerciseType
    question: str
    options: Optional[list[str]] = None  # distractors for MC types
    correct_answer: str
    sentence_context: Optional[str] = None  # full sentence for fill-in-the-blank
    translation_context: Optional[str] = None  # its translation

    @property
    def is_multiple_choice(self) -> bool:
        return self.type in (ExerciseType.TRANSLATE_MC, ExerciseType.FILL_BLANK_MC)

    def check_answer(self, answer: str) -> bool:
        """Case-insensitive comparison with surrounding whitespace ignored."""
        return normalize_answer(answer) == normalize_answer(self.correct_answer)

    def display_options(self, rng: Optional[random.Random] = None) -> list[str]:
        """
        Options to show for a multiple-choice exercise.

        The correct answer is always included exactly once; duplicates are
        dropped and the result is shuffled.
        """
        rng = rng or random.Random()
        seen = set()
        choices = []
        for option in [*(self.options or []), self.correct_answer]:
            key = normalize_answer(option)
            if key not in seen:
                seen.add(key)
                choices.append(option)
        rng.shuffle(choices)
        return choices


# ---- Words ----

class Word(BaseModel):
    """
    A vocabulary item inside a study set.

    The embedded srs record is the scheduler's CardState.
    """
    id: str = Field(default_factory=_new_id)
    learning_word: str = Field(..., description="Lemma in the learning language")
    native_word: str = Field(..., description="Translation in the native language")
    examples: list[Example] = Field(default_factory=list)
    srs: CardState = Field(default_factory=new_card)
    exercises: list[Exercise] = Field(default_factory=list)
    content_status: ContentStatus = ContentStatus.PENDING
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("srs")
    @classmethod
    def _check_srs(cls, value: CardState) -> CardState:
        return validate_card(value)

    @property
    def is_practicable(self) -> bool:
        """Ready words with at least one exercise can enter a session."""
        return self.content_status == ContentStatus.READY and len(self.exercises) > 0


class StudySet(BaseModel):
    """An ordered, named group of words (a deck)."""
    id: str = Field(default_factory=_new_id)
    name: str
    words: list[Word] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)


class Course(BaseModel):
    """
    A learner's whole course.

    One per user; stored and replaced as a single document.
    """
    id: str = Field(default_factory=_new_id)
    learning_language: Language
    native_language: Language
    study_sets: list[StudySet] = Field(default_factory=list)

    def iter_words(self):
        for study_set in self.study_sets:
            for word in study_set.words:
                yield study_set, word


class AddWordResult(BaseModel):
    """Outcome of adding a word to a study set."""
    status: Literal["added", "duplicate"]
    word: Word  # the new word, or the existing one it duplicates


# ---- AI Structured Output Models ----

class ProcessedWord(BaseModel):
    """
    Structured output for a submitted word.

    The LLM normalizes the word to its dictionary form and supplies a
    translation plus example sentences.
    """
    learning_word: str = Field(..., description="Dictionary form (lemma) in the learning language")
    native_word: str = Field(..., description="Translation in the native language")
    examples: list[Example] = Field(..., description=f"{EXAMPLES_PER_WORD} simple example sentences")


class GeneratedExercise(BaseModel):
    """One exercise as returned by the LLM (ids are assigned locally)."""
    type: ExerciseType
    question: str
    options: Optional[list[str]] = None
    correct_answer: str
    sentence_context: Optional[str] = None
    translation_context: Optional[str] = None


class GeneratedExercises(BaseModel):
    """Structured output wrapper for exercise generation."""
    exercises: list[GeneratedExercise]
