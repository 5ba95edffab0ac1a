"""
AI content generation.

Uses OpenAI's structured outputs to turn a submitted word into a lemma,
translation and examples, and to generate the exercises for a word.

Usage:
    from vocabboost.content import generate_exercises, process_word
    processed = process_word("liep", get_language("nl"), SITE_LANGUAGE)
"""

from __future__ import annotations

import logging
import os
from typing import Optional, TypeVar

import openai
from dotenv import load_dotenv
from openai import OpenAI
from pydantic import BaseModel, ValidationError

from vocabboost.content.prompts import (
    EXERCISE_INSTRUCTIONS,
    PROCESS_WORD_INSTRUCTIONS,
    SYSTEM_PROMPT,
    format_prompt,
)
from vocabboost.errors import ContentGenerationError
from vocabboost.schemas import (
    EXAMPLES_PER_WORD,
    Exercise,
    ExerciseType,
    GeneratedExercise,
    GeneratedExercises,
    Language,
    ProcessedWord,
)

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

DEFAULT_MODEL = os.getenv("VOCABBOOST_MODEL", "gpt-4o-mini")

# Total requests per call when rate limited (the SDK backs off between them)
MAX_ATTEMPTS = 3

_MC_TYPES = (ExerciseType.TRANSLATE_MC, ExerciseType.FILL_BLANK_MC)
_PRONOUNCE_TYPES = (ExerciseType.PRONOUNCE_WORD, ExerciseType.PRONOUNCE_SENTENCE)

T = TypeVar("T", bound=BaseModel)

# Initialize OpenAI client (module-level, reused across calls)
_client: Optional[OpenAI] = None


def get_client() -> OpenAI:
    """Get or create the OpenAI client."""
    global _client
    if _client is None:
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OPENAI_API_KEY not found in environment variables")
        _client = OpenAI(api_key=api_key, max_retries=MAX_ATTEMPTS - 1)
    return _client


def _parse(
    prompt: str,
    response_format: type[T],
    model: str,
    client: Optional[OpenAI] = None,
) -> T:
    """
    Call the structured-output endpoint.

    Rate limits are retried by the SDK itself (exponential backoff with
    jitter), MAX_ATTEMPTS requests in total. Injected clients get the same
    retry budget.

    Raises:
        ContentGenerationError: On any API failure, exhausted retries, or an
            empty / unparsable response
    """
    client = (client or get_client()).with_options(max_retries=MAX_ATTEMPTS - 1)
    messages = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]

    try:
        completion = client.beta.chat.completions.parse(
            model=model,
            messages=messages,
            response_format=response_format,
        )
    except openai.RateLimitError as exc:
        raise ContentGenerationError(f"Rate limited after {MAX_ATTEMPTS} attempts") from exc
    except (openai.OpenAIError, ValidationError) as exc:
        raise ContentGenerationError(f"Content service request failed: {exc}") from exc

    parsed = completion.choices[0].message.parsed
    if parsed is None:
        raise ContentGenerationError(
            f"Failed to parse structured output as {response_format.__name__}"
        )
    return parsed


# ---- Word Processing ----

def process_word(
    word: str,
    learning_language: Language,
    native_language: Language,
    model: str = DEFAULT_MODEL,
    client: Optional[OpenAI] = None,
) -> ProcessedWord:
    """
    Normalize a submitted word and fetch its translation and examples.

    Args:
        word: Word as typed by the learner (may be inflected)
        learning_language: Language being studied
        native_language: Learner's native language
        model: OpenAI model to use (must support structured outputs)
        client: Optional client override

    Returns:
        ProcessedWord with at most EXAMPLES_PER_WORD examples

    Raises:
        ContentGenerationError: If the service fails or returns no lemma
    """
    word = word.strip()
    if not word:
        raise ContentGenerationError("Cannot process an empty word")

    prompt = format_prompt(
        PROCESS_WORD_INSTRUCTIONS,
        word=word,
        learning_language=learning_language.name,
        native_language=native_language.name,
    )
    processed = _parse(prompt, ProcessedWord, model, client)

    if not processed.learning_word.strip() or not processed.native_word.strip():
        raise ContentGenerationError(f"Content service returned an empty translation for '{word}'")

    logger.info("Processed '%s' -> '%s' (%s)", word, processed.learning_word, processed.native_word)
    return processed.model_copy(update={
        "learning_word": processed.learning_word.strip(),
        "native_word": processed.native_word.strip(),
        "examples": processed.examples[:EXAMPLES_PER_WORD],
    })


# ---- Exercise Generation ----

def _to_exercise(generated: GeneratedExercise) -> Exercise:
    options = generated.options if generated.type in _MC_TYPES else None
    correct_answer = generated.correct_answer.strip()
    if generated.type in _PRONOUNCE_TYPES and not correct_answer:
        correct_answer = generated.question.strip()
    return Exercise(
        type=generated.type,
        question=generated.question,
        options=options,
        correct_answer=correct_answer,
        sentence_context=generated.sentence_context,
        translation_context=generated.translation_context,
    )


def generate_exercises(
    learning_word: str,
    native_word: str,
    learning_language: Language,
    native_language: Language,
    model: str = DEFAULT_MODEL,
    client: Optional[OpenAI] = None,
) -> list[Exercise]:
    """
    Generate one exercise of each type for a word.

    Exercise ids are assigned locally. If the model repeats a type only the
    first one is kept.

    Returns:
        Exercises in ExerciseType order

    Raises:
        ContentGenerationError: If the service fails or no usable exercise comes back
    """
    prompt = format_prompt(
        EXERCISE_INSTRUCTIONS,
        learning_word=learning_word,
        native_word=native_word,
        learning_language=learning_language.name,
        native_language=native_language.name,
    )
    response = _parse(prompt, GeneratedExercises, model, client)

    by_type: dict[ExerciseType, Exercise] = {}
    for generated in response.exercises:
        if generated.type in by_type or not generated.question.strip():
            continue
        exercise = _to_exercise(generated)
        if exercise.correct_answer:
            by_type[generated.type] = exercise

    if not by_type:
        raise ContentGenerationError(f"No usable exercises generated for '{learning_word}'")

    missing = [t.value for t in ExerciseType if t not in by_type]
    if missing:
        logger.warning("Exercises for '%s' missing types: %s", learning_word, ", ".join(missing))

    return [by_type[t] for t in ExerciseType if t in by_type]
