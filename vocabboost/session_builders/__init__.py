"""Session builder modules for review and single-word practice."""

from vocabboost.session_builders.practice_queue import (
    build_exercise_queue,
    build_practice_queue,
    count_due_words,
    is_due_for_practice,
    next_due_at,
)

__all__ = [
    "build_exercise_queue",
    "build_practice_queue",
    "count_due_words",
    "is_due_for_practice",
    "next_due_at",
]
