"""
FSRS - Free Spaced Repetition Scheduler

Scheduling core for the vocabulary learning system.

This package implements FSRS-6 for binary (Success / Fail) grades:
- Long-Term Memory (LTM) updates for spaced retrieval
- Short-Term Memory (STM) updates for same-day practice
- Power forgetting curve: R = (1 + FACTOR * t / S) ^ DECAY
- Learning / relearning step ladders before a word graduates to Review

Quick start:
    from vocabboost import fsrs

    card = fsrs.new_card()
    card, event_data = fsrs.process_review(card, fsrs.Grade.SUCCESS)

    # Deterministic scheduling for tests
    scheduler = fsrs.Scheduler(enable_fuzzing=False)
"""

# Core scheduler API (algorithm logic)
from vocabboost.fsrs.scheduler import (
    Scheduler,
    coerce_grade,
    get_default_scheduler,
    process_review,
)

# Constants and parameters
from vocabboost.fsrs.constants import (
    Grade,
    State,
    DEFAULT_PARAMETERS,
    DESIRED_RETENTION,
    LEARNING_STEPS,
    RELEARNING_STEPS,
    MAXIMUM_INTERVAL,
    STABILITY_MIN,
    D_MIN,
    D_MAX,
)

# Memory state
from vocabboost.fsrs.memory_state import (
    CardState,
    new_card,
    validate_card,
    days_between,
    calculate_retrievability,
    get_retrievability,
)


__all__ = [
    # Core algorithm
    "Scheduler",
    "coerce_grade",
    "get_default_scheduler",
    "process_review",

    # Enums
    "Grade",
    "State",

    # Memory state
    "CardState",
    "new_card",
    "validate_card",
    "days_between",
    "calculate_retrievability",
    "get_retrievability",

    # Parameters
    "DEFAULT_PARAMETERS",
    "DESIRED_RETENTION",
    "LEARNING_STEPS",
    "RELEARNING_STEPS",
    "MAXIMUM_INTERVAL",
    "STABILITY_MIN",
    "D_MIN",
    "D_MAX",
]
