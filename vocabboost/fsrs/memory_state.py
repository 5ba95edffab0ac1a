"""
Memory State - Card State and Retrievability

Defines the per-word scheduling record and the derived quantities the
scheduler needs.

Key concepts:
- Stability (S): days until recall probability falls to the retention target
- Difficulty (D): how hard the word is to learn (1-10 scale)
- Retrievability (R): probability of successful recall at time t
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from numbers import Real
from typing import Optional, Sequence

from vocabboost.errors import InvalidCardStateError
from vocabboost.fsrs import ltm_updates
from vocabboost.fsrs.constants import (
    D_MAX,
    D_MIN,
    DEFAULT_PARAMETERS,
    PRIOR_RATING,
    SECONDS_PER_DAY,
    State,
)


@dataclass
class CardState:
    """
    Scheduling record embedded in every word.

    Instances are treated as values: the scheduler never mutates its input,
    it returns a new CardState.
    """
    due: datetime
    stability: float  # S, in days
    difficulty: float  # D, range 1-10
    elapsed_days: float  # days since the previous review, set at grading time
    scheduled_days: float  # interval picked by the most recent grading
    learning_steps: int  # index into the (re)learning ladder
    reps: int  # total gradings
    lapses: int  # failed gradings
    state: State
    last_review: Optional[datetime] = None

    @property
    def is_new(self) -> bool:
        return self.state == State.NEW

    def is_due(self, now: datetime) -> bool:
        return self.due <= now


def new_card(
    now: Optional[datetime] = None,
    parameters: Sequence[float] = DEFAULT_PARAMETERS,
) -> CardState:
    """
    Initialize state for a word that has never been graded.

    The card is due immediately. Its stability and difficulty are the
    initial values for the neutral rating, so the first Fail strictly lowers
    stability and the first Success strictly raises it.

    Args:
        now: Creation instant (defaults to the current UTC time)
        parameters: Model weights

    Returns:
        New CardState in the NEW state
    """
    if now is None:
        now = datetime.now(timezone.utc)

    return CardState(
        due=now,
        stability=ltm_updates.initial_stability(PRIOR_RATING, parameters),
        difficulty=ltm_updates.initial_difficulty(PRIOR_RATING, parameters),
        elapsed_days=0.0,
        scheduled_days=0.0,
        learning_steps=0,
        reps=0,
        lapses=0,
        state=State.NEW,
        last_review=None,
    )


def days_between(start: Optional[datetime], end: datetime) -> float:
    """
    Fractional days from start to end, never negative.

    Returns 0 when start is unset or lies after end.
    """
    if start is None:
        return 0.0
    return max(0.0, (end - start).total_seconds() / SECONDS_PER_DAY)


def calculate_retrievability(
    stability: float,
    elapsed_days: float,
    parameters: Sequence[float] = DEFAULT_PARAMETERS,
) -> float:
    """
    Probability of recall after elapsed_days (power forgetting curve).

    Formula: R = (1 + FACTOR * t / S) ^ DECAY

    Where DECAY = -w20 and FACTOR is chosen so that R = 0.9 when t = S.

    Args:
        stability: Current stability in days
        elapsed_days: Time since last review in days

    Returns:
        Retrievability between 0 and 1
    """
    if elapsed_days <= 0:
        return 1.0

    decay = -parameters[20]
    factor = 0.9 ** (1.0 / decay) - 1.0
    return (1.0 + factor * elapsed_days / stability) ** decay


def get_retrievability(
    card: CardState,
    now: datetime,
    parameters: Sequence[float] = DEFAULT_PARAMETERS,
) -> float:
    """Current recall probability for a card (1.0 for cards never graded)."""
    if card.last_review is None:
        return 1.0
    return calculate_retrievability(card.stability, days_between(card.last_review, now), parameters)


# ---- Validation ----

def _is_real(value: object) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def _is_count(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _is_aware(value: object) -> bool:
    return isinstance(value, datetime) and value.tzinfo is not None


def validate_card(card: object) -> CardState:
    """
    Check a card against the CardState invariants.

    Raises:
        InvalidCardStateError: Listing every problem found

    Returns:
        The card, unchanged
    """
    if not isinstance(card, CardState):
        raise InvalidCardStateError(
            f"Expected CardState, got {type(card).__name__}"
        )

    problems = []
    missing = [f.name for f in fields(card) if f.name != "last_review" and getattr(card, f.name) is None]
    if missing:
        problems.append(f"missing fields: {', '.join(missing)}")

    if card.due is not None and not _is_aware(card.due):
        problems.append(f"due must be a timezone-aware datetime, got {card.due!r}")
    if card.last_review is not None and not _is_aware(card.last_review):
        problems.append(f"last_review must be a timezone-aware datetime, got {card.last_review!r}")

    if card.stability is not None and not (_is_real(card.stability) and card.stability > 0):
        problems.append(f"stability must be a positive number, got {card.stability!r}")
    if card.difficulty is not None and not (_is_real(card.difficulty) and D_MIN <= card.difficulty <= D_MAX):
        problems.append(f"difficulty must lie in [{D_MIN}, {D_MAX}], got {card.difficulty!r}")

    for name in ("elapsed_days", "scheduled_days"):
        value = getattr(card, name)
        if value is not None and not (_is_real(value) and value >= 0):
            problems.append(f"{name} must be a non-negative number, got {value!r}")

    for name in ("learning_steps", "reps", "lapses"):
        value = getattr(card, name)
        if value is not None and not _is_count(value):
            problems.append(f"{name} must be a non-negative integer, got {value!r}")

    if _is_count(card.reps) and _is_count(card.lapses) and card.lapses > card.reps:
        problems.append(f"lapses ({card.lapses}) cannot exceed reps ({card.reps})")

    if card.state is not None and card.state not in tuple(State):
        problems.append(f"state must be one of {[s.name for s in State]}, got {card.state!r}")

    if problems:
        raise InvalidCardStateError("Invalid card state: " + "; ".join(problems))

    return card
