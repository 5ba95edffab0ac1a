"""
Scheduler - FSRS Algorithm Logic

Pure scheduling and state updates (no database calls).

Main workflow:
1. Validate the incoming card and grade
2. Compute elapsed time and retrievability
3. Update stability and difficulty (first grading, same-day, or long-term rules)
4. Move the card along the learning / review state machine
5. Return a new card + event data dict

This module handles ONLY the algorithm logic.
Persisting the updated card is the caller's responsibility.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence, Tuple

from vocabboost.errors import InvalidGradeError
from vocabboost.fsrs import ltm_updates, memory_state, stm_updates
from vocabboost.fsrs.constants import (
    DEFAULT_PARAMETERS,
    DESIRED_RETENTION,
    FUZZ_MIN_INTERVAL,
    FUZZ_RANGES,
    LEARNING_STEPS,
    MAXIMUM_INTERVAL,
    RELEARNING_STEPS,
    SECONDS_PER_DAY,
    Grade,
    State,
)

logger = logging.getLogger(__name__)


def coerce_grade(grade: object) -> Grade:
    """
    Accept a Grade or a bool (True = Success).

    Raises:
        InvalidGradeError: For anything else, including raw ints outside {1, 3}
    """
    if isinstance(grade, Grade):
        return grade
    if isinstance(grade, bool):
        return Grade.from_correct(grade)
    if isinstance(grade, int):
        try:
            return Grade(grade)
        except ValueError:
            pass
    raise InvalidGradeError(f"Grade must be Success or Fail, got {grade!r}")


def _step_days(step: timedelta) -> float:
    return step.total_seconds() / SECONDS_PER_DAY


class Scheduler:
    """
    FSRS-6 scheduler for binary Success / Fail grades.

    All randomness (interval fuzz) comes from ``rng`` so tests can seed it
    or disable fuzzing entirely.
    """

    def __init__(
        self,
        parameters: Sequence[float] = DEFAULT_PARAMETERS,
        desired_retention: float = DESIRED_RETENTION,
        learning_steps: Sequence[timedelta] = LEARNING_STEPS,
        relearning_steps: Sequence[timedelta] = RELEARNING_STEPS,
        maximum_interval: int = MAXIMUM_INTERVAL,
        enable_fuzzing: bool = True,
        rng: Optional[random.Random] = None,
    ):
        if len(parameters) != len(DEFAULT_PARAMETERS):
            raise ValueError(
                f"Expected {len(DEFAULT_PARAMETERS)} parameters, got {len(parameters)}"
            )
        if not 0.0 < desired_retention < 1.0:
            raise ValueError(f"desired_retention must lie in (0, 1), got {desired_retention}")
        if maximum_interval < 1:
            raise ValueError(f"maximum_interval must be at least 1 day, got {maximum_interval}")

        self.parameters = tuple(float(w) for w in parameters)
        self.desired_retention = desired_retention
        self.learning_steps = tuple(learning_steps)
        self.relearning_steps = tuple(relearning_steps)
        self.maximum_interval = maximum_interval
        self.enable_fuzzing = enable_fuzzing
        self.rng = rng if rng is not None else random.Random()

        self._decay = -self.parameters[20]
        self._factor = 0.9 ** (1.0 / self._decay) - 1.0

    # ---- Intervals ----

    def next_interval(self, stability: float) -> int:
        """
        Whole-day interval after which recall probability hits desired_retention.

        Formula: I = S / FACTOR * (r_d ^ (1 / DECAY) - 1), rounded and clipped
        to [1, maximum_interval].
        """
        interval = stability / self._factor * (self.desired_retention ** (1.0 / self._decay) - 1.0)
        return min(max(round(interval), 1), self.maximum_interval)

    def get_fuzzed_interval(self, interval_days: int) -> int:
        """
        Spread review intervals so words added together do not stay in lockstep.

        Intervals shorter than 2.5 days are returned unchanged.
        """
        if interval_days < FUZZ_MIN_INTERVAL:
            return interval_days

        delta = 1.0
        for start, end, factor in FUZZ_RANGES:
            delta += factor * max(min(interval_days, end) - start, 0.0)

        min_ivl = max(2, int(round(interval_days - delta)))
        max_ivl = min(int(round(interval_days + delta)), self.maximum_interval)
        min_ivl = min(min_ivl, max_ivl)

        fuzzed = self.rng.random() * (max_ivl - min_ivl + 1) + min_ivl
        return min(int(round(fuzzed)), self.maximum_interval)

    def _review_interval(self, stability: float) -> int:
        interval = self.next_interval(stability)
        if self.enable_fuzzing:
            interval = self.get_fuzzed_interval(interval)
        return interval

    # ---- Main API ----

    def review_card(
        self,
        card: memory_state.CardState,
        grade: object,
        now: Optional[datetime] = None,
    ) -> Tuple[memory_state.CardState, dict]:
        """
        Grade a card and return its next state + event data.

        The input card is not modified.

        Args:
            card: Current CardState (must satisfy all invariants)
            grade: Grade.SUCCESS / Grade.FAIL (or a bool)
            now: Grading instant, timezone-aware (defaults to now, UTC)

        Returns:
            Tuple of (updated_card, event_data_dict)

        Raises:
            InvalidCardStateError: Card is malformed
            InvalidGradeError: Grade is not Success or Fail
            ValueError: now is not a timezone-aware datetime
        """
        grade = coerce_grade(grade)
        memory_state.validate_card(card)

        if now is None:
            now = datetime.now(timezone.utc)
        elif not isinstance(now, datetime):
            raise ValueError(f"Grading instant must be a datetime, got {now!r}")
        elif now.tzinfo is None:
            raise ValueError(f"Grading instant must be timezone-aware, got {now!r}")

        state = State(card.state)
        rating = int(grade)
        elapsed_days = memory_state.days_between(card.last_review, now)
        retrievability_before = (
            None if state == State.NEW
            else memory_state.calculate_retrievability(card.stability, elapsed_days, self.parameters)
        )

        stability, difficulty = self._next_memory_state(
            card, state, rating, elapsed_days, retrievability_before
        )
        next_state, step, scheduled_days = self._next_schedule(card, state, grade, stability)

        updated = replace(
            card,
            due=now + timedelta(days=scheduled_days),
            stability=stability,
            difficulty=difficulty,
            elapsed_days=elapsed_days,
            scheduled_days=scheduled_days,
            learning_steps=step,
            reps=card.reps + 1,
            lapses=card.lapses + (1 if grade == Grade.FAIL else 0),
            state=next_state,
            last_review=now,
        )

        logger.debug(
            "Graded %s: %s -> %s, S %.3f -> %.3f, next in %.3f days",
            grade.name, state.name, next_state.name,
            card.stability, stability, scheduled_days,
        )

        event_data = {
            "timestamp": now,
            "grade": grade,
            "state_before": state,
            "state_after": next_state,
            "elapsed_days": elapsed_days,
            "retrievability_before": retrievability_before,
            "stability_before": card.stability,
            "difficulty_before": card.difficulty,
            "stability_after": stability,
            "difficulty_after": difficulty,
            "scheduled_days": scheduled_days,
            "due": updated.due,
        }

        return updated, event_data

    def _next_memory_state(
        self,
        card: memory_state.CardState,
        state: State,
        rating: int,
        elapsed_days: float,
        retrievability: Optional[float],
    ) -> Tuple[float, float]:
        params = self.parameters

        # First grading: the prior is discarded
        if state == State.NEW:
            return (
                ltm_updates.initial_stability(rating, params),
                ltm_updates.initial_difficulty(rating, params),
            )

        difficulty = ltm_updates.next_difficulty(card.difficulty, rating, params)

        if card.last_review is None or stm_updates.is_same_day(elapsed_days):
            stability = stm_updates.short_term_stability(card.stability, rating, params)
        elif rating == int(Grade.FAIL):
            stability = ltm_updates.next_forget_stability(
                card.difficulty, card.stability, retrievability, params
            )
        else:
            stability = ltm_updates.next_recall_stability(
                card.difficulty, card.stability, retrievability, params
            )

        return stability, difficulty

    def _next_schedule(
        self,
        card: memory_state.CardState,
        state: State,
        grade: Grade,
        stability: float,
    ) -> Tuple[State, int, float]:
        """Return (next_state, step index, scheduled_days)."""
        in_learning = state in (State.NEW, State.LEARNING)

        if grade == Grade.FAIL:
            next_state = State.LEARNING if in_learning else State.RELEARNING
            steps = self.learning_steps if in_learning else self.relearning_steps
            if steps:
                return next_state, 0, _step_days(steps[0])
            # Without a ladder the word comes back the next day
            return next_state, 0, 1.0

        if state == State.REVIEW:
            return State.REVIEW, 0, float(self._review_interval(stability))

        steps = self.learning_steps if in_learning else self.relearning_steps
        next_step = card.learning_steps + 1
        if next_step >= len(steps):
            return State.REVIEW, 0, float(self._review_interval(stability))

        next_state = State.LEARNING if in_learning else State.RELEARNING
        return next_state, next_step, _step_days(steps[next_step])


# ---- Convenience API ----

_default_scheduler: Optional[Scheduler] = None


def get_default_scheduler() -> Scheduler:
    """Shared scheduler with default parameters and fuzzing enabled."""
    global _default_scheduler
    if _default_scheduler is None:
        _default_scheduler = Scheduler()
    return _default_scheduler


def process_review(
    card: memory_state.CardState,
    grade: object,
    timestamp: Optional[datetime] = None,
) -> Tuple[memory_state.CardState, dict]:
    """
    Grade a card with the default scheduler.

    See Scheduler.review_card.
    """
    return get_default_scheduler().review_card(card, grade, timestamp)
