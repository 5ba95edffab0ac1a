"""
Short-Term Memory (STM) Updates

Stability update for gradings repeated within a day of the previous one
(learning steps, relearning steps, re-practising a word the same day).

Key principle:
Same-day practice can repair fluency but should not certify long-term
mastery, so a same-day Success never multiplies stability by more than the
short-term factor, and a same-day Fail always shrinks it.
"""

from __future__ import annotations

import math
from typing import Sequence

from vocabboost.fsrs.constants import DEFAULT_PARAMETERS
from vocabboost.fsrs.ltm_updates import clamp_stability


def short_term_stability(
    stability: float,
    rating: int,
    parameters: Sequence[float] = DEFAULT_PARAMETERS,
) -> float:
    """
    Stability after a same-day grading.

    Formula:
        SInc = exp(w17 * (G - 3 + w18)) * S^-w19
        S' = S * max(SInc, 1)                    for a Success
        S' = S * min(SInc, 1 / exp(w17 * w18))   for a Fail

    A Fail is not floored, so it stays strictly below S (and above 0).

    Args:
        stability: Current stability
        rating: 1 (Fail) or 3 (Success)

    Returns:
        New stability value
    """
    increase = math.exp(parameters[17] * (rating - 3 + parameters[18])) * math.pow(stability, -parameters[19])
    if rating >= 3:
        return clamp_stability(stability * max(increase, 1.0))
    return stability * min(increase, 1.0 / math.exp(parameters[17] * parameters[18]))


def is_same_day(elapsed_days: float) -> bool:
    """Gradings less than a day apart use the short-term update."""
    return elapsed_days < 1.0
