"""
Long-Term Memory (LTM) Updates

Stability and difficulty updates for gradings that happen at least a day
after the previous review. These drive long-interval scheduling.

Key principles:
- Well-spaced success (low R) produces the largest stability gains
- Hard items (high D) gain stability more slowly
- Failures shrink stability to at most S / exp(w17 * w18)
"""

from __future__ import annotations

import math
from typing import Sequence

from vocabboost.fsrs.constants import D_MAX, D_MIN, DEFAULT_PARAMETERS, STABILITY_MIN


def clamp_difficulty(difficulty: float) -> float:
    return max(D_MIN, min(D_MAX, difficulty))


def clamp_stability(stability: float) -> float:
    return max(STABILITY_MIN, stability)


def initial_stability(rating: int, parameters: Sequence[float] = DEFAULT_PARAMETERS) -> float:
    """
    Stability after the very first grading.

    S_0(G) = w[G - 1]
    """
    return clamp_stability(parameters[rating - 1])


def initial_difficulty(
    rating: int,
    parameters: Sequence[float] = DEFAULT_PARAMETERS,
    clamp: bool = True,
) -> float:
    """
    Difficulty after the very first grading.

    D_0(G) = w4 - exp(w5 * (G - 1)) + 1
    """
    difficulty = parameters[4] - math.exp(parameters[5] * (rating - 1)) + 1.0
    if clamp:
        return clamp_difficulty(difficulty)
    return difficulty


def next_difficulty(
    difficulty: float,
    rating: int,
    parameters: Sequence[float] = DEFAULT_PARAMETERS,
) -> float:
    """
    Update difficulty after a grading.

    Formula:
        delta = -w6 * (G - 3)
        D' = D + delta * (10 - D) / 9          (linear damping)
        D'' = w7 * D_0(Easy) + (1 - w7) * D'   (mean reversion)

    A Fail (G=1) raises difficulty; a Success (G=3) only applies mean
    reversion, which nudges D slightly down. The result is clipped to [1, 10].
    """
    delta = -parameters[6] * (rating - 3)
    damped = difficulty + delta * (10.0 - difficulty) / 9.0

    # Easy-rating initial difficulty is the reversion target (unclamped)
    target = initial_difficulty(4, parameters, clamp=False)
    reverted = parameters[7] * target + (1.0 - parameters[7]) * damped

    return clamp_difficulty(reverted)


def next_recall_stability(
    difficulty: float,
    stability: float,
    retrievability: float,
    parameters: Sequence[float] = DEFAULT_PARAMETERS,
) -> float:
    """
    Stability after a successful recall.

    Formula:
        S' = S * (1 + exp(w8) * (11 - D) * S^-w9 * (exp((1 - R) * w10) - 1))

    The growth term is zero when R = 1 and positive otherwise, so stability
    strictly increases whenever any time has passed.
    """
    growth = (
        math.exp(parameters[8])
        * (11.0 - difficulty)
        * math.pow(stability, -parameters[9])
        * (math.exp((1.0 - retrievability) * parameters[10]) - 1.0)
    )
    return clamp_stability(stability * (1.0 + growth))


def next_forget_stability(
    difficulty: float,
    stability: float,
    retrievability: float,
    parameters: Sequence[float] = DEFAULT_PARAMETERS,
) -> float:
    """
    Stability after a failed recall.

    Formula:
        S_long = w11 * D^-w12 * ((S + 1)^w13 - 1) * exp((1 - R) * w14)
        S_short = S / exp(w17 * w18)
        S' = min(S_long, S_short)

    S_short < S, so a lapse always reduces stability. The result is not
    floored at STABILITY_MIN; it stays positive because both terms are.
    """
    long_term = (
        parameters[11]
        * math.pow(difficulty, -parameters[12])
        * (math.pow(stability + 1.0, parameters[13]) - 1.0)
        * math.exp((1.0 - retrievability) * parameters[14])
    )
    short_term = stability / math.exp(parameters[17] * parameters[18])
    return min(long_term, short_term)
