"""
FSRS Constants and Parameters

All configurable parameters for the scheduler in one place.
Weights are the FSRS-6 defaults; steps and limits follow the values the
app has always shipped with.
"""

from datetime import timedelta
from enum import IntEnum


# ---- Grades ----

class Grade(IntEnum):
    """
    Binary review outcome.

    Values match the FSRS Again/Good ratings so the formulas can use them directly.
    """
    FAIL = 1
    SUCCESS = 3

    @classmethod
    def from_correct(cls, correct: bool) -> "Grade":
        return cls.SUCCESS if correct else cls.FAIL


# Internal rating used for the prior of a card that has never been graded
PRIOR_RATING = 2


# ---- Card States ----

class State(IntEnum):
    """Position of a card in the learning lifecycle (persisted as its int value)."""
    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3


# ---- Model Weights (FSRS-6 defaults) ----

DEFAULT_PARAMETERS = (
    0.212,   # w0  initial stability, Again
    1.2931,  # w1  initial stability, Hard
    2.3065,  # w2  initial stability, Good
    8.2956,  # w3  initial stability, Easy
    6.4133,  # w4  initial difficulty
    0.8334,  # w5  initial difficulty slope
    3.0194,  # w6  difficulty delta per rating
    0.001,   # w7  mean reversion weight
    1.8722,  # w8  recall stability scale (exp)
    0.1666,  # w9  recall stability decay
    0.796,   # w10 recall retrievability gain
    1.4835,  # w11 forget stability scale
    0.0614,  # w12 forget difficulty exponent
    0.2629,  # w13 forget stability exponent
    1.6483,  # w14 forget retrievability gain
    0.6014,  # w15 hard penalty
    1.8729,  # w16 easy bonus
    0.5425,  # w17 short-term scale
    0.0912,  # w18 short-term offset
    0.0658,  # w19 short-term stability decay
    0.1542,  # w20 forgetting curve decay
)


# ---- Global Constants ----

DESIRED_RETENTION = 0.9   # Recall probability targeted when a card comes due
STABILITY_MIN = 0.001     # Floor for stability after a first grading or a Success (days)
D_MIN = 1.0               # Minimum difficulty
D_MAX = 10.0              # Maximum difficulty
MAXIMUM_INTERVAL = 36500  # Longest review interval (days)

SECONDS_PER_DAY = 86400.0


# ---- Learning Ladders ----

LEARNING_STEPS = (timedelta(minutes=1), timedelta(minutes=10))
RELEARNING_STEPS = (timedelta(minutes=10),)


# ---- Fuzz ----
# Each range adds factor * (portion of the interval inside the range) of jitter.

FUZZ_MIN_INTERVAL = 2.5

FUZZ_RANGES = (
    (2.5, 7.0, 0.15),
    (7.0, 20.0, 0.1),
    (20.0, float("inf"), 0.05),
)
