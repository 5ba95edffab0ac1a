"""
Session item types shared by the session controllers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from vocabboost.fsrs.constants import Grade
from vocabboost.schemas import Exercise, Word


class SessionStatus(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SessionItem:
    """
    A single study step: the word being graded and the exercise shown for it.
    """
    word: Word
    exercise: Exercise


# Called once per word per session unit with (word, grade, grading instant).
# Implementations run the scheduler and persist the result.
GradeCallback = Callable[[Word, Grade, datetime], Any]
