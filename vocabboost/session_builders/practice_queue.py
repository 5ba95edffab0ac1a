"""
Practice Queue - Due Word Selection

Builds the queue of words a study-set review session walks through:
1. Keep only practicable words (content ready, at least one exercise)
2. Keep only words whose card is due (srs.due <= now)
3. Order by due time, most overdue first; ties keep study-set order

Pure functions over the in-memory course (no DB calls).
"""

from __future__ import annotations

import random
from datetime import datetime
from typing import Optional

from vocabboost.schemas import Exercise, StudySet, Word


def is_due_for_practice(word: Word, now: datetime) -> bool:
    return word.is_practicable and word.srs.due <= now


def build_practice_queue(study_set: StudySet, now: datetime) -> list[Word]:
    """
    Select and order the due words of a study set.

    Args:
        study_set: Study set to draw from
        now: Reference instant (timezone-aware)

    Returns:
        New list of words, ascending by due (stable)
    """
    due_words = [w for w in study_set.words if is_due_for_practice(w, now)]
    # list.sort is stable, so equal due times keep insertion order
    due_words.sort(key=lambda w: w.srs.due)
    return due_words


def count_due_words(study_set: StudySet, now: datetime) -> int:
    """Number of words a review started at `now` would contain."""
    return sum(1 for w in study_set.words if is_due_for_practice(w, now))


def next_due_at(study_set: StudySet, now: datetime) -> Optional[datetime]:
    """
    Earliest upcoming due time among practicable words not yet due.

    Returns None when nothing else is scheduled.
    """
    upcoming = [
        w.srs.due for w in study_set.words
        if w.is_practicable and w.srs.due > now
    ]
    return min(upcoming) if upcoming else None


def build_exercise_queue(word: Word, rng: Optional[random.Random] = None) -> list[Exercise]:
    """
    All exercises of a word in random order (single-word practice).

    The word's own exercise list is left untouched.
    """
    rng = rng or random.Random()
    exercises = list(word.exercises)
    rng.shuffle(exercises)
    return exercises
