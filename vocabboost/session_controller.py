"""
Session lifecycle for study-set reviews and single-word practice.

Both session kinds move Idle -> Active -> Complete. Neither touches card
state directly: grades go through the injected callback, which runs the
scheduler and persists the course.
"""

from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from vocabboost.errors import SessionError
from vocabboost.fsrs.constants import Grade
from vocabboost.schemas import Exercise, StudySet, Word
from vocabboost.session_builders import build_exercise_queue, build_practice_queue
from vocabboost.session_types import GradeCallback, SessionItem, SessionStatus

logger = logging.getLogger(__name__)

# Share of correct answers needed for single-word practice to count as a Success
PRACTICE_PASS_RATIO = 0.5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _BaseSession:
    def __init__(self, grade_word: GradeCallback, rng: Optional[random.Random] = None):
        self._grade_word = grade_word
        self.rng = rng or random.Random()
        self.session_id: Optional[str] = None
        self.status = SessionStatus.IDLE
        self.total = 0
        self.position = 0
        self.correct_count = 0

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    @property
    def is_complete(self) -> bool:
        return self.status == SessionStatus.COMPLETE

    @property
    def remaining(self) -> int:
        return self.total - self.position

    def _begin(self, total: int) -> None:
        if self.status == SessionStatus.ACTIVE:
            raise SessionError("Session is already active; dismiss it before starting again")
        self.session_id = str(uuid.uuid4())
        self.total = total
        self.position = 0
        self.correct_count = 0

    def _require_active(self) -> None:
        if self.status != SessionStatus.ACTIVE:
            raise SessionError(f"Cannot submit an answer while the session is {self.status.value}")

    def dismiss(self) -> None:
        """Abandon the session. Card states are left as they are."""
        self.status = SessionStatus.IDLE


class ReviewSession(_BaseSession):
    """
    Walks the due words of one study set, one random exercise per word.

    Each word is graded exactly once, from the single answer given to its
    exercise.
    """

    def __init__(
        self,
        study_set: StudySet,
        grade_word: GradeCallback,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(grade_word, rng)
        self.study_set = study_set
        self.nothing_due = False
        self.current: Optional[SessionItem] = None
        self._queue: list[Word] = []

    @property
    def processed(self) -> int:
        return self.position

    @property
    def current_word(self) -> Optional[Word]:
        return self.current.word if self.current else None

    @property
    def current_exercise(self) -> Optional[Exercise]:
        return self.current.exercise if self.current else None

    def start(self, now: Optional[datetime] = None) -> None:
        """
        Build the queue and present the first word.

        An empty queue completes the session immediately with nothing_due set.
        """
        now = now or _utcnow()
        queue = build_practice_queue(self.study_set, now)
        self._begin(len(queue))
        self._queue = queue
        self.nothing_due = not queue

        if not queue:
            logger.info("Review of '%s': nothing due", self.study_set.name)
            self._complete()
            return

        self.status = SessionStatus.ACTIVE
        logger.info(
            "Review session %s started for '%s' with %d due words",
            self.session_id, self.study_set.name, len(queue),
        )
        self._present_head()

    def submit(self, correct: bool, now: Optional[datetime] = None) -> Any:
        """
        Grade the current word and move to the next one.

        The word leaves the queue even if the callback raises, so it is
        never graded twice in one session.

        Returns:
            Whatever the grade callback returned
        """
        self._require_active()
        word = self._queue.pop(0)
        grade = Grade.from_correct(bool(correct))

        try:
            return self._grade_word(word, grade, now or _utcnow())
        finally:
            self.position += 1
            if correct:
                self.correct_count += 1
            if self._queue:
                self._present_head()
            else:
                self._complete()

    def dismiss(self) -> None:
        super().dismiss()
        self._queue = []
        self.current = None

    def _present_head(self) -> None:
        word = self._queue[0]
        self.current = SessionItem(word=word, exercise=self.rng.choice(word.exercises))

    def _complete(self) -> None:
        self.status = SessionStatus.COMPLETE
        self.current = None
        logger.info(
            "Review session %s complete: %d/%d correct",
            self.session_id, self.correct_count, self.processed,
        )


class WordPracticeSession(_BaseSession):
    """
    Runs every exercise of one word in random order.

    The word is graded once at the end: Success when at least half of the
    answers were correct.
    """

    def __init__(
        self,
        word: Word,
        grade_word: GradeCallback,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(grade_word, rng)
        self.word = word
        self.exercises: list[Exercise] = []
        self.results: list[bool] = []
        self.final_grade: Optional[Grade] = None

    @property
    def current_exercise(self) -> Optional[Exercise]:
        if self.status != SessionStatus.ACTIVE:
            return None
        return self.exercises[self.position]

    def start(self) -> None:
        if not self.word.exercises:
            raise SessionError(f"Word '{self.word.learning_word}' has no exercises to practise")
        self._begin(len(self.word.exercises))
        self.exercises = build_exercise_queue(self.word, self.rng)
        self.results = []
        self.final_grade = None
        self.status = SessionStatus.ACTIVE
        logger.info(
            "Practice session %s started for '%s' with %d exercises",
            self.session_id, self.word.learning_word, self.total,
        )

    def submit(self, correct: bool, now: Optional[datetime] = None) -> Any:
        """
        Record one answer; after the last exercise grade the word.

        Returns:
            None until the last answer, then whatever the grade callback returned
        """
        self._require_active()
        self.results.append(bool(correct))
        self.position += 1
        if correct:
            self.correct_count += 1

        if self.position < self.total:
            return None

        self.final_grade = Grade.from_correct(self.correct_count / self.total >= PRACTICE_PASS_RATIO)
        self.status = SessionStatus.COMPLETE
        logger.info(
            "Practice session %s complete: %d/%d correct, graded %s",
            self.session_id, self.correct_count, self.total, self.final_grade.name,
        )
        return self._grade_word(self.word, self.final_grade, now or _utcnow())
