"""
Vocabulary Store - per-user course state.

One store per logged-in user. It owns the in-memory Course, applies every
mutation under a per-user lock, and saves the whole aggregate after each
change. Review sessions grade words through the store so the scheduler
result is persisted before the session moves on.

Lifecycle:
    store = VocabularyStore(user_key)
    store.load() or store.create_course("nl")
    ...
    store.close()
"""

from __future__ import annotations

import logging
import random
import threading
import weakref
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from vocabboost import course_repo
from vocabboost.content import generate_exercises, process_word
from vocabboost.errors import ContentGenerationError, CourseNotLoadedError, NotFoundError
from vocabboost.fsrs import Grade, Scheduler, get_default_scheduler, new_card
from vocabboost.languages import SITE_LANGUAGE, get_language
from vocabboost.schemas import (
    AddWordResult,
    ContentStatus,
    Course,
    Example,
    Exercise,
    Language,
    ProcessedWord,
    StudySet,
    Word,
    normalize_answer,
)
from vocabboost.session_builders import build_practice_queue, count_due_words
from vocabboost.session_controller import ReviewSession, WordPracticeSession

logger = logging.getLogger(__name__)

# Review events kept in memory per store
REVIEW_LOG_LIMIT = 500

# (learning_word, native_word, learning_language, native_language) -> exercises
ExerciseGenerator = Callable[[str, str, Language, Language], list[Exercise]]

# (typed word, learning_language, native_language) -> lemma, translation, examples
WordProcessor = Callable[[str, Language, Language], ProcessedWord]

# Entries live only as long as some store for that user holds the lock
_user_locks: "weakref.WeakValueDictionary[str, threading.RLock]" = weakref.WeakValueDictionary()
_user_locks_guard = threading.Lock()


def _lock_for(user_key: str) -> threading.RLock:
    with _user_locks_guard:
        lock = _user_locks.get(user_key)
        if lock is None:
            lock = threading.RLock()
            _user_locks[user_key] = lock
        return lock


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VocabularyStore:
    """
    Explicit per-user state object wrapping the course aggregate.

    Every mutating method saves the course. If the save fails the in-memory
    change is kept and the PersistenceError propagates; the next successful
    save writes the whole aggregate again.
    """

    def __init__(
        self,
        user_key: str,
        scheduler: Optional[Scheduler] = None,
        repo=course_repo,
        rng: Optional[random.Random] = None,
    ):
        if not user_key:
            raise ValueError("user_key is required")
        self.user_key = user_key
        self.scheduler = scheduler or get_default_scheduler()
        self.rng = rng or random.Random()
        self._repo = repo
        self._lock = _lock_for(user_key)

        self.course: Optional[Course] = None
        self.version = 0  # stored version the in-memory course is based on
        self.review_log: deque[dict] = deque(maxlen=REVIEW_LOG_LIMIT)

    # ---- Lifecycle ----

    def load(self) -> Optional[Course]:
        """
        Load the user's course from the repository.

        Returns:
            The course, or None if the user has not created one yet
        """
        with self._lock:
            loaded = self._repo.load_course_document(self.user_key)
            if loaded is None:
                self.course, self.version = None, 0
            else:
                self.course, self.version = loaded
            logger.info(
                "Loaded course for %s: %s",
                self.user_key, "none" if self.course is None else f"version {self.version}",
            )
            return self.course

    def close(self) -> None:
        """Forget the in-memory course (logout)."""
        with self._lock:
            self.course = None
            self.version = 0
            self.review_log.clear()

    @property
    def has_course(self) -> bool:
        return self.course is not None

    def _require_course(self) -> Course:
        if self.course is None:
            raise CourseNotLoadedError(
                f"No course loaded for '{self.user_key}'; call load() or create_course() first"
            )
        return self.course

    def _save(self, course: Optional[Course] = None) -> None:
        self.version = self._repo.save_course(
            self.user_key,
            course if course is not None else self._require_course(),
            expected_version=self.version,
        )

    # ---- Lookups ----

    def get_study_set(self, study_set_id: str) -> StudySet:
        course = self._require_course()
        for study_set in course.study_sets:
            if study_set.id == study_set_id:
                return study_set
        raise NotFoundError(f"Study set '{study_set_id}' not found")

    def get_word(self, study_set_id: str, word_id: str) -> Word:
        study_set = self.get_study_set(study_set_id)
        for word in study_set.words:
            if word.id == word_id:
                return word
        raise NotFoundError(f"Word '{word_id}' not found in study set '{study_set.name}'")

    # ---- Course & Study Sets ----

    def create_course(self, learning_language: Union[Language, str]) -> Course:
        """
        Start a new, empty course (replaces any existing one).

        Args:
            learning_language: Language or its ISO code
        """
        if isinstance(learning_language, str):
            learning_language = get_language(learning_language)

        with self._lock:
            course = Course(learning_language=learning_language, native_language=SITE_LANGUAGE)
            # A rejected save leaves the previous course in place
            self._save(course)
            self.course = course
            logger.info("Created %s course for %s", learning_language.name, self.user_key)
            return course

    def add_study_set(self, name: str) -> StudySet:
        name = name.strip()
        if not name:
            raise ValueError("Study set name cannot be empty")

        with self._lock:
            course = self._require_course()
            study_set = StudySet(name=name)
            course.study_sets.append(study_set)
            self._save()
            return study_set

    def remove_study_set(self, study_set_id: str) -> StudySet:
        with self._lock:
            course = self._require_course()
            study_set = self.get_study_set(study_set_id)
            course.study_sets.remove(study_set)
            self._save()
            return study_set

    # ---- Words ----

    def add_word(
        self,
        study_set_id: str,
        learning_word: str,
        native_word: str,
        examples: Optional[list[Example]] = None,
        now: Optional[datetime] = None,
    ) -> AddWordResult:
        """
        Add a word in the Pending state (content is generated separately).

        A word already in the set (case-insensitive) is not added again.
        """
        learning_word = learning_word.strip()
        native_word = native_word.strip()
        if not learning_word or not native_word:
            raise ValueError("Both the learning word and its translation are required")
        now = now or _utcnow()

        with self._lock:
            study_set = self.get_study_set(study_set_id)
            key = normalize_answer(learning_word)
            for existing in study_set.words:
                if normalize_answer(existing.learning_word) == key:
                    logger.info("'%s' already in '%s', not added", learning_word, study_set.name)
                    return AddWordResult(status="duplicate", word=existing)

            word = Word(
                learning_word=learning_word,
                native_word=native_word,
                examples=list(examples or []),
                srs=new_card(now, self.scheduler.parameters),
                content_status=ContentStatus.PENDING,
                created_at=now,
            )
            study_set.words.append(word)
            self._save()
            return AddWordResult(status="added", word=word)

    def add_typed_word(
        self,
        study_set_id: str,
        typed_word: str,
        processor: Optional[WordProcessor] = None,
        now: Optional[datetime] = None,
    ) -> AddWordResult:
        """
        Add a word as the learner typed it.

        The content service turns it into its dictionary form with a
        translation and examples, which are then added like add_word (same
        duplicate check, Pending state). Nothing is added if processing fails.

        Raises:
            ContentGenerationError: If the word could not be processed
        """
        processor = processor or process_word

        with self._lock:
            course = self._require_course()
            self.get_study_set(study_set_id)
            learning_language, native_language = course.learning_language, course.native_language

        processed = processor(typed_word, learning_language, native_language)
        logger.info("'%s' processed as '%s'", typed_word.strip(), processed.learning_word)

        return self.add_word(
            study_set_id,
            processed.learning_word,
            processed.native_word,
            examples=processed.examples,
            now=now,
        )

    def remove_word(self, study_set_id: str, word_id: str) -> Word:
        with self._lock:
            study_set = self.get_study_set(study_set_id)
            word = self.get_word(study_set_id, word_id)
            study_set.words.remove(word)
            self._save()
            return word

    def generate_content(
        self,
        study_set_id: str,
        word_id: str,
        generator: Optional[ExerciseGenerator] = None,
    ) -> Word:
        """
        Generate exercises for a Pending word.

        On success the word becomes Ready. On ContentGenerationError the
        word is marked Failed, removed from its set, and the error re-raised.
        The content service is called without holding the lock.
        """
        generator = generator or generate_exercises

        with self._lock:
            course = self._require_course()
            word = self.get_word(study_set_id, word_id)
            if word.content_status == ContentStatus.READY:
                return word
            learning_word, native_word = word.learning_word, word.native_word
            learning_language, native_language = course.learning_language, course.native_language

        try:
            exercises = generator(learning_word, native_word, learning_language, native_language)
            if not exercises:
                raise ContentGenerationError(f"No exercises generated for '{learning_word}'")
        except ContentGenerationError:
            logger.warning("Content generation failed for '%s'; removing word", learning_word)
            self._discard_failed_word(study_set_id, word_id)
            raise

        with self._lock:
            word = self.get_word(study_set_id, word_id)
            word.exercises = list(exercises)
            word.content_status = ContentStatus.READY
            logger.info("Generated %d exercises for '%s'", len(exercises), learning_word)
            self._save()
            return word

    def _discard_failed_word(self, study_set_id: str, word_id: str) -> None:
        with self._lock:
            try:
                study_set = self.get_study_set(study_set_id)
                word = self.get_word(study_set_id, word_id)
            except NotFoundError:
                # Already removed while the content service was running
                return
            word.content_status = ContentStatus.FAILED
            study_set.words.remove(word)
            self._save()

    def pending_words(self) -> list[tuple[StudySet, Word]]:
        """Words still waiting for generated content, across all study sets."""
        with self._lock:
            course = self._require_course()
            return [
                (study_set, word) for study_set, word in course.iter_words()
                if word.content_status == ContentStatus.PENDING
            ]

    # ---- Scheduling ----

    def grade_word(
        self,
        study_set_id: str,
        word_id: str,
        grade: Union[Grade, bool],
        now: Optional[datetime] = None,
    ) -> Word:
        """
        Run the scheduler for one word and persist the new card state.

        Returns:
            The word with its updated srs record
        """
        with self._lock:
            word = self.get_word(study_set_id, word_id)
            card, event_data = self.scheduler.review_card(word.srs, grade, now)
            word.srs = card

            event_data.update({
                "user_key": self.user_key,
                "study_set_id": study_set_id,
                "word_id": word_id,
                "learning_word": word.learning_word,
            })
            self.review_log.append(event_data)

            self._save()
            return word

    def practice_queue(self, study_set_id: str, now: Optional[datetime] = None) -> list[Word]:
        with self._lock:
            return build_practice_queue(self.get_study_set(study_set_id), now or _utcnow())

    def count_due(self, study_set_id: str, now: Optional[datetime] = None) -> int:
        with self._lock:
            return count_due_words(self.get_study_set(study_set_id), now or _utcnow())

    # ---- Sessions ----

    def _grade_callback(self, study_set_id: str):
        def grade(word: Word, grade: Grade, now: datetime) -> Word:
            return self.grade_word(study_set_id, word.id, grade, now)
        return grade

    def start_review(
        self,
        study_set_id: str,
        now: Optional[datetime] = None,
        rng: Optional[random.Random] = None,
    ) -> ReviewSession:
        """Create and start a review of the study set's due words."""
        session = ReviewSession(
            self.get_study_set(study_set_id),
            self._grade_callback(study_set_id),
            rng=rng or self.rng,
        )
        session.start(now)
        return session

    def start_word_practice(
        self,
        study_set_id: str,
        word_id: str,
        rng: Optional[random.Random] = None,
    ) -> WordPracticeSession:
        """
        Create and start practice of every exercise of one word.

        Raises:
            SessionError: If the word has no exercises yet
        """
        session = WordPracticeSession(
            self.get_word(study_set_id, word_id),
            self._grade_callback(study_set_id),
            rng=rng or self.rng,
        )
        session.start()
        return session
