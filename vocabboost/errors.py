"""
Exception types shared across the scheduler, store and adapters.
"""

from __future__ import annotations


class VocabBoostError(Exception):
    """Base class for all application errors."""


class InvalidCardStateError(VocabBoostError, ValueError):
    """A card state is missing fields or violates its invariants."""


class InvalidGradeError(VocabBoostError, ValueError):
    """A grade outside {Success, Fail} was submitted."""


class ContentGenerationError(VocabBoostError):
    """The AI content service failed or returned an unusable response."""


class PersistenceError(VocabBoostError):
    """Loading or saving the course aggregate failed."""


class ConcurrentModificationError(PersistenceError):
    """The stored course changed since it was loaded."""


class SessionError(VocabBoostError):
    """A session was driven through an illegal transition."""


class CourseNotLoadedError(VocabBoostError):
    """The store was used before a course was loaded or created."""


class NotFoundError(VocabBoostError, KeyError):
    """A study set or word id does not exist in the course."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""
