"""
MongoDB repository for course documents.

One document per user holds the whole course aggregate:

    {_id: user_key, version: int, course: {...}, updated_at: datetime}

Saves replace the aggregate. Passing expected_version turns a save into a
compare-and-swap so a stale writer cannot overwrite newer progress.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Iterator, Optional

from dotenv import load_dotenv
from pydantic import ValidationError
from pymongo import MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from vocabboost.errors import ConcurrentModificationError, PersistenceError
from vocabboost.schemas import ContentStatus, Course

logger = logging.getLogger(__name__)

# Load environment
load_dotenv()

# Configuration
DB_NAME = os.getenv("VOCABBOOST_DB_NAME", "vocabboost")
COLLECTION_NAME = "courses"

# Global connection pool (reused across requests)
_client: Optional[MongoClient] = None
_collection: Optional[Collection] = None


# ---- Connection Management ----

def get_collection() -> Collection:
    """
    Get the courses collection, connecting on first use.

    Returns:
        MongoDB collection object
    """
    global _client, _collection

    if _collection is not None:
        return _collection

    mongo_uri = os.getenv("MONGO_URI")
    if not mongo_uri:
        raise ValueError("MONGO_URI not found in environment variables")

    _client = MongoClient(
        mongo_uri,
        maxPoolSize=10,  # Connection pool size
        minPoolSize=1,   # Keep at least 1 connection alive
        maxIdleTimeMS=60000  # Keep connections alive for 60 seconds
    )
    _collection = _client[DB_NAME][COLLECTION_NAME]
    return _collection


def close() -> None:
    """Drop the cached connection (next call reconnects)."""
    global _client, _collection
    if _client is not None:
        _client.close()
    _client = None
    _collection = None


# ---- Queries ----

def _parse_course(user_key: str, doc: dict) -> Course:
    try:
        return Course.model_validate(doc["course"])
    except (KeyError, ValidationError) as exc:
        raise PersistenceError(f"Stored course for '{user_key}' is invalid: {exc}") from exc


def load_course_document(user_key: str) -> Optional[tuple[Course, int]]:
    """
    Load a user's course together with its stored version.

    Returns:
        (course, version), or None if the user has no course yet

    Raises:
        PersistenceError: If the database fails or the document is malformed
    """
    try:
        doc = get_collection().find_one({"_id": user_key})
    except PyMongoError as exc:
        raise PersistenceError(f"Failed to load course for '{user_key}': {exc}") from exc

    if doc is None:
        return None
    return _parse_course(user_key, doc), int(doc.get("version", 0))


def load_course(user_key: str) -> Optional[Course]:
    """Load a user's course, or None if they have not created one."""
    loaded = load_course_document(user_key)
    return loaded[0] if loaded else None


def iter_user_keys_with_pending_words() -> Iterator[str]:
    """Yield user keys whose course has words still waiting for content."""
    query = {"course.study_sets.words.content_status": ContentStatus.PENDING.value}
    try:
        for doc in get_collection().find(query, {"_id": 1}):
            yield doc["_id"]
    except PyMongoError as exc:
        raise PersistenceError(f"Failed to scan for pending words: {exc}") from exc


# ---- Updates ----

def save_course(
    user_key: str,
    course: Course,
    expected_version: Optional[int] = None,
) -> int:
    """
    Replace a user's course document.

    Args:
        user_key: Resolved user identity
        course: Whole course aggregate
        expected_version: Version the caller loaded (0 = no document yet).
            None means last write wins.

    Returns:
        The version now stored

    Raises:
        ConcurrentModificationError: If expected_version no longer matches
        PersistenceError: If the database call fails
    """
    collection = get_collection()
    body = course.model_dump(mode="json")
    now = datetime.now(timezone.utc)
    update = {"$set": {"course": body, "updated_at": now}, "$inc": {"version": 1}}

    try:
        if expected_version is None:
            doc = collection.find_one_and_update(
                {"_id": user_key},
                update,
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        elif expected_version == 0:
            try:
                collection.insert_one({"_id": user_key, "version": 1, "course": body, "updated_at": now})
            except DuplicateKeyError as exc:
                raise ConcurrentModificationError(
                    f"Course for '{user_key}' was created by another writer"
                ) from exc
            doc = {"version": 1}
        else:
            doc = collection.find_one_and_update(
                {"_id": user_key, "version": expected_version},
                update,
                return_document=ReturnDocument.AFTER,
            )
            if doc is None:
                raise ConcurrentModificationError(
                    f"Course for '{user_key}' changed since version {expected_version}"
                )
    except PyMongoError as exc:
        raise PersistenceError(f"Failed to save course for '{user_key}': {exc}") from exc

    version = int(doc["version"])
    logger.debug("Saved course for %s (version %d)", user_key, version)
    return version


def delete_course(user_key: str) -> bool:
    """
    Delete a user's course.

    Returns:
        True if a document was removed
    """
    try:
        result = get_collection().delete_one({"_id": user_key})
    except PyMongoError as exc:
        raise PersistenceError(f"Failed to delete course for '{user_key}': {exc}") from exc
    return result.deleted_count > 0
