"""
Generate exercises for words still waiting on AI content.

Words are added in the Pending state so the learner is never blocked on
the content service. This script finishes them: each Pending word gets its
exercises and becomes Ready, or is removed if generation fails.

Usage:
    # All users with pending words
    python -m scripts.generate_pending_content [--dry-run]

    # A single user
    python -m scripts.generate_pending_content --user learner@example.com
"""

from __future__ import annotations

import argparse
import logging
from functools import partial
from typing import Optional

from vocabboost import course_repo
from vocabboost.content.generator import DEFAULT_MODEL, generate_exercises
from vocabboost.errors import ContentGenerationError, PersistenceError
from vocabboost.store import VocabularyStore


def generate_for_user(user_key: str, dry_run: bool = False, model: str = DEFAULT_MODEL) -> tuple[int, int]:
    """
    Process every Pending word of one user.

    Returns:
        (ready_count, failed_count)
    """
    store = VocabularyStore(user_key)
    if store.load() is None:
        print(f"  ⚠ No course for {user_key}")
        return 0, 0

    pending = store.pending_words()
    print(f"  Found {len(pending)} pending words")

    generator = partial(generate_exercises, model=model)
    ready_count = 0
    failed_count = 0

    for idx, (study_set, word) in enumerate(pending, 1):
        print(f"  [{idx}/{len(pending)}] {word.learning_word} ({word.native_word}) in '{study_set.name}'")
        if dry_run:
            continue
        try:
            updated = store.generate_content(study_set.id, word.id, generator=generator)
            print(f"    ✓ Ready with {len(updated.exercises)} exercises")
            ready_count += 1
        except ContentGenerationError as e:
            print(f"    ✗ Removed: {e}")
            failed_count += 1

    store.close()
    return ready_count, failed_count


def generate_pending_content(
    user_key: Optional[str] = None,
    dry_run: bool = False,
    model: str = DEFAULT_MODEL,
) -> None:
    """
    Generate content for one user, or for every user with pending words.

    Args:
        user_key: Only process this user (None = all)
        dry_run: List pending words without calling the content service
        model: OpenAI model to use
    """
    user_keys = [user_key] if user_key else list(course_repo.iter_user_keys_with_pending_words())
    if not user_keys:
        print("No pending words found")
        return

    total_ready = 0
    total_failed = 0
    for key in user_keys:
        print(f"\n{key}")
        try:
            ready, failed = generate_for_user(key, dry_run=dry_run, model=model)
        except PersistenceError as e:
            print(f"  ✗ Error: {e}")
            continue
        total_ready += ready
        total_failed += failed

    print(f"\n{'='*60}")
    print("Content generation complete!")
    print(f"{'='*60}")
    print(f"Users:   {len(user_keys)}")
    print(f"Ready:   {total_ready}")
    print(f"Removed: {total_failed}")

    if dry_run:
        print("\n⚠ DRY RUN MODE - No changes were made to MongoDB")


def main():
    parser = argparse.ArgumentParser(
        description="Generate exercises for pending vocabulary words"
    )
    parser.add_argument(
        "--user",
        help="Only process this user key"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List pending words without generating content"
    )
    parser.add_argument(
        "--model",
        default=DEFAULT_MODEL,
        help="OpenAI model to use for generation"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    generate_pending_content(
        user_key=args.user,
        dry_run=args.dry_run,
        model=args.model
    )


if __name__ == "__main__":
    main()
