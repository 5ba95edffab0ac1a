"""AI-generated word data and exercises."""

from vocabboost.content.generator import generate_exercises, get_client, process_word

__all__ = [
    "generate_exercises",
    "get_client",
    "process_word",
]
