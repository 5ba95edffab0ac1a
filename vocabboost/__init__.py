"""
VocabBoost - spaced-repetition vocabulary learning core.

Subpackages:
- fsrs: card state and the FSRS scheduler
- session_builders: practice queue construction
- content: AI-generated word data and exercises
"""
