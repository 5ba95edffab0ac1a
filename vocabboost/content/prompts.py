"""
Prompt fragments for word processing and exercise generation.

Kept separate from the API calls so wording can be tuned without touching
the retry / parsing logic.
"""

from vocabboost.schemas import EXAMPLES_PER_WORD

# ---- System Prompts ----

SYSTEM_PROMPT = "You are a language learning assistant who writes accurate, natural study material."

# ---- Word Processing ----

PROCESS_WORD_INSTRUCTIONS = """The learner is studying {learning_language} and their native language is {native_language}.
They submitted the word: "{word}".

CRITICAL: The submitted word may be inflected or conjugated, or written in {native_language}.
You MUST:
1. Identify the base/dictionary form (lemma) in {learning_language}
   - Verbs: the infinitive (e.g. 'went' -> 'go')
   - Nouns: the singular (e.g. 'cats' -> 'cat')
2. Use this base form for everything below

Instructions:
- learning_word: the lemma in {learning_language}
- native_word: its single most common translation in {native_language}
- examples: exactly {n_examples} distinct, simple sentences in {learning_language} using the lemma,
  each with its translation into {native_language}
- Prefer everyday sentences a native speaker would actually say"""

# ---- Exercise Generation ----

EXERCISE_INSTRUCTIONS = """Generate 5 distinct exercises for learning the word "{learning_word}" ({learning_language}), which means "{native_word}" ({native_language}).
Create exactly one of each type:

1. TRANSLATE_MC: multiple-choice translation.
   - question: the word "{learning_word}"
   - correct_answer: "{native_word}"
   - options: 3 plausible but incorrect translations in {native_language}
2. FILL_BLANK_MC: multiple-choice fill-in-the-blank.
   - question: a {learning_language} sentence with "{learning_word}" replaced by '___'
   - correct_answer: the missing word exactly as it appears in the sentence
   - options: 3 plausible but incorrect words in {learning_language}
   - sentence_context: the full, correct sentence
   - translation_context: that sentence translated into {native_language}
3. FILL_BLANK_TYPE: typed fill-in-the-blank.
   - question: a different {learning_language} sentence with the word replaced by '___'
   - correct_answer: the missing word
   - sentence_context and translation_context as above
   - options: leave empty
4. PRONOUNCE_WORD: question and correct_answer are both "{learning_word}"
5. PRONOUNCE_SENTENCE: question and correct_answer are the same simple {learning_language} sentence containing "{learning_word}"

Only multiple-choice types have options. correct_answer is always a single word for fill-in-the-blank types."""


def format_prompt(template: str, **kwargs) -> str:
    """Fill a prompt template, defaulting the example count."""
    kwargs.setdefault("n_examples", EXAMPLES_PER_WORD)
    return template.format(**kwargs)
