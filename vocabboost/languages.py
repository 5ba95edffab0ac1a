"""
Supported languages.

The site (native) language is fixed to English; learners pick one of
LANGUAGES as the language they study.
"""

from __future__ import annotations

from vocabboost.schemas import Language


SITE_LANGUAGE = Language(code="en", name="English")

LANGUAGES = [
    Language(code="es", name="Spanish"),
    Language(code="fr", name="French"),
    Language(code="de", name="German"),
    Language(code="it", name="Italian"),
    Language(code="pt", name="Portuguese"),
    Language(code="nl", name="Dutch"),
    Language(code="ja", name="Japanese"),
    Language(code="ko", name="Korean"),
    Language(code="zh", name="Mandarin"),
    Language(code="ru", name="Russian"),
]

_BY_CODE = {language.code: language for language in LANGUAGES}


def get_language(code: str) -> Language:
    """
    Look up a learning language by its ISO code.

    Raises:
        ValueError: If the code is not a supported learning language
    """
    try:
        return _BY_CODE[code.strip().lower()]
    except KeyError:
        supported = ", ".join(sorted(_BY_CODE))
        raise ValueError(f"Unsupported learning language '{code}' (supported: {supported})") from None
