"""Rule-based detection of spoken questions.

Recognition output rarely carries a trailing question mark, so besides the
``?`` rule the first word is checked against interrogative, auxiliary and
interview command words for the session language.
"""

import re

_EN_WORDS = frozenset(
    [
        # Interrogatives
        "what", "who", "when", "where", "why", "how", "which", "whose",
        # Auxiliary verbs
        "is", "are", "am", "was", "were",
        "do", "does", "did",
        "can", "could", "will", "would", "shall", "should",
        "may", "might", "must",
        # Interview commands
        "explain", "describe", "tell", "give", "define", "compare", "contrast",
    ]
)

INTERROGATIVE_WORDS: dict[str, frozenset[str]] = {
    "en-US": _EN_WORDS,
    "en-GB": _EN_WORDS,
    "bg-BG": frozenset(
        [
            "какво", "кой", "кога", "къде", "защо", "как",
            "е", "са", "съм", "беше", "бяха",
            "правиш", "прави", "направи",
            "може", "можеше", "ще", "би",
            "който", "чия",
            "обясни", "опиши", "разкажи", "дай", "дефинирай", "сравни",
        ]
    ),
}

# Strip everything that is not a letter (unicode aware)
_NON_LETTERS = re.compile(r"[\W\d_]+", re.UNICODE)


class QuestionDetector:
    """Classify final transcripts as questions."""

    def __init__(self, words_by_language: dict[str, frozenset[str]] | None = None):
        self.words_by_language = words_by_language or INTERROGATIVE_WORDS

    def is_question(self, text: str | None, language_code: str) -> bool:
        """
        Check whether text is likely a question in the given language.

        Args:
            text: Transcribed text
            language_code: BCP-47 code of the session language (e.g. "en-US")

        Returns:
            True if the text ends with "?" or starts with a known question word
        """
        if not text or not text.strip():
            return False

        trimmed = text.strip()
        if trimmed.endswith("?"):
            return True

        words = self.words_by_language.get(language_code)
        if not words:
            return False

        first_word = _NON_LETTERS.sub("", trimmed.split(maxsplit=1)[0].lower())
        return first_word in words
