"""Utility helpers: logging setup and question detection."""

from .logging import DEFAULT_FORMAT, resolve_level, setup_logging
from .question_detector import INTERROGATIVE_WORDS, QuestionDetector

__all__ = [
    "DEFAULT_FORMAT",
    "INTERROGATIVE_WORDS",
    "QuestionDetector",
    "resolve_level",
    "setup_logging",
]
