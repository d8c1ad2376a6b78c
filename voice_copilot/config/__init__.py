"""
Configuration Module

Environment defaults, settings snapshots and language data.
"""

from .languages import SUPPORTED_LANGUAGES, Language, get_language, get_models
from .settings import GenerationSettings, RecognitionSettings, SettingsStore

__all__ = [
    "SUPPORTED_LANGUAGES",
    "GenerationSettings",
    "Language",
    "RecognitionSettings",
    "SettingsStore",
    "get_language",
    "get_models",
]
