"""
Settings snapshots for recognition and generation.

Settings are frozen dataclasses. A SettingsStore holds the current value and
hands out snapshots; the core reads a fresh snapshot at the start of every
recognition session and generation request. Nothing is persisted.
"""

import dataclasses
import logging
import threading
from dataclasses import dataclass
from typing import Generic, TypeVar

from . import defaults

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecognitionSettings:
    """Recognition configuration consumed by the transcription session."""

    language_code: str = defaults.STT_LANGUAGE
    model: str = defaults.STT_MODEL
    enable_automatic_punctuation: bool = True
    enable_word_time_offsets: bool = False
    speech_contexts: str = ""  # one phrase hint per line
    enable_single_utterance: bool = False
    interim_results: bool = True
    profanity_filter: bool = True
    max_alternatives: int = 1
    enable_question_detection: bool = True

    @property
    def phrase_hints(self) -> list[str]:
        """Non-empty, stripped phrase hints."""
        if not self.speech_contexts or not self.speech_contexts.strip():
            return []
        return [line.strip() for line in self.speech_contexts.splitlines() if line.strip()]


@dataclass(frozen=True)
class GenerationSettings:
    """Generation parameters consumed by the turn orchestrator."""

    model_id: str = defaults.OLLAMA_MODEL
    temperature: float = 0.7
    max_output_tokens: int = 256
    top_p: float = 0.8
    top_k: int = 40

    def __post_init__(self):
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError(f"temperature out of range: {self.temperature}")
        if self.max_output_tokens <= 0:
            raise ValueError(f"max_output_tokens must be positive: {self.max_output_tokens}")
        if not 0.0 < self.top_p <= 1.0:
            raise ValueError(f"top_p out of range: {self.top_p}")
        if self.top_k <= 0:
            raise ValueError(f"top_k must be positive: {self.top_k}")


T = TypeVar("T")


class SettingsStore(Generic[T]):
    """Thread-safe in-memory holder for a settings dataclass.

    Usage:
        store = SettingsStore(RecognitionSettings())
        snapshot = store.load()
        store.update(language_code="bg-BG")
    """

    def __init__(self, initial: T):
        self._defaults = initial
        self._current = initial
        self._lock = threading.Lock()

    def load(self) -> T:
        """Return the current snapshot."""
        with self._lock:
            return self._current

    def save(self, settings: T) -> None:
        """Replace the current snapshot."""
        if settings is None:
            raise ValueError("settings cannot be None")
        with self._lock:
            self._current = settings
        logger.info(f"{type(settings).__name__} saved")

    def update(self, **changes) -> T:
        """Replace selected fields and return the new snapshot."""
        with self._lock:
            self._current = dataclasses.replace(self._current, **changes)
            return self._current

    def reset_to_defaults(self) -> T:
        """Restore the values the store was created with."""
        with self._lock:
            self._current = self._defaults
        logger.info(f"{type(self._defaults).__name__} reset to defaults")
        return self._defaults
