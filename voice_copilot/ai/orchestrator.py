"""
Turn orchestrator: single-flight prompt submission with conversation history.

Prompts run on a single worker thread. While one request is in flight every
other submission is rejected (logged, no callback), so answers never overlap
and history stays in user/model order.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum

from ..config.settings import GenerationSettings, SettingsStore
from ..errors import GenerationInFlightRejected
from .backends import GenerationBackend, GenerationRequest
from .history import ConversationHistory, ConversationTurn

logger = logging.getLogger(__name__)

SYSTEM_PREAMBLE = (
    "Please respond concisely and clearly. "
    "Do not include any special characters like : * - or emojis. "
    "Avoid extra blank lines or spaces. "
    "Keep the response under 300 words."
)

PLACEHOLDER_MESSAGE = "[AI: Please provide a valid prompt.]"
NOT_INITIALIZED_MESSAGE = (
    "[AI: Client not initialized. Check the generation backend configuration.]"
)
EMPTY_RESPONSE_MESSAGE = "[AI: No response generated.]"


def build_prompt(text: str) -> str:
    """Prepend the system preamble to the user's text."""
    return f"{SYSTEM_PREAMBLE}\n\n{text}"


class ResponseListener:
    """Receives the outcome of a submitted prompt. Override what you need."""

    def on_response(self, text: str):
        pass

    def on_error(self, message: str):
        logger.error(message)


class GenerationState(Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"


class TurnOrchestrator:
    """
    Submit prompts to a generation backend one at a time.

    Usage:
        orchestrator = TurnOrchestrator(OllamaHttpBackend())
        future = orchestrator.submit_prompt("What is a closure?", listener)
        ...
        orchestrator.close()
    """

    def __init__(
        self,
        backend: GenerationBackend | None,
        settings: SettingsStore[GenerationSettings] | None = None,
        history: ConversationHistory | None = None,
    ):
        self.backend = backend
        self.settings = settings or SettingsStore(GenerationSettings())
        self._history = history if history is not None else ConversationHistory()

        self._lock = threading.Lock()
        self._state = GenerationState.IDLE
        self._closed = False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="generation")

    @property
    def state(self) -> GenerationState:
        return self._state

    @property
    def is_generating(self) -> bool:
        return self._state == GenerationState.IN_FLIGHT

    @property
    def history(self) -> tuple[ConversationTurn, ...]:
        return self._history.turns()

    def clear_history(self):
        self._history.clear()
        logger.info("Conversation history cleared")

    # ============== Submission ==============

    def submit_prompt(self, text: str, listener: ResponseListener) -> Future | None:
        """
        Submit a prompt without blocking.

        Returns:
            The Future of the dispatched request, or None if nothing was
            dispatched (blank prompt, backend not ready, or already generating)
        """
        if text is None or not text.strip():
            self._notify(listener.on_response, PLACEHOLDER_MESSAGE)
            return None

        if self._closed or self.backend is None or not self.backend.is_ready():
            logger.error("Generation backend is not initialized")
            self._notify(listener.on_error, NOT_INITIALIZED_MESSAGE)
            return None

        with self._lock:
            if self._state == GenerationState.IN_FLIGHT:
                rejection = GenerationInFlightRejected(
                    "AI is already generating a response. Please wait."
                )
                logger.warning(f"{type(rejection).__name__}: {rejection}")
                return None
            self._state = GenerationState.IN_FLIGHT

        try:
            request = GenerationRequest(
                prompt=build_prompt(text),
                settings=self.settings.load(),
                history=self._history.turns(),
            )
            self._history.add_user(text)
            future = self._executor.submit(self._run, request, listener)
        except Exception as e:
            self._release()
            logger.error(f"Failed to dispatch prompt: {e}")
            self._notify(listener.on_error, f"[AI Error: {e}]")
            return None

        logger.info(f"Prompt dispatched ({len(text)} chars, {len(request.history)} prior turns)")
        return future

    def _run(self, request: GenerationRequest, listener: ResponseListener):
        try:
            response = "".join(self.backend.generate(request))
            if not response.strip():
                logger.warning("Generation backend returned an empty response")
                self._notify(listener.on_response, EMPTY_RESPONSE_MESSAGE)
                return

            self._history.add_model(response)
            logger.info(f"Response generated ({len(response)} chars)")
            self._notify(listener.on_response, response)
        except Exception as e:
            logger.error(f"Error generating AI response: {e}")
            self._notify(listener.on_error, f"[AI Error: {e}]")
        finally:
            self._release()

    def _release(self):
        with self._lock:
            self._state = GenerationState.IDLE

    @staticmethod
    def _notify(callback, message: str):
        try:
            callback(message)
        except Exception as e:
            logger.error(f"Response listener error: {e}")

    # ============== Lifecycle ==============

    def close(self):
        """Wait for an in-flight request, then release the backend."""
        self._closed = True
        self._executor.shutdown(wait=True)
        if self.backend is not None:
            self.backend.close()
        logger.info("Turn orchestrator closed")
