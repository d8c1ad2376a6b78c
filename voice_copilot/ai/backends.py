"""Generative text backends.

Both backends talk to an Ollama server and stream the answer back as text
fragments; the orchestrator accumulates them. Failures raise BackendError.
"""

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field

import requests

from ..config import defaults
from ..config.settings import GenerationSettings
from ..errors import BackendError
from .history import ConversationTurn, Role

logger = logging.getLogger(__name__)

# Lazy imports to avoid startup overhead
_ChatOllama = None
_HumanMessage = None
_AIMessage = None


def _ensure_langchain_imports():
    """Lazy import LangChain components."""
    global _ChatOllama, _HumanMessage, _AIMessage

    if _ChatOllama is None:
        from langchain_ollama import ChatOllama

        _ChatOllama = ChatOllama

    if _HumanMessage is None:
        from langchain_core.messages import AIMessage, HumanMessage

        _HumanMessage = HumanMessage
        _AIMessage = AIMessage


@dataclass(frozen=True)
class GenerationRequest:
    """One generation call: prompt, parameter snapshot and prior turns."""

    prompt: str
    settings: GenerationSettings = field(default_factory=GenerationSettings)
    history: tuple[ConversationTurn, ...] = ()


class GenerationBackend(ABC):
    """Streams generated text for a request."""

    @abstractmethod
    def is_ready(self) -> bool:
        pass

    @abstractmethod
    def generate(self, request: GenerationRequest) -> Iterator[str]:
        """Yield response fragments in order."""

    def close(self):
        """Release client resources."""


def _base_url(url: str) -> str:
    # Accept both http://host:11434 and http://host:11434/api
    return url.replace("/api", "").rstrip("/")


class LangChainChatBackend(GenerationBackend):
    """
    Generation through LangChain's ChatOllama.

    Usage:
        backend = LangChainChatBackend(base_url="http://localhost:11434")
        for fragment in backend.generate(request):
            ...
    """

    def __init__(self, base_url: str = defaults.OLLAMA_URL):
        self.base_url = _base_url(base_url)
        self._closed = False

    def is_ready(self) -> bool:
        return not self._closed and bool(self.base_url)

    def _create_llm(self, settings: GenerationSettings):
        return _ChatOllama(
            model=settings.model_id,
            base_url=self.base_url,
            temperature=settings.temperature,
            num_predict=settings.max_output_tokens,
            top_p=settings.top_p,
            top_k=settings.top_k,
        )

    @staticmethod
    def _to_messages(request: GenerationRequest) -> list:
        messages = []
        for turn in request.history:
            if turn.role == Role.USER:
                messages.append(_HumanMessage(content=turn.text))
            else:
                messages.append(_AIMessage(content=turn.text))
        messages.append(_HumanMessage(content=request.prompt))
        return messages

    def generate(self, request: GenerationRequest) -> Iterator[str]:
        try:
            _ensure_langchain_imports()
        except ImportError as e:
            raise BackendError(f"LangChain not properly installed: {e}") from e

        llm = self._create_llm(request.settings)
        messages = self._to_messages(request)
        logger.info(
            f"Sending {len(messages)} messages to ChatOllama (model: {request.settings.model_id})"
        )

        try:
            for chunk in llm.stream(messages):
                content = getattr(chunk, "content", None)
                if content:
                    yield content
        except Exception as e:
            logger.error(f"LangChain chat error: {e}")
            raise BackendError(str(e)) from e

    def close(self):
        self._closed = True


class OllamaHttpBackend(GenerationBackend):
    """Generation through Ollama's streaming /api/chat endpoint."""

    def __init__(
        self,
        base_url: str = defaults.OLLAMA_URL,
        timeout: float = defaults.GENERATION_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.base_url = _base_url(base_url)
        self.timeout = timeout
        self._session = session or requests.Session()
        self._closed = False

    def is_ready(self) -> bool:
        return not self._closed and bool(self.base_url)

    @staticmethod
    def build_payload(request: GenerationRequest) -> dict:
        messages = [
            {"role": "user" if turn.role == Role.USER else "assistant", "content": turn.text}
            for turn in request.history
        ]
        messages.append({"role": "user", "content": request.prompt})

        settings = request.settings
        return {
            "model": settings.model_id,
            "messages": messages,
            "stream": True,
            "options": {
                "temperature": settings.temperature,
                "num_predict": settings.max_output_tokens,
                "top_p": settings.top_p,
                "top_k": settings.top_k,
            },
        }

    def generate(self, request: GenerationRequest) -> Iterator[str]:
        try:
            resp = self._session.post(
                f"{self.base_url}/api/chat",
                json=self.build_payload(request),
                timeout=self.timeout,
                stream=True,
            )
        except requests.RequestException as e:
            logger.error(f"Ollama request failed: {e}")
            raise BackendError(f"Request failed: {e}") from e

        with resp:
            if resp.status_code != 200:
                raise BackendError(
                    f"Error from Ollama: {resp.status_code}", status_code=resp.status_code
                )

            try:
                for line in resp.iter_lines():
                    if not line:
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError:
                        continue

                    if data.get("error"):
                        raise BackendError(f"Ollama error: {data['error']}")

                    fragment = data.get("message", {}).get("content", "")
                    if fragment:
                        yield fragment
                    if data.get("done", False):
                        break
            except requests.RequestException as e:
                logger.error(f"Ollama stream interrupted: {e}")
                raise BackendError(f"Stream interrupted: {e}") from e

    def close(self):
        self._closed = True
        self._session.close()


def create_backend(kind: str, base_url: str = defaults.OLLAMA_URL) -> GenerationBackend:
    """Create a generation backend by name ("langchain" or "ollama")."""
    if kind == "langchain":
        return LangChainChatBackend(base_url=base_url)
    if kind == "ollama":
        return OllamaHttpBackend(base_url=base_url)
    raise ValueError(f"Unknown generation backend: {kind}")
