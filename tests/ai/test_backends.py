"""
Unit tests for voice_copilot.ai.backends module.

LangChain and the Ollama HTTP API are mocked; no server is needed.
"""

import json
import sys
from unittest.mock import MagicMock, patch

import pytest
import requests

from voice_copilot.ai import backends
from voice_copilot.ai.backends import (
    GenerationRequest,
    LangChainChatBackend,
    OllamaHttpBackend,
    create_backend,
)
from voice_copilot.ai.history import ConversationTurn, Role
from voice_copilot.config.settings import GenerationSettings
from voice_copilot.errors import BackendError

HISTORY = (
    ConversationTurn(Role.USER, "What is a thread?"),
    ConversationTurn(Role.MODEL, "A unit of execution."),
)


def make_request(**kwargs):
    kwargs.setdefault("prompt", "And a process?")
    kwargs.setdefault("settings", GenerationSettings(model_id="llama3", temperature=0.3))
    kwargs.setdefault("history", HISTORY)
    return GenerationRequest(**kwargs)


class FakeMessage:
    def __init__(self, content):
        self.content = content


@pytest.fixture
def langchain_modules():
    """Stand-ins for langchain_ollama and langchain_core.messages."""
    ollama = MagicMock()
    messages = MagicMock()
    messages.HumanMessage = type("HumanMessage", (FakeMessage,), {})
    messages.AIMessage = type("AIMessage", (FakeMessage,), {})
    modules = {
        "langchain_ollama": ollama,
        "langchain_core": MagicMock(messages=messages),
        "langchain_core.messages": messages,
    }
    with patch.dict(sys.modules, modules), patch.multiple(
        backends, _ChatOllama=None, _HumanMessage=None, _AIMessage=None
    ):
        yield ollama, messages


class TestLangChainChatBackend:
    """Tests for LangChainChatBackend class."""

    def test_base_url_normalised(self):
        """A trailing /api is stripped from the base URL."""
        assert LangChainChatBackend("http://ollama:11434/api/").base_url == "http://ollama:11434"

    def test_streams_fragments(self, langchain_modules):
        """Chunk contents are yielded in order, empty ones skipped."""
        ollama, _ = langchain_modules
        llm = ollama.ChatOllama.return_value
        llm.stream.return_value = [FakeMessage("A "), FakeMessage(""), FakeMessage("program.")]

        fragments = list(LangChainChatBackend("http://ollama:11434").generate(make_request()))

        assert fragments == ["A ", "program."]

    def test_model_parameters(self, langchain_modules):
        """Settings snapshot maps onto ChatOllama parameters."""
        ollama, _ = langchain_modules
        ollama.ChatOllama.return_value.stream.return_value = []

        list(LangChainChatBackend("http://ollama:11434").generate(make_request()))

        kwargs = ollama.ChatOllama.call_args.kwargs
        assert kwargs["model"] == "llama3"
        assert kwargs["base_url"] == "http://ollama:11434"
        assert kwargs["temperature"] == 0.3
        assert kwargs["num_predict"] == 256
        assert kwargs["top_k"] == 40

    def test_history_converted(self, langchain_modules):
        """History becomes alternating human/AI messages before the prompt."""
        ollama, messages = langchain_modules
        llm = ollama.ChatOllama.return_value
        llm.stream.return_value = []

        list(LangChainChatBackend().generate(make_request()))

        sent = llm.stream.call_args.args[0]
        assert [type(m).__name__ for m in sent] == ["HumanMessage", "AIMessage", "HumanMessage"]
        assert sent[-1].content == "And a process?"

    def test_stream_failure(self, langchain_modules):
        """Errors while streaming become BackendError."""
        ollama, _ = langchain_modules
        ollama.ChatOllama.return_value.stream.side_effect = ConnectionError("refused")

        with pytest.raises(BackendError, match="refused"):
            list(LangChainChatBackend().generate(make_request()))

    def test_close(self):
        """A closed backend is not ready."""
        backend = LangChainChatBackend()
        assert backend.is_ready() is True
        backend.close()
        assert backend.is_ready() is False


def make_response(status_code=200, lines=()):
    resp = MagicMock()
    resp.status_code = status_code
    resp.iter_lines.return_value = [
        json.dumps(line).encode() if isinstance(line, dict) else line for line in lines
    ]
    resp.__enter__.return_value = resp
    return resp


class TestOllamaHttpBackend:
    """Tests for OllamaHttpBackend class."""

    def test_payload(self):
        """Payload carries messages, streaming flag and options."""
        payload = OllamaHttpBackend.build_payload(make_request())
        assert payload["model"] == "llama3"
        assert payload["stream"] is True
        assert [m["role"] for m in payload["messages"]] == ["user", "assistant", "user"]
        assert payload["messages"][-1]["content"] == "And a process?"
        assert payload["options"] == {
            "temperature": 0.3,
            "num_predict": 256,
            "top_p": 0.8,
            "top_k": 40,
        }

    def test_streams_fragments(self):
        """Fragments are yielded until done, blank and invalid lines skipped."""
        session = MagicMock()
        session.post.return_value = make_response(
            lines=[
                {"message": {"content": "A "}},
                b"",
                b"not json",
                {"message": {"content": "program."}},
                {"message": {"content": ""}, "done": True},
                {"message": {"content": "ignored"}},
            ]
        )
        backend = OllamaHttpBackend("http://ollama:11434", session=session)

        assert list(backend.generate(make_request())) == ["A ", "program."]
        url = session.post.call_args.args[0]
        assert url == "http://ollama:11434/api/chat"
        assert session.post.call_args.kwargs["stream"] is True

    def test_http_error_status(self):
        """Non-200 responses raise BackendError with the status code."""
        session = MagicMock()
        session.post.return_value = make_response(status_code=404)
        backend = OllamaHttpBackend(session=session)

        with pytest.raises(BackendError) as exc_info:
            list(backend.generate(make_request()))
        assert exc_info.value.status_code == 404

    def test_connection_error(self):
        """Connection failures raise BackendError."""
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("refused")
        backend = OllamaHttpBackend(session=session)

        with pytest.raises(BackendError, match="refused"):
            list(backend.generate(make_request()))

    def test_error_line(self):
        """An error object in the stream raises BackendError."""
        session = MagicMock()
        session.post.return_value = make_response(lines=[{"error": "model not found"}])
        backend = OllamaHttpBackend(session=session)

        with pytest.raises(BackendError, match="model not found"):
            list(backend.generate(make_request()))

    def test_close_closes_session(self):
        """close() closes the HTTP session."""
        session = MagicMock()
        backend = OllamaHttpBackend(session=session)
        backend.close()
        session.close.assert_called_once()
        assert backend.is_ready() is False


class TestCreateBackend:
    """Tests for create_backend function."""

    def test_known_kinds(self):
        """Backend kinds map to their classes."""
        assert isinstance(create_backend("langchain"), LangChainChatBackend)
        assert isinstance(create_backend("ollama"), OllamaHttpBackend)

    def test_unknown_kind(self):
        """Unknown kinds are rejected."""
        with pytest.raises(ValueError):
            create_backend("openai")
