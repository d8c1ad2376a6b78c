"""Generative answers for Voice Copilot."""

from .backends import (
    GenerationBackend,
    GenerationRequest,
    LangChainChatBackend,
    OllamaHttpBackend,
    create_backend,
)
from .history import ConversationHistory, ConversationTurn, Role
from .orchestrator import (
    EMPTY_RESPONSE_MESSAGE,
    NOT_INITIALIZED_MESSAGE,
    PLACEHOLDER_MESSAGE,
    SYSTEM_PREAMBLE,
    GenerationState,
    ResponseListener,
    TurnOrchestrator,
)

__all__ = [
    "EMPTY_RESPONSE_MESSAGE",
    "NOT_INITIALIZED_MESSAGE",
    "PLACEHOLDER_MESSAGE",
    "SYSTEM_PREAMBLE",
    "ConversationHistory",
    "ConversationTurn",
    "GenerationBackend",
    "GenerationRequest",
    "GenerationState",
    "LangChainChatBackend",
    "OllamaHttpBackend",
    "ResponseListener",
    "Role",
    "TurnOrchestrator",
    "create_backend",
]
