"""Streaming speech recognition for Voice Copilot."""

from .backend import RecognitionBackend, RecognitionObserver, RecognitionStream
from .result import TranscriptResult, parse_recognition_message
from .session import (
    SessionState,
    TranscriptionListener,
    TranscriptionSessionManager,
    build_streaming_config,
)
from .websocket_backend import ConnectionConfig, WebSocketRecognitionBackend

__all__ = [
    "ConnectionConfig",
    "RecognitionBackend",
    "RecognitionObserver",
    "RecognitionStream",
    "SessionState",
    "TranscriptResult",
    "TranscriptionListener",
    "TranscriptionSessionManager",
    "WebSocketRecognitionBackend",
    "build_streaming_config",
    "parse_recognition_message",
]
