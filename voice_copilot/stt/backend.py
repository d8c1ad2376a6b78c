"""Streaming recognition backend contract.

Client sends one configuration frame, then audio frames (an empty frame is a
keepalive), then end-of-stream. The server answers with result messages and
ends with either an error or a completion signal, delivered to the observer
on the backend's own thread.
"""

from abc import ABC, abstractmethod
from typing import Any


class RecognitionObserver(ABC):
    """Receives inbound traffic of one stream."""

    @abstractmethod
    def on_response(self, message: dict[str, Any]):
        pass

    @abstractmethod
    def on_error(self, error: Exception):
        pass

    @abstractmethod
    def on_complete(self):
        pass


class RecognitionStream(ABC):
    """Outbound half of an open bidirectional stream."""

    @abstractmethod
    def send_config(self, config: dict[str, Any]):
        pass

    @abstractmethod
    def send_audio(self, audio: bytes):
        """Send one audio frame. Blocks while the transport is busy."""

    @abstractmethod
    def close_send(self):
        """Signal end-of-stream."""


class RecognitionBackend(ABC):
    """Factory for recognition streams."""

    @abstractmethod
    def is_ready(self) -> bool:
        pass

    @abstractmethod
    def open_stream(self, observer: RecognitionObserver) -> RecognitionStream:
        pass

    def close(self):
        """Release client resources."""
