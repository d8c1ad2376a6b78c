"""
Typed pipeline events and the bounded channel that carries them.

Producers (capture thread, recognition receive thread, generation worker)
publish without blocking; a single consumer drains the channel in order.
"""

import logging
import queue
from dataclasses import dataclass

from ..ai.orchestrator import ResponseListener
from ..config import defaults
from ..stt.session import TranscriptionListener

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    """Base class for pipeline events."""


@dataclass(frozen=True)
class ChunkCaptured(Event):
    data: bytes


@dataclass(frozen=True)
class TranscriptReceived(Event):
    text: str
    is_final: bool


@dataclass(frozen=True)
class TranscriptionFailed(Event):
    error: Exception


@dataclass(frozen=True)
class StreamClosed(Event):
    pass


@dataclass(frozen=True)
class ResponseReady(Event):
    text: str


@dataclass(frozen=True)
class GenerationFailed(Event):
    message: str


class EventChannel:
    """Bounded FIFO of events. Publishing never blocks; overflow is dropped."""

    def __init__(self, maxsize: int = defaults.EVENT_QUEUE_SIZE):
        self._queue: queue.Queue[Event] = queue.Queue(maxsize=maxsize)
        self.dropped = 0

    def publish(self, event: Event) -> bool:
        try:
            self._queue.put_nowait(event)
            return True
        except queue.Full:
            self.dropped += 1
            logger.warning(f"Event channel full, dropping {type(event).__name__}")
            return False

    def get(self, timeout: float | None = None) -> Event | None:
        """Next event, or None if none arrived within ``timeout``."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[Event]:
        events = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def __len__(self) -> int:
        return self._queue.qsize()


class ChannelTranscriptionListener(TranscriptionListener):
    """Publishes transcription callbacks as events."""

    def __init__(self, channel: EventChannel):
        self.channel = channel

    def on_transcript(self, text: str, is_final: bool):
        self.channel.publish(TranscriptReceived(text, is_final))

    def on_error(self, error: Exception):
        self.channel.publish(TranscriptionFailed(error))

    def on_closed(self):
        self.channel.publish(StreamClosed())


class ChannelResponseListener(ResponseListener):
    """Publishes generation outcomes as events."""

    def __init__(self, channel: EventChannel):
        self.channel = channel

    def on_response(self, text: str):
        self.channel.publish(ResponseReady(text))

    def on_error(self, message: str):
        self.channel.publish(GenerationFailed(message))
