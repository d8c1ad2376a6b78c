"""Event plumbing shared by the pipeline components."""

from .events import (
    ChannelResponseListener,
    ChannelTranscriptionListener,
    ChunkCaptured,
    Event,
    EventChannel,
    GenerationFailed,
    ResponseReady,
    StreamClosed,
    TranscriptionFailed,
    TranscriptReceived,
)

__all__ = [
    "ChannelResponseListener",
    "ChannelTranscriptionListener",
    "ChunkCaptured",
    "Event",
    "EventChannel",
    "GenerationFailed",
    "ResponseReady",
    "StreamClosed",
    "TranscriptReceived",
    "TranscriptionFailed",
]
