"""
Unit tests for voice_copilot.core.events module.
"""

from voice_copilot.core.events import (
    ChannelResponseListener,
    ChannelTranscriptionListener,
    ChunkCaptured,
    EventChannel,
    GenerationFailed,
    ResponseReady,
    StreamClosed,
    TranscriptionFailed,
    TranscriptReceived,
)


class TestEventChannel:
    """Tests for EventChannel class."""

    def test_fifo_order(self):
        """Events come out in publish order."""
        channel = EventChannel(maxsize=10)
        channel.publish(TranscriptReceived("a", False))
        channel.publish(TranscriptReceived("b", True))
        assert channel.get(timeout=0.1) == TranscriptReceived("a", False)
        assert channel.get(timeout=0.1) == TranscriptReceived("b", True)

    def test_get_timeout(self):
        """get() returns None when nothing arrives."""
        assert EventChannel().get(timeout=0.01) is None

    def test_overflow_drops(self):
        """A full channel drops new events and counts them."""
        channel = EventChannel(maxsize=2)
        assert channel.publish(ChunkCaptured(b"1")) is True
        assert channel.publish(ChunkCaptured(b"2")) is True
        assert channel.publish(ChunkCaptured(b"3")) is False
        assert channel.dropped == 1
        assert [e.data for e in channel.drain()] == [b"1", b"2"]

    def test_drain_empties(self):
        """drain() returns everything and leaves the channel empty."""
        channel = EventChannel()
        channel.publish(StreamClosed())
        assert len(channel) == 1
        assert channel.drain() == [StreamClosed()]
        assert len(channel) == 0


class TestChannelListeners:
    """Tests for the listener adapters."""

    def test_transcription_listener(self):
        """Transcription callbacks become events."""
        channel = EventChannel()
        listener = ChannelTranscriptionListener(channel)
        error = RuntimeError("x")
        listener.on_transcript("hello", True)
        listener.on_error(error)
        listener.on_closed()
        assert channel.drain() == [
            TranscriptReceived("hello", True),
            TranscriptionFailed(error),
            StreamClosed(),
        ]

    def test_response_listener(self):
        """Generation callbacks become events."""
        channel = EventChannel()
        listener = ChannelResponseListener(channel)
        listener.on_response("answer")
        listener.on_error("[AI Error: boom]")
        assert channel.drain() == [ResponseReady("answer"), GenerationFailed("[AI Error: boom]")]
