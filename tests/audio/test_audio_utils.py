"""
Unit tests for voice_copilot.audio.utils module.
"""

import numpy as np
import pytest

from voice_copilot.audio.formats import AudioFormat, Encoding
from voice_copilot.audio.utils import (
    calculate_chunk_size,
    chunk_bytes,
    linear16_format,
    peak_level,
    to_linear16_mono,
)


class TestChunkSizing:
    """Tests for chunk size helpers."""

    def test_calculate_chunk_size(self):
        """100 ms at 16 kHz is 1600 frames."""
        assert calculate_chunk_size(16000, 100) == 1600

    def test_calculate_chunk_size_minimum(self):
        """Chunk size never drops below one frame."""
        assert calculate_chunk_size(8000, 0) == 1

    def test_chunk_bytes(self):
        """Bytes per chunk account for sample width and channels."""
        assert chunk_bytes(AudioFormat(48000, 16, 2), 100) == 4800 * 4


class TestToLinear16Mono:
    """Tests for to_linear16_mono function."""

    def test_passthrough(self):
        """16-bit mono is returned unchanged."""
        data = np.array([1, -2, 3], dtype="<i2").tobytes()
        assert to_linear16_mono(data, AudioFormat()) == data

    def test_stereo_averaged(self):
        """Stereo frames are averaged into one channel."""
        data = np.array([100, 300, -100, -300], dtype="<i2").tobytes()
        out = np.frombuffer(to_linear16_mono(data, AudioFormat(16000, 16, 2)), dtype="<i2")
        assert out.tolist() == [200, -200]

    def test_8_bit_signed(self):
        """8-bit samples are scaled to 16 bits."""
        data = np.array([1, -1], dtype=np.int8).tobytes()
        out = np.frombuffer(to_linear16_mono(data, AudioFormat(16000, 8, 1)), dtype="<i2")
        assert out.tolist() == [256, -256]

    def test_8_bit_unsigned(self):
        """Unsigned 8-bit silence maps to zero."""
        data = bytes([128, 255, 0])
        fmt = AudioFormat(16000, 8, 1, Encoding.PCM_UNSIGNED)
        out = np.frombuffer(to_linear16_mono(data, fmt), dtype="<i2")
        assert out.tolist() == [0, 127 << 8, -32768]

    def test_24_bit(self):
        """24-bit samples keep their two most significant bytes."""
        data = bytes([0xFF, 0x34, 0x12])
        out = np.frombuffer(to_linear16_mono(data, AudioFormat(16000, 24, 1)), dtype="<i2")
        assert out.tolist() == [0x1234]

    def test_32_bit(self):
        """32-bit samples are shifted down to 16 bits."""
        data = np.array([0x12340000, -(1 << 31)], dtype="<i4").tobytes()
        out = np.frombuffer(to_linear16_mono(data, AudioFormat(16000, 32, 1)), dtype="<i2")
        assert out.tolist() == [0x1234, -32768]

    def test_partial_frame_dropped(self):
        """Trailing bytes that do not fill a frame are ignored."""
        data = np.array([10, 20], dtype="<i2").tobytes() + b"\x01"
        out = to_linear16_mono(data, AudioFormat(16000, 16, 2))
        assert len(out) == 2

    def test_ulaw_rejected(self):
        """mu-law input cannot be converted."""
        with pytest.raises(ValueError):
            to_linear16_mono(b"\x00\x00", AudioFormat(8000, 8, 1, Encoding.ULAW))

    def test_linear16_format(self):
        """Output format keeps the rate and is 16-bit mono."""
        assert linear16_format(AudioFormat(48000, 24, 2)) == AudioFormat(48000, 16, 1)


class TestPeakLevel:
    """Tests for peak_level function."""

    def test_silence(self):
        """Silence has zero level."""
        assert peak_level(b"\x00\x00" * 10) == 0.0

    def test_empty(self):
        """Empty input has zero level."""
        assert peak_level(b"") == 0.0

    def test_full_scale(self):
        """Full-scale negative sample reaches 1.0."""
        data = np.array([0, -32768], dtype="<i2").tobytes()
        assert peak_level(data) == 1.0
