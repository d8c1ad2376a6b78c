"""Audio capture module for Voice Copilot."""

from .capture import AudioCaptureEngine, CaptureState
from .devices import AudioPlatform, DeviceInfo, InputLine, PyAudioPlatform, print_devices
from .formats import PREFERRED_FORMAT, AudioFormat, Encoding, find_fallback_format, score_format
from .utils import (
    FRAME_DURATION_MS,
    calculate_chunk_size,
    chunk_bytes,
    linear16_format,
    peak_level,
    to_linear16_mono,
)

__all__ = [
    "FRAME_DURATION_MS",
    "PREFERRED_FORMAT",
    "AudioCaptureEngine",
    "AudioFormat",
    "AudioPlatform",
    "CaptureState",
    "DeviceInfo",
    "Encoding",
    "InputLine",
    "PyAudioPlatform",
    "calculate_chunk_size",
    "chunk_bytes",
    "find_fallback_format",
    "linear16_format",
    "peak_level",
    "print_devices",
    "score_format",
    "to_linear16_mono",
]
