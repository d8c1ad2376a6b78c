"""Audio utility functions for sizing and format conversion."""

import logging

import numpy as np

from .formats import AudioFormat, Encoding

logger = logging.getLogger(__name__)

FRAME_DURATION_MS = 100


def calculate_chunk_size(sample_rate: int, duration_ms: int = FRAME_DURATION_MS) -> int:
    """Calculate chunk size in frames for given duration."""
    return max(1, int(sample_rate * duration_ms / 1000))


def chunk_bytes(audio_format: AudioFormat, duration_ms: int = FRAME_DURATION_MS) -> int:
    """Bytes in one chunk of the given duration."""
    return calculate_chunk_size(audio_format.sample_rate, duration_ms) * audio_format.frame_size


def _to_int16_samples(audio_data: bytes, audio_format: AudioFormat) -> np.ndarray:
    bits = audio_format.sample_size_bits
    if audio_format.encoding == Encoding.PCM_UNSIGNED and bits == 8:
        raw = np.frombuffer(audio_data, dtype=np.uint8).astype(np.int16)
        return ((raw - 128) << 8).astype(np.int16)
    if audio_format.encoding != Encoding.PCM_SIGNED:
        raise ValueError(f"Cannot convert {audio_format.encoding.value} to LINEAR16")

    if bits == 8:
        return (np.frombuffer(audio_data, dtype=np.int8).astype(np.int16) << 8).astype(np.int16)
    if bits == 16:
        return np.frombuffer(audio_data, dtype="<i2")
    if bits == 24:
        raw = np.frombuffer(audio_data, dtype=np.uint8).reshape(-1, 3)
        # keep the two most significant bytes
        return (raw[:, 1].astype(np.uint16) | (raw[:, 2].astype(np.uint16) << 8)).view(np.int16)
    if bits == 32:
        return (np.frombuffer(audio_data, dtype="<i4") >> 16).astype(np.int16)
    raise ValueError(f"Unsupported sample size: {bits}")


def to_mono(samples: np.ndarray, channels: int) -> np.ndarray:
    """Average interleaved channels into one."""
    if channels <= 1:
        return samples
    frames = len(samples) // channels
    interleaved = samples[: frames * channels].reshape(frames, channels).astype(np.int32)
    return (interleaved.sum(axis=1) // channels).astype(np.int16)


def to_linear16_mono(audio_data: bytes, audio_format: AudioFormat) -> bytes:
    """
    Convert captured PCM to 16-bit signed mono.

    Args:
        audio_data: Raw interleaved PCM bytes in ``audio_format``
        audio_format: Format the bytes were captured in

    Returns:
        16-bit little-endian mono PCM bytes (same sample rate)
    """
    if audio_format.is_linear16 and audio_format.channels == 1:
        return audio_data
    usable = len(audio_data) - len(audio_data) % audio_format.frame_size
    samples = _to_int16_samples(audio_data[:usable], audio_format)
    return to_mono(samples, audio_format.channels).astype("<i2").tobytes()


def linear16_format(audio_format: AudioFormat) -> AudioFormat:
    """Format of the data returned by to_linear16_mono()."""
    return AudioFormat(sample_rate=audio_format.sample_rate, sample_size_bits=16, channels=1)


def peak_level(audio_data: bytes) -> float:
    """Peak amplitude of 16-bit PCM, normalised to 0..1."""
    samples = np.frombuffer(audio_data[: len(audio_data) - len(audio_data) % 2], dtype="<i2")
    if samples.size == 0:
        return 0.0
    return min(1.0, float(np.max(np.abs(samples.astype(np.int32)))) / 32768.0)
