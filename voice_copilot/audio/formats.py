"""Audio format description and fallback format negotiation."""

from dataclasses import dataclass
from enum import Enum


class Encoding(str, Enum):
    PCM_SIGNED = "PCM_SIGNED"
    PCM_UNSIGNED = "PCM_UNSIGNED"
    ULAW = "ULAW"


@dataclass(frozen=True)
class AudioFormat:
    """Negotiated capture format (interleaved, little-endian)."""

    sample_rate: int = 16000
    sample_size_bits: int = 16
    channels: int = 1
    encoding: Encoding = Encoding.PCM_SIGNED

    @property
    def sample_width(self) -> int:
        """Bytes per sample."""
        return (self.sample_size_bits + 7) // 8

    @property
    def frame_size(self) -> int:
        """Bytes per frame (all channels)."""
        return self.sample_width * self.channels

    @property
    def is_linear16(self) -> bool:
        return self.encoding == Encoding.PCM_SIGNED and self.sample_size_bits == 16

    def __str__(self) -> str:
        return (
            f"{self.encoding.value} {self.sample_rate}Hz "
            f"{self.sample_size_bits}-bit {self.channels}ch"
        )


PREFERRED_FORMAT = AudioFormat()

# Weights for ranking fallback candidates
SAMPLE_RATE_WEIGHT = 0.8
CHANNEL_WEIGHT = 0.2


def score_format(candidate: AudioFormat, preferred: AudioFormat = PREFERRED_FORMAT) -> float:
    """Closeness of a candidate to the preferred format (higher is better)."""
    rate_score = 1.0 - abs(candidate.sample_rate - preferred.sample_rate) / preferred.sample_rate
    channel_score = 1.0 if candidate.channels == preferred.channels else 0.5
    return rate_score * SAMPLE_RATE_WEIGHT + channel_score * CHANNEL_WEIGHT


def _best(candidates: list[AudioFormat], preferred: AudioFormat) -> AudioFormat | None:
    best = None
    best_score = float("-inf")
    for candidate in candidates:
        score = score_format(candidate, preferred)
        if score > best_score:
            best, best_score = candidate, score
    return best


def find_fallback_format(
    supported: list[AudioFormat], preferred: AudioFormat = PREFERRED_FORMAT
) -> AudioFormat | None:
    """
    Pick a fallback format from a device's supported list.

    Only formats of the preferred encoding family are considered. 16-bit signed
    PCM wins over any other signed PCM depth; inside a tier the candidate with
    the closest sample rate and channel count wins.

    Returns:
        The best candidate, or None if nothing is compatible
    """
    same_family = [f for f in supported if f.encoding == preferred.encoding]

    linear16 = [f for f in same_family if f.is_linear16]
    if linear16:
        return _best(linear16, preferred)

    signed = [f for f in same_family if f.encoding == Encoding.PCM_SIGNED]
    return _best(signed, preferred)
