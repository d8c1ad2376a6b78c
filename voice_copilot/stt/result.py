"""Transcript events extracted from streaming recognition messages."""

import json
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranscriptResult:
    """
    Top alternative of one recognition result.

    Attributes:
        text: Transcript of the top alternative
        is_final: Whether this is a final result (not interim)
        confidence: Confidence of the top alternative (0-1)
        stability: Interim stability estimate, when the service sends one
    """

    text: str
    is_final: bool = False
    confidence: float = 1.0
    stability: float | None = None


def parse_recognition_message(message: dict | str | bytes) -> TranscriptResult | None:
    """
    Extract the top transcript from a recognition message.

    Message shape:
        {"results": [{"alternatives": [{"transcript": "...", "confidence": 0.9}],
                      "isFinal": true}]}

    Returns:
        TranscriptResult for the first result's top alternative, or None when
        the message carries no results (silence) or no alternatives
    """
    if isinstance(message, (str, bytes)):
        try:
            message = json.loads(message)
        except json.JSONDecodeError:
            logger.warning("Ignoring non-JSON recognition message")
            return None

    if not isinstance(message, dict):
        return None

    results = message.get("results") or []
    if not results:
        return None

    first = results[0]
    alternatives = first.get("alternatives") or []
    if not alternatives:
        return None

    top = alternatives[0]
    stability = first.get("stability")
    return TranscriptResult(
        text=top.get("transcript", ""),
        is_final=bool(first.get("isFinal", first.get("is_final", False))),
        confidence=float(top.get("confidence", 1.0)),
        stability=float(stability) if stability is not None else None,
    )
