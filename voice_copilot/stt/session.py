"""Streaming transcription session management.

Bridges captured audio to a streaming recognition backend and turns inbound
result messages into transcript events for a listener.
"""

import logging
import threading
from enum import Enum
from typing import Any

from ..audio.formats import AudioFormat, Encoding
from ..config import defaults
from ..config.settings import RecognitionSettings, SettingsStore
from ..errors import SessionNotInitialized, TransportError
from .backend import RecognitionBackend, RecognitionObserver, RecognitionStream
from .result import parse_recognition_message

logger = logging.getLogger(__name__)

_ENCODINGS = {
    Encoding.PCM_SIGNED: "LINEAR16",
    Encoding.ULAW: "MULAW",
}


class SessionState(Enum):
    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    ERROR = "error"
    COMPLETED = "completed"
    CLOSED = "closed"


class TranscriptionListener:
    """Receives transcript events. Override what you need."""

    def on_transcript(self, text: str, is_final: bool):
        pass

    def on_error(self, error: Exception):
        logger.error(f"Streaming transcription error: {error}")

    def on_closed(self):
        logger.info("Streaming transcription session closed")


def build_streaming_config(
    audio_format: AudioFormat, settings: RecognitionSettings
) -> dict[str, Any]:
    """Build the configuration frame sent at the start of a stream."""
    try:
        encoding = _ENCODINGS[audio_format.encoding]
    except KeyError:
        raise ValueError(
            f"Recognition does not accept {audio_format.encoding.value} audio"
        ) from None

    return {
        "config": {
            "encoding": encoding,
            "sampleRateHertz": audio_format.sample_rate,
            "audioChannelCount": audio_format.channels,
            "languageCode": settings.language_code,
            "model": settings.model,
            "enableAutomaticPunctuation": settings.enable_automatic_punctuation,
            "enableWordTimeOffsets": settings.enable_word_time_offsets,
            "profanityFilter": settings.profanity_filter,
            "maxAlternatives": settings.max_alternatives,
            "speechContexts": [{"phrases": [hint]} for hint in settings.phrase_hints],
        },
        "interimResults": settings.interim_results,
        "singleUtterance": settings.enable_single_utterance,
    }


class _SessionObserver(RecognitionObserver):
    """Routes backend callbacks to the manager, tagged with the session id."""

    def __init__(self, manager: "TranscriptionSessionManager", session_id: int):
        self.manager = manager
        self.session_id = session_id

    def on_response(self, message):
        self.manager._handle_response(self.session_id, message)

    def on_error(self, error):
        self.manager._handle_error(self.session_id, error)

    def on_complete(self):
        self.manager._handle_complete(self.session_id)


class TranscriptionSessionManager:
    """
    One streaming recognition session at a time.

    State machine:
        IDLE → STARTING → ACTIVE → {ERROR | COMPLETED} → CLOSED
        stop() moves ACTIVE → CLOSED at any time.

    Transport failures are fail-stop: the listener's on_error fires once and
    the session closes. There is no reconnect.
    """

    def __init__(
        self,
        backend: RecognitionBackend | None,
        settings: SettingsStore[RecognitionSettings] | None = None,
        keepalive_interval: float = defaults.KEEPALIVE_INTERVAL,
    ):
        """
        Args:
            backend: Recognition backend client (None = not initialized)
            settings: Store read for a fresh snapshot on every start()
            keepalive_interval: Seconds between empty keepalive frames
        """
        self.backend = backend
        self.settings = settings or SettingsStore(RecognitionSettings())
        self.keepalive_interval = keepalive_interval

        self._lock = threading.Lock()
        self._state = SessionState.IDLE
        self._session_id = 0
        self._draining_id: int | None = None
        self._stream: RecognitionStream | None = None
        self._listener: TranscriptionListener | None = None
        self._keepalive: threading.Timer | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state == SessionState.ACTIVE

    # ============== Session control ==============

    def start(self, audio_format: AudioFormat, listener: TranscriptionListener) -> bool:
        """
        Open a streaming session for audio in ``audio_format``.

        Raises:
            SessionNotInitialized: backend missing or not ready
            ValueError: no audio format or unsupported encoding
            TransportError: the stream could not be opened

        Returns:
            True once the session is active (also if it already was)
        """
        with self._lock:
            if self.backend is None or not self.backend.is_ready():
                raise SessionNotInitialized(
                    "Recognition client is not initialized. Check the backend configuration."
                )
            if audio_format is None:
                raise ValueError("An audio format is required")
            if self._state in (SessionState.ACTIVE, SessionState.STARTING):
                logger.warning("Streaming recognition is already active")
                return True

            config = build_streaming_config(audio_format, self.settings.load())
            self._session_id += 1
            session_id = self._session_id
            self._draining_id = None
            self._listener = listener
            self._state = SessionState.STARTING

        logger.info("Starting streaming recognition session...")
        stream = None
        try:
            stream = self.backend.open_stream(_SessionObserver(self, session_id))
            stream.send_config(config)
        except Exception as e:
            with self._lock:
                if self._session_id == session_id:
                    self._state = SessionState.ERROR
            self._close_quietly(stream)
            with self._lock:
                if self._session_id == session_id:
                    self._state = SessionState.CLOSED
            logger.error(f"Failed to start streaming recognition: {e}")
            raise TransportError(f"Failed to start streaming session: {e}") from e

        with self._lock:
            if self._session_id != session_id or self._state != SessionState.STARTING:
                started = False
            else:
                self._stream = stream
                self._state = SessionState.ACTIVE
                self._arm_keepalive(session_id)
                started = True

        if not started:
            self._close_quietly(stream)
            raise TransportError("Stream closed while starting")

        logger.info("Streaming recognition session started")
        return True

    def stop(self) -> bool:
        """
        End the active session.

        Returns:
            True if a session was active, False otherwise
        """
        with self._lock:
            if self._state != SessionState.ACTIVE:
                logger.warning("No active streaming recognition to stop")
                return False
            self._state = SessionState.CLOSED
            self._draining_id = self._session_id
            stream, timer = self._detach()

        logger.info("Stopping streaming recognition session")
        self._release(stream, timer)
        return True

    def on_audio_chunk(self, data: bytes):
        """Forward captured audio. No-op unless a session is active."""
        with self._lock:
            if self._state != SessionState.ACTIVE or self._stream is None:
                return
            stream = self._stream
            session_id = self._session_id

        if not data:
            return

        try:
            stream.send_audio(bytes(data))
        except Exception as e:
            logger.error(f"Error sending audio to recognition stream: {e}")
            self._fail(session_id, TransportError(f"Audio send failed: {e}"))

    # ============== Backend callbacks ==============

    def _handle_response(self, session_id: int, message):
        with self._lock:
            current = session_id == self._session_id
            deliverable = current and (
                self._state == SessionState.ACTIVE or self._draining_id == session_id
            )
            listener = self._listener

        if not deliverable or listener is None:
            return

        result = parse_recognition_message(message)
        if result is None:
            return

        logger.info(
            f'Streaming STT result: "{result.text}" '
            f"(final: {result.is_final}, confidence: {result.confidence:.2f})"
        )
        try:
            listener.on_transcript(result.text, result.is_final)
        except Exception as e:
            logger.error(f"Transcript listener error: {e}")

    def _handle_error(self, session_id: int, error: Exception):
        logger.error(f"Streaming recognition error: {error}")
        with self._lock:
            if self._draining_id == session_id and session_id == self._session_id:
                self._draining_id = None
                return
        if not isinstance(error, TransportError):
            error = TransportError(str(error))
        self._fail(session_id, error)

    def _handle_complete(self, session_id: int):
        with self._lock:
            if session_id != self._session_id:
                return
            if self._draining_id == session_id:
                self._draining_id = None
                stream, timer = None, None
            elif self._state == SessionState.ACTIVE:
                self._state = SessionState.COMPLETED
                stream, timer = self._detach()
            else:
                return
            listener = self._listener

        logger.info("Streaming recognition completed")
        self._release(stream, timer)
        with self._lock:
            if session_id == self._session_id and self._state == SessionState.COMPLETED:
                self._state = SessionState.CLOSED
        if listener is not None:
            try:
                listener.on_closed()
            except Exception as e:
                logger.error(f"Listener on_closed error: {e}")

    def _fail(self, session_id: int, error: Exception):
        with self._lock:
            if session_id != self._session_id:
                return
            if self._state not in (SessionState.ACTIVE, SessionState.STARTING):
                return
            self._state = SessionState.ERROR
            stream, timer = self._detach()
            listener = self._listener

        self._release(stream, timer)
        with self._lock:
            if session_id == self._session_id and self._state == SessionState.ERROR:
                self._state = SessionState.CLOSED
        if listener is not None:
            try:
                listener.on_error(error)
            except Exception as e:
                logger.error(f"Listener on_error failed: {e}")

    # ============== Keepalive ==============

    def _arm_keepalive(self, session_id: int):
        """Schedule the next keepalive. Caller holds the lock."""
        timer = threading.Timer(self.keepalive_interval, self._send_keepalive, args=(session_id,))
        timer.daemon = True
        self._keepalive = timer
        timer.start()

    def _send_keepalive(self, session_id: int):
        with self._lock:
            if session_id != self._session_id or self._state != SessionState.ACTIVE:
                return
            stream = self._stream

        try:
            stream.send_audio(b"")
            logger.debug("Keepalive frame sent")
        except Exception as e:
            logger.error(f"Keepalive send failed: {e}")
            self._fail(session_id, TransportError(f"Keepalive send failed: {e}"))
            return

        with self._lock:
            if session_id == self._session_id and self._state == SessionState.ACTIVE:
                self._arm_keepalive(session_id)

    # ============== Resources ==============

    def _detach(self):
        """Take ownership of stream and timer. Caller holds the lock."""
        stream, timer = self._stream, self._keepalive
        self._stream = None
        self._keepalive = None
        return stream, timer

    def _release(self, stream: RecognitionStream | None, timer: threading.Timer | None):
        if timer is not None:
            timer.cancel()
        self._close_quietly(stream)

    @staticmethod
    def _close_quietly(stream: RecognitionStream | None):
        if stream is None:
            return
        try:
            stream.close_send()
        except Exception as e:
            logger.error(f"Error closing recognition stream: {e}")
