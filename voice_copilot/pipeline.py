"""
Voice Copilot pipeline: microphone → streaming recognition → generated answers.

Threads:
- capture thread (AudioCaptureEngine) queues raw chunks
- chunk pump converts chunks to 16-bit mono and sends them to recognition
- event dispatcher delivers transcripts, answers and errors to the callbacks
  and submits final questions to the orchestrator
"""

import logging
import threading
from collections.abc import Callable

from .ai.orchestrator import TurnOrchestrator
from .audio.capture import AudioCaptureEngine
from .audio.formats import AudioFormat
from .audio.utils import linear16_format, to_linear16_mono
from .config import defaults
from .core.events import (
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
from .errors import RecognitionError
from .stt.session import TranscriptionSessionManager
from .utils.question_detector import QuestionDetector

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1  # seconds


class VoiceCopilot:
    """
    Wires capture, transcription and the turn orchestrator together.

    Usage:
        copilot = VoiceCopilot(engine, manager, orchestrator,
                               on_transcript=show, on_response=show_answer)
        copilot.select_device("USB Microphone")
        copilot.start()
        ...
        copilot.close()
    """

    def __init__(
        self,
        engine: AudioCaptureEngine,
        transcription: TranscriptionSessionManager,
        orchestrator: TurnOrchestrator,
        detector: QuestionDetector | None = None,
        on_transcript: Callable[[str, bool], None] | None = None,
        on_response: Callable[[str], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        chunk_queue_size: int = defaults.CHUNK_QUEUE_SIZE,
        event_queue_size: int = defaults.EVENT_QUEUE_SIZE,
    ):
        self.engine = engine
        self.transcription = transcription
        self.orchestrator = orchestrator
        self.detector = detector or QuestionDetector()

        self.on_transcript = on_transcript
        self.on_response = on_response
        self.on_error = on_error

        self.chunks = EventChannel(maxsize=chunk_queue_size)
        self.events = EventChannel(maxsize=event_queue_size)
        self._transcription_listener = ChannelTranscriptionListener(self.events)
        self._response_listener = ChannelResponseListener(self.events)

        self._lock = threading.Lock()
        self._running = False
        self._source_format: AudioFormat | None = None
        self._closed = threading.Event()
        self._pump_thread: threading.Thread | None = None
        self._dispatch_thread: threading.Thread | None = None

        self.engine.set_chunk_listener(self._on_chunk)

    @property
    def is_running(self) -> bool:
        return self._running

    # ============== Devices ==============

    def list_devices(self) -> list[str]:
        return self.engine.list_input_devices()

    def select_device(self, name: str) -> bool:
        if self._running:
            self.stop()
        if not self.engine.select_device(name):
            self._report_error(f"Could not use audio device '{name}': {self.engine.last_error}")
            return False
        return True

    # ============== Control ==============

    def start(self) -> bool:
        """
        Start capture, then the transcription session.

        Returns:
            True if both are running
        """
        with self._lock:
            if self._running:
                logger.warning("Voice Copilot is already running")
                return True
            if self._closed.is_set():
                logger.error("Voice Copilot is closed")
                return False
            if not self.engine.is_device_selected:
                self._report_error("No audio input device selected")
                return False

            self._ensure_workers()
            self._source_format = self.engine.audio_format

            if not self.engine.start_capture():
                self._report_error("Failed to start audio capture")
                return False

            try:
                self.transcription.start(
                    linear16_format(self._source_format), self._transcription_listener
                )
            except (RecognitionError, ValueError) as e:
                logger.error(f"Failed to start transcription: {e}")
                self.engine.stop_capture()
                self._report_error(f"Failed to start transcription: {e}")
                return False

            self._running = True

        logger.info("Voice Copilot started")
        return True

    def stop(self) -> bool:
        """Stop capture and end the transcription session."""
        with self._lock:
            if not self._running:
                return False
            self._running = False

        self.engine.stop_capture()
        self.transcription.stop()
        logger.info("Voice Copilot stopped")
        return True

    def clear_history(self):
        self.orchestrator.clear_history()

    def close(self):
        """Stop everything and release devices, connections and threads."""
        self.stop()
        self._closed.set()
        for thread in (self._pump_thread, self._dispatch_thread):
            if thread is not None:
                thread.join(timeout=1.0)

        self.orchestrator.close()
        self.engine.close()
        if self.transcription.backend is not None:
            self.transcription.backend.close()
        logger.info("Voice Copilot closed")

    # ============== Workers ==============

    def _ensure_workers(self):
        if self._pump_thread is None or not self._pump_thread.is_alive():
            self._pump_thread = threading.Thread(
                target=self._pump_loop, name="ChunkPumpThread", daemon=True
            )
            self._pump_thread.start()
        if self._dispatch_thread is None or not self._dispatch_thread.is_alive():
            self._dispatch_thread = threading.Thread(
                target=self._dispatch_loop, name="EventDispatchThread", daemon=True
            )
            self._dispatch_thread.start()

    def _on_chunk(self, data: bytes):
        """Called on the capture thread; must not block."""
        self.chunks.publish(ChunkCaptured(data))

    def _pump_loop(self):
        while not self._closed.is_set():
            event = self.chunks.get(timeout=POLL_INTERVAL)
            if event is None or self._source_format is None:
                continue
            try:
                audio = to_linear16_mono(event.data, self._source_format)
            except ValueError as e:
                logger.error(f"Audio conversion failed: {e}")
                continue
            self.transcription.on_audio_chunk(audio)

    def _dispatch_loop(self):
        while not self._closed.is_set():
            event = self.events.get(timeout=POLL_INTERVAL)
            if event is not None:
                self._dispatch(event)

        for event in self.events.drain():
            self._dispatch(event)

    def _dispatch(self, event: Event):
        try:
            self._handle_event(event)
        except Exception as e:
            logger.error(f"Error handling {type(event).__name__}: {e}")

    def _handle_event(self, event: Event):
        if isinstance(event, TranscriptReceived):
            if self.on_transcript:
                self.on_transcript(event.text, event.is_final)
            if event.is_final:
                self._maybe_submit(event.text)
        elif isinstance(event, ResponseReady):
            if self.on_response:
                self.on_response(event.text)
        elif isinstance(event, GenerationFailed):
            self._report_error(event.message)
        elif isinstance(event, TranscriptionFailed):
            self._on_transcription_failed(event.error)
        elif isinstance(event, StreamClosed):
            logger.info("Transcription stream closed")
            if self._end_run():
                logger.info("Capture stopped after the recognition service ended the stream")

    def _maybe_submit(self, text: str):
        text = text.strip()
        if not text:
            return

        settings = self.transcription.settings.load()
        if settings.enable_question_detection and not self.detector.is_question(
            text, settings.language_code
        ):
            logger.debug(f'Not a question, skipping: "{text}"')
            return

        logger.info(f'Question detected: "{text}"')
        self.orchestrator.submit_prompt(text, self._response_listener)

    def _on_transcription_failed(self, error: Exception):
        self._end_run()
        self._report_error(f"Transcription failed: {error}")

    def _end_run(self) -> bool:
        """Return to idle after the session ended on its own. False if not running."""
        with self._lock:
            # a restarted session is not ended by its predecessor
            if not self._running or self.transcription.is_active:
                return False
            self._running = False
            self.engine.stop_capture()
        return True

    def _report_error(self, message: str):
        logger.error(message)
        if self.on_error:
            try:
                self.on_error(message)
            except Exception as e:
                logger.error(f"Error callback failed: {e}")
