"""Audio capture engine: device selection, capture thread and buffer."""

import logging
import threading
from collections.abc import Callable
from enum import Enum

from ..config import defaults
from ..errors import AudioDeviceError, DeviceUnavailable, FormatUnsupported
from .devices import AudioPlatform, DeviceInfo, InputLine, PyAudioPlatform
from .formats import PREFERRED_FORMAT, AudioFormat, find_fallback_format
from .utils import calculate_chunk_size

logger = logging.getLogger(__name__)


class CaptureState(Enum):
    IDLE = "idle"
    DEVICE_SELECTED = "device_selected"
    CAPTURING = "capturing"
    CLOSED = "closed"


_BUFFER_STATES = (CaptureState.DEVICE_SELECTED, CaptureState.CAPTURING)


class AudioCaptureEngine:
    """
    Capture raw PCM from a selected input device on a dedicated thread.

    The chunk listener is called inline on the capture thread with the bytes
    of every non-empty read, so it must return quickly.

    Usage:
        engine = AudioCaptureEngine(on_chunk=handle_bytes)
        if engine.select_device("USB Microphone"):
            engine.start_capture()
        ...
        engine.stop_capture()
        engine.close()
    """

    def __init__(
        self,
        platform: AudioPlatform | None = None,
        preferred_format: AudioFormat = PREFERRED_FORMAT,
        frame_ms: int = defaults.CAPTURE_FRAME_MS,
        join_timeout: float = defaults.CAPTURE_JOIN_TIMEOUT,
        max_buffer_bytes: int = defaults.CAPTURE_BUFFER_BYTES,
        on_chunk: Callable[[bytes], None] | None = None,
    ):
        """
        Initialize the capture engine.

        Args:
            platform: Audio platform adapter (PyAudio by default)
            preferred_format: Format tried first when opening a device
            frame_ms: Duration of each device read in milliseconds
            join_timeout: Seconds to wait for the capture thread on stop
            max_buffer_bytes: Cap on the accumulation buffer; the oldest audio
                is dropped beyond it (0 disables the cap)
            on_chunk: Listener called with each captured chunk
        """
        self.platform = platform or PyAudioPlatform()
        self.preferred_format = preferred_format
        self.frame_ms = frame_ms
        self.join_timeout = join_timeout
        self.max_buffer_bytes = max_buffer_bytes
        self.on_chunk = on_chunk
        self.last_error: AudioDeviceError | None = None

        self._state = CaptureState.IDLE
        self._lock = threading.Lock()
        self._device: DeviceInfo | None = None
        self._line: InputLine | None = None
        self._audio_format: AudioFormat | None = None

        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

        self._buffer = bytearray()
        self._buffer_lock = threading.Lock()

    # ============== Properties ==============

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def audio_format(self) -> AudioFormat | None:
        """Format negotiated for the selected device."""
        return self._audio_format

    @property
    def selected_device_name(self) -> str | None:
        return self._device.name if self._device else None

    @property
    def is_device_selected(self) -> bool:
        return self._state in _BUFFER_STATES and self._line is not None

    @property
    def is_capturing(self) -> bool:
        return self._state == CaptureState.CAPTURING

    def set_chunk_listener(self, listener: Callable[[bytes], None] | None):
        self.on_chunk = listener

    # ============== Device selection ==============

    def list_input_devices(self) -> list[str]:
        """Names of devices that can capture audio."""
        names = [d.name for d in self.platform.list_input_devices()]
        if names:
            logger.info(f"Found {len(names)} audio input device(s)")
        else:
            logger.warning("No audio input devices found")
        return names

    def select_device(self, name: str) -> bool:
        """
        Select and open an input device by name.

        Any previously open line is closed first. On failure no device stays
        selected and the error is kept in ``last_error``.

        Returns:
            True if the device is open and ready to capture
        """
        self.stop_capture()

        with self._lock:
            self._close_line()
            self.last_error = None
            try:
                device = self._find_device(name)
                line, audio_format = self._open_line(device)
            except AudioDeviceError as e:
                logger.error(f"Device selection failed: {e}")
                self.last_error = e
                self._state = CaptureState.IDLE
                return False

            self._device = device
            self._line = line
            self._audio_format = audio_format
            self._state = CaptureState.DEVICE_SELECTED

        with self._buffer_lock:
            self._buffer.clear()

        logger.info(f"Selected input device '{name}' ({audio_format})")
        return True

    def _find_device(self, name: str) -> DeviceInfo:
        try:
            devices = self.platform.list_input_devices()
        except Exception as e:
            raise DeviceUnavailable(f"Could not enumerate audio devices: {e}") from e

        for device in devices:
            if device.name == name:
                return device
        raise DeviceUnavailable(f"Audio input device not found: {name}")

    def _open_line(self, device: DeviceInfo) -> tuple[InputLine, AudioFormat]:
        preferred = self.preferred_format
        if self.platform.supports_format(device, preferred):
            try:
                return self._open_with(device, preferred), preferred
            except Exception as e:
                raise DeviceUnavailable(f"Cannot open audio line for '{device.name}': {e}") from e

        logger.warning(
            f"Preferred format not supported by '{device.name}', searching for a compatible format"
        )
        fallback = find_fallback_format(self.platform.supported_formats(device), preferred)
        if fallback is None:
            raise FormatUnsupported(f"No compatible audio format found for device: {device.name}")

        logger.warning(f"Using fallback format for '{device.name}': {fallback}")
        try:
            return self._open_with(device, fallback), fallback
        except Exception as e:
            raise DeviceUnavailable(
                f"Failed to open '{device.name}' even with a fallback format: {e}"
            ) from e

    def _open_with(self, device: DeviceInfo, audio_format: AudioFormat) -> InputLine:
        frames = calculate_chunk_size(audio_format.sample_rate, self.frame_ms)
        return self.platform.open_input(device, audio_format, frames)

    def _close_line(self):
        """Close the open line. Caller holds the state lock."""
        if self._line is not None:
            try:
                self._line.close()
            except Exception as e:
                logger.warning(f"Error closing input line: {e}")
        self._line = None
        self._device = None
        self._audio_format = None

    # ============== Capture ==============

    def start_capture(self) -> bool:
        """
        Start the capture thread.

        Returns:
            True if capturing (also when already capturing)
        """
        with self._lock:
            if self._state == CaptureState.CAPTURING:
                logger.warning("Capture already in progress")
                return True
            if self._state != CaptureState.DEVICE_SELECTED or self._line is None:
                logger.error("Cannot start capture: no input device selected")
                return False

            if self._thread is not None and self._thread.is_alive():
                self._thread.join(timeout=self.join_timeout)
                if self._thread.is_alive():
                    logger.error("Previous capture thread is still running")
                    return False

            with self._buffer_lock:
                self._buffer.clear()

            try:
                self._line.start()
            except Exception as e:
                logger.error(f"Failed to start input line: {e}")
                return False

            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._capture_loop,
                args=(self._line, self._audio_format, self._stop_event),
                name="AudioCaptureThread",
                daemon=True,
            )
            self._state = CaptureState.CAPTURING
            self._thread.start()

        logger.info("Capture started")
        return True

    def stop_capture(self) -> bool:
        """
        Stop the capture thread.

        Returns:
            True if capture was active, False otherwise
        """
        with self._lock:
            if self._state != CaptureState.CAPTURING:
                return False
            self._stop_event.set()
            self._state = CaptureState.DEVICE_SELECTED
            line = self._line
            thread = self._thread

        if line is not None:
            try:
                line.stop()
            except Exception as e:
                logger.warning(f"Error stopping input line: {e}")

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.join_timeout)
            if thread.is_alive():
                logger.warning("Audio capture thread did not terminate in time")

        logger.info("Capture stopped")
        return True

    def _capture_loop(self, line: InputLine, audio_format: AudioFormat, stop_event: threading.Event):
        logger.info("Audio capture thread started")
        frames = calculate_chunk_size(audio_format.sample_rate, self.frame_ms)

        while not stop_event.is_set():
            try:
                data = line.read(frames)
            except Exception as e:
                if not stop_event.is_set():
                    logger.error(f"Audio read failed: {e}")
                    self._on_read_failure(stop_event)
                break

            if not data or stop_event.is_set():
                continue

            self._append_to_buffer(data, audio_format.frame_size)

            listener = self.on_chunk
            if listener is not None:
                try:
                    listener(data)
                except Exception as e:
                    logger.error(f"Chunk listener error: {e}")

        logger.info("Audio capture thread stopped")

    def _on_read_failure(self, stop_event: threading.Event):
        with self._lock:
            if self._stop_event is stop_event and self._state == CaptureState.CAPTURING:
                stop_event.set()
                self._state = CaptureState.DEVICE_SELECTED

    # ============== Buffer ==============

    def _append_to_buffer(self, data: bytes, frame_size: int):
        with self._buffer_lock:
            self._buffer.extend(data)
            overflow = len(self._buffer) - self.max_buffer_bytes
            if self.max_buffer_bytes > 0 and overflow > 0:
                # keep whole frames
                overflow += -overflow % frame_size
                del self._buffer[:overflow]

    def get_buffered_audio(self) -> bytes:
        """Snapshot of the audio captured since capture started, up to the buffer cap."""
        if self._state not in _BUFFER_STATES:
            return b""
        with self._buffer_lock:
            return bytes(self._buffer)

    def clear_buffer(self):
        if self._state not in _BUFFER_STATES:
            return
        with self._buffer_lock:
            self._buffer.clear()

    # ============== Lifecycle ==============

    def close(self):
        """Stop capture and release the device line and platform."""
        self.stop_capture()
        with self._lock:
            self._close_line()
            self._state = CaptureState.CLOSED
        with self._buffer_lock:
            self._buffer.clear()
        self.platform.terminate()
        logger.info("Audio capture resources released")
