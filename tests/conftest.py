"""Pytest configuration and fakes for Voice Copilot tests.

No audio hardware, recognition service or LLM is needed: the platform and
backends below stand in for PyAudio, the WebSocket service and Ollama.
"""

import sys
import threading
import time
from pathlib import Path

import pytest

# Add the repository root to Python path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from voice_copilot.ai.backends import GenerationBackend  # noqa: E402
from voice_copilot.ai.orchestrator import ResponseListener  # noqa: E402
from voice_copilot.audio.devices import AudioPlatform, DeviceInfo, InputLine  # noqa: E402
from voice_copilot.audio.formats import PREFERRED_FORMAT  # noqa: E402
from voice_copilot.stt.backend import RecognitionBackend, RecognitionStream  # noqa: E402
from voice_copilot.stt.session import TranscriptionListener  # noqa: E402

# ============== Audio ==============


class FakeLine(InputLine):
    """Input line that returns a fixed chunk on every read."""

    def __init__(self, chunk: bytes = b"\x01\x00" * 160, read_delay: float = 0.005):
        self.chunk = chunk
        self.read_delay = read_delay
        self.read_error: Exception | None = None
        self.started = 0
        self.stopped = 0
        self.closed = False
        self.reads = 0

    def start(self):
        self.started += 1

    def read(self, frames: int) -> bytes:
        time.sleep(self.read_delay)
        if self.read_error is not None:
            raise self.read_error
        self.reads += 1
        return self.chunk

    def stop(self):
        self.stopped += 1

    def close(self):
        self.closed = True


class FakePlatform(AudioPlatform):
    """In-memory audio platform."""

    def __init__(self, devices=None, supported=None, formats=None):
        self.devices = devices if devices is not None else [make_device(0, "Mic A")]
        # formats accepted by supports_format(); None = preferred only
        self.supported = supported if supported is not None else {PREFERRED_FORMAT}
        self.formats = formats if formats is not None else []
        self.open_error: Exception | None = None
        self.opened: list[tuple] = []
        self.lines: list[FakeLine] = []
        self.terminated = False

    def list_devices(self):
        return list(self.devices)

    def supports_format(self, device, audio_format):
        return audio_format in self.supported

    def supported_formats(self, device):
        return list(self.formats)

    def open_input(self, device, audio_format, frames_per_buffer):
        if self.open_error is not None:
            raise self.open_error
        self.opened.append((device, audio_format, frames_per_buffer))
        line = FakeLine()
        self.lines.append(line)
        return line

    def terminate(self):
        self.terminated = True


def make_device(index, name, inputs=2, outputs=0, rate=48000.0):
    return DeviceInfo(
        index=index,
        name=name,
        max_input_channels=inputs,
        max_output_channels=outputs,
        default_sample_rate=rate,
    )


# ============== Recognition ==============


class FakeStream(RecognitionStream):
    def __init__(self):
        self.configs: list[dict] = []
        self.audio: list[bytes] = []
        self.close_count = 0
        self.send_error: Exception | None = None

    def send_config(self, config):
        self.configs.append(config)

    def send_audio(self, audio):
        if self.send_error is not None:
            raise self.send_error
        self.audio.append(audio)

    def close_send(self):
        self.close_count += 1


class FakeRecognitionBackend(RecognitionBackend):
    """Records opened streams; tests drive the observers directly."""

    def __init__(self, ready: bool = True):
        self.ready = ready
        self.open_error: Exception | None = None
        self.streams: list[FakeStream] = []
        self.observers: list = []
        self.closed = False

    def is_ready(self):
        return self.ready

    def open_stream(self, observer):
        if self.open_error is not None:
            raise self.open_error
        stream = FakeStream()
        self.streams.append(stream)
        self.observers.append(observer)
        return stream

    def close(self):
        self.closed = True

    @property
    def observer(self):
        return self.observers[-1]

    @property
    def stream(self):
        return self.streams[-1]


def result_message(text: str, is_final: bool) -> dict:
    return {"results": [{"alternatives": [{"transcript": text}], "isFinal": is_final}]}


class RecordingTranscriptionListener(TranscriptionListener):
    def __init__(self):
        self.transcripts: list[tuple[str, bool]] = []
        self.errors: list[Exception] = []
        self.closed = 0

    def on_transcript(self, text, is_final):
        self.transcripts.append((text, is_final))

    def on_error(self, error):
        self.errors.append(error)

    def on_closed(self):
        self.closed += 1


# ============== Generation ==============


class FakeGenerationBackend(GenerationBackend):
    """Yields configured fragments, optionally waiting on a gate first."""

    def __init__(self, fragments=("Hello", " world"), error: Exception | None = None):
        self.fragments = list(fragments)
        self.error = error
        self.ready = True
        self.gate: threading.Event | None = None
        self.requests: list = []
        self.closed = False

    def is_ready(self):
        return self.ready

    def generate(self, request):
        self.requests.append(request)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        yield from self.fragments

    def close(self):
        self.closed = True


class RecordingResponseListener(ResponseListener):
    def __init__(self):
        self.responses: list[str] = []
        self.errors: list[str] = []
        self.done = threading.Event()

    def on_response(self, text):
        self.responses.append(text)
        self.done.set()

    def on_error(self, message):
        self.errors.append(message)
        self.done.set()


def wait_for(condition, timeout: float = 2.0) -> bool:
    """Poll until condition() is true or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


# ============== Fixtures ==============


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def recognition_backend():
    return FakeRecognitionBackend()


@pytest.fixture
def generation_backend():
    return FakeGenerationBackend()
