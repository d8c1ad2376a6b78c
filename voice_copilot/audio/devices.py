"""Audio device enumeration and line access via PyAudio."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .formats import AudioFormat, Encoding

logger = logging.getLogger(__name__)

# Sample rates probed when building a device's supported format list
CANDIDATE_SAMPLE_RATES = (8000, 11025, 16000, 22050, 32000, 44100, 48000)
CANDIDATE_SAMPLE_SIZES = (16, 8, 24, 32)


@dataclass(frozen=True)
class DeviceInfo:
    """Audio device as reported by the platform."""

    index: int
    name: str
    max_input_channels: int = 0
    max_output_channels: int = 0
    default_sample_rate: float = 44100.0

    @property
    def is_input(self) -> bool:
        return self.max_input_channels > 0

    @property
    def is_output(self) -> bool:
        return self.max_output_channels > 0


class InputLine(ABC):
    """An opened input line delivering raw PCM."""

    @abstractmethod
    def start(self):
        pass

    @abstractmethod
    def read(self, frames: int) -> bytes:
        """Block until ``frames`` frames are read; returns raw bytes."""

    @abstractmethod
    def stop(self):
        pass

    @abstractmethod
    def close(self):
        pass


class AudioPlatform(ABC):
    """Platform audio subsystem used by the capture engine."""

    @abstractmethod
    def list_devices(self) -> list[DeviceInfo]:
        pass

    @abstractmethod
    def supports_format(self, device: DeviceInfo, audio_format: AudioFormat) -> bool:
        pass

    @abstractmethod
    def supported_formats(self, device: DeviceInfo) -> list[AudioFormat]:
        pass

    @abstractmethod
    def open_input(
        self, device: DeviceInfo, audio_format: AudioFormat, frames_per_buffer: int
    ) -> InputLine:
        """Open (but do not start) an input line. Raises on failure."""

    def terminate(self):
        """Release platform resources."""

    def list_input_devices(self) -> list[DeviceInfo]:
        return [d for d in self.list_devices() if d.is_input]


def _pa_format(pyaudio, audio_format: AudioFormat) -> int:
    """Map an AudioFormat to a PyAudio sample format constant."""
    if audio_format.encoding == Encoding.PCM_UNSIGNED and audio_format.sample_size_bits == 8:
        return pyaudio.paUInt8
    if audio_format.encoding != Encoding.PCM_SIGNED:
        raise ValueError(f"PyAudio cannot capture {audio_format.encoding.value}")
    formats = {
        8: pyaudio.paInt8,
        16: pyaudio.paInt16,
        24: pyaudio.paInt24,
        32: pyaudio.paInt32,
    }
    try:
        return formats[audio_format.sample_size_bits]
    except KeyError:
        raise ValueError(f"Unsupported sample size: {audio_format.sample_size_bits}") from None


class PyAudioInputLine(InputLine):
    """Blocking-read PyAudio input stream."""

    def __init__(self, stream):
        self.stream = stream

    def start(self):
        self.stream.start_stream()

    def read(self, frames: int) -> bytes:
        return self.stream.read(frames, exception_on_overflow=False)

    def stop(self):
        if self.stream.is_active():
            self.stream.stop_stream()

    def close(self):
        self.stream.close()


class PyAudioPlatform(AudioPlatform):
    """AudioPlatform backed by PyAudio (PortAudio)."""

    def __init__(self):
        self._pa = None

    def _instance(self):
        if self._pa is None:
            import pyaudio

            self._pa = pyaudio.PyAudio()
        return self._pa

    def list_devices(self) -> list[DeviceInfo]:
        pa = self._instance()
        devices = []
        for i in range(pa.get_device_count()):
            try:
                info = pa.get_device_info_by_index(i)
            except Exception as e:
                logger.warning(f"Could not query device {i}: {e}")
                continue
            devices.append(
                DeviceInfo(
                    index=i,
                    name=info["name"],
                    max_input_channels=int(info["maxInputChannels"]),
                    max_output_channels=int(info["maxOutputChannels"]),
                    default_sample_rate=float(info["defaultSampleRate"]),
                )
            )
        return devices

    def supports_format(self, device: DeviceInfo, audio_format: AudioFormat) -> bool:
        import pyaudio

        if audio_format.channels > device.max_input_channels:
            return False
        try:
            return bool(
                self._instance().is_format_supported(
                    audio_format.sample_rate,
                    input_device=device.index,
                    input_channels=audio_format.channels,
                    input_format=_pa_format(pyaudio, audio_format),
                )
            )
        except ValueError:
            return False

    def supported_formats(self, device: DeviceInfo) -> list[AudioFormat]:
        rates = set(CANDIDATE_SAMPLE_RATES)
        rates.add(int(device.default_sample_rate))
        channel_options = range(1, min(device.max_input_channels, 2) + 1)

        formats = []
        for rate in sorted(rates):
            for bits in CANDIDATE_SAMPLE_SIZES:
                for channels in channel_options:
                    candidate = AudioFormat(rate, bits, channels, Encoding.PCM_SIGNED)
                    if self.supports_format(device, candidate):
                        formats.append(candidate)
        logger.debug(f"{device.name}: {len(formats)} supported formats")
        return formats

    def open_input(
        self, device: DeviceInfo, audio_format: AudioFormat, frames_per_buffer: int
    ) -> InputLine:
        import pyaudio

        stream = self._instance().open(
            format=_pa_format(pyaudio, audio_format),
            channels=audio_format.channels,
            rate=audio_format.sample_rate,
            input=True,
            input_device_index=device.index,
            frames_per_buffer=frames_per_buffer,
            start=False,
        )
        return PyAudioInputLine(stream)

    def terminate(self):
        if self._pa is not None:
            try:
                self._pa.terminate()
            except Exception as e:
                logger.warning(f"PyAudio terminate failed: {e}")
            self._pa = None


def print_devices(platform: AudioPlatform):
    """Print input devices for --list-devices."""
    print("\n" + "=" * 65)
    print("INPUT DEVICES (for --device NAME)")
    print("=" * 65)
    try:
        devices = platform.list_input_devices()
    except Exception as e:
        print(f"  Error listing devices: {e}")
        return
    if not devices:
        print("  (no input devices found)")
    for dev in devices:
        print(f"  [{dev.index:2d}] {dev.name} ({int(dev.default_sample_rate)}Hz, {dev.max_input_channels}ch)")
