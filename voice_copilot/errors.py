"""
Exception taxonomy for Voice Copilot.

Device and format errors are reported as booleans by the selection calls
(the exception is kept as ``last_error``). Transport and backend errors are
handed to listener error callbacks. Nothing here is process-fatal.
"""


class VoiceCopilotError(Exception):
    """Base class for all Voice Copilot errors."""


# ============== Audio ==============


class AudioDeviceError(VoiceCopilotError):
    """Audio input device could not be used."""


class DeviceUnavailable(AudioDeviceError):
    """No matching input device, or its line could not be opened."""


class FormatUnsupported(AudioDeviceError):
    """Device offers no format compatible with the preferred one."""


# ============== Recognition ==============


class RecognitionError(VoiceCopilotError):
    """Streaming recognition failure."""


class SessionNotInitialized(RecognitionError):
    """Backend client is missing or not ready."""


class TransportError(RecognitionError):
    """Send or receive failed on an open stream."""


# ============== Generation ==============


class GenerationError(VoiceCopilotError):
    """Generative-text failure."""


class GenerationInFlightRejected(GenerationError):
    """A request is already in flight. Logged by the orchestrator, not raised."""


class BackendError(GenerationError):
    """Remote generation backend failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
