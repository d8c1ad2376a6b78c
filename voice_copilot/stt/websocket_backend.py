"""
WebSocket Recognition Backend

Streams audio to a recognition service over WebSocket.

Protocol:
1. Connect to the WebSocket endpoint
2. Send the configuration frame as JSON text
3. Stream raw audio as binary frames (an empty frame is a keepalive)
4. Receive JSON result messages: {"results": [{"alternatives": [...], "isFinal": ...}]}
5. Send {"event": "end_of_stream"}; the server flushes and closes normally

An {"error": "..."} message or an abnormal close ends the stream with an error.
"""

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any

from ..config import defaults
from ..errors import TransportError
from .backend import RecognitionBackend, RecognitionObserver, RecognitionStream

logger = logging.getLogger(__name__)

END_OF_STREAM = {"event": "end_of_stream"}


@dataclass
class ConnectionConfig:
    """WebSocket connection configuration."""

    host: str = defaults.ASR_HOST
    port: int = defaults.ASR_PORT
    endpoint: str = defaults.ASR_ENDPOINT
    timeout: float = defaults.ASR_TIMEOUT

    @property
    def uri(self) -> str:
        """Get WebSocket URI."""
        return f"ws://{self.host}:{self.port}{self.endpoint}"


class WebSocketRecognitionStream(RecognitionStream):
    """One open recognition stream; a daemon thread reads inbound messages."""

    def __init__(self, ws, observer: RecognitionObserver, close_timeout: float):
        self.ws = ws
        self.observer = observer
        self.close_timeout = close_timeout
        self._send_lock = threading.Lock()
        self._send_closed = False
        self._close_timer: threading.Timer | None = None
        self._thread = threading.Thread(
            target=self._receive_loop, name="RecognitionReceiveThread", daemon=True
        )

    def start(self):
        self._thread.start()

    # ============== Outbound ==============

    def send_config(self, config: dict[str, Any]):
        self._send(json.dumps(config))

    def send_audio(self, audio: bytes):
        self._send(bytes(audio))

    def _send(self, payload):
        with self._send_lock:
            if self._send_closed:
                raise TransportError("Recognition stream is closed for sending")
            self.ws.send(payload)

    def close_send(self):
        with self._send_lock:
            if self._send_closed:
                return
            self._send_closed = True
            try:
                self.ws.send(json.dumps(END_OF_STREAM))
            except Exception as e:
                logger.debug(f"End-of-stream not sent: {e}")
            # The server should close after flushing; force it if it does not
            self._close_timer = threading.Timer(self.close_timeout, self._force_close)
            self._close_timer.daemon = True
            self._close_timer.start()

    def _force_close(self):
        logger.warning("Recognition service did not close the stream; closing it")
        try:
            self.ws.close()
        except Exception as e:
            logger.debug(f"Close failed: {e}")

    # ============== Inbound ==============

    def _receive_loop(self):
        from websockets.exceptions import ConnectionClosed

        error: Exception | None = None
        try:
            for message in self.ws:
                if isinstance(message, bytes):
                    continue
                try:
                    data = json.loads(message)
                except json.JSONDecodeError:
                    logger.warning(f"Ignoring non-JSON message: {message[:80]!r}")
                    continue
                if isinstance(data, dict) and data.get("error"):
                    error = TransportError(f"Recognition service error: {data['error']}")
                    break
                self.observer.on_response(data)
        except ConnectionClosed as e:
            error = TransportError(f"Connection closed abnormally: {e}")
        except Exception as e:
            error = TransportError(f"Receive failed: {e}")
        finally:
            with self._send_lock:
                self._send_closed = True
                if self._close_timer is not None:
                    self._close_timer.cancel()
            try:
                self.ws.close()
            except Exception as e:
                logger.debug(f"Close failed: {e}")

        if error is not None:
            self.observer.on_error(error)
        else:
            self.observer.on_complete()


class WebSocketRecognitionBackend(RecognitionBackend):
    """
    Recognition backend reached over WebSocket.

    Usage:
        backend = WebSocketRecognitionBackend(host="localhost", port=8000)
        manager = TranscriptionSessionManager(backend)
    """

    def __init__(
        self,
        host: str = defaults.ASR_HOST,
        port: int = defaults.ASR_PORT,
        endpoint: str = defaults.ASR_ENDPOINT,
        timeout: float = defaults.ASR_TIMEOUT,
    ):
        """
        Args:
            host: Recognition service hostname
            port: Recognition service port
            endpoint: WebSocket endpoint path
            timeout: Connect and close timeout in seconds
        """
        self.config = ConnectionConfig(host=host, port=port, endpoint=endpoint, timeout=timeout)
        self._closed = False

    @classmethod
    def from_backend_config(cls, backend_config: dict[str, Any]) -> "WebSocketRecognitionBackend":
        """Create a backend from a dict with host, port, endpoint keys."""
        return cls(
            host=backend_config.get("host", defaults.ASR_HOST),
            port=backend_config.get("port", defaults.ASR_PORT),
            endpoint=backend_config.get("endpoint", defaults.ASR_ENDPOINT),
            timeout=backend_config.get("timeout", defaults.ASR_TIMEOUT),
        )

    @property
    def uri(self) -> str:
        return self.config.uri

    def is_ready(self) -> bool:
        return not self._closed and bool(self.config.host)

    def open_stream(self, observer: RecognitionObserver) -> WebSocketRecognitionStream:
        from websockets.sync.client import connect

        if self._closed:
            raise TransportError("Recognition backend is closed")

        logger.info(f"Connecting to recognition service: {self.uri}")
        ws = connect(
            self.uri,
            open_timeout=self.config.timeout,
            close_timeout=self.config.timeout,
        )
        stream = WebSocketRecognitionStream(ws, observer, close_timeout=self.config.timeout)
        stream.start()
        return stream

    def close(self):
        self._closed = True
