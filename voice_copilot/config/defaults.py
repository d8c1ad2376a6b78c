"""Environment-driven defaults for Voice Copilot."""

import os

# Streaming recognition service (WebSocket)
ASR_HOST = os.getenv("ASR_HOST", "localhost")
ASR_PORT = int(os.getenv("ASR_PORT", "8000"))
ASR_ENDPOINT = os.getenv("ASR_ENDPOINT", "/recognize")
ASR_TIMEOUT = float(os.getenv("ASR_TIMEOUT", "10.0"))

# Recognition session
STT_LANGUAGE = os.getenv("STT_LANGUAGE", "en-US")
STT_MODEL = os.getenv("STT_MODEL", "default")
KEEPALIVE_INTERVAL = float(os.getenv("KEEPALIVE_INTERVAL", "30"))  # seconds

# Generation service (Ollama)
OLLAMA_URL = os.getenv("OLLAMA_URL", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "qwen3:14b")
GENERATION_TIMEOUT = float(os.getenv("GENERATION_TIMEOUT", "120"))

# Audio capture
CAPTURE_SAMPLE_RATE = int(os.getenv("CAPTURE_SAMPLE_RATE", "16000"))
CAPTURE_FRAME_MS = int(os.getenv("CAPTURE_FRAME_MS", "100"))
CAPTURE_JOIN_TIMEOUT = float(os.getenv("CAPTURE_JOIN_TIMEOUT", "1.0"))
CAPTURE_BUFFER_BYTES = int(os.getenv("CAPTURE_BUFFER_BYTES", str(8 * 1024 * 1024)))  # 0 = unbounded

# Pipeline
CHUNK_QUEUE_SIZE = int(os.getenv("CHUNK_QUEUE_SIZE", "100"))
EVENT_QUEUE_SIZE = int(os.getenv("EVENT_QUEUE_SIZE", "200"))
