#!/usr/bin/env python3
"""
Voice Copilot - command-line entry point.

Listens on a microphone, streams speech to the recognition service and asks
the language model every time a question is heard.

Usage:
  voice-copilot --list-devices              # Show available input devices
  voice-copilot --device "USB Microphone"   # Listen on a specific device
  voice-copilot --generation-backend ollama # Plain HTTP instead of LangChain
"""

import argparse
import logging
import signal
import threading

from .ai.backends import create_backend
from .ai.orchestrator import TurnOrchestrator
from .audio.capture import AudioCaptureEngine
from .audio.devices import PyAudioPlatform, print_devices
from .config import defaults
from .config.languages import SUPPORTED_LANGUAGES, get_language
from .config.settings import GenerationSettings, RecognitionSettings, SettingsStore
from .pipeline import VoiceCopilot
from .stt.session import TranscriptionSessionManager
from .stt.websocket_backend import WebSocketRecognitionBackend
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Voice Copilot")
    parser.add_argument("--list-devices", action="store_true", help="List audio input devices")
    parser.add_argument("--device", help="Input device name (default: first input device)")
    parser.add_argument("--asr-host", default=defaults.ASR_HOST, help="Recognition service host")
    parser.add_argument(
        "--asr-port", type=int, default=defaults.ASR_PORT, help="Recognition service port"
    )
    parser.add_argument("--ollama-url", default=defaults.OLLAMA_URL, help="Ollama server URL")
    parser.add_argument(
        "--model", default=defaults.OLLAMA_MODEL, help=f"LLM model (default: {defaults.OLLAMA_MODEL})"
    )
    parser.add_argument(
        "--language",
        default=defaults.STT_LANGUAGE,
        choices=[lang.code for lang in SUPPORTED_LANGUAGES],
        help=f"Recognition language (default: {defaults.STT_LANGUAGE})",
    )
    parser.add_argument(
        "--generation-backend",
        choices=["langchain", "ollama"],
        default="langchain",
        help="How to reach the LLM (default: langchain)",
    )
    parser.add_argument(
        "--no-question-detection",
        action="store_true",
        help="Send every final transcript to the LLM, not only questions",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def _print_transcript(text: str, is_final: bool):
    if is_final:
        print(f"You: {text}", flush=True)
    else:
        logger.debug(f"... {text}")


def _print_response(text: str):
    print(f"AI: {text}\n", flush=True)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(debug=args.debug)

    platform = PyAudioPlatform()
    if args.list_devices:
        print_devices(platform)
        platform.terminate()
        return 0

    recognition_settings = SettingsStore(
        RecognitionSettings(
            language_code=args.language,
            enable_question_detection=not args.no_question_detection,
        )
    )
    generation_settings = SettingsStore(GenerationSettings(model_id=args.model))

    copilot = VoiceCopilot(
        engine=AudioCaptureEngine(platform=platform),
        transcription=TranscriptionSessionManager(
            WebSocketRecognitionBackend(host=args.asr_host, port=args.asr_port),
            settings=recognition_settings,
        ),
        orchestrator=TurnOrchestrator(
            create_backend(args.generation_backend, base_url=args.ollama_url),
            settings=generation_settings,
        ),
        on_transcript=_print_transcript,
        on_response=_print_response,
        on_error=lambda message: print(f"Error: {message}", flush=True),
    )

    device = args.device
    if device is None:
        devices = copilot.list_devices()
        if not devices:
            print("No audio input devices found")
            copilot.close()
            return 1
        device = devices[0]

    print("+======================================+")
    print("|            Voice Copilot             |")
    print("+======================================+")
    print(f"Device: {device}")
    print(f"Language: {get_language(args.language) or args.language}")
    print(f"ASR: ws://{args.asr_host}:{args.asr_port}{defaults.ASR_ENDPOINT}")
    print(f"LLM: {args.model} via {args.generation_backend} ({args.ollama_url})")
    print()

    if not copilot.select_device(device) or not copilot.start():
        copilot.close()
        return 1

    stop_requested = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop_requested.set())
    signal.signal(signal.SIGTERM, lambda *_: stop_requested.set())

    print("Listening... press Ctrl+C to quit")
    try:
        while not stop_requested.wait(0.5):
            pass
    finally:
        copilot.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
