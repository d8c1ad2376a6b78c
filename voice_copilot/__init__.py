"""
Voice Copilot

Listens to a microphone, transcribes speech with a streaming recognition
service and answers detected questions with a language model.

Components:
- audio.AudioCaptureEngine: device selection and capture thread
- stt.TranscriptionSessionManager: one streaming recognition session at a time
- ai.TurnOrchestrator: single-flight prompts with conversation history
- pipeline.VoiceCopilot: wires the three together

Usage:
    voice-copilot --device "USB Microphone"
"""

__version__ = "0.1.0"
