from __future__ import annotations


class ChunkedSpeechError(Exception):
    """Base class for every fatal error raised by the engine."""


class UnknownVoiceError(ChunkedSpeechError, KeyError):
    """Raised when a requested voice id is not in the voice table."""

    def __init__(self, voice_id: str):
        super().__init__(voice_id)
        self.voice_id = voice_id

    def __str__(self) -> str:
        return f"Unknown voice: {self.voice_id!r}"


class DimensionMismatchError(ChunkedSpeechError, ValueError):
    """Raised when blended style vectors have different lengths."""


class VoiceTableError(ChunkedSpeechError):
    """Raised when a voice table source is missing or malformed."""


class ExternalServiceError(ChunkedSpeechError, RuntimeError):
    """Raised when an external collaborator call fails (provider-agnostic)."""


class ModelInferenceError(ExternalServiceError):
    """Raised when the neural synthesis call fails."""


class TokenizerError(ExternalServiceError):
    """Raised when phonemization or token mapping fails."""
