from __future__ import annotations

import os
from dataclasses import dataclass, field

ENV_PREFIX = "CHUNKED_SPEECH_"

DEFAULT_VOICE = "af_sky"
DEFAULT_TOKEN_BUDGET = 512
DEFAULT_SAMPLE_RATE = 24_000
DEFAULT_MODEL_PATH = "models/kokoro-v1.0.onnx"
DEFAULT_VOICES_PATH = "models/voices-v1.0.npz"
DEFAULT_VOCAB_PATH = "models/config.json"


def _env(name: str) -> str | None:
    return os.getenv(ENV_PREFIX + name) or None


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer.") from exc


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number.") from exc


@dataclass(frozen=True)
class GapConfig:
    """Inter-chunk pause lengths in milliseconds, keyed by punctuation class."""

    sentence_ms: float = 300.0
    clause_ms: float = 150.0
    default_ms: float = 100.0

    @staticmethod
    def from_env() -> "GapConfig":
        return GapConfig(
            sentence_ms=_env_float("GAP_SENTENCE_MS", 300.0),
            clause_ms=_env_float("GAP_CLAUSE_MS", 150.0),
            default_ms=_env_float("GAP_DEFAULT_MS", 100.0),
        )


@dataclass(frozen=True)
class EngineConfig:
    model_path: str = DEFAULT_MODEL_PATH
    voices_path: str = DEFAULT_VOICES_PATH
    vocab_path: str = DEFAULT_VOCAB_PATH
    default_voice: str = DEFAULT_VOICE
    token_budget: int = DEFAULT_TOKEN_BUDGET
    short_text_threshold: int = 50
    max_text_length: int = 10_000
    sample_rate: int = DEFAULT_SAMPLE_RATE
    language: str = "en-us"
    max_workers: int = 1
    gaps: GapConfig = field(default_factory=GapConfig)

    @staticmethod
    def from_env() -> "EngineConfig":
        config = EngineConfig(
            model_path=_env("MODEL_PATH") or DEFAULT_MODEL_PATH,
            voices_path=_env("VOICES_PATH") or DEFAULT_VOICES_PATH,
            vocab_path=_env("VOCAB_PATH") or DEFAULT_VOCAB_PATH,
            default_voice=_env("DEFAULT_VOICE") or DEFAULT_VOICE,
            token_budget=_env_int("TOKEN_BUDGET", DEFAULT_TOKEN_BUDGET),
            short_text_threshold=_env_int("SHORT_TEXT_THRESHOLD", 50),
            max_text_length=_env_int("MAX_TEXT_LENGTH", 10_000),
            sample_rate=_env_int("SAMPLE_RATE", DEFAULT_SAMPLE_RATE),
            language=_env("LANGUAGE") or "en-us",
            max_workers=_env_int("MAX_WORKERS", 1),
            gaps=GapConfig.from_env(),
        )

        if config.token_budget <= 0:
            raise ValueError(f"{ENV_PREFIX}TOKEN_BUDGET must be positive.")
        if config.max_workers <= 0:
            raise ValueError(f"{ENV_PREFIX}MAX_WORKERS must be positive.")

        return config
