from __future__ import annotations

from dataclasses import dataclass

from chunked_speech.application.audio_stitcher import AudioStitcher
from chunked_speech.application.chunker import Chunker
from chunked_speech.application.port.synthesis_model import SynthesisModel
from chunked_speech.application.port.tokenizer import Tokenizer
from chunked_speech.application.synthesis_orchestrator import SynthesisOrchestrator
from chunked_speech.application.text_validator import TextValidator
from chunked_speech.application.voice_style_table import VoiceStyleTable
from chunked_speech.config import EngineConfig
from chunked_speech.utils.env import load_dotenv
from chunked_speech.utils.logger import Logger


@dataclass(frozen=True)
class AppContainer:
    config: EngineConfig
    logger: Logger
    tokenizer: Tokenizer
    model: SynthesisModel
    voices: VoiceStyleTable
    orchestrator: SynthesisOrchestrator


def build_container(
    config: EngineConfig,
    *,
    logger: Logger | None = None,
    tokenizer: Tokenizer | None = None,
    model: SynthesisModel | None = None,
    voices: VoiceStyleTable | None = None,
) -> AppContainer:
    logger = logger or Logger()

    if tokenizer is None:
        from chunked_speech.infrastructure.kokoro.tokenizer import (
            EspeakPhonemizer,
            VocabTokenizer,
        )

        tokenizer = VocabTokenizer.from_config_file(
            config.vocab_path,
            EspeakPhonemizer(language=config.language, logger=logger),
        )

    if model is None:
        from chunked_speech.infrastructure.kokoro.onnx_model import OnnxSynthesisModel

        model = OnnxSynthesisModel(
            model_path=config.model_path,
            sample_rate=config.sample_rate,
            logger=logger,
        )

    if voices is None:
        from chunked_speech.infrastructure.voices.voice_loader import (
            load_voice_table_cached,
        )

        voices = load_voice_table_cached(config.voices_path, logger=logger)

    orchestrator = SynthesisOrchestrator(
        tokenizer=tokenizer,
        model=model,
        voices=voices,
        default_voice=config.default_voice,
        token_budget=config.token_budget,
        validator=TextValidator(max_length=config.max_text_length),
        chunker=Chunker(
            tokenizer,
            config.token_budget,
            short_text_threshold=config.short_text_threshold,
            logger=logger,
        ),
        stitcher=AudioStitcher(sample_rate=model.sample_rate, gaps=config.gaps),
        logger=logger,
        max_workers=config.max_workers,
    )

    return AppContainer(
        config=config,
        logger=logger,
        tokenizer=tokenizer,
        model=model,
        voices=voices,
        orchestrator=orchestrator,
    )


def build_container_from_env(env_file: str | None = ".env", **overrides) -> AppContainer:
    load_dotenv(env_file)
    return build_container(EngineConfig.from_env(), **overrides)
