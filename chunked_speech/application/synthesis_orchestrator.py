from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

import numpy as np

from chunked_speech.application.audio_stitcher import AudioStitcher
from chunked_speech.application.chunker import Chunker
from chunked_speech.application.errors import (
    ChunkedSpeechError,
    ModelInferenceError,
    TokenizerError,
)
from chunked_speech.application.port.synthesis_model import SynthesisModel
from chunked_speech.application.port.tokenizer import Tokenizer
from chunked_speech.application.text_normalizer import TextNormalizer
from chunked_speech.application.text_validator import TextValidator
from chunked_speech.application.voice_style_table import VoiceStyleTable, style_index
from chunked_speech.config import DEFAULT_TOKEN_BUDGET, DEFAULT_VOICE
from chunked_speech.domain.vo.synthesis import (
    SynthesisRequest,
    SynthesisResult,
    empty_samples,
)
from chunked_speech.domain.vo.text_chunk import TextChunk
from chunked_speech.utils.logger import Logger


class SynthesisOrchestrator:
    """Turn arbitrary-length text into one waveform.

    `synthesize_request` is the only place the token budget is checked.
    Chunks produced by the chunker go through `_synthesize_chunk`, which
    trusts that precondition and never calls back into the public methods.
    """

    def __init__(
        self,
        *,
        tokenizer: Tokenizer,
        model: SynthesisModel,
        voices: VoiceStyleTable,
        default_voice: str = DEFAULT_VOICE,
        token_budget: int = DEFAULT_TOKEN_BUDGET,
        normalizer: TextNormalizer | None = None,
        validator: TextValidator | None = None,
        chunker: Chunker | None = None,
        stitcher: AudioStitcher | None = None,
        logger: Logger | None = None,
        max_workers: int = 1,
    ) -> None:
        if max_workers <= 0:
            raise ValueError("max_workers must be positive.")

        self.tokenizer = tokenizer
        self.model = model
        self.voices = voices
        self.default_voice = default_voice
        self.token_budget = token_budget
        self.normalizer = normalizer or TextNormalizer()
        self.validator = validator or TextValidator()
        self.chunker = chunker or Chunker(tokenizer, token_budget, logger=logger)
        self.stitcher = stitcher or AudioStitcher(sample_rate=model.sample_rate)
        self.max_workers = max_workers
        self._logger = logger

    @property
    def sample_rate(self) -> int:
        return self.model.sample_rate

    def audio_params(self) -> tuple[int, int, int]:
        """(sample rate, channels, bits per sample) of returned audio."""
        return self.sample_rate, 1, 32

    def list_voices(self) -> list[str]:
        return self.voices.voice_ids

    def synthesize(
        self,
        text: str,
        voice: str | None = None,
        speed: float | None = None,
    ) -> np.ndarray:
        return self.synthesize_with_warnings(text, voice, speed).samples

    def synthesize_with_warnings(
        self,
        text: str,
        voice: str | None = None,
        speed: float | None = None,
    ) -> SynthesisResult:
        return self.synthesize_request(
            SynthesisRequest(
                text=text,
                voice=voice,
                speed=1.0 if speed is None else speed,
            )
        )

    def synthesize_request(self, request: SynthesisRequest) -> SynthesisResult:
        text = self.normalizer.normalize(request.text)
        warnings = self.validator.validate(text)
        for warning in warnings:
            self._log(f"Warning: {warning}")

        if not text:
            return SynthesisResult(samples=empty_samples(), warnings=warnings)

        speed = float(request.speed)
        if not speed > 0:
            raise ValueError(f"speed must be positive, got {request.speed!r}.")
        voice = request.voice or self.default_voice
        self.voices.validate_voice(voice)
        num_styles = self.voices.num_styles_for(voice)

        tokens = self._tokenize(text)
        if len(tokens) <= self.token_budget:
            self._log(
                f"Direct synthesis: {len(tokens)} tokens, voice={voice}, speed={speed}"
            )
            samples = self._run_model(
                tokens, voice, speed, style_index(len(tokens), num_styles)
            )
            return SynthesisResult(samples=samples, warnings=warnings)

        chunking = self.chunker.split(text, num_styles)
        warnings.extend(chunking.warnings)
        for warning in chunking.warnings:
            self._log(f"Warning: {warning}")

        self._log(
            f"Chunked synthesis: {len(tokens)} tokens over budget {self.token_budget}, "
            f"{len(chunking.chunks)} chunks, voice={voice}, speed={speed}"
        )

        buffers = self._synthesize_chunks(chunking.chunks, voice, speed)
        samples = self.stitcher.stitch(
            buffers,
            [chunk.text for chunk in chunking.chunks],
        )
        return SynthesisResult(samples=samples, warnings=warnings)

    def _synthesize_chunks(
        self,
        chunks: Sequence[TextChunk],
        voice: str,
        speed: float,
    ) -> list[np.ndarray]:
        if self.max_workers == 1 or len(chunks) <= 1:
            return [self._synthesize_chunk(chunk, voice, speed) for chunk in chunks]

        # map() yields in submission order, whatever order inference finishes in.
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            return list(
                pool.map(lambda chunk: self._synthesize_chunk(chunk, voice, speed), chunks)
            )

    def _synthesize_chunk(self, chunk: TextChunk, voice: str, speed: float) -> np.ndarray:
        # Precondition: chunk.token_count <= token_budget (guaranteed by Chunker).
        tokens = self._tokenize(chunk.text)
        self._log(
            f"Chunk: {len(tokens)} tokens, style index {chunk.style_index}, "
            f"{len(chunk.text)} characters"
        )
        return self._run_model(tokens, voice, speed, chunk.style_index)

    def _tokenize(self, text: str) -> list[int]:
        try:
            return list(self.tokenizer.tokenize(text))
        except ChunkedSpeechError:
            raise
        except Exception as e:
            raise TokenizerError(str(e)) from e

    def _run_model(
        self,
        tokens: Sequence[int],
        voice: str,
        speed: float,
        style_position: int,
    ) -> np.ndarray:
        style = self.voices.resolve(voice, style_position)
        try:
            audio = self.model.synthesize(tokens, style, speed)
        except ChunkedSpeechError:
            raise
        except Exception as e:
            raise ModelInferenceError(str(e)) from e
        return np.asarray(audio, dtype=np.float32).reshape(-1)

    def _log(self, message: str) -> None:
        if self._logger:
            self._logger.log(message, tag="TTS")
