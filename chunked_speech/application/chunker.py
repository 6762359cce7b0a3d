from __future__ import annotations

import re
from typing import NamedTuple

from chunked_speech.application.errors import ChunkedSpeechError, TokenizerError
from chunked_speech.application.port.tokenizer import Tokenizer
from chunked_speech.application.voice_style_table import style_index
from chunked_speech.domain.vo.synthesis import SynthesisWarning
from chunked_speech.domain.vo.text_chunk import TextChunk
from chunked_speech.utils.logger import Logger

DEFAULT_SHORT_TEXT_THRESHOLD = 50

# Split on the whitespace that follows a run of terminators, keeping the
# terminators with their sentence ("Wait... what?!" stays intact).
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


class ChunkingResult(NamedTuple):
    chunks: list[TextChunk]
    warnings: list[SynthesisWarning]


class Chunker:
    """Split normalized text into pieces that each fit the token budget.

    Sentences are packed greedily first, over-long sentences fall back to
    word packing, and a single word that still does not fit is truncated
    with a warning.
    """

    def __init__(
        self,
        tokenizer: Tokenizer,
        token_budget: int,
        *,
        short_text_threshold: int = DEFAULT_SHORT_TEXT_THRESHOLD,
        logger: Logger | None = None,
    ) -> None:
        if token_budget <= 0:
            raise ValueError("token_budget must be positive.")
        self.tokenizer = tokenizer
        self.token_budget = token_budget
        self.short_text_threshold = short_text_threshold
        self._logger = logger

    def split(self, text: str, num_styles: int) -> ChunkingResult:
        text = text.strip()
        if not text:
            return ChunkingResult(chunks=[], warnings=[])

        if len(text) < self.short_text_threshold:
            count = self._count(text)
            if count <= self.token_budget:
                return ChunkingResult(
                    chunks=[self._chunk(text, count, num_styles)],
                    warnings=[],
                )

        warnings: list[SynthesisWarning] = []
        pieces: list[tuple[str, int]] = []
        for sentence in split_sentences(text):
            count = self._count(sentence)
            if count <= self.token_budget:
                pieces.append((sentence, count))
            else:
                pieces.extend(self._split_words(sentence, warnings))

        chunks = [
            self._chunk(piece, count, num_styles)
            for piece, count in self._pack(pieces)
        ]
        self._log(f"Split {len(text)} characters into {len(chunks)} chunks.")
        return ChunkingResult(chunks=chunks, warnings=warnings)

    def _pack(self, pieces: list[tuple[str, int]]) -> list[tuple[str, int]]:
        """Greedily join consecutive pieces while the joined text fits."""
        packed: list[tuple[str, int]] = []
        current: str | None = None
        current_count = 0

        for piece, count in pieces:
            if current is None:
                current, current_count = piece, count
                continue

            candidate = f"{current} {piece}"
            candidate_count = self._count(candidate)
            if candidate_count <= self.token_budget:
                current, current_count = candidate, candidate_count
            else:
                packed.append((current, current_count))
                current, current_count = piece, count

        if current is not None:
            packed.append((current, current_count))
        return packed

    def _split_words(
        self,
        sentence: str,
        warnings: list[SynthesisWarning],
    ) -> list[tuple[str, int]]:
        pieces: list[tuple[str, int]] = []
        for word in sentence.split():
            count = self._count(word)
            if count <= self.token_budget:
                pieces.append((word, count))
                continue

            truncated, truncated_count = self._truncate(word)
            warnings.append(
                SynthesisWarning(
                    kind="truncated_word",
                    message=(
                        f"truncated word of {len(word)} characters "
                        f"({count} tokens) to {len(truncated)} characters "
                        f"to fit the {self.token_budget}-token limit: "
                        f"{word[:20]!r}..."
                    ),
                )
            )
            self._log(
                f"Truncated a {count}-token word to {truncated_count} tokens."
            )
            if truncated:
                pieces.append((truncated, truncated_count))

        return self._pack(pieces)

    def _truncate(self, word: str) -> tuple[str, int]:
        """Longest prefix of `word` that fits the budget (binary search)."""
        low, high = 0, len(word)
        best, best_count = "", 0
        while low < high:
            middle = (low + high + 1) // 2
            prefix = word[:middle]
            count = self._count(prefix)
            if count <= self.token_budget:
                best, best_count = prefix, count
                low = middle
            else:
                high = middle - 1
        return best, best_count

    def _chunk(self, text: str, count: int, num_styles: int) -> TextChunk:
        return TextChunk(
            text=text,
            token_count=count,
            style_index=style_index(count, num_styles),
        )

    def _count(self, text: str) -> int:
        try:
            return len(self.tokenizer.tokenize(text))
        except ChunkedSpeechError:
            raise
        except Exception as e:
            raise TokenizerError(str(e)) from e

    def _log(self, message: str) -> None:
        if self._logger:
            self._logger.log(message, tag="Chunker")


def split_sentences(text: str) -> list[str]:
    return [sentence for sentence in _SENTENCE_BOUNDARY.split(text) if sentence]
