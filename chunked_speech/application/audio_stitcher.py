from __future__ import annotations

from typing import Sequence

import numpy as np

from chunked_speech.config import GapConfig

SENTENCE_TERMINATORS = ".!?"
CLAUSE_TERMINATORS = ",;:"


class AudioStitcher:
    def __init__(self, *, sample_rate: int, gaps: GapConfig | None = None):
        if sample_rate <= 0:
            raise ValueError("sample_rate must be positive.")
        self.sample_rate = sample_rate
        self.gaps = gaps or GapConfig()

    def gap_samples(self, boundary_text: str | None = None) -> int:
        """Silence length after a chunk ending with `boundary_text`."""
        milliseconds = self.gaps.default_ms
        tail = (boundary_text or "").rstrip()
        if tail:
            last = tail[-1]
            if last in SENTENCE_TERMINATORS:
                milliseconds = self.gaps.sentence_ms
            elif last in CLAUSE_TERMINATORS:
                milliseconds = self.gaps.clause_ms
        return int(round(self.sample_rate * milliseconds / 1000.0))

    def stitch(
        self,
        buffers: Sequence[np.ndarray],
        boundaries: Sequence[str] | None = None,
    ) -> np.ndarray:
        """Concatenate chunk audio in order with silence between chunks.

        `boundaries[i]` is the text of chunk `i`; its final punctuation picks
        the pause that follows it.
        """
        if boundaries is not None and len(boundaries) != len(buffers):
            raise ValueError(
                f"Expected {len(buffers)} boundaries, got {len(boundaries)}."
            )

        parts: list[np.ndarray] = []
        for i, buffer in enumerate(buffers):
            if i > 0:
                previous = boundaries[i - 1] if boundaries is not None else None
                parts.append(np.zeros(self.gap_samples(previous), dtype=np.float32))
            parts.append(np.asarray(buffer, dtype=np.float32).reshape(-1))

        if not parts:
            return np.zeros(0, dtype=np.float32)
        return np.concatenate(parts)
