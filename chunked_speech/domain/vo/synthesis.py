from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, NamedTuple

import numpy as np


WarningKind = Literal[
    "empty_text",
    "text_too_long",
    "unsupported_characters",
    "truncated_word",
]


@dataclass(frozen=True)
class SynthesisWarning:
    kind: WarningKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class SynthesisRequest:
    text: str
    voice: str | None = None
    speed: float = 1.0


class SynthesisResult(NamedTuple):
    samples: np.ndarray
    warnings: list[SynthesisWarning]


def empty_samples() -> np.ndarray:
    return np.zeros(0, dtype=np.float32)
