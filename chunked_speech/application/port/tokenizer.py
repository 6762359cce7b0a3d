from __future__ import annotations

from typing import Protocol


class Tokenizer(Protocol):
    def tokenize(self, text: str) -> list[int]:
        """Map normalized text to the padded token ids the model consumes."""
        ...
