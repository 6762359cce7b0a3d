from __future__ import annotations

import string
from dataclasses import dataclass

from chunked_speech.domain.vo.synthesis import SynthesisWarning

DEFAULT_MAX_TEXT_LENGTH = 10_000

_LATIN1_LETTERS = "".join(
    chr(code) for code in range(0xC0, 0x100) if chr(code) not in "×÷"
)

DEFAULT_KNOWN_CHARACTERS: frozenset[str] = frozenset(
    string.ascii_letters + string.digits + string.punctuation + " " + _LATIN1_LETTERS
)


@dataclass(frozen=True)
class TextValidator:
    """Advisory checks over normalized text. Never blocks synthesis."""

    max_length: int = DEFAULT_MAX_TEXT_LENGTH
    known_characters: frozenset[str] = DEFAULT_KNOWN_CHARACTERS
    sample_size: int = 5

    def validate(self, text: str) -> list[SynthesisWarning]:
        if not text:
            return [SynthesisWarning(kind="empty_text", message="empty text")]

        warnings: list[SynthesisWarning] = []

        if len(text) > self.max_length:
            warnings.append(
                SynthesisWarning(
                    kind="text_too_long",
                    message=(
                        f"text is very long ({len(text)} characters, "
                        f"recommended maximum is {self.max_length})"
                    ),
                )
            )

        unknown = self._unknown_characters(text)
        if unknown:
            sample = ", ".join(repr(ch) for ch in unknown[: self.sample_size])
            if len(unknown) > self.sample_size:
                sample += f" and {len(unknown) - self.sample_size} more"
            warnings.append(
                SynthesisWarning(
                    kind="unsupported_characters",
                    message=f"text contains characters outside the vocabulary: {sample}",
                )
            )

        return warnings

    def _unknown_characters(self, text: str) -> list[str]:
        # Distinct offenders in first-seen order.
        seen: dict[str, None] = {}
        for ch in text:
            if ch not in self.known_characters and ch not in seen:
                seen[ch] = None
        return list(seen)
