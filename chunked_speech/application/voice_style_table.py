from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping, Sequence

import numpy as np

from chunked_speech.application.errors import (
    DimensionMismatchError,
    UnknownVoiceError,
    VoiceTableError,
)

VoiceComponent = tuple[str, float]

_SHORT_WEIGHT = re.compile(r"^(?P<voice>.+?)\.(?P<digits>\d+)$")


def style_index(token_count: int, num_styles: int) -> int:
    """Clamp a token count onto the trained style buckets."""
    if num_styles <= 0:
        raise ValueError("num_styles must be positive.")
    return min(max(token_count, 0), num_styles - 1)


def parse_voice_mix(expr: str) -> list[VoiceComponent]:
    """Parse a voice expression into weighted components.

    Accepted forms:
    - `af_sky` (single voice, weight 1.0)
    - `af_sky:0.4+af_bella:0.6`
    - `af_sky.4+af_bella.6` (digits after the dot are a decimal fraction)
    """
    expr = expr.strip()
    if not expr:
        raise ValueError("Voice expression is empty.")

    components: list[VoiceComponent] = []
    for part in expr.split("+"):
        part = part.strip()
        if not part:
            raise ValueError(f"Empty component in voice expression {expr!r}.")

        if ":" in part:
            voice_id, _, raw_weight = part.partition(":")
            try:
                weight = float(raw_weight)
            except ValueError as exc:
                raise ValueError(
                    f"Invalid weight {raw_weight!r} in voice expression {expr!r}."
                ) from exc
            components.append((voice_id.strip(), weight))
            continue

        match = _SHORT_WEIGHT.match(part)
        if match and "+" in expr:
            components.append((match["voice"], float(f"0.{match['digits']}")))
        else:
            components.append((part, 1.0))

    return components


class VoiceStyleTable:
    """Read-only voice id -> style matrix mapping.

    Row `i` of a style matrix is the style trained for utterances of `i`
    tokens; lookups past the last row saturate at it.
    """

    def __init__(self, voices: Mapping[str, np.ndarray]):
        frozen: dict[str, np.ndarray] = {}
        for voice_id, raw in voices.items():
            styles = np.array(raw, dtype=np.float32)
            if styles.ndim == 3 and styles.shape[1] == 1:
                # Kokoro ships (N, 1, D) packs.
                styles = styles.reshape(styles.shape[0], styles.shape[2])
            if styles.ndim != 2 or styles.shape[0] == 0 or styles.shape[1] == 0:
                raise VoiceTableError(
                    f"Voice {voice_id!r} must be a non-empty (styles, dim) matrix; "
                    f"got shape={styles.shape!r}"
                )
            styles.setflags(write=False)
            frozen[voice_id] = styles

        self._voices: Mapping[str, np.ndarray] = MappingProxyType(frozen)

    @property
    def voice_ids(self) -> list[str]:
        return sorted(self._voices)

    def __contains__(self, voice_id: object) -> bool:
        return voice_id in self._voices

    def __len__(self) -> int:
        return len(self._voices)

    def styles(self, voice_id: str) -> np.ndarray:
        try:
            return self._voices[voice_id]
        except KeyError:
            raise UnknownVoiceError(voice_id) from None

    def num_styles(self, voice_id: str) -> int:
        return int(self.styles(voice_id).shape[0])

    def dimension(self, voice_id: str) -> int:
        return int(self.styles(voice_id).shape[1])

    def style_for(self, voice_id: str, token_count: int) -> np.ndarray:
        styles = self.styles(voice_id)
        return styles[style_index(token_count, styles.shape[0])]

    def blend(
        self,
        components: Sequence[VoiceComponent],
        token_count: int,
    ) -> np.ndarray:
        """Weighted elementwise sum of each component's style at `token_count`.

        Weights are used as given; normalizing them is the caller's choice.
        """
        if not components:
            raise ValueError("At least one voice is required for blending.")

        vectors = [
            (self.style_for(voice_id, token_count), weight)
            for voice_id, weight in components
        ]

        dims = {vector.shape[0] for vector, _ in vectors}
        if len(dims) != 1:
            described = ", ".join(
                f"{voice_id}={vector.shape[0]}"
                for (voice_id, _), (vector, _) in zip(components, vectors)
            )
            raise DimensionMismatchError(
                f"Cannot blend style vectors of different lengths: {described}"
            )

        blended = np.zeros(dims.pop(), dtype=np.float32)
        for vector, weight in vectors:
            blended += np.float32(weight) * vector
        return blended

    def resolve(self, voice: str, token_count: int) -> np.ndarray:
        """Style for a single voice id or a `+`-joined voice mix."""
        if voice in self._voices:
            return self.style_for(voice, token_count)

        components = parse_voice_mix(voice)
        if len(components) == 1 and components[0][1] == 1.0:
            return self.style_for(components[0][0], token_count)
        return self.blend(components, token_count)

    def num_styles_for(self, voice: str) -> int:
        """Style count used to tag chunks; the smallest table wins for mixes."""
        if voice in self._voices:
            return self.num_styles(voice)
        return min(self.num_styles(voice_id) for voice_id, _ in parse_voice_mix(voice))

    def validate_voice(self, voice: str) -> None:
        """Raise UnknownVoiceError unless every voice in `voice` is known."""
        if voice in self._voices:
            return
        for voice_id, _ in parse_voice_mix(voice):
            if voice_id not in self._voices:
                raise UnknownVoiceError(voice_id)
