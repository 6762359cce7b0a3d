from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Sequence

if TYPE_CHECKING:
    import numpy as np

    AudioArray = np.ndarray
else:
    AudioArray = Any


class SynthesisModel(Protocol):
    sample_rate: int

    def synthesize(
        self,
        tokens: Sequence[int],
        style: AudioArray,
        speed: float,
    ) -> AudioArray:
        """Run one inference and return float32 mono PCM at `sample_rate`."""
        ...
