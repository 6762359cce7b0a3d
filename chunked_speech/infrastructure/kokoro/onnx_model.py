from __future__ import annotations

from threading import Lock
from typing import TYPE_CHECKING, Sequence

import numpy as np

from chunked_speech.application.errors import ModelInferenceError
from chunked_speech.config import DEFAULT_SAMPLE_RATE
from chunked_speech.utils.logger import Logger

if TYPE_CHECKING:
    from onnxruntime import InferenceSession

_TOKEN_INPUTS = ("tokens", "input_ids")
_STYLE_INPUTS = ("style", "ref_s")
_SPEED_INPUTS = ("speed",)


class OnnxSynthesisModel:
    """Kokoro-style ONNX graph: (tokens, style, speed) -> float32 audio."""

    def __init__(
        self,
        *,
        model_path: str,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        providers: Sequence[str] = ("CPUExecutionProvider",),
        session: InferenceSession | None = None,
        logger: Logger | None = None,
    ) -> None:
        self.model_path = model_path
        self.sample_rate = sample_rate
        self.providers = list(providers)
        self._session = session
        self._lock = Lock()
        self._logger = logger

    def synthesize(
        self,
        tokens: Sequence[int],
        style: np.ndarray,
        speed: float,
    ) -> np.ndarray:
        session = self._ensure_session()
        input_names = [node.name for node in session.get_inputs()]

        token_name = _pick(input_names, _TOKEN_INPUTS)
        style_name = _pick(input_names, _STYLE_INPUTS)
        speed_name = _pick(input_names, _SPEED_INPUTS)
        if token_name is None or style_name is None or speed_name is None:
            raise ModelInferenceError(
                f"Unexpected model inputs {input_names!r}; "
                "expected token, style and speed inputs."
            )

        # The graph wants a batch of one for tokens and style.
        inputs = {
            token_name: np.asarray([list(tokens)], dtype=np.int64),
            style_name: np.asarray(style, dtype=np.float32).reshape(1, -1),
            speed_name: np.asarray([speed], dtype=np.float32),
        }

        try:
            outputs = session.run(None, inputs)
        except Exception as e:
            raise ModelInferenceError(str(e)) from e

        if not outputs:
            raise ModelInferenceError("Model returned no outputs.")
        return np.asarray(outputs[0], dtype=np.float32).reshape(-1)

    def _ensure_session(self) -> InferenceSession:
        with self._lock:
            if self._session is not None:
                return self._session

            try:
                import onnxruntime
            except ModuleNotFoundError as e:
                raise ModelInferenceError(
                    "The ONNX model requires 'onnxruntime'. "
                    "Install it with: pip install 'chunked-speech[kokoro]'"
                ) from e

            self._log(f"Loading ONNX model: {self.model_path} providers={self.providers}")
            try:
                self._session = onnxruntime.InferenceSession(
                    self.model_path,
                    providers=self.providers,
                )
            except Exception as e:
                raise ModelInferenceError(
                    f"Failed to load ONNX model from {self.model_path}: {e}"
                ) from e
            self._log(f"ONNX model loaded: providers={self._session.get_providers()}")
            return self._session

    def _log(self, message: str) -> None:
        if self._logger:
            self._logger.log(message, tag="Model")


def _pick(names: Sequence[str], candidates: Sequence[str]) -> str | None:
    for candidate in candidates:
        if candidate in names:
            return candidate
    return None
