from __future__ import annotations

import json
from pathlib import Path
from threading import Lock
from typing import TYPE_CHECKING, Callable, Mapping

from chunked_speech.application.errors import TokenizerError
from chunked_speech.utils.logger import Logger

if TYPE_CHECKING:
    from phonemizer.backend import EspeakBackend

PAD_TOKEN_ID = 0

Phonemize = Callable[[str], str]

# libespeak-ng keeps process-wide state; one phonemize call at a time.
_espeak_lock = Lock()


class EspeakPhonemizer:
    """Text -> IPA string through espeak-ng (via the `phonemizer` package)."""

    def __init__(self, *, language: str = "en-us", logger: Logger | None = None) -> None:
        self.language = language
        self._logger = logger
        self._backend: EspeakBackend | None = None
        self._lock = Lock()

    def __call__(self, text: str) -> str:
        backend = self._ensure_backend()
        with _espeak_lock:
            try:
                phonemes = backend.phonemize([text], strip=True, njobs=1)
            except Exception as e:
                raise TokenizerError(f"Phonemization failed: {e}") from e
        return phonemes[0] if phonemes else ""

    def _ensure_backend(self) -> EspeakBackend:
        with self._lock:
            if self._backend is not None:
                return self._backend

            try:
                from phonemizer.backend import EspeakBackend as _EspeakBackend
            except ModuleNotFoundError as e:
                raise TokenizerError(
                    "The espeak phonemizer requires the 'phonemizer' package. "
                    "Install it with: pip install 'chunked-speech[kokoro]'"
                ) from e

            try:
                self._backend = _EspeakBackend(
                    language=self.language,
                    preserve_punctuation=True,
                    with_stress=True,
                    language_switch="remove-flags",
                )
            except RuntimeError as e:
                raise TokenizerError(
                    "Failed to initialize espeak. Make sure espeak-ng is installed "
                    f"and discoverable. Original error: {e}"
                ) from e

            if self._logger:
                self._logger.log(f"espeak backend ready: language={self.language}", tag="Tokenizer")
            return self._backend


class VocabTokenizer:
    """Phonemize text, map phoneme symbols to ids and pad both ends.

    The leading pad keeps the first real token away from position 0, so very
    short phrases such as "It's 21:22" keep every leading phoneme.
    """

    def __init__(
        self,
        *,
        vocab: Mapping[str, int],
        phonemize: Phonemize,
        pad_id: int = PAD_TOKEN_ID,
    ) -> None:
        if not vocab:
            raise TokenizerError("Vocabulary is empty.")
        self.vocab = dict(vocab)
        self.phonemize = phonemize
        self.pad_id = pad_id

    @staticmethod
    def from_config_file(path: str | Path, phonemize: Phonemize) -> "VocabTokenizer":
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise TokenizerError(f"Failed to read vocabulary from {path}: {e}") from e

        vocab = raw.get("vocab", raw) if isinstance(raw, dict) else None
        if not isinstance(vocab, dict):
            raise TokenizerError(f"No vocabulary mapping found in {path}.")
        return VocabTokenizer(
            vocab={symbol: int(token_id) for symbol, token_id in vocab.items()},
            phonemize=phonemize,
        )

    def tokenize(self, text: str) -> list[int]:
        phonemes = self.phonemize(text)
        ids = [self.vocab[symbol] for symbol in phonemes if symbol in self.vocab]
        return [self.pad_id, *ids, self.pad_id]
