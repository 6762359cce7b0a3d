from __future__ import annotations

from pathlib import Path
from threading import Lock

import numpy as np

from chunked_speech.application.errors import VoiceTableError
from chunked_speech.application.voice_style_table import VoiceStyleTable
from chunked_speech.utils.logger import Logger

DEFAULT_STYLE_DIM = 256

# Process-wide cache: (resolved source path, style dim) -> loaded table.
_table_cache: dict[tuple[Path, int], VoiceStyleTable] = {}
_table_cache_lock = Lock()


def load_voice_table(
    path: str | Path,
    *,
    style_dim: int = DEFAULT_STYLE_DIM,
    logger: Logger | None = None,
) -> VoiceStyleTable:
    """Load a voice table from an `.npz` archive or a directory of voices.

    A directory may hold `<voice>.npy` arrays or raw little-endian float32
    `<voice>.bin` files; both are reshaped to `(-1, style_dim)`.
    """
    source = Path(path)
    if not source.exists():
        raise VoiceTableError(f"Voice table not found: {source}")

    if source.is_dir():
        voices = _load_directory(source, style_dim=style_dim)
    elif source.suffix == ".npz":
        voices = _load_npz(source, style_dim=style_dim)
    else:
        raise VoiceTableError(
            f"Unsupported voice table format: {source.name} (expected .npz or a directory)"
        )

    if not voices:
        raise VoiceTableError(f"Voice table is empty: {source}")

    table = VoiceStyleTable(voices)
    if logger:
        logger.log(
            f"Loaded {len(table)} voices from {source}",
            tag="Voices",
        )
    return table


def load_voice_table_cached(
    path: str | Path,
    *,
    style_dim: int = DEFAULT_STYLE_DIM,
    logger: Logger | None = None,
) -> VoiceStyleTable:
    source = Path(path).resolve()
    key = (source, style_dim)
    with _table_cache_lock:
        table = _table_cache.get(key)
        if table is None:
            table = load_voice_table(source, style_dim=style_dim, logger=logger)
            _table_cache[key] = table
        return table


def clear_voice_table_cache() -> None:
    with _table_cache_lock:
        _table_cache.clear()


def _load_npz(source: Path, *, style_dim: int) -> dict[str, np.ndarray]:
    try:
        with np.load(source) as archive:
            return {
                name: _as_style_matrix(archive[name], style_dim=style_dim, name=name)
                for name in archive.files
            }
    except (OSError, ValueError) as e:
        raise VoiceTableError(f"Failed to read voice archive {source}: {e}") from e


def _load_directory(source: Path, *, style_dim: int) -> dict[str, np.ndarray]:
    voices: dict[str, np.ndarray] = {}
    for entry in sorted(source.iterdir()):
        try:
            if entry.suffix == ".npy":
                raw = np.load(entry)
            elif entry.suffix == ".bin":
                raw = np.fromfile(entry, dtype="<f4")
            else:
                continue
        except (OSError, ValueError) as e:
            raise VoiceTableError(f"Failed to read voice file {entry}: {e}") from e
        voices[entry.stem] = _as_style_matrix(raw, style_dim=style_dim, name=entry.stem)
    return voices


def _as_style_matrix(raw: np.ndarray, *, style_dim: int, name: str) -> np.ndarray:
    arr = np.asarray(raw, dtype=np.float32)
    if arr.ndim >= 2 and arr.shape[-1] != style_dim:
        raise VoiceTableError(
            f"Voice {name!r} has style dimension {arr.shape[-1]}, expected {style_dim}."
        )
    if arr.size == 0 or arr.size % style_dim != 0:
        raise VoiceTableError(
            f"Voice {name!r} has {arr.size} values, not a multiple of {style_dim}."
        )
    return arr.reshape(-1, style_dim)
