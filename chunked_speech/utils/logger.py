from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable


class Logger:
    """Buffered, in-process log sink.

    Lines are kept in memory so a late subscriber (for example a UI or a test)
    still sees everything that happened before it attached.
    """

    def __init__(
        self,
        *,
        log_dir: Path = Path("logs"),
        on_emit: Callable[[str], None] | None = None,
    ):
        self.log_dir = log_dir
        self._on_emit: Callable[[str], None] | None = None

        self._lines: list[str] = []
        self._started_at = datetime.now()

        self.on_emit = on_emit

    @property
    def on_emit(self) -> Callable[[str], None] | None:
        return self._on_emit

    @on_emit.setter
    def on_emit(self, callback: Callable[[str], None] | None) -> None:
        # Only replay buffered lines to the first subscriber.
        should_replay = self._on_emit is None and callback is not None
        self._on_emit = callback

        if should_replay:
            for line in self._lines:
                callback(line)

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def log(self, message: str, *, tag: str | None = None) -> None:
        if not message:
            return

        line = f"[{tag}] {message}" if tag else message
        self._lines.append(line)

        if self._on_emit:
            self._on_emit(line)

    def save(self) -> Path:
        self.log_dir.mkdir(parents=True, exist_ok=True)

        filename = self._started_at.strftime("tts_%Y-%m-%d_%H-%M-%S.txt")
        path = self.log_dir / filename

        path.write_text("\n".join(self._lines), encoding="utf-8")
        return path
