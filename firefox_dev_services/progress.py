"""Terminal spinner shown while an archive downloads."""
from __future__ import annotations

import sys
import threading
from typing import TextIO

_HIDE_CURSOR = "\033[?25l"
_SHOW_CURSOR = "\033[?25h"
_CLEAR_LINE = "\r\033[K"
_FRAMES = "|/-\\"


class ProgressSpinner:
    """Background spinner bound to a ``with`` block.

    The drawing thread is stopped and joined, and the cursor restored, when the
    block exits for any reason. On a non-terminal stream it draws nothing.
    """

    def __init__(
        self,
        label: str,
        *,
        stream: TextIO | None = None,
        interval: float = 0.1,
        enabled: bool | None = None,
    ) -> None:
        self._label = label
        self._stream = stream or sys.stdout
        self._interval = interval
        if enabled is None:
            enabled = bool(getattr(self._stream, "isatty", lambda: False)())
        self._enabled = enabled
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._bytes = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def update(self, downloaded_bytes: int) -> None:
        with self._lock:
            self._bytes = downloaded_bytes

    def start(self) -> None:
        if not self._enabled or self._thread is not None:
            return
        self._stop_event.clear()
        self._stream.write(_HIDE_CURSOR)
        self._stream.flush()
        self._thread = threading.Thread(target=self._spin, name="download-spinner", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join()
        self._thread = None
        self._stream.write(_CLEAR_LINE + _SHOW_CURSOR)
        self._stream.flush()

    def __enter__(self) -> "ProgressSpinner":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _spin(self) -> None:
        index = 0
        while not self._stop_event.wait(self._interval):
            with self._lock:
                downloaded = self._bytes
            frame = _FRAMES[index % len(_FRAMES)]
            self._stream.write(f"\r{self._label} {frame} {format_size(downloaded)}")
            self._stream.flush()
            index += 1


def format_size(value: float) -> str:
    size = max(value, 0.0)
    units = ["B", "KB", "MB", "GB", "TB"]
    for unit in units:
        if size < 1024 or unit == units[-1]:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} B"
