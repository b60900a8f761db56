"""Serialized text console shared by all tasks."""

from __future__ import annotations

import sys
import threading
from typing import TextIO

IO_BUFFER_SIZE = 1024


class Console:
    """Writes whole strings to ``output`` under a lock; reads from ``source``."""

    def __init__(self, output: TextIO | None = None, source: TextIO | None = None) -> None:
        self.output = sys.stdout if output is None else output
        self.source = sys.stdin if source is None else source
        self._lock = threading.RLock()

    def _write(self, text: str) -> None:
        with self._lock:
            self.output.write(text)
            self.output.flush()

    def put_str(self, text: str) -> None:
        """Write a string in one piece."""
        if not isinstance(text, str):
            raise TypeError("put_str takes a string")
        self._write(text)

    def put_int(self, n: int) -> None:
        """Write an integer in decimal."""
        if isinstance(n, bool) or not isinstance(n, int):
            raise TypeError("put_int takes an integer")
        self._write(f"{n:d}")

    def put_char(self, ch: str) -> None:
        """Write a single character."""
        if not isinstance(ch, str) or len(ch) != 1:
            raise ValueError("put_char takes a single character")
        self._write(ch)

    def get_str(self, size: int = IO_BUFFER_SIZE) -> str:
        """Read up to ``size`` characters from the input."""
        if size < 0:
            raise ValueError("size must not be negative")
        with self._lock:
            return self.source.read(size)