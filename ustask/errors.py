"""Failure reporting for the scheduler's internal consistency checks."""

from __future__ import annotations

import inspect


class SchedulerPanic(RuntimeError):
    """Raised when an internal invariant of the scheduler does not hold."""

    def __init__(
        self,
        condition: str,
        filename: str | None = None,
        line: int | None = None,
        function: str | None = None,
    ) -> None:
        self.condition = condition
        self.filename = filename
        self.line = line
        self.function = function
        super().__init__(self._describe())

    def _describe(self) -> str:
        parts = [f"condition: {self.condition}"]
        if self.filename is not None:
            parts.append(f"filename: {self.filename}")
        if self.line is not None:
            parts.append(f"line: {self.line}")
        if self.function is not None:
            parts.append(f"function: {self.function}")
        return ", ".join(parts)


def check(condition: object, message: str) -> None:
    """Raise SchedulerPanic naming the caller when ``condition`` is false."""
    if condition:
        return
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    try:
        if caller is None:
            raise SchedulerPanic(message)
        raise SchedulerPanic(
            message,
            filename=caller.f_code.co_filename,
            line=caller.f_lineno,
            function=caller.f_code.co_name,
        )
    finally:
        del frame, caller