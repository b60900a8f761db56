"""Hierarchical timing wheel driven by a millisecond tick."""

from __future__ import annotations

import signal
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

CONFIG_BASE_SMALL = False
TVN_BITS = 4 if CONFIG_BASE_SMALL else 6
TVR_BITS = 6 if CONFIG_BASE_SMALL else 8
TVN_SIZE = 1 << TVN_BITS
TVR_SIZE = 1 << TVR_BITS
TVN_MASK = TVN_SIZE - 1
TVR_MASK = TVR_SIZE - 1
MAX_TVAL = (1 << (TVR_BITS + 4 * TVN_BITS)) - 1

DEFAULT_GRANULARITY = 10
_U32 = 0xFFFFFFFF


def time_after(a: int, b: int) -> bool:
    """True when time ``a`` is after time ``b``."""
    return b - a < 0


def time_after_eq(a: int, b: int) -> bool:
    """True when time ``a`` is at or after time ``b``."""
    return a - b >= 0


def ticker_interval(n_msecs: int) -> tuple[int, int]:
    """Split a millisecond interval into whole seconds and microseconds."""
    seconds, millis = divmod(n_msecs, 1000)
    return seconds, millis * 1000


def set_ticker(n_msecs: int) -> tuple[float, float]:
    """Arm the real-time interval timer; returns the previous (delay, interval)."""
    seconds, micros = ticker_interval(n_msecs)
    interval = seconds + micros / 1_000_000
    return signal.setitimer(signal.ITIMER_REAL, interval, interval)


def monotonic_jiffies() -> int:
    """Monotonic clock in milliseconds, truncated to 32 bits."""
    return (time.monotonic_ns() // 1_000_000) & _U32


@dataclass(eq=False)
class Timer:
    """A scheduled callback; ``period`` of 0 means it fires once."""

    callback: Callable[[Any], Any]
    param: Any
    expires: int
    period: int
    _slot: list | None = field(default=None, repr=False)

    @property
    def pending(self) -> bool:
        return self._slot is not None


class TimerWheel:
    """Five-level timing wheel; ``run`` advances it to the given time."""

    def __init__(
        self, jiffies: int | None = None, granularity: int = DEFAULT_GRANULARITY
    ) -> None:
        if granularity < 1:
            raise ValueError("granularity must be positive")
        self.jiffies = (monotonic_jiffies() if jiffies is None else jiffies) & _U32
        self.granularity = granularity
        self.closed = False
        self._lock = threading.RLock()
        self._levels: list[list[list[Timer]]] = [
            [[] for _ in range(TVR_SIZE)],
            *([[] for _ in range(TVN_SIZE)] for _ in range(4)),
        ]

    def _add(self, timer: Timer) -> None:
        expires = timer.expires
        due = ((expires - self.jiffies) & _U32) // self.granularity
        if due < TVR_SIZE:
            slot = self._levels[0][expires & TVR_MASK]
        elif due < 1 << (TVR_BITS + TVN_BITS):
            slot = self._levels[1][(expires >> TVR_BITS) & TVN_MASK]
        elif due < 1 << (TVR_BITS + 2 * TVN_BITS):
            slot = self._levels[2][(expires >> (TVR_BITS + TVN_BITS)) & TVN_MASK]
        elif due < 1 << (TVR_BITS + 3 * TVN_BITS):
            slot = self._levels[3][(expires >> (TVR_BITS + 2 * TVN_BITS)) & TVN_MASK]
        else:
            slot = self._levels[4][(expires >> (TVR_BITS + 3 * TVN_BITS)) & TVN_MASK]
        slot.append(timer)
        timer._slot = slot

    def _cascade(self, level: int, idx: int) -> int:
        slot = self._levels[level][idx]
        moving = list(slot)
        slot.clear()
        for timer in moving:
            self._add(timer)
        return idx

    def _index(self, n: int) -> int:
        return (self.jiffies >> (TVR_BITS + n * TVN_BITS)) & TVN_MASK

    def _require_open(self) -> None:
        if self.closed:
            raise RuntimeError("timer wheel is closed")

    def create_timer(
        self,
        callback: Callable[[Any], Any],
        param: Any = None,
        due_time: int = 0,
        period: int = 0,
    ) -> Timer:
        """Schedule ``callback(param)`` ``due_time`` ms from now."""
        if callback is None:
            raise TypeError("callback is required")
        self._require_open()
        with self._lock:
            timer = Timer(
                callback, param, (self.jiffies + due_time) & _U32, period & _U32
            )
            self._add(timer)
        return timer

    def delete_timer(self, timer: Timer) -> None:
        """Remove a pending timer from the wheel."""
        self._require_open()
        if timer is None:
            raise TypeError("timer is required")
        with self._lock:
            if timer._slot is None:
                raise ValueError("timer is not pending")
            timer._slot.remove(timer)
            timer._slot = None

    def run(self, now: int | None = None) -> None:
        """Fire every timer due up to and including ``now``."""
        self._require_open()
        now = monotonic_jiffies() if now is None else now
        with self._lock:
            while time_after_eq(now, self.jiffies):
                idx = self.jiffies & TVR_MASK
                if (
                    not idx
                    and not self._cascade(1, self._index(0))
                    and not self._cascade(2, self._index(1))
                    and not self._cascade(3, self._index(2))
                ):
                    self._cascade(4, self._index(3))
                slot = self._levels[0][idx]
                expired = list(slot)
                slot.clear()
                for timer in expired:
                    timer._slot = None
                for timer in expired:
                    if timer not in expired or self.closed:
                        break
                    timer.callback(timer.param)
                    if timer.period != 0 and timer._slot is None and not self.closed:
                        timer.expires = (self.jiffies + timer.period) & _U32
                        self._add(timer)
                self.jiffies = (self.jiffies + 1) & _U32
                if self.closed:
                    break

    def pending(self) -> list[Timer]:
        """All timers currently on the wheel."""
        with self._lock:
            return [
                timer for level in self._levels for slot in level for timer in slot
            ]

    def close(self) -> None:
        """Drop every timer and refuse further use."""
        with self._lock:
            for level in self._levels:
                for slot in level:
                    for timer in slot:
                        timer._slot = None
                    slot.clear()
            self.closed = True