"""Bounded ring buffer shared by one producer task and one consumer task."""

from __future__ import annotations

from .errors import check
from .task import Scheduler, Task, TaskStatus

DEFAULT_SIZE = 64


class IOQueue:
    """Character ring buffer; one slot stays empty to tell full from empty.

    A task that finds the queue empty (or full) is parked as the consumer
    (or producer) and ``getchar`` returns None (``putchar`` returns False);
    it is woken by the other side and then retries.
    """

    def __init__(self, scheduler: Scheduler, size: int = DEFAULT_SIZE) -> None:
        if size < 2:
            raise ValueError("queue size must be at least 2")
        self._scheduler = scheduler
        self.size = size
        self._buf = [""] * size
        self.head = 0
        self.tail = 0
        self.producer: Task | None = None
        self.consumer: Task | None = None

    def _next_pos(self, pos: int) -> int:
        return (pos + 1) % self.size

    def full(self) -> bool:
        return self._next_pos(self.head) == self.tail

    def empty(self) -> bool:
        return self.head == self.tail

    def _park(self, waiter: Task | None) -> Task:
        check(waiter is None, "*waiter == NULL")
        task = self._scheduler.current
        self._scheduler.block(TaskStatus.BLOCKED)
        return task

    def getchar(self) -> str | None:
        """Take the oldest character, or park the current task and return None."""
        if self.empty():
            self.consumer = self._park(self.consumer)
            return None
        byte = self._buf[self.tail]
        self.tail = self._next_pos(self.tail)
        if self.producer is not None:
            self._scheduler.unblock(self.producer)
            self.producer = None
        return byte

    def putchar(self, byte: str) -> bool:
        """Store one character, or park the current task and return False."""
        if not isinstance(byte, str) or len(byte) != 1:
            raise ValueError("putchar takes a single character")
        if self.full():
            self.producer = self._park(self.producer)
            return False
        self._buf[self.head] = byte
        self.head = self._next_pos(self.head)
        if self.consumer is not None:
            self._scheduler.unblock(self.consumer)
            self.consumer = None
        return True

    def __len__(self) -> int:
        if self.head >= self.tail:
            return self.head - self.tail
        return self.size - (self.tail - self.head)