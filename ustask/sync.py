"""Binary semaphores and re-entrant locks for scheduler tasks.

Waiting never spins: a task that cannot proceed is parked on the waiter
queue and the scheduler switches away.  ``down`` and ``acquire`` then return
False, and the task retries once it runs again.
"""

from __future__ import annotations

from collections import deque

from .errors import check
from .task import Scheduler, Task, TaskStatus


class Semaphore:
    """Binary semaphore whose waiters are scheduler tasks."""

    def __init__(self, scheduler: Scheduler, value: int = 1) -> None:
        if value not in (0, 1):
            raise ValueError("a binary semaphore starts at 0 or 1")
        self._scheduler = scheduler
        self.value = value
        self.waiters: deque[Task] = deque()

    def down(self) -> bool:
        """Take the semaphore; park the current task and return False if taken."""
        if self.value == 0:
            task = self._scheduler.current
            check(
                task not in self.waiters,
                "sema_down: thread block has been in waiters_list",
            )
            self.waiters.append(task)
            self._scheduler.block(TaskStatus.BLOCKED)
            return False
        self.value -= 1
        check(self.value == 0, "psema->value == 0")
        return True

    def up(self) -> None:
        """Give the semaphore back, waking the longest waiter."""
        check(self.value == 0, "psema->value == 0")
        if self.waiters:
            self._scheduler.unblock(self.waiters.popleft())
        self.value += 1
        check(self.value == 1, "psema->value == 1")


class Lock:
    """Lock that its holder may acquire again without waiting."""

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self.holder: Task | None = None
        self.holder_repeat_nr = 0
        self.semaphore = Semaphore(scheduler, 1)

    @property
    def locked(self) -> bool:
        return self.holder is not None

    def acquire(self) -> bool:
        """Acquire for the current task; False if it had to be parked."""
        current = self._scheduler.current
        if self.holder is not current:
            if not self.semaphore.down():
                return False
            self.holder = current
            check(self.holder_repeat_nr == 0, "plock->holder_repeat_nr == 0")
            self.holder_repeat_nr = 1
        else:
            self.holder_repeat_nr += 1
        return True

    def release(self) -> None:
        """Release one level of holding by the current task."""
        check(self.holder is self._scheduler.current, "plock->holder == current_task")
        if self.holder_repeat_nr > 1:
            self.holder_repeat_nr -= 1
            return
        check(self.holder_repeat_nr == 1, "plock->holder_repeat_nr == 1")
        self.holder = None
        self.holder_repeat_nr = 0
        self.semaphore.up()