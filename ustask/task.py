"""Cooperative user-level tasks scheduled by time slices on a simulated clock.

Tasks are plain callables taking one argument.  A callable that returns a
generator runs one step per scheduler tick; yielding ``Sleep(ms)`` asks to
sleep.  A hooked task sleeps by stepping aside until a timer wakes it.  An
unhooked task sleeps by stalling the whole clock.
"""

from __future__ import annotations

import inspect
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator

from .bitmap import Bitmap
from .errors import check
from .timer import DEFAULT_GRANULARITY, TimerWheel

STACK_MAGIC = 0x19991120
TID_BITMAP_BYTES = 125100
TID_START = 1
MAIN_NAME = "main"
MAIN_PRIORITY = 3
DEAD_TASK_CLEAN_INTERVAL = 150000
MAX_CLEAN_PER_PASS = 16

_BLOCKING = None  # filled below, once TaskStatus exists


class TaskStatus(Enum):
    RUNNING = 0
    READY = 1
    BLOCKED = 2
    DIED = 3
    WAITING = 4
    HANGING = 5


_BLOCKING = (TaskStatus.BLOCKED, TaskStatus.WAITING, TaskStatus.HANGING)


@dataclass(frozen=True)
class Sleep:
    """Request yielded by a task to sleep for ``milliseconds``."""

    milliseconds: int

    def __post_init__(self) -> None:
        if self.milliseconds < 0:
            raise ValueError("sleep time must not be negative")


@dataclass(eq=False)
class Task:
    """Control block of one scheduled task."""

    tid: int
    name: str
    priority: int
    function: Callable[[Any], Any] | None = None
    arg: Any = None
    status: TaskStatus = TaskStatus.READY
    ticks: int = 0
    elapsed_ticks: int = 0
    stack_magic: int = STACK_MAGIC
    sleep_millisecond: int = 0
    first: bool = True
    is_hook: bool = False
    is_collaborative_schedule: bool = False
    result: Any = None
    _runner: Iterator[Any] | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.ticks = self.priority

    def _reset(
        self,
        tid: int,
        name: str,
        priority: int,
        function: Callable[[Any], Any] | None,
        arg: Any,
    ) -> None:
        self.tid = tid
        self.name = name
        self.priority = priority
        self.function = function
        self.arg = arg
        self.status = TaskStatus.READY
        self.ticks = priority
        self.elapsed_ticks = 0
        self.stack_magic = STACK_MAGIC
        self.sleep_millisecond = 0
        self.first = True
        self.is_hook = False
        self.is_collaborative_schedule = False
        self.result = None
        self._runner = None


def task_info(task: Task) -> str:
    """Describe a task the way the scheduler prints it."""
    return (
        f"tid = {task.tid}\n"
        f"name = {task.name}\n"
        f"priority = {task.priority}\n"
        f"stack_magic = {task.stack_magic:x}\n"
    )


class Scheduler:
    """Round-robin, priority-sliced scheduler driven by ``step`` calls.

    Each ``step`` runs the current task once and then delivers one clock
    tick of ``granularity`` milliseconds.
    """

    def __init__(self, granularity: int = DEFAULT_GRANULARITY) -> None:
        if granularity < 1:
            raise ValueError("granularity must be positive")
        self.granularity = granularity
        self.clock = 0
        self.ready: deque[Task] = deque()
        self.tasks: list[Task] = []
        self.pool: deque[Task] = deque()
        self._tids = Bitmap(TID_BITMAP_BYTES)

        self.main_task = Task(self._allocate_tid(), MAIN_NAME, MAIN_PRIORITY)
        self.main_task.status = TaskStatus.RUNNING
        self.main_task.first = False
        self.current: Task = self.main_task
        self.tasks.append(self.main_task)

        self.wheel = TimerWheel(jiffies=0, granularity=granularity)
        self.wheel.create_timer(
            self.clean_dead_tasks,
            None,
            DEAD_TASK_CLEAN_INTERVAL,
            DEAD_TASK_CLEAN_INTERVAL,
        )

    # -- identifiers -------------------------------------------------------

    def _allocate_tid(self) -> int:
        bit_idx = self._tids.scan(1)
        self._tids.set(bit_idx, 1)
        return bit_idx + TID_START

    def release_tid(self, tid: int) -> None:
        """Return ``tid`` to the pool of free identifiers."""
        self._tids.set(tid - TID_START, 0)

    # -- task lifetime -----------------------------------------------------

    def start(
        self,
        name: str,
        priority: int,
        function: Callable[[Any], Any],
        arg: Any = None,
    ) -> Task:
        """Create a ready task running ``function(arg)``."""
        if not 0 <= priority <= 0xFF:
            raise ValueError("priority must be between 0 and 255")
        if function is None:
            raise TypeError("function is required")
        tid = self._allocate_tid()
        if self.pool:
            task = self.pool.popleft()
            task._reset(tid, name, priority, function, arg)
        else:
            task = Task(tid, name, priority, function, arg)
        check(task not in self.ready, "!elem_find(&task_ready_list, &task->general_tag)")
        self.ready.append(task)
        check(task not in self.tasks, "!elem_find(&task_all_list, &task->all_list_tag)")
        self.tasks.append(task)
        return task

    def tid_to_task(self, tid: int) -> Task | None:
        """Find a live task by identifier."""
        return next((task for task in self.tasks if task.tid == tid), None)

    def exit(self, task: Task) -> None:
        """Finish ``task``; if it is running, hand the CPU to the next ready task."""
        check(task.status is not TaskStatus.DIED, "task has already exited")
        task.status = TaskStatus.DIED
        if task in self.ready:
            self.ready.remove(task)
        self.tasks.remove(task)
        if task is not self.main_task:
            self.pool.append(task)
        self.release_tid(task.tid)
        if task is self.current:
            self._switch_to_next()

    def clean_dead_tasks(self, arg: Any = None) -> int:
        """Drop a bounded number of pooled dead tasks; return how many."""
        if not self.pool:
            return 0
        limit = min(len(self.tasks) // 8, MAX_CLEAN_PER_PASS)
        cleaned = 0
        while self.pool and cleaned < limit:
            self.pool.popleft()
            cleaned += 1
        return cleaned

    def all_finished(self) -> bool:
        """True once every task other than the main task has exited."""
        return all(
            task.status is TaskStatus.DIED
            for task in self.tasks
            if task is not self.main_task
        )

    # -- blocking ----------------------------------------------------------

    def block(self, status: TaskStatus) -> Task:
        """Mark the current task as ``status`` and switch to the next ready one."""
        check(status in _BLOCKING, "status must be BLOCKED, WAITING or HANGING")
        self.current.status = status
        return self._switch_to_next()

    def unblock(self, task: Task) -> None:
        """Put a blocked task at the front of the ready queue."""
        check(task.status in _BLOCKING, "task must be BLOCKED, WAITING or HANGING")
        if task.status is not TaskStatus.READY:
            check(task not in self.ready, "!elem_find(&task_ready_list, &ptask->general_tag)")
            self.ready.appendleft(task)
            task.status = TaskStatus.READY

    # -- scheduling --------------------------------------------------------

    def _switch_to_next(self) -> Task:
        check(self.ready, "task_ready_list is empty")
        nxt = self.ready.popleft()
        nxt.status = TaskStatus.RUNNING
        self.current = nxt
        return nxt

    def schedule(self) -> Task:
        """Preempt the current task to the back of the queue and run the next."""
        task = self.current
        check(task not in self.ready, "!elem_find(&task_ready_list, &current_task->general_tag)")
        self.ready.append(task)
        task.ticks = task.priority
        task.status = TaskStatus.READY
        return self._switch_to_next()

    def collaborative_schedule(self) -> Task:
        """Switch away from a sleeping task without requeueing it."""
        return self._switch_to_next()

    def next_task_by_ticks(self) -> Task:
        """Pick the ready task holding the most ticks, boosting waiting ones."""
        best: Task | None = None
        for task in self.tasks:
            if task.status in _BLOCKING or task.is_collaborative_schedule:
                task.ticks = (task.ticks // 2 + task.priority) & 0xFF
            if task.status is TaskStatus.READY and (best is None or task.ticks > best.ticks):
                best = task
        check(best is not None, "no ready task to run")
        assert best is not None
        if best in self.ready:
            self.ready.remove(best)
        best.status = TaskStatus.RUNNING
        return best

    def _wake_sleeper(self, task: Task) -> None:
        check(task not in self.ready, "!elem_find(&task_ready_list, &task->general_tag)")
        self.ready.append(task)
        task.ticks = task.priority
        task.status = TaskStatus.READY
        task.is_collaborative_schedule = False
        task.sleep_millisecond = 0

    def on_tick(self, now: int | None = None) -> None:
        """Deliver one clock interrupt at time ``now`` (default: one slice later)."""
        self.clock = self.clock + self.granularity if now is None else now
        if not self.wheel.closed:
            self.wheel.run(self.clock)
        task = self.current
        check(task.stack_magic == STACK_MAGIC, "current_task->stack_magic == 0x19991120")
        task.elapsed_ticks += 1
        if not task.is_collaborative_schedule and task.ticks == 0:
            self.schedule()
        elif not task.is_collaborative_schedule:
            task.ticks -= 1
        else:
            self.wheel.create_timer(self._wake_sleeper, task, task.sleep_millisecond, 0)
            self.collaborative_schedule()

    # -- running -----------------------------------------------------------

    def _sleep(self, task: Task, milliseconds: int) -> None:
        if task.is_hook:
            task.is_collaborative_schedule = True
            task.sleep_millisecond = milliseconds
        else:
            self.clock += milliseconds
            if not self.wheel.closed:
                self.wheel.run(self.clock)

    def _finish(self, task: Task, result: Any) -> None:
        task.result = result
        if task.status is not TaskStatus.DIED:
            self.exit(task)

    def _advance(self, task: Task) -> None:
        if task.first:
            task.first = False
            assert task.function is not None
            outcome = task.function(task.arg)
            if not inspect.isgenerator(outcome):
                self._finish(task, outcome)
                return
            task._runner = outcome
        if task._runner is None or task.status is TaskStatus.DIED:
            return
        try:
            request = next(task._runner)
        except StopIteration as stop:
            self._finish(task, stop.value)
            return
        if isinstance(request, Sleep):
            self._sleep(task, request.milliseconds)

    def step(self) -> None:
        """Run the current task once, then deliver one clock tick."""
        task = self.current
        if (
            task is not self.main_task
            and task.status is TaskStatus.RUNNING
            and not task.is_collaborative_schedule
        ):
            self._advance(task)
        self.on_tick()

    def run(self, max_steps: int | None = None) -> int:
        """Step until every task has finished or ``max_steps`` ran; return steps."""
        steps = 0
        while not self.all_finished() and (max_steps is None or steps < max_steps):
            self.step()
            steps += 1
        return steps

    # -- hooking -----------------------------------------------------------

    def enable_hook(self) -> None:
        """Let the current task sleep cooperatively."""
        self.current.is_hook = True

    def is_hooked(self) -> bool:
        """Whether the current task sleeps cooperatively."""
        return self.current is not None and self.current.is_hook