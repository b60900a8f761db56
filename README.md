# ustask

`ustask` is a small user-space task scheduler that runs on a simulated clock.
A task is a callable that takes one argument. If the callable returns a
generator, the `Scheduler` advances it by one step on each tick. Time slices
come from the task's priority. A task can yield `Sleep(ms)` to sleep.

## Modules

- `ustask.task` defines `Scheduler`, `Task`, `TaskStatus`, `Sleep` and `task_info`.
  - `Scheduler.start(name, priority, function, arg)` creates a ready task.
    Each task gets a tid from a bitmap pool.
  - `Scheduler.step()` runs the current task once and then delivers one tick.
  - `Scheduler.run(max_steps)` steps until every task other than the main task
    has exited.
  - Other methods: `tid_to_task`, `block`, `unblock`, `exit`, `schedule`,
    `collaborative_schedule`, `next_task_by_ticks`, `on_tick`, `all_finished`,
    `clean_dead_tasks`, `release_tid`, `enable_hook` and `is_hooked`.
  - Sleeping depends on the hook. A hooked task (see `enable_hook`) steps aside
    until a timer wakes it. An unhooked task advances the clock instead.
- `ustask.timer` defines `TimerWheel` and `Timer`.
  - `TimerWheel` is a five-level timing wheel with one-shot and periodic
    timers. Its methods are `create_timer`, `delete_timer`, `run`, `pending`
    and `close`.
  - It also provides `time_after`, `time_after_eq`, `ticker_interval`,
    `set_ticker` and `monotonic_jiffies`.
- `ustask.bitmap` defines `Bitmap`, with `test`, `scan` for runs of free bits,
  and `set`.
- `ustask.sync` defines a binary `Semaphore` and a re-entrant `Lock` whose
  waiters are scheduler tasks.
  - A task that cannot proceed is parked. In that case `down` and `acquire`
    return `False`, and the caller retries once the task runs again.
- `ustask.ioqueue` defines `IOQueue`, a bounded character ring buffer.
  - `getchar` returns `None` when it has to park the caller.
  - `putchar` returns `False` when it has to park the caller.
- `ustask.console` defines `Console`, which serialises writes through
  `put_str`, `put_int` and `put_char`, and reads with `get_str`.
- `ustask.neuralnet` defines `NeuralNet`, a two-layer network used as a
  CPU-bound workload.
  - Constructors: `uniform` and `xavier`.
  - Methods: `forward`, `backward`, `train` and `predict`.
  - It also provides `sigmoid` and `generate_random_priority`.
- `ustask.netlink` defines `build_priority_message`, `parse_priority_message`
  and `NetlinkSender`. `NetlinkSender` is a context manager that sends a pid
  and priority to a kernel listener over netlink; this works on Linux only.
- `ustask.examples` defines `square_table`, `wallis_pi`, `e_series`,
  `sin_taylor`, `integrate_pi` and `run_sections`.
- `ustask.benchmark` defines `train_shuffled`, `task_workload` and
  `run_scheduled`. These run the training workload as scheduler tasks.
- `ustask.threaded` defines `timed_workload`, `run_threads` and
  `message_loop`. These run the same kind of workload on OS threads.

## Installation

```
pip install .
```

## Quick use

```python
from ustask.task import Scheduler, Sleep

sched = Scheduler(granularity=10)

def worker(arg):
    print("hello from", arg)
    yield Sleep(20)
    print("done", arg)

sched.start("worker", 5, worker, "a")
sched.run(max_steps=1000)
assert sched.all_finished()
```

## Commands

### `ustask-examples {for,sections,simd}`

- `for` fills a table of squares. `--size` sets the table size.
- `sections` prints pi, e and sin(3.14/6), each computed on its own thread.
- `simd` integrates pi by the midpoint rule and prints the time taken.
  `--steps` sets the number of steps.

### `ustask-benchmark`

Runs the training workload as scheduler tasks: `--tasks` interfering tasks
plus one main task. Each task appends its CPU time to the file given by
`--log`, which defaults to `time.txt`.

- `--seed` makes the run reproducible.
- Unless `--no-netlink` is given, the command first sends its pid and a
  random priority over netlink.

### `ustask-threaded`

Has two subcommands:

- `workload` runs the same workload on OS threads.
  - `--threads` sets the thread count.
  - `--log` sets the log file, default `time_p.txt`.
  - `--seed` makes the run reproducible.
  - `--linger` keeps the process printing its pid after the run.
- `messages` starts printing threads.
  - `--threads` sets the thread count.
  - `--interval` sets the time between lines.
  - `--duration` stops the threads after that time.

## What it does not do

No command starts a fixed set of tasks and prints their details. To do that,
create tasks with `Scheduler.start` and format them with `task_info`.

Tasks are not preempted by real signals. The scheduler only moves when you
call `step`, `run` or `on_tick`.

## Tests

```
pip install .[test]
pytest
```