"""The same workloads on ordinary OS threads, used as the baseline for the scheduler.

``run_threads`` runs the neural-network workload on one main thread and a
number of interfering threads. ``message_loop`` is the IO-bound loop that
prints a line at a fixed interval until it is told to stop.
"""

from __future__ import annotations

import argparse
import os
import random
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence, TextIO

from .neuralnet import RAND_MAX, RAND_MAXS, RAND_MINS, NeuralNet

DEFAULT_THREADS = 50
DEFAULT_MESSAGE_THREADS = 25
DEFAULT_LOG = "time_p.txt"
EPOCHS = 1000
LEARNING_RATE = 0.1
SAMPLES = 4
SINGLE_MESSAGE = "Single thread running..."
THREAD_MESSAGE = "Thread running..."


def _draw(rng: random.Random) -> float:
    return RAND_MINS + (RAND_MAXS - RAND_MINS) * (rng.randint(0, RAND_MAX) / RAND_MAXS)


def timed_workload(
    log_path: str | os.PathLike[str] = DEFAULT_LOG, rng: random.Random | None = None
) -> int:
    """Train and query a small network; append and return the CPU time in microseconds."""
    rng = random.Random() if rng is None else rng
    print("Task started", flush=True)
    start = time.process_time_ns()

    net = NeuralNet.uniform(2, 3, 1, rng)
    inputs = [[_draw(rng), _draw(rng)] for _ in range(SAMPLES)]
    targets = [[_draw(rng)] for _ in range(SAMPLES)]
    net.train(inputs, targets, EPOCHS, LEARNING_RATE)
    net.predict(inputs[0])

    elapsed = (time.process_time_ns() - start) // 1000
    print(f"Execution time: {elapsed} seconds")
    try:
        with open(log_path, "a", encoding="utf-8") as log:
            log.write(f"{elapsed}\n")
    except OSError as exc:
        print(f"fopen: {exc}", file=sys.stderr)
    print("Task completed", flush=True)
    return elapsed


def run_threads(
    count: int = DEFAULT_THREADS,
    log_path: str | os.PathLike[str] = DEFAULT_LOG,
    seed: int | None = None,
) -> list[int]:
    """Run the workload on one main and ``count`` interfering threads; return timings.

    The main thread's timing comes first, then the interfering threads' in order.
    """
    if count < 0:
        raise ValueError("count must not be negative")
    rng = random.Random(seed)
    rngs = [random.Random(rng.getrandbits(64)) for _ in range(count + 1)]
    with ThreadPoolExecutor(max_workers=count + 1) as pool:
        futures = [pool.submit(timed_workload, log_path, task_rng) for task_rng in rngs]
        return [future.result() for future in futures]


def message_loop(
    message: str,
    interval: float = 1.0,
    stop: threading.Event | None = None,
    output: TextIO | None = None,
) -> int:
    """Print ``message`` with this thread's id every ``interval`` seconds until ``stop``.

    Returns the number of lines written.
    """
    if interval < 0:
        raise ValueError("interval must not be negative")
    stop = threading.Event() if stop is None else stop
    output = sys.stdout if output is None else output
    thread_id = threading.get_native_id()
    written = 0
    while not stop.wait(interval):
        print(f"Thread ID: {thread_id} - {message}", file=output, flush=True)
        written += 1
    return written


def _run_messages(threads: int, interval: float, duration: float | None) -> None:
    stop = threading.Event()
    messages = [SINGLE_MESSAGE] + [THREAD_MESSAGE] * threads
    workers = [
        threading.Thread(target=message_loop, args=(text, interval, stop), daemon=True)
        for text in messages
    ]
    for worker in workers:
        worker.start()
    try:
        stop.wait(duration)
    except KeyboardInterrupt:
        pass
    finally:
        stop.set()
        for worker in workers:
            worker.join()


def _linger() -> None:
    try:
        while True:
            time.sleep(1)
            print(os.getpid(), flush=True)
    except KeyboardInterrupt:
        pass


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="ustask-threaded")
    commands = parser.add_subparsers(dest="command", required=True)

    workload = commands.add_parser("workload", help="run the training workload on threads")
    workload.add_argument("--threads", type=int, default=DEFAULT_THREADS)
    workload.add_argument("--log", default=DEFAULT_LOG)
    workload.add_argument("--seed", type=int, default=None)
    workload.add_argument("--linger", action="store_true")

    messages = commands.add_parser("messages", help="run IO-bound printing threads")
    messages.add_argument("--threads", type=int, default=DEFAULT_MESSAGE_THREADS)
    messages.add_argument("--interval", type=float, default=1.0)
    messages.add_argument("--duration", type=float, default=None)

    args = parser.parse_args(argv)

    if args.command == "workload":
        if args.threads < 0:
            parser.error("--threads must not be negative")
        print("Starting main...")
        run_threads(args.threads, args.log, args.seed)
        if args.linger:
            _linger()
        return 0

    if args.threads < 0:
        parser.error("--threads must not be negative")
    if args.interval < 0:
        parser.error("--interval must not be negative")
    _run_messages(args.threads, args.interval, args.duration)
    return 0