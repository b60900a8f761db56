"""Run a neural-network training workload as many scheduler tasks and log timings."""

from __future__ import annotations

import argparse
import os
import random
import sys
import time
from typing import Sequence

from .neuralnet import (
    PRIORITY_LEVELS,
    RAND_MAX,
    RAND_MAXS,
    RAND_MINS,
    NeuralNet,
    generate_random_priority,
)
from .netlink import NetlinkSender, build_priority_message
from .task import Scheduler

DEFAULT_TASKS = 50
DEFAULT_LOG = "time.txt"
EPOCHS = 1000
LEARNING_RATE = 0.1
BATCH_SIZE = 2
SAMPLES = 4


def train_shuffled(
    net: NeuralNet,
    inputs: list[list[float]],
    targets: list[list[float]],
    epochs: int,
    learning_rate: float,
    batch_size: int,
    rng: random.Random | None = None,
) -> None:
    """Train in mini-batches, shuffling ``inputs`` and ``targets`` together in place each epoch."""
    if len(inputs) != len(targets):
        raise ValueError("inputs and targets must have the same length")
    if batch_size < 1:
        raise ValueError("batch_size must be positive")
    if epochs < 0:
        raise ValueError("epochs must not be negative")
    rng = random.Random() if rng is None else rng
    count = len(inputs)
    for _ in range(epochs):
        for i in range(count):
            j = i + rng.randrange(count - i)
            inputs[i], inputs[j] = inputs[j], inputs[i]
            targets[i], targets[j] = targets[j], targets[i]
        for start in range(0, count, batch_size):
            for sample, target in zip(
                inputs[start : start + batch_size], targets[start : start + batch_size]
            ):
                net.backward(sample, target, learning_rate)


def _draw(rng: random.Random) -> float:
    return RAND_MINS + (RAND_MAXS - RAND_MINS) * (rng.randint(0, RAND_MAX) / RAND_MAXS)


def task_workload(log_path: str | os.PathLike[str], rng: random.Random | None = None) -> int:
    """Train and query a small network; append and return the CPU time in microseconds."""
    rng = random.Random() if rng is None else rng
    print("Task started", flush=True)
    start = time.process_time_ns()

    net = NeuralNet.xavier(2, 3, 1, rng)
    inputs = [[_draw(rng), _draw(rng)] for _ in range(SAMPLES)]
    targets = [[_draw(rng)] for _ in range(SAMPLES)]
    train_shuffled(net, inputs, targets, EPOCHS, LEARNING_RATE, BATCH_SIZE, rng)
    net.predict(inputs[0])

    elapsed = (time.process_time_ns() - start) // 1000
    print(f"Execution time: {elapsed} number")
    try:
        with open(log_path, "a", encoding="utf-8") as log:
            log.write(f"{elapsed}\n")
    except OSError as exc:
        print(f"fopen: {exc}", file=sys.stderr)
    print("Task completed", flush=True)
    return elapsed


def run_scheduled(
    task_count: int = DEFAULT_TASKS,
    log_path: str | os.PathLike[str] = DEFAULT_LOG,
    seed: int | None = None,
) -> list[int]:
    """Run ``task_count`` interfering tasks and one main task; return their timings."""
    if task_count < 0:
        raise ValueError("task_count must not be negative")
    rng = random.Random(seed)

    def priority() -> int:
        return generate_random_priority() if seed is None else rng.randrange(PRIORITY_LEVELS)

    def work(task_rng: random.Random) -> int:
        return task_workload(log_path, task_rng)

    scheduler = Scheduler()
    names = ["interfering_task"] * task_count + ["main_task"]
    tasks = [
        scheduler.start(name, priority(), work, random.Random(rng.getrandbits(64)))
        for name in names
    ]
    scheduler.run()
    return [task.result for task in tasks]


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="ustask-benchmark")
    parser.add_argument("--tasks", type=int, default=DEFAULT_TASKS)
    parser.add_argument("--log", default=DEFAULT_LOG)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--no-netlink", action="store_true")
    args = parser.parse_args(argv)

    print("Starting main...")
    if not args.no_netlink:
        pid = os.getpid()
        priority = generate_random_priority()
        try:
            with NetlinkSender() as sender:
                sender.send(build_priority_message(pid, priority))
        except OSError as exc:
            print(f"socket: {exc}", file=sys.stderr)
            return 1
        print(f"Sent PID {pid} and priority {priority} to kernel module", flush=True)

    run_scheduled(args.tasks, args.log, args.seed)
    return 0