"""User-space task scheduling with timer wheels, tid bitmaps and workload benchmarks."""

__version__ = "0.1.0"

__all__ = [
    "benchmark",
    "bitmap",
    "console",
    "errors",
    "examples",
    "ioqueue",
    "netlink",
    "neuralnet",
    "sync",
    "task",
    "threaded",
    "timer",
]