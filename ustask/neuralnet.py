"""A small two-layer network (tanh hidden layer, sigmoid output).

It is trained sample by sample with plain gradient steps and serves as the
CPU-bound workload that the scheduler benchmarks run.
"""

from __future__ import annotations

import math
import os
import random
import struct
from typing import Sequence

RAND_MAX = 2147483647
RAND_MINS = 0
RAND_MAXS = 2
PREDICTION_SCALE = 100000
PRIORITY_LEVELS = 32

_INT32 = struct.Struct("i")

Matrix = list[list[float]]


def sigmoid(x: float) -> float:
    """Logistic function, computed without overflow for large ``|x|``."""
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def generate_random_priority() -> int:
    """Return a priority in ``0..31`` taken from the system's random source."""
    (value,) = _INT32.unpack(os.urandom(_INT32.size))
    return abs(value) % PRIORITY_LEVELS


def _check_matrix(name: str, matrix: Sequence[Sequence[float]], rows: int, cols: int) -> Matrix:
    if len(matrix) != rows or any(len(row) != cols for row in matrix):
        raise ValueError(f"{name} must be {rows}x{cols}")
    return [[float(v) for v in row] for row in matrix]


def _check_vector(name: str, vector: Sequence[float], size: int) -> list[float]:
    if len(vector) != size:
        raise ValueError(f"{name} must have {size} entries")
    return [float(v) for v in vector]


class NeuralNet:
    """Weights ``w1[input][hidden]``, ``w2[hidden][output]`` and biases."""

    def __init__(
        self,
        input_size: int,
        hidden_size: int,
        output_size: int,
        w1: Sequence[Sequence[float]],
        b1: Sequence[float],
        w2: Sequence[Sequence[float]],
        b2: Sequence[float],
    ) -> None:
        if min(input_size, hidden_size, output_size) < 1:
            raise ValueError("layer sizes must be positive")
        self.input_size = input_size
        self.hidden_size = hidden_size
        self.output_size = output_size
        self.w1 = _check_matrix("w1", w1, input_size, hidden_size)
        self.b1 = _check_vector("b1", b1, hidden_size)
        self.w2 = _check_matrix("w2", w2, hidden_size, output_size)
        self.b2 = _check_vector("b2", b2, output_size)

    @classmethod
    def uniform(
        cls,
        input_size: int,
        hidden_size: int,
        output_size: int,
        rng: random.Random | None = None,
    ) -> "NeuralNet":
        """Fill every weight and bias with ``rand() / 2`` over ``0..RAND_MAX``."""
        rng = random.Random() if rng is None else rng

        def draw() -> float:
            return rng.randint(0, RAND_MAX) / RAND_MAXS

        w1 = [[draw() for _ in range(hidden_size)] for _ in range(input_size)]
        w2 = [[draw() for _ in range(output_size)] for _ in range(hidden_size)]
        b1 = [draw() for _ in range(hidden_size)]
        b2 = [draw() for _ in range(output_size)]
        return cls(input_size, hidden_size, output_size, w1, b1, w2, b2)

    @classmethod
    def xavier(
        cls,
        input_size: int,
        hidden_size: int,
        output_size: int,
        rng: random.Random | None = None,
    ) -> "NeuralNet":
        """Xavier-uniform weights and zero biases."""
        if min(input_size, hidden_size, output_size) < 1:
            raise ValueError("layer sizes must be positive")
        rng = random.Random() if rng is None else rng
        limit_w1 = math.sqrt(6.0 / (input_size + hidden_size))
        limit_w2 = math.sqrt(6.0 / (hidden_size + output_size))

        def draw(limit: float) -> float:
            return (2.0 * rng.randint(0, RAND_MAX) / RAND_MAX - 1.0) * limit

        w1 = [[draw(limit_w1) for _ in range(hidden_size)] for _ in range(input_size)]
        w2 = [[draw(limit_w2) for _ in range(output_size)] for _ in range(hidden_size)]
        return cls(
            input_size,
            hidden_size,
            output_size,
            w1,
            [0.0] * hidden_size,
            w2,
            [0.0] * output_size,
        )

    def _hidden(self, inputs: Sequence[float]) -> list[float]:
        return [
            math.tanh(sum(x * row[i] for x, row in zip(inputs, self.w1)) + bias)
            for i, bias in enumerate(self.b1)
        ]

    def _output_sums(self, hidden: Sequence[float]) -> list[float]:
        return [
            sum(h * row[i] for h, row in zip(hidden, self.w2)) + bias
            for i, bias in enumerate(self.b2)
        ]

    def forward(self, inputs: Sequence[float]) -> list[float]:
        """Return the network's outputs for one sample."""
        inputs = _check_vector("inputs", inputs, self.input_size)
        return [sigmoid(s) for s in self._output_sums(self._hidden(inputs))]

    def backward(
        self, inputs: Sequence[float], target: Sequence[float], learning_rate: float
    ) -> None:
        """Take one gradient step towards ``target`` for one sample."""
        inputs = _check_vector("inputs", inputs, self.input_size)
        target = _check_vector("target", target, self.output_size)
        hidden = self._hidden(inputs)
        outputs = [sigmoid(s) for s in self._output_sums(hidden)]
        delta2 = [o * (1 - o) * (t - o) for o, t in zip(outputs, target)]
        delta1 = [
            sum(d * w for d, w in zip(delta2, row)) * (1 - h) * (1 + h)
            for h, row in zip(hidden, self.w2)
        ]
        for x, row in zip(inputs, self.w1):
            for i, d in enumerate(delta1):
                row[i] += learning_rate * d * x
        self.b1 = [b + learning_rate * d for b, d in zip(self.b1, delta1)]
        for h, row in zip(hidden, self.w2):
            for i, d in enumerate(delta2):
                row[i] += learning_rate * d * h
        self.b2 = [b + learning_rate * d for b, d in zip(self.b2, delta2)]

    def train(
        self,
        inputs: Sequence[Sequence[float]],
        targets: Sequence[Sequence[float]],
        epochs: int,
        learning_rate: float,
    ) -> None:
        """Run ``epochs`` passes over the samples, in order, one step per sample."""
        if len(inputs) != len(targets):
            raise ValueError("inputs and targets must have the same length")
        if epochs < 0:
            raise ValueError("epochs must not be negative")
        for _ in range(epochs):
            for sample, target in zip(inputs, targets):
                self.backward(sample, target, learning_rate)

    def predict(self, inputs: Sequence[float]) -> int:
        """First output scaled by 100000 and truncated to an integer."""
        return int(self.forward(inputs)[0] * PREDICTION_SCALE)