# core/sample_window.py
# Circular store of the most recent samples, plus the lifetime DC mean.
from __future__ import annotations
from typing import Sequence, Union

import numpy as np

Samples = Union[Sequence[float], np.ndarray]


class SampleWindow:
    """
    Fixed-capacity ring of the last N samples.

    insert() hands back the value it overwrites so the spectral estimator can
    subtract it. Before warm-up the evicted values are zeros.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"SampleWindow capacity must be positive, got {capacity}")
        self._buf = np.zeros(capacity, dtype=np.float64)
        self._cursor = 0

    @property
    def capacity(self) -> int:
        return self._buf.size

    @property
    def cursor(self) -> int:
        return self._cursor

    def insert(self, sample: float) -> float:
        i = self._cursor
        evicted = float(self._buf[i])
        self._buf[i] = sample
        self._cursor = (i + 1) % self._buf.size
        return evicted

    def insert_block(self, samples: Samples) -> np.ndarray:
        """Insert samples in arrival order; returns what each one evicted."""
        block = np.asarray(samples, dtype=np.float64).ravel()
        n = self._buf.size
        evicted = np.empty_like(block)
        # Chunks of at most N never revisit a slot, so the reads below see
        # values written by earlier chunks only.
        for start in range(0, block.size, n):
            chunk = block[start:start + n]
            slots = (self._cursor + np.arange(chunk.size)) % n
            evicted[start:start + chunk.size] = self._buf[slots]
            self._buf[slots] = chunk
            self._cursor = (self._cursor + chunk.size) % n
        return evicted

    def samples(self) -> np.ndarray:
        """Window contents, oldest first."""
        return np.roll(self._buf, -self._cursor)


class DcTracker:
    """Running mean of every sample ever seen (not windowed)."""

    def __init__(self) -> None:
        self._sum = 0.0
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    @property
    def offset(self) -> float:
        if self._count == 0:
            return 0.0
        return self._sum / self._count

    def add(self, sample: float) -> None:
        self._sum += float(sample)
        self._count += 1

    def add_block(self, samples: Samples) -> None:
        block = np.asarray(samples, dtype=np.float64).ravel()
        self._sum += float(block.sum())
        self._count += block.size
