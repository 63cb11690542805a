# core/sliding_dft.py
# Incremental spectral estimate over a sliding window (no per-sample FFT).
from __future__ import annotations
from dataclasses import dataclass
import math

import numpy as np

from core.sample_window import DcTracker, Samples

DB_EPSILON = 1e-12

# Rows of the (samples x bins) table lookup done per block step.
_BLOCK_ROWS = 256


def to_decibels(magnitude):
    return 20.0 * np.log10(magnitude + DB_EPSILON)


@dataclass(frozen=True, eq=False)
class SpectrumSnapshot:
    """Read-only result of one analyse() call."""
    magnitudes: np.ndarray
    decibels: np.ndarray
    min: float
    max: float
    dc_offset: float

    @property
    def window_size(self) -> int:
        return self.magnitudes.size

    @property
    def min_db(self) -> float:
        return float(to_decibels(self.min))

    @property
    def max_db(self) -> float:
        return float(to_decibels(self.max))


class SpectralEstimator:
    """
    Per-bin real/imag accumulators updated from the newest and the evicted
    sample only.

    Each delta (new - evicted) is weighted by the static tables at index
    (k * p) mod N, p being the window slot the sample lands in. Slots advance
    in lockstep with SampleWindow, so the accumulators hold the DFT of the
    window in slot order. That differs from the chronological DFT by a
    circular shift, which leaves magnitudes untouched. There is no twiddle
    rotation between samples.
    """

    def __init__(self, window_size: int):
        if window_size <= 0:
            raise ValueError(f"window_size must be positive, got {window_size}")
        self._n = window_size
        self._bins = np.arange(window_size, dtype=np.int64)

        angles = 2.0 * math.pi * self._bins / window_size
        self._cos = np.cos(angles)
        self._sin = np.sin(angles)
        self._cos.setflags(write=False)
        self._sin.setflags(write=False)

        self._real = np.zeros(window_size, dtype=np.float64)
        self._imag = np.zeros(window_size, dtype=np.float64)
        self._position = 0
        self._dc = DcTracker()

    @property
    def window_size(self) -> int:
        return self._n

    @property
    def cos_table(self) -> np.ndarray:
        return self._cos

    @property
    def sin_table(self) -> np.ndarray:
        return self._sin

    @property
    def real(self) -> np.ndarray:
        return self._real.copy()

    @property
    def imag(self) -> np.ndarray:
        return self._imag.copy()

    def update(self, new_sample: float, evicted_sample: float) -> None:
        delta = float(new_sample) - float(evicted_sample)
        if delta != 0.0:
            idx = (self._bins * self._position) % self._n
            self._real += delta * self._cos[idx]
            self._imag += delta * self._sin[idx]
        self._position = (self._position + 1) % self._n
        self._dc.add(new_sample)

    def update_block(self, new_samples: Samples, evicted_samples: Samples) -> None:
        """Same as calling update() pairwise, in order."""
        new = np.asarray(new_samples, dtype=np.float64).ravel()
        old = np.asarray(evicted_samples, dtype=np.float64).ravel()
        if new.size != old.size:
            raise ValueError(
                f"new/evicted length mismatch: {new.size} != {old.size}"
            )
        if new.size == 0:
            return

        slots = (self._position + np.arange(new.size, dtype=np.int64)) % self._n
        deltas = new - old
        live = deltas != 0.0
        slots, deltas = slots[live], deltas[live]

        for start in range(0, deltas.size, _BLOCK_ROWS):
            d = deltas[start:start + _BLOCK_ROWS]
            idx = np.outer(slots[start:start + _BLOCK_ROWS], self._bins) % self._n
            self._real += d @ self._cos[idx]
            self._imag += d @ self._sin[idx]

        self._position = (self._position + new.size) % self._n
        self._dc.add_block(new)

    def dc_offset(self) -> float:
        return self._dc.offset

    def analyse(self) -> SpectrumSnapshot:
        magnitudes = np.hypot(self._real, self._imag)
        decibels = to_decibels(magnitudes)
        magnitudes.setflags(write=False)
        decibels.setflags(write=False)
        return SpectrumSnapshot(
            magnitudes=magnitudes,
            decibels=decibels,
            min=float(magnitudes.min()),
            max=float(magnitudes.max()),
            dc_offset=self.dc_offset(),
        )
