# core/signal_generator.py
# Synthetic input for checking the display without a microphone.
from __future__ import annotations
from typing import Optional, Sequence, Tuple
import math

import numpy as np

# (frequency Hz, amplitude)
DEFAULT_TONES: Tuple[Tuple[float, float], ...] = (
    (1000.0, 0.25),
    (2000.0, 0.125),
    (10000.0, 0.0675),
)
NOISE_AMPLITUDE = 0.02


class SignalGenerator:
    """Sum of sines plus uniform noise, phase-continuous across blocks."""

    def __init__(
        self,
        sample_rate: int,
        tones: Sequence[Tuple[float, float]] = DEFAULT_TONES,
        noise: float = NOISE_AMPLITUDE,
        seed: Optional[int] = None,
    ):
        self.sample_rate = sample_rate
        self.tones = tuple(tones)
        self.noise = noise
        self._rng = np.random.default_rng(seed)
        self._t = 0

    def block(self, frames: int) -> np.ndarray:
        i = np.arange(self._t, self._t + frames, dtype=np.float64)
        self._t += frames
        out = np.zeros(frames, dtype=np.float64)
        for freq, amp in self.tones:
            out += amp * np.sin(2.0 * math.pi * freq * i / self.sample_rate)
        if self.noise:
            out += self.noise * (2.0 * self._rng.random(frames) - 1.0)
        return out
