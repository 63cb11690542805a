# core/config.py
# Fixed session settings. There is no config file; edit the constants.
from __future__ import annotations
from dataclasses import dataclass

# === Audio ===
SAMPLE_RATE_HZ = 44100
BLOCK_MS = 20
DEFAULT_DEVICE = 0
USE_TEST_SIGNAL = False

# === Analysis ===
WINDOW_SIZE = 1024

# === Rendering ===
RENDER_INTERVAL_S = 0.1
MAX_COLUMNS = 1000


@dataclass(frozen=True)
class SpectrographConfig:
    sample_rate: int = SAMPLE_RATE_HZ
    window_size: int = WINDOW_SIZE
    block_ms: int = BLOCK_MS
    device: int = DEFAULT_DEVICE
    render_interval: float = RENDER_INTERVAL_S
    max_columns: int = MAX_COLUMNS
    use_test_signal: bool = USE_TEST_SIGNAL

    def __post_init__(self) -> None:
        if self.window_size <= 0:
            raise ValueError(f"window_size must be positive, got {self.window_size}")
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")

    @property
    def blocksize(self) -> int:
        """Frames per capture block."""
        return max(1, self.sample_rate * self.block_ms // 1000)
