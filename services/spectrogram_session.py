# services/spectrogram_session.py
# Owns window, estimator and renderer; fed one PCM block at a time by the capture thread.
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional
import logging
import threading
import time

import numpy as np

from core.audio_pipeline import AudioPipeline, PcmBlock, decode_pcm16
from core.config import SpectrographConfig
from core.sample_window import SampleWindow, Samples
from core.signal_generator import SignalGenerator
from core.sliding_dft import SpectralEstimator
from core.state.render_state import RenderState
from devices.local.bar_renderer import BarRenderer, Terminal

_LOG = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class SessionStats:
    blocks_processed: int = 0
    blocks_dropped: int = 0
    blocks_failed: int = 0
    samples: int = 0
    renders: int = 0
    renders_skipped: int = 0


class SpectrogramSession:
    """
    Block processing path: decode -> window -> estimator -> (throttled) render.

    At most one block is processed at a time. A block that arrives while
    another is still in flight is dropped, not queued; stale audio is
    worthless to a live display.
    """

    def __init__(
        self,
        config: SpectrographConfig,
        terminal: Terminal,
        clock: Clock = time.monotonic,
    ):
        self.config = config
        self.window = SampleWindow(config.window_size)
        self.estimator = SpectralEstimator(config.window_size)
        self.renderer = BarRenderer(
            terminal,
            sample_rate=config.sample_rate,
            state=RenderState(max_columns=config.max_columns),
        )
        self.stats = SessionStats()

        self._clock = clock
        self._busy = threading.Lock()
        self._last_render: Optional[float] = None
        self._signal = SignalGenerator(config.sample_rate) if config.use_test_signal else None

    # Capture subscriber
    def on_pcm_block(self, block: PcmBlock) -> None:
        self.on_block(block.data)

    def on_block(self, data: bytes) -> bool:
        """Process one raw block. Returns False if it was dropped or failed."""
        if not self._busy.acquire(blocking=False):
            self.stats.blocks_dropped += 1
            _LOG.debug("Block dropped, previous block still in flight")
            return False
        try:
            samples = decode_pcm16(data)
            if self._signal is not None:
                samples = self._signal.block(samples.size)
            self.feed(samples)
            self.stats.blocks_processed += 1
            self.maybe_render()
            return True
        except Exception:
            self.stats.blocks_failed += 1
            _LOG.exception("Block processing failed")
            return False
        finally:
            self._busy.release()

    def feed(self, samples: Samples) -> None:
        block = np.asarray(samples, dtype=np.float64).ravel()
        evicted = self.window.insert_block(block)
        self.estimator.update_block(block, evicted)
        self.stats.samples += block.size

    def maybe_render(self) -> bool:
        now = self._clock()
        if self._last_render is not None and now - self._last_render < self.config.render_interval:
            self.stats.renders_skipped += 1
            return False
        self._last_render = now
        self.stats.renders += 1
        return self.renderer.render(self.estimator.analyse())

    def run(self, capture: AudioPipeline, until: Callable[[], bool], poll: float = 0.1) -> None:
        """Stream until `until()` is true, then tear the capture down."""
        capture.subscribe(self.on_pcm_block)
        capture.start()
        try:
            while not until():
                time.sleep(poll)
        finally:
            capture.stop()
            _LOG.info(
                "Session ended: %d blocks processed, %d dropped, %d failed, %d frames drawn",
                self.stats.blocks_processed, self.stats.blocks_dropped,
                self.stats.blocks_failed, self.renderer.frames_drawn,
            )
