# core/audio_pipeline.py
# Mono 16-bit capture: raw PCM blocks out, nothing analysed here.
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
import logging
import threading
import time
import numpy as np

try:
    import sounddevice as sd
    from sounddevice import PortAudioError
except Exception as e:
    sd = None
    PortAudioError = Exception

_LOG = logging.getLogger(__name__)

PCM_SCALE = 32768.0


class CaptureError(RuntimeError):
    """The capture device could not be opened."""


@dataclass(frozen=True)
class PcmBlock:
    ts: float      # monotonic timestamp
    data: bytes    # little-endian int16, mono
    frames: int


Subscriber = Callable[[PcmBlock], None]


def decode_pcm16(data: bytes) -> np.ndarray:
    """Little-endian signed 16-bit PCM -> floats in [-1, 1)."""
    usable = len(data) - (len(data) % 2)
    raw = np.frombuffer(data[:usable], dtype="<i2")
    return raw.astype(np.float64) / PCM_SCALE


def list_input_devices() -> List[Tuple[int, str]]:
    if sd is None:
        raise CaptureError("sounddevice is not available in this environment.")
    devices = sd.query_devices()
    return [
        (i, dev["name"])
        for i, dev in enumerate(devices)
        if dev.get("max_input_channels", 0) > 0
    ]


class AudioPipeline:
    """
    Callback-driven mono capture.
    - Delivers each block as raw int16 bytes to subscribers.
    - Subscribers run on the PortAudio thread; keep them short.
    """

    def __init__(
        self,
        samplerate: int = 44100,
        blocksize: int = 882,
        device: Optional[int | str] = None,
    ):
        if blocksize <= 0:
            raise ValueError("blocksize must be positive.")

        self.samplerate = samplerate
        self.blocksize = blocksize
        self.device = device

        self._subs: List[Subscriber] = []
        self._stream: Optional[sd.RawInputStream] = None
        self._lock = threading.Lock()
        self._blocks = 0
        self._last_status: Optional[str] = None

    # ---------- Public API ----------

    def start(self) -> None:
        if sd is None:
            raise CaptureError("sounddevice is not available in this environment.")
        with self._lock:
            if self._stream is not None:
                return
            try:
                stream = sd.RawInputStream(
                    device=self.device,
                    channels=1,
                    dtype="int16",
                    samplerate=self.samplerate,
                    blocksize=self.blocksize,
                    callback=self._sd_callback,
                )
                stream.start()
            except (PortAudioError, ValueError) as e:
                raise CaptureError(f"Audio device error ({self.device!r}): {e}") from e
            self._stream = stream
        _LOG.info(
            "Capture started: device=%r rate=%d block=%d",
            self.device, self.samplerate, self.blocksize,
        )

    def stop(self) -> None:
        with self._lock:
            stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()
        _LOG.info("Capture stopped after %d blocks", self._blocks)

    def subscribe(self, fn: Subscriber) -> None:
        self._subs.append(fn)

    @property
    def running(self) -> bool:
        return self._stream is not None

    def last_status(self) -> Optional[str]:
        return self._last_status

    def __enter__(self) -> "AudioPipeline":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ---------- Internal ----------

    def _sd_callback(self, indata, frames, time_info, status):
        if status:
            self._last_status = str(status)
            _LOG.debug("PortAudio status: %s", status)

        self._blocks += 1
        block = PcmBlock(ts=time.monotonic(), data=bytes(indata), frames=frames)

        # Fan-out; a failing subscriber must not stop the stream
        for fn in self._subs:
            try:
                fn(block)
            except Exception:
                _LOG.exception("Capture subscriber %r failed", fn)
