# app.py
# Entry point: `python app.py [device-index | devices]`. Any key exits.
from __future__ import annotations
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from core.audio_pipeline import AudioPipeline, CaptureError, list_input_devices
from core.config import DEFAULT_DEVICE, SpectrographConfig
from devices.local.terminal import AnsiTerminal, KeyWatcher
from services.spectrogram_session import SpectrogramSession

_LOG = logging.getLogger("spectrograph")


def setup_logging(log_dir: str = "logs") -> Path:
    """Log to a timestamped file; the terminal itself is the display."""
    path = Path(log_dir)
    path.mkdir(exist_ok=True)
    log_file = path / f"spectrograph_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
    level = logging.DEBUG if os.environ.get("SPECTROGRAPH_DEBUG") == "1" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.FileHandler(log_file)],
    )
    return log_file


def parse_device(arg: Optional[str]) -> int:
    if arg is None:
        return DEFAULT_DEVICE
    try:
        return int(arg)
    except ValueError:
        return DEFAULT_DEVICE


def print_devices() -> None:
    for index, name in list_input_devices():
        print(f"WaveIn[{index}]: {name}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    arg = args[0] if args else None

    if arg is not None and arg.lower() == "devices":
        try:
            print_devices()
        except CaptureError as e:
            print(e, file=sys.stderr)
            return 1
        return 0

    log_file = setup_logging()
    config = SpectrographConfig(device=parse_device(arg))
    _LOG.info("Starting with %s (log: %s)", config, log_file)

    terminal = AnsiTerminal()
    session = SpectrogramSession(config, terminal)
    capture = AudioPipeline(
        samplerate=config.sample_rate,
        blocksize=config.blocksize,
        device=config.device,
    )

    try:
        with KeyWatcher() as keys:
            session.run(capture, until=keys.key_pressed)
    except CaptureError as e:
        _LOG.error("%s", e)
        print(e, file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        pass
    finally:
        terminal.restore()
    return 0


if __name__ == "__main__":
    sys.exit(main())
