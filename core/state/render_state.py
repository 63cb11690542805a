# core/state/render_state.py
from __future__ import annotations
from dataclasses import dataclass, field

import numpy as np

from core.config import MAX_COLUMNS


@dataclass
class RenderState:
    """What the terminal currently shows, per column. Owned by the renderer."""
    max_columns: int = MAX_COLUMNS
    width: int = 0
    height: int = 0
    last_bar_height: np.ndarray = field(init=False)

    def __post_init__(self) -> None:
        self.last_bar_height = np.zeros(self.max_columns, dtype=np.int64)

    def geometry_changed(self, width: int, height: int) -> bool:
        return width != self.width or height != self.height

    def reset(self, width: int, height: int) -> None:
        self.last_bar_height[:] = 0
        self.width = width
        self.height = height
