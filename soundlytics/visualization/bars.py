"""
Ambient bar visualizer.

The bars are purely cosmetic: they follow a sine pattern while playback
is active and settle to a flat line when it is not. No audio samples are
read, so the display is not a spectrum and carries no information about
the clip.

- BarField: numeric model of bar heights (no tkinter)
- CanvasBarRenderer: draws a BarField frame onto a tkinter Canvas
- AmbientVisualizer: frame loop driven by Canvas.after()
"""

import logging
import time
from typing import Any, Callable, List, Optional

import numpy as np


# =============================================================================
# Model
# =============================================================================

class BarField:
    """
    Heights of the visualizer bars.

    Each frame every bar moves a fixed fraction (``smoothing``) of the way
    toward its target, so switching between active and idle eases rather
    than jumps.
    """

    def __init__(
        self,
        bars: int = 40,
        smoothing: float = 0.15,
        min_height: float = 4.0,
        seed: Optional[int] = None,
    ):
        if bars <= 0:
            raise ValueError(f"bars must be positive, got {bars}")
        if not 0 < smoothing <= 1:
            raise ValueError(f"smoothing must be in (0, 1], got {smoothing}")

        rng = np.random.default_rng(seed)
        self.bars = bars
        self.smoothing = smoothing
        self.min_height = min_height
        # Small per-bar jitter so the wave does not look mechanical
        self.phases = rng.uniform(0.0, 0.5, size=bars)
        self.heights = rng.random(bars)

    def target_heights(self, active: bool, t: float, height: float) -> np.ndarray:
        """
        Heights the bars are moving toward.

        Args:
            active: Whether playback is running
            t: Animation time (milliseconds / 200)
            height: Canvas height in pixels
        """
        if not active:
            return np.full(self.bars, self.min_height)
        index = np.arange(self.bars)
        return (np.sin(index * 0.4 + self.phases + t) * 0.4 + 0.6) * height * 0.8

    def step(self, active: bool, t: float, height: float) -> np.ndarray:
        """Advance one frame and return a copy of the new heights."""
        target = self.target_heights(active, t, height)
        self.heights = self.heights + (target - self.heights) * self.smoothing
        return self.heights.copy()


# =============================================================================
# Rendering
# =============================================================================

def _blend(start: str, end: str, ratio: float) -> str:
    """Linear blend of two #rrggbb colors."""
    a = [int(start[i:i + 2], 16) for i in (1, 3, 5)]
    b = [int(end[i:i + 2], 16) for i in (1, 3, 5)]
    mixed = [round(x + (y - x) * ratio) for x, y in zip(a, b)]
    return "#{:02x}{:02x}{:02x}".format(*mixed)


class CanvasBarRenderer:
    """Draws bars as centred rectangles, one canvas item per bar."""

    COLOR_LOW = "#6366f1"   # indigo
    COLOR_HIGH = "#d946ef"  # fuchsia
    GAP = 2

    def __init__(self, canvas: Any):
        self.canvas = canvas
        self._items: List[int] = []

    def draw(self, heights: np.ndarray, width: float, height: float) -> None:
        count = len(heights)
        if len(self._items) != count:
            self.clear()
            self._items = [
                self.canvas.create_rectangle(
                    0, 0, 0, 0,
                    fill=_blend(self.COLOR_LOW, self.COLOR_HIGH, i / max(count - 1, 1)),
                    width=0,
                )
                for i in range(count)
            ]

        bar_width = width / count
        for i, (item, bar_height) in enumerate(zip(self._items, heights)):
            x = i * bar_width
            y = (height - bar_height) / 2
            self.canvas.coords(
                item,
                x + self.GAP, y,
                x + bar_width - self.GAP, y + bar_height,
            )

    def clear(self) -> None:
        for item in self._items:
            self.canvas.delete(item)
        self._items = []


# =============================================================================
# Frame loop
# =============================================================================

class AmbientVisualizer:
    """
    Runs the bar animation on a tkinter canvas.

    The loop reschedules itself with ``canvas.after``. ``stop()`` cancels
    the pending frame, and destroying the canvas stops the loop as well.

    Usage:
        viz = AmbientVisualizer(canvas)
        viz.start()
        viz.set_active(True)   # playback started
        viz.set_active(False)  # paused
        viz.stop()
    """

    def __init__(
        self,
        canvas: Any,
        field: Optional[BarField] = None,
        frame_ms: int = 16,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.canvas = canvas
        self.field = field or BarField()
        self.frame_ms = frame_ms
        self.renderer = CanvasBarRenderer(canvas)
        self._clock = clock
        self._active = False
        self._after_id: Optional[str] = None
        self.logger = logging.getLogger("visualization.bars")
        canvas.bind("<Destroy>", self._on_destroy, add="+")

    @property
    def is_running(self) -> bool:
        return self._after_id is not None

    @property
    def active(self) -> bool:
        return self._active

    def set_active(self, active: bool) -> None:
        self._active = bool(active)

    def start(self) -> None:
        if self._after_id is None:
            self._tick()

    def stop(self) -> None:
        after_id, self._after_id = self._after_id, None
        if after_id is not None:
            self.canvas.after_cancel(after_id)

    def _on_destroy(self, event: Any) -> None:
        if getattr(event, "widget", self.canvas) is self.canvas:
            self.stop()

    def _tick(self) -> None:
        self._after_id = None
        if not self.canvas.winfo_exists():
            self.logger.debug("Canvas gone, visualizer stopped")
            return

        width = self.canvas.winfo_width()
        height = self.canvas.winfo_height()
        t = self._clock() * 1000.0 / 200.0
        heights = self.field.step(self._active, t, height)
        self.renderer.draw(heights, width, height)
        self._after_id = self.canvas.after(self.frame_ms, self._tick)


def create_visualizer(canvas: Any, config: dict) -> AmbientVisualizer:
    """Factory function to create an AmbientVisualizer from the 'visualizer' section."""
    field = BarField(
        bars=config.get("bars", 40),
        smoothing=config.get("smoothing", 0.15),
        min_height=config.get("min_height", 4.0),
    )
    return AmbientVisualizer(canvas, field=field, frame_ms=config.get("frame_ms", 16))
