"""Radar chart of sub-genre match percentages."""

import math
from typing import Any, List, Sequence, Tuple

from soundlytics.core.models import SubGenre

PLACEHOLDER_LABEL = "..."
MIN_SPOKES = 3

Point = Tuple[float, float]


def radar_spokes(sub_genres: Sequence[SubGenre]) -> List[Tuple[str, float]]:
    """(label, percentage) per spoke, padded to at least three spokes."""
    spokes = [(sg.name, float(sg.match_percentage)) for sg in sub_genres]
    while len(spokes) < MIN_SPOKES:
        spokes.append((PLACEHOLDER_LABEL, 0.0))
    return spokes


def radar_points(
    sub_genres: Sequence[SubGenre], cx: float, cy: float, radius: float
) -> List[Tuple[str, Point]]:
    """
    Polygon vertices for the sub-genre radar.

    The first spoke points straight up and spokes proceed clockwise. A
    vertex sits at ``radius * percentage / 100`` from the centre.

    Returns:
        List of (label, (x, y)) per spoke
    """
    spokes = radar_spokes(sub_genres)
    count = len(spokes)
    points = []
    for i, (label, percentage) in enumerate(spokes):
        angle = -math.pi / 2 + 2 * math.pi * i / count
        r = radius * max(0.0, min(percentage, 100.0)) / 100.0
        points.append((label, (cx + r * math.cos(angle), cy + r * math.sin(angle))))
    return points


class RadarChartRenderer:
    """Draws the radar (grid, axes, labels and polygon) on a tkinter Canvas."""

    GRID_COLOR = "#334155"
    LABEL_COLOR = "#64748b"
    FILL_COLOR = "#6366f1"
    RINGS = 4

    def __init__(self, canvas: Any, font: Tuple[str, int, str] = ("Helvetica", 8, "bold")):
        self.canvas = canvas
        self.font = font

    def draw(self, sub_genres: Sequence[SubGenre], size: int) -> None:
        self.canvas.delete("radar")
        cx = cy = size / 2
        radius = size * 0.35

        full = radar_points(
            [SubGenre(label, 100) for label, _ in radar_spokes(sub_genres)], cx, cy, radius
        )
        for ring in range(1, self.RINGS + 1):
            scale = ring / self.RINGS
            ring_coords = []
            for _, (x, y) in full:
                ring_coords.extend((cx + (x - cx) * scale, cy + (y - cy) * scale))
            self.canvas.create_polygon(
                *ring_coords, outline=self.GRID_COLOR, fill="", dash=(3, 3), tags="radar"
            )

        for label, (x, y) in full:
            self.canvas.create_line(cx, cy, x, y, fill=self.GRID_COLOR, tags="radar")
            self.canvas.create_text(
                cx + (x - cx) * 1.2, cy + (y - cy) * 1.2,
                text=label, fill=self.LABEL_COLOR, font=self.font, tags="radar",
            )

        coords = []
        for _, point in radar_points(sub_genres, cx, cy, radius):
            coords.extend(point)
        self.canvas.create_polygon(
            *coords, outline=self.FILL_COLOR, fill=self.FILL_COLOR,
            stipple="gray50", width=2, tags="radar",
        )
