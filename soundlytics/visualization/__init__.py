"""Visualization module: ambient bars and the sub-genre radar."""

from soundlytics.visualization.bars import (
    BarField,
    CanvasBarRenderer,
    AmbientVisualizer,
    create_visualizer,
)
from soundlytics.visualization.radar import radar_points, radar_spokes, RadarChartRenderer

__all__ = [
    "BarField",
    "CanvasBarRenderer",
    "AmbientVisualizer",
    "create_visualizer",
    "radar_points",
    "radar_spokes",
    "RadarChartRenderer",
]
