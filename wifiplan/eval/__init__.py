"""
Visualization of walk surveys.

Modules:
    plots: Capture layouts, placement score maps, figure export
"""

from .plots import plot_floor_layout, plot_score_map, save_figure

__all__ = [
    "plot_floor_layout",
    "plot_score_map",
    "save_figure",
]
