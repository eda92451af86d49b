"""
Visualization utilities for walk surveys.

This module provides plotting functions for dead-reckoned capture layouts
and placement score maps.

All functions return matplotlib Figure objects for flexible display/saving.
"""

from pathlib import Path
from typing import List, Optional, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np

from wifiplan.placement.optimizer import OptimizationResult, PlacementOptimizer
from wifiplan.spatial.layout import FloorLayout, SpatialLayout


def _default_floor(layout: SpatialLayout, result: Optional[OptimizationResult]) -> int:
    if result is not None:
        return result.recommended_position.floor
    return layout.floor_numbers[0]


def plot_floor_layout(
    layout: SpatialLayout,
    result: Optional[OptimizationResult] = None,
    floor: Optional[int] = None,
    title: Optional[str] = None,
) -> plt.Figure:
    """
    Plot the captures of one floor colored by normalized signal strength.

    Args:
        layout: Spatial snapshot of a session.
        result: Placement result (optional). Weak areas are circled and the
                recommended position is marked when it lies on this floor.
        floor: Floor to draw. Default: the recommended floor, else the
               lowest floor.
        title: Plot title (default: "Floor {floor} Survey").

    Returns:
        fig: Matplotlib figure
    """
    if floor is None:
        floor = _default_floor(layout, result)
    floor_layout = layout.floors[floor]
    if title is None:
        title = f"Floor {floor} Survey"

    fig, ax = plt.subplots(figsize=(10, 8))
    xy = floor_layout.positions

    # Walk order
    ax.plot(xy[:, 0], xy[:, 1], "k--", linewidth=1, alpha=0.4, zorder=1)

    sc = ax.scatter(
        xy[:, 0],
        xy[:, 1],
        c=floor_layout.strengths,
        cmap="RdYlGn",
        vmin=0.0,
        vmax=1.0,
        s=120,
        edgecolors="black",
        zorder=5,
    )
    cbar = plt.colorbar(sc, ax=ax)
    cbar.set_label("Signal strength", fontsize=12)

    for point, (x, y) in zip(floor_layout.points, xy):
        ax.annotate(point.label, (x, y), textcoords="offset points",
                    xytext=(6, 6), fontsize=9)

    if result is not None:
        weak = [p for p in result.weak_areas if p.floor == floor]
        if weak:
            wxy = np.array([p.xy for p in weak])
            ax.scatter(
                wxy[:, 0],
                wxy[:, 1],
                s=400,
                facecolors="none",
                edgecolors="red",
                linewidths=2,
                label="Weak areas",
                zorder=6,
            )
        pos = result.recommended_position
        if pos.floor == floor:
            ax.plot(pos.x, pos.y, "b*", markersize=20, label="Recommended AP", zorder=10)

    ax.set_xlabel("X (m)", fontsize=12)
    ax.set_ylabel("Y (m)", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    if result is not None:
        ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)
    ax.axis("equal")

    plt.tight_layout()
    return fig


def plot_score_map(
    optimizer: PlacementOptimizer,
    floor_layout: FloorLayout,
    result: Optional[OptimizationResult] = None,
    title: Optional[str] = None,
) -> plt.Figure:
    """
    Plot the placement score over the candidate grid of one floor.

    Args:
        optimizer: Optimizer whose grid and scoring are drawn.
        floor_layout: Captures of the floor.
        result: Placement result (optional) for the recommended marker.
        title: Plot title (default: "Floor {floor} Placement Score").

    Returns:
        fig: Matplotlib figure
    """
    if title is None:
        title = f"Floor {floor_layout.floor} Placement Score"

    xs, ys, scores = optimizer.score_map(floor_layout)

    fig, ax = plt.subplots(figsize=(10, 8))

    if len(xs) > 1:
        im = ax.imshow(
            scores,
            extent=(xs[0], xs[-1], ys[0], ys[-1]),
            origin="lower",
            cmap="viridis",
            aspect="auto",
            interpolation="bilinear",
        )
        cbar = plt.colorbar(im, ax=ax)
        cbar.set_label("Score", fontsize=12)

    xy = floor_layout.positions
    ax.plot(
        xy[:, 0],
        xy[:, 1],
        "wo",
        markersize=8,
        markeredgecolor="black",
        label="Captures",
    )

    if result is not None and result.recommended_position.floor == floor_layout.floor:
        pos = result.recommended_position
        ax.plot(pos.x, pos.y, "r*", markersize=20, label="Recommended AP")

    ax.set_xlabel("X (m)", fontsize=12)
    ax.set_ylabel("Y (m)", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3, color="white", linewidth=0.5)

    plt.tight_layout()
    return fig


def save_figure(
    fig: plt.Figure,
    out_dir: Union[str, Path],
    name: str,
    formats: Tuple[str, ...] = ("svg", "png"),
) -> List[Path]:
    """
    Save figure in multiple formats.

    Returns:
        paths: List of saved file paths
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for fmt in formats:
        filepath = out_dir / f"{name}.{fmt}"
        fig.savefig(filepath, dpi=150, bbox_inches="tight")
        paths.append(filepath)

    return paths
