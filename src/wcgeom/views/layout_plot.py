"""Matplotlib rendering of the sensor layout."""

from __future__ import annotations

import logging
import math
from pathlib import Path

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.patches import Circle

from ..geometry.construct import Detector
from .summary import placements_to_frame

logger = logging.getLogger(__name__)

WALL_REGIONS = (
    "barrel",
    "barrel_extra_tower",
    "top_border",
    "top_border_extra_tower",
    "bottom_border",
    "bottom_border_extra_tower",
)


def plot_layout(detector: Detector, path: str | Path, show_title: bool = True) -> Path:
    """Save a plot of the unrolled barrel and both caps to ``path``.

    The barrel is drawn as arc length ``r * phi`` against ``z``; each cap is
    drawn in ``x``-``y`` with its edge limit outlined. Top-veto sensors are
    overlaid on the top cap.
    """

    path = Path(path)
    profile = detector.profile
    frame = placements_to_frame(detector)

    fig = Figure(figsize=(14, 5))
    FigureCanvasAgg(fig)
    wall_ax = fig.add_subplot(1, 3, 1)
    top_ax = fig.add_subplot(1, 3, 2)
    bottom_ax = fig.add_subplot(1, 3, 3)

    for i, region in enumerate(WALL_REGIONS):
        rows = frame[frame["region"] == region]
        if rows.empty:
            continue
        phi = rows["phi"].where(rows["phi"] >= 0, rows["phi"] + 2 * math.pi)
        wall_ax.scatter(
            profile.id_radius * phi / 1000.0,
            rows["z"] / 1000.0,
            s=6,
            color=f"C{i}",
            label=f"{region} ({len(rows)})",
        )
    wall_ax.set_xlabel("Arc length (m)")
    wall_ax.set_ylabel("z (m)")
    wall_ax.set_title("Barrel")
    wall_ax.legend(fontsize=7, loc="upper right")

    for ax, cap, label in ((top_ax, "top_cap", "Top cap"), (bottom_ax, "bottom_cap", "Bottom cap")):
        rows = frame[frame["region"] == cap]
        ax.scatter(rows["x"] / 1000.0, rows["y"] / 1000.0, s=8, color="C0", label=f"{cap} ({len(rows)})")
        ax.add_patch(Circle((0.0, 0.0), profile.cap_edge_limit / 1000.0, fill=False, linestyle="--"))
        ax.set_xlabel("x (m)")
        ax.set_ylabel("y (m)")
        ax.set_title(label)
        ax.set_aspect("equal")

    veto = frame[frame["region"] == "top_veto"]
    if not veto.empty:
        top_ax.scatter(veto["x"] / 1000.0, veto["y"] / 1000.0, s=8, marker="x", color="C3",
                       label=f"top_veto ({len(veto)})")
    top_ax.legend(fontsize=7, loc="upper right")
    bottom_ax.legend(fontsize=7, loc="upper right")

    if show_title:
        fig.suptitle(f"{profile.name}: {detector.n_sensors} sensors")
    fig.tight_layout()
    fig.savefig(path)
    logger.info(f"Saved: {path}")
    return path
