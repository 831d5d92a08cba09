"""Interactive 3-D view of sensor positions with ``vedo``."""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from ..geometry.construct import Detector

logger = logging.getLogger(__name__)

REGION_COLOURS = {
    "barrel": "tomato",
    "barrel_extra_tower": "gold",
    "top_cap": "dodgerblue",
    "bottom_cap": "dodgerblue",
    "top_border": "orange",
    "bottom_border": "orange",
    "top_veto": "green",
}


def layout_actors(detector: Detector) -> list[Any]:
    """Return one ``vedo.Points`` actor per region.

    The import of :mod:`vedo` happens inside the function so that the rest
    of the package does not require the optional dependency.
    """

    from vedo import Points

    actors = []
    for region in detector.region_counts():
        points = np.array([p.global_position for p in detector.in_region(region)])
        colour = REGION_COLOURS.get(region, "grey")
        actor = Points(points, r=6, c=colour)
        actor.name = region
        actors.append(actor)
    return actors


def show_layout_3d(detector: Detector, interactive: bool = True) -> Any:
    """Open a ``vedo`` window with all placed sensors."""

    from vedo import show

    actors = layout_actors(detector)
    logger.info(f"Showing {detector.n_sensors} sensors in 3-D")
    return show(actors, f"{detector.profile.name}", axes=1, interactive=interactive)
