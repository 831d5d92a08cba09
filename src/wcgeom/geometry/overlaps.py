"""Detection of intersecting sensors within a mother volume."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from itertools import product
from typing import Iterable

import numpy as np

from .tiling import SensorPlacement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SensorOverlap:
    first: int
    second: int
    mother: str
    distance: float


def find_sensor_overlaps(placements: Iterable[SensorPlacement], radius: float) -> list[SensorOverlap]:
    """Return every pair of sensors sharing a mother and closer than ``2 * radius``.

    Sensors are treated as spheres of ``radius`` around their placement
    position. Positions are hashed into cubic cells of edge ``2 * radius`` so
    only neighbouring cells are compared.
    """

    if radius <= 0:
        return []
    limit = 2.0 * radius
    by_mother: dict[str, list[SensorPlacement]] = defaultdict(list)
    for placement in placements:
        by_mother[placement.mother].append(placement)

    overlaps: list[SensorOverlap] = []
    for mother, group in by_mother.items():
        points = np.array([p.position for p in group], dtype=float)
        cells = np.floor(points / limit).astype(int)
        buckets: dict[tuple[int, int, int], list[int]] = defaultdict(list)
        for index, cell in enumerate(map(tuple, cells)):
            buckets[cell].append(index)
        for index, cell in enumerate(map(tuple, cells)):
            for offset in product((-1, 0, 1), repeat=3):
                neighbour = (cell[0] + offset[0], cell[1] + offset[1], cell[2] + offset[2])
                for other in buckets.get(neighbour, ()):
                    if other <= index:
                        continue
                    distance = float(np.linalg.norm(points[index] - points[other]))
                    if distance < limit:
                        overlaps.append(
                            SensorOverlap(group[index].sensor_id, group[other].sensor_id, mother, distance)
                        )
    overlaps.sort(key=lambda o: (o.first, o.second))
    if overlaps:
        logger.debug(f"Found {len(overlaps)} overlapping sensor pairs")
    return overlaps
