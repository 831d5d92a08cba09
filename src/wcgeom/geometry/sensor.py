"""The sensor unit placed at every slot: a single PMT or a multi-PMT module."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from itertools import combinations
from typing import Any, Optional

import numpy as np

from .materials import ACRYLIC, CATHODE_SURFACE, GLASS, OpticalSurfaceSpec
from .profile import DetectorProfile
from .scene import GeometryBuilder

logger = logging.getLogger(__name__)

SENSOR_NAME = "WCMultiPMT"


@dataclass(frozen=True)
class MultiPMTUnit:
    """Geometry of one sensor unit.

    Small PMTs sit in rings on the inside of the vessel's dome. Ring ``k``
    holds ``ring_counts[k]`` PMTs at polar angle ``ring_angles[k]``. A unit
    without a vessel is a single PMT of ``envelope_radius``.
    """

    envelope_radius: float
    vessel_radius: float = 0.0
    vessel_cyl_height: float = 0.0
    pmt_radius: float = 0.0
    ring_counts: tuple[int, ...] = ()
    ring_angles: tuple[float, ...] = ()

    @classmethod
    def from_profile(cls, profile: DetectorProfile) -> "MultiPMTUnit":
        return cls(
            envelope_radius=profile.pmt_radius,
            vessel_radius=profile.vessel_radius,
            vessel_cyl_height=profile.vessel_cyl_height,
            pmt_radius=profile.mpmt_pmt_radius,
            ring_counts=tuple(profile.mpmt_ring_counts),
            ring_angles=tuple(profile.mpmt_ring_angles),
        )

    @property
    def is_single(self) -> bool:
        return self.vessel_radius <= 0.0 or self.pmt_radius <= 0.0 or not self.ring_counts

    @property
    def n_pmts(self) -> int:
        return 1 if self.is_single else sum(self.ring_counts)

    def pmt_positions(self) -> np.ndarray:
        """Centres of the small PMTs in the vessel frame."""

        if self.is_single:
            return np.zeros((1, 3))
        dome = self.vessel_radius - self.pmt_radius
        positions = []
        for count, theta in zip(self.ring_counts, self.ring_angles):
            for k in range(count):
                phi = 2.0 * math.pi * k / count
                positions.append(
                    (
                        dome * math.sin(theta) * math.cos(phi),
                        dome * math.sin(theta) * math.sin(phi),
                        self.vessel_cyl_height / 2.0 + dome * math.cos(theta),
                    )
                )
        return np.array(positions, dtype=float)

    def overlapping_pairs(self) -> list[tuple[int, int]]:
        """Index pairs of small PMTs that intersect each other."""

        if self.is_single:
            return []
        points = self.pmt_positions()
        return [
            (a, b)
            for a, b in combinations(range(len(points)), 2)
            if np.linalg.norm(points[a] - points[b]) < 2.0 * self.pmt_radius
        ]


def construct_multi_pmt(
    builder: GeometryBuilder,
    unit: MultiPMTUnit,
    surfaces: dict[str, OpticalSurfaceSpec],
    name: str = SENSOR_NAME,
) -> Optional[Any]:
    """Build the sensor unit and return its logical volume.

    Returns ``None`` without building anything if two PMTs of the unit
    would overlap.
    """

    cathode = surfaces[CATHODE_SURFACE]
    if unit.is_single:
        solid = builder.sphere(f"{name}Glass", 0.0, unit.envelope_radius, 0.0, math.pi / 2.0)
        logical = builder.logical(solid, GLASS, name)
        builder.skin_surface(f"{name}CathodeSkinSurface", logical, cathode)
        return logical

    overlaps = unit.overlapping_pairs()
    if overlaps:
        logger.debug(f"{len(overlaps)} PMT pairs overlap in {name}: {overlaps[:5]}")
        return None

    dome = builder.sphere(f"{name}Dome", 0.0, unit.vessel_radius, 0.0, math.pi / 2.0)
    if unit.vessel_cyl_height > 0.0:
        body = builder.tubs(f"{name}Body", 0.0, unit.vessel_radius, unit.vessel_cyl_height / 2.0)
        vessel_solid = builder.union(
            f"{name}Vessel", body, dome, position=(0.0, 0.0, unit.vessel_cyl_height / 2.0)
        )
    else:
        vessel_solid = dome
    vessel = builder.logical(vessel_solid, ACRYLIC, name)

    pmt_solid = builder.sphere(f"{name}PMTGlass", 0.0, unit.pmt_radius)
    pmt = builder.logical(pmt_solid, GLASS, f"{name}PMT")
    builder.skin_surface(f"{name}CathodeSkinSurface", pmt, cathode)
    for copy_number, position in enumerate(unit.pmt_positions()):
        builder.place(pmt, f"{name}PMT", vessel, position=position, copy_number=copy_number)
    logger.debug(f"Built {name} with {unit.n_pmts} PMTs")
    return vessel
