"""Immutable description of a cylindrical detector and its derived layout."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Sequence

import numpy as np

from ..errors import ProfileError
from ..units import m, mm

TWO_PI = 2.0 * math.pi


class Orientation(str, Enum):
    """How a sensor unit is turned relative to the wall it sits on."""

    PERPENDICULAR = "perpendicular"
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


class CapGrid(str, Enum):
    """Placement convention of the square sensor grid on the end-caps.

    ``OFFSET`` shifts every cell by half a pitch so no sensor sits on the
    axis. ``CENTRED`` puts a grid point on the axis, as used by the beam-test
    detectors.
    """

    OFFSET = "offset"
    CENTRED = "centred"


@dataclass(frozen=True)
class CellGrid:
    """Azimuthal partition of the barrel into regular cells and a remainder."""

    n_phi: int
    total_angle: float
    dphi: float
    extra_tower_angle: float
    extra_tower_pmts: int

    @property
    def has_extra_tower(self) -> bool:
        return self.extra_tower_pmts > 0


def compute_cell_grid(total_horizontal: int, per_cell_horizontal: int) -> CellGrid:
    """Split ``total_horizontal`` sensors into cells of ``per_cell_horizontal``.

    Parameters
    ----------
    total_horizontal:
        Number of sensors around the full circumference.
    per_cell_horizontal:
        Number of sensors side by side in one regular cell.

    Returns
    -------
    CellGrid
        ``floor(total/per_cell)`` regular cells sharing the covered angle
        ``2*pi*n_phi*per_cell/total``, plus the angle and sensor count left
        for the extra tower. The remainder is exactly zero when the totals
        divide evenly.

    Raises
    ------
    ProfileError
        If either count is not positive or a cell holds more sensors than
        the whole circumference.
    """

    if total_horizontal <= 0 or per_cell_horizontal <= 0:
        raise ProfileError("sensor counts around the barrel must be positive")
    if per_cell_horizontal > total_horizontal:
        raise ProfileError(
            f"{per_cell_horizontal} sensors per cell do not fit in "
            f"{total_horizontal} around the barrel"
        )
    n_phi = total_horizontal // per_cell_horizontal
    extra_pmts = total_horizontal - n_phi * per_cell_horizontal
    total_angle = TWO_PI * (n_phi * per_cell_horizontal / total_horizontal)
    extra_angle = TWO_PI - total_angle if extra_pmts else 0.0
    return CellGrid(
        n_phi=n_phi,
        total_angle=total_angle,
        dphi=total_angle / n_phi,
        extra_tower_angle=extra_angle,
        extra_tower_pmts=extra_pmts,
    )


@dataclass(frozen=True)
class DetectorProfile:
    """Dimensions and sensor counts of one cylindrical detector.

    Lengths are in millimetres. ``radius_change`` is a sequence of
    ``(z, dr)`` points describing how the wall radius departs from
    ``id_diameter / 2`` along the axis; it is linearly interpolated and held
    constant beyond its end points. An empty sequence means a straight wall.
    """

    name: str
    id_height: float
    id_diameter: float
    barrel_n_rings: int
    barrel_num_pmt_horizontal: int
    pmt_per_cell_horizontal: int
    pmt_per_cell_vertical: int
    barrel_pmt_offset: float
    cap_pmt_spacing: float
    cap_edge_limit: float
    pmt_radius: float
    pmt_expose_height: float
    blacksheet_thickness: float = 2.0 * mm
    vessel_radius: float = 0.0
    vessel_cyl_height: float = 0.0
    mpmt_pmt_radius: float = 0.0
    mpmt_ring_counts: tuple[int, ...] = (1, 6, 12)
    mpmt_ring_angles: tuple[float, ...] = (0.0, 0.42, 0.84)
    orientation: Orientation = Orientation.PERPENDICULAR
    cap_grid: CapGrid = CapGrid.OFFSET
    radius_change: tuple[tuple[float, float], ...] = ()
    add_gd: bool = False
    _grid: CellGrid = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "orientation", Orientation(self.orientation))
        object.__setattr__(self, "cap_grid", CapGrid(self.cap_grid))
        object.__setattr__(
            self,
            "radius_change",
            tuple(sorted((float(z), float(dr)) for z, dr in self.radius_change)),
        )
        self._validate()
        object.__setattr__(
            self,
            "_grid",
            compute_cell_grid(self.barrel_num_pmt_horizontal, self.pmt_per_cell_horizontal),
        )

    def _validate(self) -> None:
        positive = (
            "id_height",
            "id_diameter",
            "cap_pmt_spacing",
            "cap_edge_limit",
            "pmt_radius",
            "pmt_expose_height",
            "blacksheet_thickness",
        )
        for name in positive:
            if not getattr(self, name) > 0:
                raise ProfileError(f"{self.name}: {name} must be positive")
        for name in ("vessel_radius", "vessel_cyl_height", "mpmt_pmt_radius", "barrel_pmt_offset"):
            if getattr(self, name) < 0:
                raise ProfileError(f"{self.name}: {name} must not be negative")
        if self.barrel_n_rings < 3:
            raise ProfileError(
                f"{self.name}: at least 3 barrel rings are needed, got {self.barrel_n_rings}"
            )
        if self.pmt_per_cell_vertical <= 0:
            raise ProfileError(f"{self.name}: pmt_per_cell_vertical must be positive")
        if len(self.mpmt_ring_counts) != len(self.mpmt_ring_angles):
            raise ProfileError(f"{self.name}: mPMT ring counts and angles differ in length")
        if self.id_height - 2 * self.barrel_pmt_offset <= 0:
            raise ProfileError(f"{self.name}: barrel_pmt_offset leaves no barrel height")

    def with_changes(self, **changes) -> "DetectorProfile":
        """Return a copy of the profile with ``changes`` applied."""

        return replace(self, **changes)

    # -- azimuthal layout ---------------------------------------------------

    @property
    def grid(self) -> CellGrid:
        return self._grid

    @property
    def n_phi(self) -> int:
        return self._grid.n_phi

    @property
    def total_angle(self) -> float:
        return self._grid.total_angle

    @property
    def dphi(self) -> float:
        return self._grid.dphi

    @property
    def has_extra_tower(self) -> bool:
        return self._grid.has_extra_tower

    @property
    def extra_tower_angle(self) -> float:
        return self._grid.extra_tower_angle

    @property
    def extra_tower_pmts(self) -> int:
        return self._grid.extra_tower_pmts

    @property
    def extra_tower_scale(self) -> float:
        """Factor applied to tangent radii inside the extra tower.

        With it the tower's corners meet the corners of the neighbouring
        regular cells, which share the polygon's circumscribed radius.
        """

        if not self.has_extra_tower:
            return 1.0
        return math.cos(self.extra_tower_angle / 2.0) / math.cos(self.dphi / 2.0)

    # -- vertical layout ----------------------------------------------------

    @property
    def id_radius(self) -> float:
        return self.id_diameter / 2.0

    @property
    def barrel_cell_height(self) -> float:
        return (self.id_height - 2.0 * self.barrel_pmt_offset) / self.barrel_n_rings

    @property
    def main_annulus_height(self) -> float:
        return self.id_height - 2.0 * self.barrel_pmt_offset - 2.0 * self.barrel_cell_height

    @property
    def cap_assembly_height(self) -> float:
        return (
            (self.id_height - self.main_annulus_height) / 2.0
            + 1.0 * mm
            + self.blacksheet_thickness
        )

    @property
    def inner_annulus_radius(self) -> float:
        if self.vessel_cyl_height + self.vessel_radius < 1.0 * mm:
            return self.id_radius - self.pmt_expose_height - 1.0 * mm
        return self.id_radius - self.vessel_cyl_height - self.vessel_radius - 1.0 * mm

    @property
    def outer_annulus_radius(self) -> float:
        return self.id_radius + self.blacksheet_thickness + 1.0 * mm

    # -- tank and world -----------------------------------------------------

    @property
    def wc_length(self) -> float:
        return self.id_height + 2 * 2.3 * m

    @property
    def wc_radius(self) -> float:
        return (self.id_radius + self.blacksheet_thickness + 1.5 * m) / math.cos(self.dphi / 2.0)

    @property
    def world_extent(self) -> float:
        return max(self.wc_length, self.wc_radius)

    @property
    def surface_tolerance(self) -> float:
        """Surface tolerance for a world of this extent, in millimetres."""

        return self.world_extent * 1e-11

    @property
    def seam_gap(self) -> float:
        """Angle removed from the extra tower so it never shares a face."""

        return self.surface_tolerance / (10.0 * m)

    # -- radius profile -----------------------------------------------------

    def radius_change_at(self, z: float | Sequence[float] | np.ndarray):
        """Return the wall radius offset at axial position ``z``."""

        if not self.radius_change:
            if np.ndim(z) == 0:
                return 0.0
            return np.zeros(np.shape(z))
        zs, drs = zip(*self.radius_change)
        result = np.interp(z, zs, drs)
        if np.ndim(result) == 0:
            return float(result)
        return result

    def wall_radius_at(self, z):
        """Return the inner blacksheet radius of the barrel at ``z``."""

        return self.id_radius + self.radius_change_at(z)

    @property
    def is_tapered(self) -> bool:
        return any(dr != 0.0 for _, dr in self.radius_change)
