"""Placement of sensors on the barrel wall and on the end-caps.

The barrel is a polygon of ``n_phi`` regular faces, optionally completed by
one narrower "extra tower" face, stacked in rings between z-planes whose
radii follow the profile's radius change. A single routine,
:func:`tile_wall`, lays sensors out on any set of rings and wedges. The main
annulus, its extra tower and the border rings next to each cap are all
different arguments to it.

Sensors are numbered by two counters shared across all regions:

``table_index``
    advances for every candidate slot, including slots a position table
    marks unused, so that row ``n`` of a table always maps to the same slot;
``sensor_id``
    advances only when a sensor is placed and therefore runs contiguously
    from zero over the finished detector.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np
from scipy.spatial.transform import Rotation

from .positions import SensorPositionProvider
from .profile import CapGrid, DetectorProfile, Orientation
from .transforms import rotate_about_z

logger = logging.getLogger(__name__)

ORIGIN = np.zeros(3)


@dataclass(frozen=True, eq=False)
class SensorPlacement:
    """One sensor unit placed in a mother volume."""

    sensor_id: int
    table_index: Optional[int]
    copy_number: int
    region: str
    mother: str
    position: np.ndarray
    global_position: np.ndarray
    rotation: np.ndarray


@dataclass
class SensorCounter:
    """Running identifiers shared by every region of one construction."""

    next_sensor_id: int = 0
    next_table_index: int = 0

    def claim_table_index(self) -> int:
        index = self.next_table_index
        self.next_table_index += 1
        return index

    def claim_sensor_id(self) -> int:
        sensor_id = self.next_sensor_id
        self.next_sensor_id += 1
        return sensor_id


@dataclass(frozen=True)
class Wedge:
    """An angular sector of the barrel holding one column of cells.

    ``centre`` is the azimuth of the face normal and ``width`` the angle the
    sector spans. Radii inside the wedge are multiplied by ``radius_scale``.
    With ``descending`` set, horizontal slots are numbered from the
    positive side of the face.
    """

    centre: float
    width: float
    n_horizontal: int
    radius_scale: float = 1.0
    descending: bool = False

    def face_width(self, radius: float) -> float:
        """Width of the flat face whose tangent radius is ``radius``."""

        return 2.0 * radius * math.tan(self.width / 2.0)


@dataclass(frozen=True)
class WallRing:
    """A band of the wall between two z-planes of the mother volume.

    ``r_start`` and ``r_end`` are the inner blacksheet radii at ``z_start``
    and ``z_end``. ``z_sign`` is ``-1`` for rings whose slots are counted
    from the top down.
    """

    z_start: float
    z_end: float
    r_start: float
    r_end: float
    z_sign: int = 1

    @property
    def height(self) -> float:
        return abs(self.z_end - self.z_start)

    @property
    def centre(self) -> float:
        return 0.5 * (self.z_start + self.z_end)


def _interpolate(z: float, z_start: float, z_end: float, r_start: float, r_end: float) -> float:
    return r_start + (r_end - r_start) * (z - z_start) / (z_end - z_start)


def barrel_z_planes(profile: DetectorProfile) -> np.ndarray:
    """Return the z-planes bounding the rings of the main annulus."""

    height = profile.main_annulus_height
    n_rings = profile.barrel_n_rings - 2
    return -height / 2.0 + height * np.arange(n_rings + 1) / n_rings


def barrel_rings(profile: DetectorProfile) -> list[WallRing]:
    """Return the rings of the main annulus, bottom first."""

    z = barrel_z_planes(profile)
    r = profile.wall_radius_at(z)
    return [
        WallRing(float(z[i]), float(z[i + 1]), float(r[i]), float(r[i + 1]))
        for i in range(len(z) - 1)
    ]


def border_ring(profile: DetectorProfile, z_sign: int) -> WallRing:
    """Return the barrel ring adjoining a cap, in the border ring's frame.

    ``z_sign`` is ``-1`` for the top cap and ``1`` for the bottom cap. The
    frame origin sits at the centre of the ring.
    """

    cell = profile.barrel_cell_height
    half_main = profile.main_annulus_height / 2.0
    return WallRing(
        z_start=-cell / 2.0 * z_sign,
        z_end=cell / 2.0 * z_sign,
        r_start=float(profile.wall_radius_at(-z_sign * (half_main + cell))),
        r_end=float(profile.wall_radius_at(-z_sign * half_main)),
        z_sign=z_sign,
    )


def regular_wedges(profile: DetectorProfile) -> list[Wedge]:
    dphi = profile.dphi
    return [
        Wedge(centre=(i + 0.5) * dphi, width=dphi, n_horizontal=profile.pmt_per_cell_horizontal)
        for i in range(profile.n_phi)
    ]


def extra_tower_wedge(profile: DetectorProfile) -> Optional[Wedge]:
    """Return the wedge closing the circle, or ``None`` when none is needed."""

    if not profile.has_extra_tower or profile.extra_tower_angle <= 0.0:
        return None
    angle = profile.extra_tower_angle
    return Wedge(
        centre=-angle / 2.0,
        width=angle,
        n_horizontal=profile.extra_tower_pmts,
        radius_scale=profile.extra_tower_scale,
        descending=True,
    )


def wall_rotation(orientation: Orientation, centre: float, tilt: float) -> np.ndarray:
    """Rotation of a sensor on the face at azimuth ``centre``.

    ``tilt`` is the angle of the wall to the vertical. Horizontal sensors
    are not tilted with the wall.
    """

    if orientation is Orientation.PERPENDICULAR:
        rotation = Rotation.from_euler("y", math.pi / 2.0)
    elif orientation is Orientation.VERTICAL:
        rotation = Rotation.identity()
    else:
        rotation = Rotation.from_euler("x", math.pi / 2.0)
    rotation = Rotation.from_euler("x", -centre) * rotation
    if orientation in (Orientation.PERPENDICULAR, Orientation.VERTICAL):
        rotation = Rotation.from_euler("y", -tilt) * rotation
    return rotation.as_matrix()


def cap_rotation(orientation: Orientation, z_sign: int) -> np.ndarray:
    """Rotation of a sensor on a cap; ``z_sign`` is ``-1`` for the top."""

    if orientation is Orientation.PERPENDICULAR:
        if z_sign == -1:
            return Rotation.from_euler("y", math.pi).as_matrix()
        return np.eye(3)
    if orientation is Orientation.VERTICAL:
        return Rotation.from_euler("y", math.pi / 2.0).as_matrix()
    return Rotation.from_euler("x", math.pi / 2.0).as_matrix()


def _project_onto_wall(position: np.ndarray, ring: WallRing, r_start: float,
                       r_end: float, centre: float) -> tuple[float, np.ndarray]:
    """Move ``position`` onto the face of a wedge, keeping its z and azimuth."""

    z = float(position[2])
    radius = _interpolate(z, ring.z_start, ring.z_end, r_start, r_end)
    local_phi = math.atan2(position[1], position[0]) - centre
    y = radius * math.tan(local_phi)
    return radius, rotate_about_z((radius, y, z), centre)


def tile_wall(
    rings: Sequence[WallRing],
    wedges: Sequence[Wedge],
    per_cell_vertical: int,
    orientation: Orientation,
    provider: SensorPositionProvider,
    counter: SensorCounter,
    *,
    region: str,
    mother: str,
    origin: Iterable[float] = ORIGIN,
) -> list[SensorPlacement]:
    """Place sensors on every slot of ``rings`` x ``wedges``.

    Slots are visited ring by ring, then wedge by wedge, then horizontally
    and finally vertically within the cell. For each slot the provider is
    asked for a global position; ``None`` leaves the slot empty while the
    table index still advances. Returned positions are projected back onto
    the wall: their z is kept, the radius is interpolated between the
    ring's bounding planes and the azimuth is preserved.

    Parameters
    ----------
    rings, wedges:
        The bands and sectors to tile. Rings or wedges with no extent are
        skipped without consuming identifiers.
    per_cell_vertical:
        Number of sensor rows in one cell.
    orientation:
        How sensors are turned relative to the wall.
    provider:
        Source of the sensor positions.
    counter:
        Identifier counters shared with the other regions.
    region, mother:
        Labels stored on each placement.
    origin:
        Global position of the mother volume's origin.

    Returns
    -------
    list[SensorPlacement]
        Placements with copy numbers counted from zero within this call.
    """

    origin = np.asarray(origin, dtype=float)
    placements: list[SensorPlacement] = []
    copy_number = 0
    for ring in rings:
        if ring.height <= 0.0:
            continue
        v_spacing = ring.height / per_cell_vertical
        for wedge in wedges:
            if wedge.width <= 0.0 or wedge.n_horizontal <= 0:
                continue
            r_start = ring.r_start * wedge.radius_scale
            r_end = ring.r_end * wedge.radius_scale
            tilt = math.atan((r_end - r_start) / (ring.z_end - ring.z_start))
            width = wedge.face_width(0.5 * (r_start + r_end))
            h_spacing = width / wedge.n_horizontal
            rotation = wall_rotation(orientation, wedge.centre, tilt)
            for i in range(wedge.n_horizontal):
                y = -width / 2.0 + (i + 0.5) * h_spacing
                if wedge.descending:
                    y = -y
                for j in range(per_cell_vertical):
                    table_index = counter.claim_table_index()
                    z = ring.centre + (-ring.height / 2.0 + (j + 0.5) * v_spacing) * ring.z_sign
                    radius = _interpolate(z, ring.z_start, ring.z_end, r_start, r_end)
                    nominal = rotate_about_z((radius, y, z), wedge.centre) + origin
                    found = provider.position_for(table_index, nominal)
                    if found is None:
                        logger.debug(f"{region}: table entry {table_index} unused")
                        continue
                    _, local = _project_onto_wall(
                        np.asarray(found, dtype=float) - origin, ring, r_start, r_end, wedge.centre
                    )
                    placements.append(
                        SensorPlacement(
                            sensor_id=counter.claim_sensor_id(),
                            table_index=table_index,
                            copy_number=copy_number,
                            region=region,
                            mother=mother,
                            position=local,
                            global_position=local + origin,
                            rotation=rotation,
                        )
                    )
                    copy_number += 1
    return placements


def cap_grid_points(edge_limit: float, spacing: float, grid: CapGrid = CapGrid.OFFSET) -> list[tuple[float, float]]:
    """Candidate cell centres of a square grid covering a cap.

    The grid extends two cells beyond ``edge_limit`` in every direction and
    is visited row by row in x, then y.
    """

    n_cell = int(edge_limit / spacing) + 2
    shift = 0.0 if grid is CapGrid.CENTRED else spacing / 2.0
    return [
        (i * spacing + shift, j * spacing + shift)
        for i in range(-n_cell, n_cell)
        for j in range(-n_cell, n_cell)
    ]


def admitted(x: float, y: float, sensor_radius: float, edge_limit: float) -> bool:
    """Return whether a sensor centred at ``(x, y)`` lies inside the cap edge."""

    return math.hypot(x, y) + sensor_radius < edge_limit


def tile_cap(
    points: Iterable[tuple[float, float]],
    sensor_radius: float,
    edge_limit: float,
    rotation: np.ndarray,
    provider: Optional[SensorPositionProvider],
    counter: SensorCounter,
    *,
    region: str,
    mother: str,
    origin: Iterable[float] = ORIGIN,
    z: float = 0.0,
) -> list[SensorPlacement]:
    """Place sensors on the grid ``points`` that pass the edge cut.

    Only admitted points consume a table index. With ``provider`` set to
    ``None`` the nominal points are used and no table index is consumed;
    the top veto is laid out this way.
    """

    origin = np.asarray(origin, dtype=float)
    placements: list[SensorPlacement] = []
    for x, y in points:
        if not admitted(x, y, sensor_radius, edge_limit):
            continue
        table_index = None
        local = np.array([x, y, z], dtype=float)
        if provider is not None:
            table_index = counter.claim_table_index()
            found = provider.position_for(table_index, local + origin)
            if found is None:
                logger.debug(f"{region}: table entry {table_index} unused")
                continue
            local = np.array([found[0] - origin[0], found[1] - origin[1], z], dtype=float)
        placements.append(
            SensorPlacement(
                sensor_id=counter.claim_sensor_id(),
                table_index=table_index,
                copy_number=len(placements),
                region=region,
                mother=mother,
                position=local,
                global_position=local + origin,
                rotation=rotation,
            )
        )
    return placements


def coverage(n_sensors: int, sensor_radius: float, radius: float) -> float:
    """Fraction of a disc of ``radius`` covered by ``n_sensors`` sensor faces."""

    return n_sensors * sensor_radius ** 2 / radius ** 2
