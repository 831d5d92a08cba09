"""Builder interface towards the simulation toolkit and an in-memory scene.

Construction code only talks to a :class:`GeometryBuilder`. The
:class:`SceneBuilder` defined here records every call so the resulting
geometry can be inspected, exported or plotted without a toolkit;
:mod:`wcgeom.geometry.gdml` provides a builder backed by ``pyg4ometry``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence

import numpy as np

from ..errors import GeometryError
from .materials import OpticalSurfaceSpec

logger = logging.getLogger(__name__)


class GeometryBuilder(Protocol):
    """Operations construction needs from a geometry toolkit."""

    def tubs(self, name: str, rmin: float, rmax: float, half_z: float,
             phi_start: float = 0.0, phi_total: float = 2 * math.pi) -> Any: ...

    def polyhedra(self, name: str, phi_start: float, phi_total: float, num_side: int,
                  z_planes: Sequence[float], r_inner: Sequence[float],
                  r_outer: Sequence[float]) -> Any: ...

    def sphere(self, name: str, rmin: float, rmax: float, theta_start: float = 0.0,
               theta_total: float = math.pi) -> Any: ...

    def union(self, name: str, first: Any, second: Any, position=(0.0, 0.0, 0.0)) -> Any: ...

    def material_properties(self, material: str, properties: dict[str, float]) -> None: ...

    def logical(self, solid: Any, material: str, name: str) -> Any: ...

    def place(self, logical: Any, name: str, mother: Any, position=(0.0, 0.0, 0.0),
              rotation: Optional[np.ndarray] = None, copy_number: int = 0) -> Any: ...

    def border_surface(self, name: str, first: Any, second: Any,
                       surface: OpticalSurfaceSpec) -> Any: ...

    def skin_surface(self, name: str, logical: Any, surface: OpticalSurfaceSpec) -> Any: ...

    def set_world(self, logical: Any) -> None: ...


@dataclass(frozen=True)
class Solid:
    name: str
    shape: str
    params: dict


@dataclass(eq=False)
class LogicalVolume:
    name: str
    solid: Solid
    material: str
    daughters: list["PhysicalVolume"] = field(default_factory=list)


@dataclass(eq=False)
class PhysicalVolume:
    name: str
    logical: LogicalVolume
    mother: Optional[LogicalVolume]
    position: np.ndarray
    rotation: Optional[np.ndarray]
    copy_number: int


@dataclass(frozen=True, eq=False)
class BorderSurface:
    name: str
    first: PhysicalVolume
    second: PhysicalVolume
    surface: OpticalSurfaceSpec


@dataclass(frozen=True, eq=False)
class SkinSurface:
    name: str
    logical: LogicalVolume
    surface: OpticalSurfaceSpec


class SceneBuilder:
    """Record solids, volumes, placements and optical surfaces in memory."""

    def __init__(self) -> None:
        self.solids: list[Solid] = []
        self.logicals: list[LogicalVolume] = []
        self.physicals: list[PhysicalVolume] = []
        self.border_surfaces: list[BorderSurface] = []
        self.skin_surfaces: list[SkinSurface] = []
        self.world: Optional[LogicalVolume] = None
        self.material_properties_by_name: dict[str, dict[str, float]] = {}

    def _add_solid(self, name: str, shape: str, **params) -> Solid:
        solid = Solid(name, shape, params)
        self.solids.append(solid)
        return solid

    def tubs(self, name, rmin, rmax, half_z, phi_start=0.0, phi_total=2 * math.pi):
        if rmax <= rmin or half_z <= 0:
            raise GeometryError(f"degenerate tube {name}: r=[{rmin}, {rmax}], half_z={half_z}")
        return self._add_solid(name, "tubs", rmin=rmin, rmax=rmax, half_z=half_z,
                               phi_start=phi_start, phi_total=phi_total)

    def polyhedra(self, name, phi_start, phi_total, num_side, z_planes, r_inner, r_outer):
        if not len(z_planes) == len(r_inner) == len(r_outer):
            raise GeometryError(f"polyhedra {name}: plane and radius lists differ in length")
        if phi_total <= 0:
            raise GeometryError(f"polyhedra {name}: non-positive opening angle {phi_total}")
        return self._add_solid(
            name,
            "polyhedra",
            phi_start=phi_start,
            phi_total=phi_total,
            num_side=int(num_side),
            z_planes=[float(z) for z in z_planes],
            r_inner=[float(r) for r in r_inner],
            r_outer=[float(r) for r in r_outer],
        )

    def sphere(self, name, rmin, rmax, theta_start=0.0, theta_total=math.pi):
        return self._add_solid(name, "sphere", rmin=rmin, rmax=rmax,
                               theta_start=theta_start, theta_total=theta_total)

    def union(self, name, first, second, position=(0.0, 0.0, 0.0)):
        return self._add_solid(name, "union", first=first, second=second,
                               position=tuple(float(p) for p in position))

    def material_properties(self, material, properties):
        self.material_properties_by_name.setdefault(material, {}).update(properties)

    def logical(self, solid, material, name):
        volume = LogicalVolume(name, solid, material)
        self.logicals.append(volume)
        return volume

    def place(self, logical, name, mother, position=(0.0, 0.0, 0.0), rotation=None, copy_number=0):
        physical = PhysicalVolume(
            name=name,
            logical=logical,
            mother=mother,
            position=np.asarray(position, dtype=float),
            rotation=rotation,
            copy_number=int(copy_number),
        )
        if mother is not None:
            mother.daughters.append(physical)
        self.physicals.append(physical)
        return physical

    def border_surface(self, name, first, second, surface):
        for existing in self.border_surfaces:
            if existing.first is first and existing.second is second:
                raise GeometryError(
                    f"border surface between {first.name} and {second.name} already "
                    f"registered as {existing.name}"
                )
        border = BorderSurface(name, first, second, surface)
        self.border_surfaces.append(border)
        return border

    def skin_surface(self, name, logical, surface):
        for existing in self.skin_surfaces:
            if existing.logical is logical:
                raise GeometryError(
                    f"skin surface for {logical.name} already registered as {existing.name}"
                )
        skin = SkinSurface(name, logical, surface)
        self.skin_surfaces.append(skin)
        return skin

    def set_world(self, logical):
        self.world = logical

    def find_logical(self, name: str) -> LogicalVolume:
        """Return the logical volume called ``name``."""

        for volume in self.logicals:
            if volume.name == name:
                return volume
        raise KeyError(name)

    def daughters_of(self, name: str) -> list[PhysicalVolume]:
        return list(self.find_logical(name).daughters)

    def summary(self) -> dict[str, int]:
        return {
            "solids": len(self.solids),
            "logical_volumes": len(self.logicals),
            "physical_volumes": len(self.physicals),
            "border_surfaces": len(self.border_surfaces),
            "skin_surfaces": len(self.skin_surfaces),
        }
