"""Geometry builder backed by ``pyg4ometry`` and GDML export.

``pyg4ometry`` is an optional dependency; it is imported when a
:class:`Pyg4ometryBuilder` is created so the rest of the package works
without it.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from pathlib import Path
from typing import Any

from ..errors import GeometryError
from .materials import DOPED_WATER, GD_MASS_FRACTION, NIST_NAMES, WATER, OpticalSurfaceSpec
from .transforms import matrix_to_xyz_angles

logger = logging.getLogger(__name__)


class Pyg4ometryBuilder:
    """Create ``pyg4ometry.geant4`` objects in a fresh registry.

    Names are made unique per object kind by appending a counter, since the
    registry refuses duplicates while construction reuses physical volume
    names for every sensor.
    """

    def __init__(self) -> None:
        import pyg4ometry.geant4 as g4

        self.g4 = g4
        self.registry = g4.Registry()
        self._materials: dict[str, Any] = {}
        self._surfaces: dict[str, Any] = {}
        self._properties: dict[str, dict[str, float]] = {}
        self._names: dict[str, Counter] = {}

    def _unique(self, kind: str, name: str) -> str:
        seen = self._names.setdefault(kind, Counter())
        seen[name] += 1
        if seen[name] == 1:
            return name
        return f"{name}_{seen[name] - 1}"

    def _material(self, name: str) -> Any:
        if name in self._materials:
            return self._materials[name]
        g4 = self.g4
        properties = self._properties.get(name, {})
        if name == DOPED_WATER:
            water = self._material(WATER)
            gadolinium = g4.MaterialPredefined("G4_Gd", self.registry)
            material = g4.MaterialCompound("DopedWater", 1.0, 2, self.registry)
            material.add_material(water, 1.0 - GD_MASS_FRACTION)
            material.add_material(gadolinium, GD_MASS_FRACTION)
        elif name == WATER and properties:
            # predefined materials are written by reference, without properties
            nist = g4.MaterialPredefined(NIST_NAMES[WATER], self.registry)
            material = g4.MaterialCompound(WATER, 1.0, 1, self.registry)
            material.add_material(nist, 1.0)
        else:
            material = g4.MaterialPredefined(NIST_NAMES[name], self.registry)
        for key, value in properties.items():
            material.addConstProperty(key, value)
        self._materials[name] = material
        return material

    def material_properties(self, material, properties):
        if material in self._materials:
            raise GeometryError(f"material {material} was already built")
        self._properties.setdefault(material, {}).update(properties)

    def _surface(self, spec: OpticalSurfaceSpec) -> Any:
        if spec.name not in self._surfaces:
            surface = self.g4.solid.OpticalSurface(
                spec.name,
                finish=spec.finish,
                model=spec.model,
                surf_type=spec.surface_type,
                value=spec.sigma_alpha,
                registry=self.registry,
            )
            for key, value in spec.properties.items():
                surface.addConstProperty(key, value)
            self._surfaces[spec.name] = surface
        return self._surfaces[spec.name]

    def tubs(self, name, rmin, rmax, half_z, phi_start=0.0, phi_total=2 * math.pi):
        return self.g4.solid.Tubs(
            self._unique("solid", name), rmin, rmax, 2.0 * half_z, phi_start, phi_total,
            self.registry, lunit="mm", aunit="rad",
        )

    def polyhedra(self, name, phi_start, phi_total, num_side, z_planes, r_inner, r_outer):
        return self.g4.solid.Polyhedra(
            self._unique("solid", name),
            phi_start,
            phi_total,
            int(num_side),
            len(z_planes),
            [float(z) for z in z_planes],
            [float(r) for r in r_inner],
            [float(r) for r in r_outer],
            self.registry,
            lunit="mm",
            aunit="rad",
        )

    def sphere(self, name, rmin, rmax, theta_start=0.0, theta_total=math.pi):
        return self.g4.solid.Sphere(
            self._unique("solid", name), rmin, rmax, 0.0, 2 * math.pi, theta_start, theta_total,
            self.registry, lunit="mm", aunit="rad",
        )

    def union(self, name, first, second, position=(0.0, 0.0, 0.0)):
        return self.g4.solid.Union(
            self._unique("solid", name), first, second,
            [[0, 0, 0], [float(c) for c in position]], self.registry,
        )

    def logical(self, solid, material, name):
        return self.g4.LogicalVolume(
            solid, self._material(material), self._unique("logical", name), self.registry
        )

    def place(self, logical, name, mother, position=(0.0, 0.0, 0.0), rotation=None, copy_number=0):
        angles = [0.0, 0.0, 0.0] if rotation is None else list(matrix_to_xyz_angles(rotation))
        return self.g4.PhysicalVolume(
            angles,
            [float(c) for c in position],
            logical,
            self._unique("physical", name),
            mother,
            self.registry,
            copyNumber=int(copy_number),
        )

    def border_surface(self, name, first, second, surface):
        return self.g4.BorderSurface(
            self._unique("surface", name), first, second, self._surface(surface), self.registry
        )

    def skin_surface(self, name, logical, surface):
        return self.g4.SkinSurface(
            self._unique("surface", name), logical, self._surface(surface), self.registry
        )

    def set_world(self, logical):
        self.registry.setWorld(logical)


def write_gdml(builder: Pyg4ometryBuilder, path: str | Path) -> Path:
    """Write the registry of ``builder`` to a GDML file."""

    import pyg4ometry

    path = Path(path)
    writer = pyg4ometry.gdml.Writer()
    writer.addDetector(builder.registry)
    writer.write(str(path))
    logger.info(f"Saved: {path}")
    return path
