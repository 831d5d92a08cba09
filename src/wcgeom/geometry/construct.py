"""Construction of the complete cylindrical detector.

The volume tree built by :class:`DetectorConstruction` is::

    WC (air)
    └── WCBarrel (water)
        ├── WCBarrelAnnulus ── WCBarrelAnnulusBlackSheet, sensors
        ├── WCExtraTower ───── WCExtraTowerBlackSheet, sensors     (if needed)
        ├── WCTopVeto ──────── Tyvek top, bottom and side, sensors  (if enabled)
        ├── TopCapAssembly
        │   ├── TopWCBarrelBorderRing ── blacksheet, sensors
        │   ├── TopWCExtraBorderCell ─── blacksheet, sensors       (if needed)
        │   └── TopWCCapPolygon ──────── blacksheet, sensors
        └── BottomCapAssembly (same layout, mirrored in z)

All mother volumes are placed without rotation, so a placement's global
position is its local position plus the origin of its mother.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from ..errors import GeometryOverlapError
from ..tuning.parameters import TuningParameters
from ..units import cm, m, mm
from .materials import (
    AIR,
    BLACKSHEET,
    BS_SKIN_SURFACE,
    TYVEK,
    WATER_BS_SURFACE,
    WATER_TY_SURFACE,
    OpticalSurfaceSpec,
    optical_surfaces,
    water_material,
    water_optical_scales,
)
from .overlaps import find_sensor_overlaps
from .positions import GridPositions, SensorPositionProvider
from .profile import CapGrid, DetectorProfile
from .scene import GeometryBuilder, SceneBuilder
from .sensor import SENSOR_NAME, MultiPMTUnit, construct_multi_pmt
from .tiling import (
    SensorCounter,
    SensorPlacement,
    barrel_rings,
    barrel_z_planes,
    border_ring,
    cap_grid_points,
    cap_rotation,
    coverage,
    extra_tower_wedge,
    regular_wedges,
    tile_cap,
    tile_wall,
)

logger = logging.getLogger(__name__)

TYVEK_THICKNESS = 1.0 * mm
TOP_VETO_HALF_HEIGHT = 0.5 * m
TOP_VETO_GAP = 1.0 * m


def _scaled(radii, scale: float) -> list[float]:
    return [float(r) * scale if r != 0.0 else 0.0 for r in radii]


@dataclass
class Detector:
    """Result of one construction pass.

    ``water_scales`` holds the Rayleigh, absorption and Mie scale factors
    that were attached to the water material through the builder.
    """

    profile: DetectorProfile
    tuning: TuningParameters
    builder: Any
    world: Any
    placements: list[SensorPlacement]
    surfaces: dict[str, OpticalSurfaceSpec]
    water_scales: dict[str, float] = field(default_factory=dict)

    @property
    def n_sensors(self) -> int:
        return len(self.placements)

    def region_counts(self) -> dict[str, int]:
        """Number of sensors per region, in placement order."""

        counts: dict[str, int] = {}
        for placement in self.placements:
            counts[placement.region] = counts.get(placement.region, 0) + 1
        return counts

    def in_region(self, region: str) -> list[SensorPlacement]:
        return [p for p in self.placements if p.region == region]

    def coverage(self, region: str) -> float:
        """Sensor coverage of a region relative to the cap area."""

        return coverage(
            len(self.in_region(region)), self.profile.pmt_radius, self.profile.id_radius
        )


class DetectorConstruction:
    """Build a cylindrical detector through a :class:`GeometryBuilder`.

    Parameters
    ----------
    profile:
        Dimensions and sensor counts of the detector.
    tuning:
        Optical tuning parameters; defaults are used when omitted.
    builder:
        Toolkit builder receiving the geometry. An in-memory
        :class:`SceneBuilder` is created when omitted.
    provider:
        Source of sensor positions; the regular grid when omitted.
    check_overlaps:
        Raise :class:`GeometryOverlapError` if two sensors in the same
        mother volume intersect.
    place_barrel_pmts, place_cap_pmts, place_border_pmts:
        Switch off sensor placement in the main annulus, on the caps or in
        the border rings next to the caps.
    """

    def __init__(
        self,
        profile: DetectorProfile,
        tuning: Optional[TuningParameters] = None,
        builder: Optional[GeometryBuilder] = None,
        provider: Optional[SensorPositionProvider] = None,
        check_overlaps: bool = True,
        place_barrel_pmts: bool = True,
        place_cap_pmts: bool = True,
        place_border_pmts: bool = True,
    ) -> None:
        self.profile = profile
        self.tuning = tuning if tuning is not None else TuningParameters()
        self.builder = builder if builder is not None else SceneBuilder()
        self.provider = provider if provider is not None else GridPositions()
        self.check_overlaps = check_overlaps
        self.place_barrel_pmts = place_barrel_pmts
        self.place_cap_pmts = place_cap_pmts
        self.place_border_pmts = place_border_pmts

    # -- entry point --------------------------------------------------------

    def construct_cylinder(self) -> Optional[Detector]:
        """Build the detector and return it, or ``None`` if the sensor unit fails."""

        p = self.profile
        b = self.builder
        logger.info(f"Computed tolerance = {p.surface_tolerance / mm:g} mm")
        self.counter = SensorCounter()
        self.placements: list[SensorPlacement] = []
        self.surfaces = optical_surfaces(self.tuning)
        self.water = water_material(p.add_gd)
        self.water_scales = water_optical_scales(self.tuning)
        b.material_properties(self.water, self.water_scales)

        world_solid = b.tubs("WC", 0.0, p.wc_radius + 2.0 * m, 0.5 * p.wc_length + 4.2 * m)
        world = b.logical(world_solid, AIR, "WC")
        b.set_world(world)

        barrel_solid = b.tubs("WCBarrel", 0.0, p.wc_radius + 1.0 * m, 0.5 * p.wc_length)
        barrel = b.logical(barrel_solid, self.water, "WCBarrel")
        b.place(barrel, "WCBarrel", world)

        annulus = self._build_barrel_annulus(barrel)
        tower = self._build_extra_tower(barrel)
        top_veto = self._build_top_veto(barrel) if self.tuning.top_veto else None

        sensor = construct_multi_pmt(b, MultiPMTUnit.from_profile(p), self.surfaces)
        if sensor is None:
            logger.error("Overlapping PMTs in multiPMT")
            return None
        self.sensor = sensor

        if top_veto is not None:
            self._place_top_veto_sensors(top_veto)
        if self.place_barrel_pmts:
            self._place_barrel_sensors(annulus, tower)

        for z_sign, label in ((-1, "Top"), (1, "Bottom")):
            assembly = self._build_cap_assembly(z_sign, label)
            b.place(assembly, f"{label}CapAssembly", barrel, position=(0.0, 0.0, self._assembly_z(z_sign)))

        if self.check_overlaps:
            overlaps = find_sensor_overlaps(self.placements, p.pmt_radius)
            if overlaps:
                raise GeometryOverlapError(overlaps)

        detector = Detector(
            profile=p,
            tuning=self.tuning,
            builder=b,
            world=world,
            placements=self.placements,
            surfaces=self.surfaces,
            water_scales=self.water_scales,
        )
        logger.info(f"Placed {detector.n_sensors} sensors in {p.name}")
        for region, count in detector.region_counts().items():
            logger.debug(f"  {region}: {count}")
        return detector

    # -- helpers ------------------------------------------------------------

    def _assembly_z(self, z_sign: int) -> float:
        p = self.profile
        return -z_sign * (p.main_annulus_height / 2.0 + p.cap_assembly_height / 2.0)

    def _emit(self, placements: list[SensorPlacement], mother: Any) -> None:
        for placement in placements:
            self.builder.place(
                self.sensor,
                SENSOR_NAME,
                mother,
                position=placement.position,
                rotation=placement.rotation,
                copy_number=placement.copy_number,
            )
        self.placements.extend(placements)

    def _add_blacksheet(self, cell_pv: Any, cell: Any, solid: Any, name: str,
                        border_name: str, skin_name: str) -> None:
        """Place a blacksheet liner in ``cell`` and register its surfaces."""

        b = self.builder
        sheet = b.logical(solid, BLACKSHEET, name)
        sheet_pv = b.place(sheet, name, cell)
        b.border_surface(border_name, cell_pv, sheet_pv, self.surfaces[WATER_BS_SURFACE])
        b.skin_surface(skin_name, sheet, self.surfaces[BS_SKIN_SURFACE])

    # -- barrel -------------------------------------------------------------

    def _annulus_radii(self):
        p = self.profile
        z = barrel_z_planes(p)
        dr = p.radius_change_at(z)
        return (
            z,
            p.inner_annulus_radius + dr,
            p.outer_annulus_radius + dr,
            p.id_radius + dr,
            p.id_radius + p.blacksheet_thickness + dr,
        )

    def _build_barrel_annulus(self, barrel: Any) -> Any:
        p = self.profile
        b = self.builder
        z, rmin, rmax, bs_min, bs_max = self._annulus_radii()
        solid = b.polyhedra("WCBarrelAnnulus", 0.0, p.total_angle, p.n_phi, z, rmin, rmax)
        annulus = b.logical(solid, self.water, "WCBarrelAnnulus")
        annulus_pv = b.place(annulus, "WCBarrelAnnulus", barrel)

        bs_solid = b.polyhedra(
            "WCBarrelAnnulusBlackSheet", 0.0, p.total_angle, p.n_phi, z, bs_min, bs_max
        )
        self._add_blacksheet(
            annulus_pv,
            annulus,
            bs_solid,
            "WCBarrelAnnulusBlackSheet",
            "WaterBSBarrelAnnulusSurface",
            "BSBarrelAnnulusSkinSurface",
        )
        return annulus

    def _build_extra_tower(self, barrel: Any) -> Optional[Any]:
        p = self.profile
        if not p.has_extra_tower or p.extra_tower_angle <= 0.0:
            return None
        b = self.builder
        scale = p.extra_tower_scale
        phi_start = p.total_angle - 2.0 * math.pi
        phi_total = p.extra_tower_angle - p.seam_gap
        z, rmin, rmax, bs_min, bs_max = self._annulus_radii()
        solid = b.polyhedra(
            "WCExtraTower", phi_start, phi_total, 1, z, _scaled(rmin, scale), _scaled(rmax, scale)
        )
        tower = b.logical(solid, self.water, "WCExtraTower")
        tower_pv = b.place(tower, "WCExtraTower", barrel)

        bs_solid = b.polyhedra(
            "WCExtraTowerBlackSheet",
            phi_start,
            phi_total,
            1,
            z,
            _scaled(bs_min, scale),
            _scaled(bs_max, scale),
        )
        self._add_blacksheet(
            tower_pv,
            tower,
            bs_solid,
            "WCExtraTowerBlackSheet",
            "WaterBSExtraTowerSurface",
            "BSTowerSkinSurface",
        )
        return tower

    def _place_barrel_sensors(self, annulus: Any, tower: Optional[Any]) -> None:
        p = self.profile
        rings = barrel_rings(p)
        placed = tile_wall(
            rings,
            regular_wedges(p),
            p.pmt_per_cell_vertical,
            p.orientation,
            self.provider,
            self.counter,
            region="barrel",
            mother="WCBarrelAnnulus",
        )
        self._emit(placed, annulus)
        wedge = extra_tower_wedge(p)
        if tower is not None and wedge is not None:
            placed = tile_wall(
                rings,
                [wedge],
                p.pmt_per_cell_vertical,
                p.orientation,
                self.provider,
                self.counter,
                region="barrel_extra_tower",
                mother="WCExtraTower",
            )
            self._emit(placed, tower)

    # -- top veto -----------------------------------------------------------

    def _top_veto_origin(self) -> np.ndarray:
        return np.array([0.0, 0.0, self.profile.id_height / 2.0 + TOP_VETO_GAP])

    def _build_top_veto(self, barrel: Any) -> Any:
        p = self.profile
        b = self.builder
        radius = p.id_radius + float(p.radius_change_at(p.id_height / 2.0))
        veto_solid = b.tubs(
            "WCTopVeto", 0.0, radius + TYVEK_THICKNESS, TOP_VETO_HALF_HEIGHT + TYVEK_THICKNESS
        )
        veto = b.logical(veto_solid, self.water, "WCTopVeto")
        veto_pv = b.place(veto, "WCTopVeto", barrel, position=self._top_veto_origin())

        disc_solid = b.tubs("WCTVTyvek", 0.0, radius, TYVEK_THICKNESS / 2.0)
        disc = b.logical(disc_solid, TYVEK, "WCTVTyvek")
        offset = TOP_VETO_HALF_HEIGHT + TYVEK_THICKNESS / 2.0
        for label, z in (("Bot", -offset), ("Top", offset)):
            disc_pv = b.place(disc, f"WCTVTyvek{label}", veto, position=(0.0, 0.0, z))
            b.border_surface(
                f"WaterTyTVSurface{label}", veto_pv, disc_pv, self.surfaces[WATER_TY_SURFACE]
            )

        side_solid = b.tubs(
            "WCTVTyvekSide", radius, radius + TYVEK_THICKNESS, TOP_VETO_HALF_HEIGHT + TYVEK_THICKNESS
        )
        side = b.logical(side_solid, TYVEK, "WCTVTyvekSide")
        side_pv = b.place(side, "WCTVTyvekSide", veto)
        b.border_surface("WaterTyTVSurfaceSide", veto_pv, side_pv, self.surfaces[WATER_TY_SURFACE])
        return veto

    def _place_top_veto_sensors(self, veto: Any) -> None:
        p = self.profile
        spacing = self.tuning.tv_spacing * cm
        points = cap_grid_points(p.cap_edge_limit, spacing, CapGrid.OFFSET)
        placed = tile_cap(
            points,
            p.pmt_radius,
            p.cap_edge_limit,
            np.eye(3),
            None,
            self.counter,
            region="top_veto",
            mother="WCTopVeto",
            origin=self._top_veto_origin(),
            z=-TOP_VETO_HALF_HEIGHT,
        )
        self._emit(placed, veto)
        logger.info(f"Total on top veto: {len(placed)}")
        logger.info(
            f"Coverage was calculated to be: {coverage(len(placed), p.pmt_radius, p.id_radius):g}"
        )

    # -- caps ---------------------------------------------------------------

    def _build_cap_assembly(self, z_sign: int, label: str) -> Any:
        """Build one cap with its border ring; ``z_sign`` is ``-1`` for the top."""

        p = self.profile
        b = self.builder
        dr = p.radius_change_at
        zs = z_sign
        cell = p.barrel_cell_height
        half_main = p.main_annulus_height / 2.0
        half_id = p.id_height / 2.0
        assembly_height = p.cap_assembly_height
        recess = p.id_radius - p.inner_annulus_radius
        offset = p.barrel_pmt_offset
        scale = p.extra_tower_scale
        phi_start = p.total_angle - 2.0 * math.pi
        phi_extra = p.extra_tower_angle - p.seam_gap
        with_tower = p.has_extra_tower and p.extra_tower_angle > 0.0
        assembly_origin = np.array([0.0, 0.0, self._assembly_z(zs)])

        assembly_solid = b.tubs(
            f"{label}CapAssembly",
            0.0,
            (p.outer_annulus_radius + max(dr(-zs * half_id), dr(-zs * half_main))) / math.cos(p.dphi / 2.0),
            assembly_height / 2.0,
        )
        assembly = b.logical(assembly_solid, self.water, f"{label}CapAssembly")

        # border ring
        border_z = [(-cell / 2.0 - recess) * zs, -cell / 2.0 * zs, cell / 2.0 * zs]
        if recess > offset:
            border_z[0] = (-cell / 2.0 - offset) * zs
        border_dr = [
            dr(-zs * (half_main + cell + recess)),
            dr(-zs * (half_main + cell)),
            dr(-zs * half_main),
        ]
        border_rmin = [
            p.id_radius + border_dr[0],
            p.inner_annulus_radius + border_dr[1],
            p.inner_annulus_radius + border_dr[2],
        ]
        border_rmax = [p.outer_annulus_radius + d for d in border_dr]
        bs_rmin = [p.id_radius + d for d in border_dr]
        bs_rmax = [p.id_radius + d + p.blacksheet_thickness for d in border_dr]
        border_position = (0.0, 0.0, (assembly_height / 2.0 - cell / 2.0) * zs)

        ring_name = f"{label}WCBarrelBorderRing"
        ring_solid = b.polyhedra(ring_name, 0.0, p.total_angle, p.n_phi, border_z, border_rmin, border_rmax)
        ring = b.logical(ring_solid, self.water, ring_name)
        ring_pv = b.place(ring, ring_name, assembly, position=border_position)
        self._add_blacksheet(
            ring_pv,
            ring,
            b.polyhedra(f"{label}WCBarrelBorderBlackSheet", 0.0, p.total_angle, p.n_phi,
                        border_z, bs_rmin, bs_rmax),
            f"{label}WCBarrelBorderBlackSheet",
            f"WaterBS{label}BarrelBorderSurface",
            f"BS{label}BarrelBorderSkinSurface",
        )

        extra_cell = None
        if with_tower:
            cell_name = f"{label}WCExtraBorderCell"
            cell_solid = b.polyhedra(
                cell_name, phi_start, phi_extra, 1, border_z,
                _scaled(border_rmin, scale), _scaled(border_rmax, scale),
            )
            extra_cell = b.logical(cell_solid, self.water, cell_name)
            cell_pv = b.place(extra_cell, cell_name, assembly, position=border_position)
            self._add_blacksheet(
                cell_pv,
                extra_cell,
                b.polyhedra(f"{label}WCExtraBorderBlackSheet", phi_start, phi_extra, 1,
                            border_z, _scaled(bs_rmin, scale), _scaled(bs_rmax, scale)),
                f"{label}WCExtraBorderBlackSheet",
                f"WaterBS{label}ExtraBorderSurface",
                f"BS{label}ExtraBorderSkinSurface",
            )

        # cap polygon
        step = offset - recess
        cap_z = [(-p.blacksheet_thickness - 1.0 * mm) * zs, 0.0, step * zs, step * zs, offset * zs]
        if offset < recess:
            cap_z[2] = cap_z[3] = 0.0
        cap_rmin = [0.0] * 5
        cap_rmax = [
            p.outer_annulus_radius + dr(-zs * half_id),
            p.outer_annulus_radius + dr(-zs * half_id),
            p.outer_annulus_radius + dr(-zs * (half_id - step)),
            p.id_radius + dr(-zs * (half_id - step)),
            p.inner_annulus_radius + dr(-zs * (half_id - offset)),
        ]
        cap_solid = self._polygon_with_slice(f"{label}WCCap", cap_z, cap_rmin, cap_rmax, with_tower)
        cap_name = f"{label}WCCapPolygon"
        cap = b.logical(cap_solid, self.water, cap_name)
        cap_position = (0.0, 0.0, (-assembly_height / 2.0 + 1.0 * mm + p.blacksheet_thickness) * zs)
        cap_pv = b.place(cap, f"{label}WCCap", assembly, position=cap_position)

        sheet_z = [-p.blacksheet_thickness * zs, 0.0, 0.0, step * zs]
        if offset < recess:
            sheet_z[3] = 0.0
        sheet_rmin = [0.0, 0.0, p.id_radius + dr(-zs * half_id), p.id_radius + dr(-zs * (half_id - step))]
        sheet_rmax = [p.id_radius + p.blacksheet_thickness + dr(-zs * half_id)] * 3 + [
            p.id_radius + p.blacksheet_thickness + dr(-zs * (half_id - step))
        ]
        self._add_blacksheet(
            cap_pv,
            cap,
            self._polygon_with_slice(
                f"{label}WCCapBlackSheet", sheet_z, sheet_rmin, sheet_rmax, with_tower
            ),
            f"{label}WCCapBlackSheet",
            f"WaterBS{label}CapPolySurface",
            f"BS{label}CapSkinSurface",
        )

        # sensors: cap grid, then border ring, then its extra cell
        region = label.lower()
        if self.place_cap_pmts:
            placed = tile_cap(
                cap_grid_points(p.cap_edge_limit, p.cap_pmt_spacing, p.cap_grid),
                p.pmt_radius,
                p.cap_edge_limit,
                cap_rotation(p.orientation, zs),
                self.provider,
                self.counter,
                region=f"{region}_cap",
                mother=cap_name,
                origin=assembly_origin + np.asarray(cap_position),
            )
            self._emit(placed, cap)
            logger.info(f"total on cap: {len(placed)}")
            logger.info(
                f"Coverage was calculated to be: {coverage(len(placed), p.pmt_radius, p.id_radius):g}"
            )

        if self.place_border_pmts:
            border_origin = assembly_origin + np.asarray(border_position)
            rings = [border_ring(p, zs)]
            placed = tile_wall(
                rings,
                regular_wedges(p),
                p.pmt_per_cell_vertical,
                p.orientation,
                self.provider,
                self.counter,
                region=f"{region}_border",
                mother=ring_name,
                origin=border_origin,
            )
            self._emit(placed, ring)
            wedge = extra_tower_wedge(p)
            if extra_cell is not None and wedge is not None:
                placed = tile_wall(
                    rings,
                    [wedge],
                    p.pmt_per_cell_vertical,
                    p.orientation,
                    self.provider,
                    self.counter,
                    region=f"{region}_border_extra_tower",
                    mother=f"{label}WCExtraBorderCell",
                    origin=border_origin,
                )
                self._emit(placed, extra_cell)
        return assembly

    def _polygon_with_slice(self, name: str, z, rmin, rmax, with_tower: bool) -> Any:
        """Regular polygon over the covered angle, joined with the extra slice if any."""

        p = self.profile
        b = self.builder
        if not with_tower:
            return b.polyhedra(name, 0.0, p.total_angle, p.n_phi, z, rmin, rmax)
        scale = p.extra_tower_scale
        main = b.polyhedra(f"{name}MainPart", 0.0, p.total_angle, p.n_phi, z, rmin, rmax)
        extra = b.polyhedra(
            f"{name}ExtraSlice",
            p.total_angle - 2.0 * math.pi,
            p.extra_tower_angle - p.seam_gap,
            1,
            z,
            _scaled(rmin, scale),
            _scaled(rmax, scale),
        )
        return b.union(name, main, extra)


def construct_cylinder(
    profile: DetectorProfile,
    tuning: Optional[TuningParameters] = None,
    builder: Optional[GeometryBuilder] = None,
    provider: Optional[SensorPositionProvider] = None,
    **options,
) -> Optional[Detector]:
    """Shortcut for ``DetectorConstruction(...).construct_cylinder()``."""

    return DetectorConstruction(profile, tuning, builder, provider, **options).construct_cylinder()
