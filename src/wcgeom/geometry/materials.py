"""Material names and optical surfaces, parametrised by the tuning factors."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import TuningError
from ..tuning.parameters import CATHODE_PARAMETER_SETS, PMT_SURFACE_MODELS, TuningParameters

AIR = "Air"
WATER = "Water"
DOPED_WATER = "Doped Water"
BLACKSHEET = "Blacksheet"
TYVEK = "Tyvek"
GLASS = "Glass"
ACRYLIC = "Acrylic"

# Predefined toolkit materials standing in for each name when exporting.
NIST_NAMES = {
    AIR: "G4_AIR",
    WATER: "G4_WATER",
    BLACKSHEET: "G4_POLYETHYLENE",
    TYVEK: "G4_POLYETHYLENE",
    GLASS: "G4_Pyrex_Glass",
    ACRYLIC: "G4_PLEXIGLASS",
}

# gadolinium mass fraction of doped water
GD_MASS_FRACTION = 0.002

WATER_BS_SURFACE = "WaterBSSurface"
BS_SKIN_SURFACE = "BSSkinSurface"
WATER_TY_SURFACE = "WaterTySurface"
CATHODE_SURFACE = "PhotocathodeSurface"


def water_material(add_gd: bool) -> str:
    return DOPED_WATER if add_gd else WATER


@dataclass(frozen=True)
class OpticalSurfaceSpec:
    """Optical model of a surface as handed to the toolkit."""

    name: str
    model: str
    finish: str
    surface_type: str
    sigma_alpha: float = 0.0
    properties: dict = field(default_factory=dict)


def optical_surfaces(tuning: TuningParameters) -> dict[str, OpticalSurfaceSpec]:
    """Build the optical surfaces used by the detector.

    Blacksheet reflectivity is scaled by ``bsrff`` and photocathode
    reflectivity by ``rgcff``. ``pmt_surf_type`` selects between the plain
    dielectric photocathode and the thin-film model; ``cathode_para`` picks
    the parameter set of the latter.
    """

    if tuning.pmt_surf_type not in PMT_SURFACE_MODELS:
        raise TuningError(f"unknown PMT surface model {tuning.pmt_surf_type}")
    if tuning.cathode_para not in CATHODE_PARAMETER_SETS:
        raise TuningError(f"unknown cathode parameter set {tuning.cathode_para}")

    cathode_properties = {"REFLECTIVITY_SCALE": tuning.rgcff}
    if tuning.pmt_surf_type == 1:
        cathode_properties["CATHODE_PARAMETER_SET"] = float(tuning.cathode_para)
        cathode_type = "dielectric_metal"
    else:
        cathode_type = "dielectric_dielectric"

    surfaces = [
        OpticalSurfaceSpec(
            WATER_BS_SURFACE,
            model="unified",
            finish="groundfrontpainted",
            surface_type="dielectric_dielectric",
            sigma_alpha=0.1,
            properties={"REFLECTIVITY_SCALE": tuning.bsrff},
        ),
        OpticalSurfaceSpec(
            BS_SKIN_SURFACE,
            model="unified",
            finish="groundfrontpainted",
            surface_type="dielectric_dielectric",
            sigma_alpha=0.1,
            properties={"REFLECTIVITY_SCALE": tuning.bsrff},
        ),
        OpticalSurfaceSpec(
            WATER_TY_SURFACE,
            model="unified",
            finish="groundbackpainted",
            surface_type="dielectric_dielectric",
            sigma_alpha=0.2,
        ),
        OpticalSurfaceSpec(
            CATHODE_SURFACE,
            model="unified",
            finish="polished",
            surface_type=cathode_type,
            properties=cathode_properties,
        ),
    ]
    return {surface.name: surface for surface in surfaces}


def water_optical_scales(tuning: TuningParameters) -> dict[str, float]:
    """Scale factors applied to the bulk optical properties of the water."""

    return {
        "RAYLEIGH_SCALE": tuning.rayff,
        "ABSLENGTH_SCALE": tuning.abwff,
        "MIE_SCALE": tuning.mieff,
    }
