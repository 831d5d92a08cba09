"""Named detector profiles."""

from __future__ import annotations

from ..errors import ProfileError
from ..units import cm, mm
from .profile import CapGrid, DetectorProfile, Orientation

PRESETS: dict[str, DetectorProfile] = {
    # Intermediate detector tiled with 50 cm multi-PMT modules. 35 modules do
    # not fill 17 two-module cells, so the barrel carries an extra tower.
    "iwcd_mpmt": DetectorProfile(
        name="iwcd_mpmt",
        id_height=600.0 * cm,
        id_diameter=600.0 * cm,
        barrel_n_rings=10,
        barrel_num_pmt_horizontal=35,
        pmt_per_cell_horizontal=2,
        pmt_per_cell_vertical=1,
        barrel_pmt_offset=30.0 * cm,
        cap_pmt_spacing=58.0 * cm,
        cap_edge_limit=280.0 * cm,
        pmt_radius=254.0 * mm,
        pmt_expose_height=292.0 * mm,
        blacksheet_thickness=2.0 * mm,
        vessel_radius=254.0 * mm,
        vessel_cyl_height=38.0 * mm,
        mpmt_pmt_radius=40.0 * mm,
        orientation=Orientation.PERPENDICULAR,
        cap_grid=CapGrid.OFFSET,
    ),
    # Beam-test detector: one module per cell and a cap grid centred on the
    # axis.
    "wcte_mpmt": DetectorProfile(
        name="wcte_mpmt",
        id_height=270.0 * cm,
        id_diameter=300.0 * cm,
        barrel_n_rings=5,
        barrel_num_pmt_horizontal=16,
        pmt_per_cell_horizontal=1,
        pmt_per_cell_vertical=1,
        barrel_pmt_offset=15.0 * cm,
        cap_pmt_spacing=48.0 * cm,
        cap_edge_limit=130.0 * cm,
        pmt_radius=200.0 * mm,
        pmt_expose_height=230.0 * mm,
        blacksheet_thickness=2.0 * mm,
        vessel_radius=200.0 * mm,
        vessel_cyl_height=30.0 * mm,
        mpmt_pmt_radius=30.0 * mm,
        orientation=Orientation.PERPENDICULAR,
        cap_grid=CapGrid.CENTRED,
    ),
}

DEFAULT_PRESET = "iwcd_mpmt"


def get_preset(name: str) -> DetectorProfile:
    """Return the preset profile called ``name``."""

    try:
        return PRESETS[name]
    except KeyError as exc:
        raise ProfileError(
            f"unknown detector preset {name!r}; choose from {', '.join(sorted(PRESETS))}"
        ) from exc
