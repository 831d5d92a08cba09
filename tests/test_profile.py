import math
import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.append(str(Path(__file__).resolve().parent.parent / "src"))
from wcgeom.errors import ProfileError
from wcgeom.geometry.presets import PRESETS, get_preset
from wcgeom.geometry.profile import CapGrid, Orientation
from wcgeom.geometry.tiling import barrel_rings, barrel_z_planes, border_ring
from wcgeom.units import m, mm


@pytest.fixture
def wcte():
    return get_preset("wcte_mpmt")


def test_presets_are_named_after_their_key():
    for name, profile in PRESETS.items():
        assert profile.name == name


def test_unknown_preset():
    with pytest.raises(ProfileError, match="unknown detector preset"):
        get_preset("hyperk")


def test_derived_heights(wcte):
    assert wcte.barrel_cell_height == pytest.approx(480.0)
    assert wcte.main_annulus_height == pytest.approx(1440.0)
    assert wcte.cap_assembly_height == pytest.approx((2700.0 - 1440.0) / 2 + 1.0 + 2.0)


def test_annulus_radii(wcte):
    assert wcte.inner_annulus_radius == pytest.approx(1500.0 - 30.0 - 200.0 - 1.0)
    assert wcte.outer_annulus_radius == pytest.approx(1500.0 + 2.0 + 1.0)
    single = wcte.with_changes(vessel_radius=0.0, vessel_cyl_height=0.0)
    assert single.inner_annulus_radius == pytest.approx(1500.0 - 230.0 - 1.0)


def test_tank_and_tolerance(wcte):
    assert wcte.wc_length == pytest.approx(2700.0 + 4.6 * m)
    assert wcte.wc_radius == pytest.approx((1500.0 + 2.0 + 1.5 * m) / math.cos(wcte.dphi / 2))
    assert wcte.world_extent == pytest.approx(max(wcte.wc_length, wcte.wc_radius))
    assert wcte.surface_tolerance == pytest.approx(wcte.world_extent * 1e-11)
    assert 0.0 < wcte.seam_gap < 1e-9


def test_flat_profile_keeps_constant_radius(wcte):
    assert not wcte.is_tapered
    for ring in barrel_rings(wcte):
        assert ring.r_start == pytest.approx(wcte.id_radius)
        assert ring.r_end == pytest.approx(wcte.id_radius)
    for z_sign in (-1, 1):
        ring = border_ring(wcte, z_sign)
        assert ring.r_start == ring.r_end == pytest.approx(wcte.id_radius)


def test_tapered_profile_is_interpolated(wcte):
    tapered = wcte.with_changes(radius_change=[(-1000.0, 0.0), (1000.0, 100.0)])
    assert tapered.is_tapered
    assert tapered.radius_change_at(0.0) == pytest.approx(50.0)
    assert tapered.radius_change_at(-5000.0) == pytest.approx(0.0)
    assert tapered.radius_change_at(5000.0) == pytest.approx(100.0)
    z = barrel_z_planes(tapered)
    expected = tapered.id_radius + np.interp(z, [-1000.0, 1000.0], [0.0, 100.0])
    radii = [ring.r_start for ring in barrel_rings(tapered)] + [barrel_rings(tapered)[-1].r_end]
    assert radii == pytest.approx(list(expected))


def test_z_planes_span_main_annulus(wcte):
    z = barrel_z_planes(wcte)
    assert len(z) == wcte.barrel_n_rings - 1
    assert z[0] == pytest.approx(-wcte.main_annulus_height / 2)
    assert z[-1] == pytest.approx(wcte.main_annulus_height / 2)
    assert np.diff(z) == pytest.approx([wcte.barrel_cell_height] * (len(z) - 1))


def test_extra_tower_scale():
    iwcd = get_preset("iwcd_mpmt")
    assert iwcd.has_extra_tower
    expected = math.cos(iwcd.extra_tower_angle / 2) / math.cos(iwcd.dphi / 2)
    assert iwcd.extra_tower_scale == pytest.approx(expected)
    assert iwcd.extra_tower_scale > 1.0
    assert get_preset("wcte_mpmt").extra_tower_scale == 1.0


def test_string_options_are_converted(wcte):
    profile = wcte.with_changes(orientation="vertical", cap_grid="offset")
    assert profile.orientation is Orientation.VERTICAL
    assert profile.cap_grid is CapGrid.OFFSET


@pytest.mark.parametrize(
    "changes",
    [
        {"barrel_n_rings": 2},
        {"id_height": 0.0},
        {"pmt_radius": -1.0},
        {"pmt_per_cell_vertical": 0},
        {"barrel_pmt_offset": 2000.0 * mm},
        {"pmt_per_cell_horizontal": 17},
        {"mpmt_ring_counts": (1, 6)},
    ],
)
def test_invalid_profiles(wcte, changes):
    with pytest.raises(ProfileError):
        wcte.with_changes(**changes)
