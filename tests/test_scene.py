import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.append(str(Path(__file__).resolve().parent.parent / "src"))
from wcgeom.errors import GeometryError
from wcgeom.geometry.materials import optical_surfaces
from wcgeom.geometry.presets import get_preset
from wcgeom.geometry.construct import construct_cylinder
from wcgeom.geometry.scene import SceneBuilder
from wcgeom.tuning import TuningParameters


def test_degenerate_solids_rejected():
    builder = SceneBuilder()
    with pytest.raises(GeometryError):
        builder.tubs("flat", 0.0, 100.0, 0.0)
    with pytest.raises(GeometryError):
        builder.polyhedra("bad", 0.0, 1.0, 4, [0.0, 1.0], [0.0], [1.0, 1.0])


def test_duplicate_surfaces_rejected():
    builder = SceneBuilder()
    surfaces = optical_surfaces(TuningParameters())
    surface = next(iter(surfaces.values()))
    solid = builder.tubs("box", 0.0, 10.0, 5.0)
    logical = builder.logical(solid, "Water", "box")
    first = builder.place(logical, "first", None)
    second = builder.place(logical, "second", None)
    builder.border_surface("one", first, second, surface)
    with pytest.raises(GeometryError):
        builder.border_surface("two", first, second, surface)
    builder.border_surface("reverse", second, first, surface)
    builder.skin_surface("skin", logical, surface)
    with pytest.raises(GeometryError):
        builder.skin_surface("skin again", logical, surface)


def test_detector_volume_tree():
    detector = construct_cylinder(get_preset("wcte_mpmt"))
    builder = detector.builder
    assert builder.world is detector.world
    assert builder.world.name == "WC"
    barrel_daughters = [d.name for d in builder.daughters_of("WCBarrel")]
    assert barrel_daughters == ["WCBarrelAnnulus", "TopCapAssembly", "BottomCapAssembly"]
    assert [d.name for d in builder.daughters_of("TopCapAssembly")] == [
        "TopWCBarrelBorderRing",
        "TopWCCap",
    ]
    summary = builder.summary()
    assert summary["physical_volumes"] == len(builder.physicals)
    annulus = builder.find_logical("WCBarrelAnnulus")
    assert len(annulus.solid.params["z_planes"]) == 4
    assert np.allclose(annulus.solid.params["r_inner"], detector.profile.inner_annulus_radius)
