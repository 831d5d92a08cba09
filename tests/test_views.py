import logging
import sys
from pathlib import Path

import pandas as pd
import pytest

sys.path.append(str(Path(__file__).resolve().parent.parent / "src"))
from wcgeom.geometry.construct import construct_cylinder
from wcgeom.geometry.presets import get_preset
from wcgeom.tuning import TuningParameters
from wcgeom.views import coverage_summary, placements_to_frame, plot_layout, write_placements


@pytest.fixture(scope="module")
def detector():
    return construct_cylinder(get_preset("wcte_mpmt"), TuningParameters(top_veto=True, tv_spacing=60.0))


def test_frame_columns(detector):
    frame = placements_to_frame(detector)
    assert len(frame) == detector.n_sensors
    assert list(frame["sensor_id"]) == list(range(detector.n_sensors))
    veto = frame[frame["region"] == "top_veto"]
    assert veto["table_index"].isna().all()
    assert frame.loc[~frame["table_index"].isna(), "table_index"].iloc[0] == 0
    assert (frame["r"] >= 0).all()


def test_write_placements(detector, tmp_path, caplog):
    path = tmp_path / "sensors.csv"
    with caplog.at_level(logging.INFO):
        write_placements(detector, path)
    assert f"Saved: {path}" in caplog.text
    frame = pd.read_csv(path)
    assert len(frame) == detector.n_sensors
    assert set(frame["region"]) == set(detector.region_counts())


def test_coverage_summary(detector):
    summary = coverage_summary(detector)
    assert list(summary["region"]) == list(detector.region_counts())
    assert summary["sensors"].sum() == detector.n_sensors
    assert (summary["coverage"] > 0).all()


def test_plot_layout_saved(detector, tmp_path, caplog):
    path = tmp_path / "layout.png"
    with caplog.at_level(logging.INFO):
        plot_layout(detector, path)
    assert path.exists()
    assert f"Saved: {path}" in caplog.text


def test_vedo_actors(detector):
    pytest.importorskip("vedo")
    from wcgeom.views.vedo_view import layout_actors

    actors = layout_actors(detector)
    assert [a.name for a in actors] == list(detector.region_counts())
