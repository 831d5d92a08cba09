import math
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parent.parent / "src"))
from wcgeom.errors import ProfileError
from wcgeom.geometry.profile import compute_cell_grid


def test_divisible_counts_have_no_extra_tower():
    grid = compute_cell_grid(120, 4)
    assert grid.n_phi == 30
    assert grid.dphi == pytest.approx(2 * math.pi / 30)
    assert grid.total_angle == pytest.approx(2 * math.pi)
    assert grid.extra_tower_angle == 0.0
    assert grid.extra_tower_pmts == 0
    assert not grid.has_extra_tower


def test_remainder_goes_to_extra_tower():
    grid = compute_cell_grid(125, 4)
    assert grid.n_phi == 31
    assert grid.total_angle == pytest.approx(2 * math.pi * (31 * 4 / 125))
    assert grid.extra_tower_angle > 0.0
    assert grid.extra_tower_pmts == 1
    assert grid.total_angle + grid.extra_tower_angle == pytest.approx(2 * math.pi, abs=1e-12)
    assert grid.dphi == pytest.approx(grid.total_angle / 31)


@pytest.mark.parametrize("total, per_cell", [(35, 2), (17, 3), (100, 7), (64, 5)])
def test_angles_close_the_circle(total, per_cell):
    grid = compute_cell_grid(total, per_cell)
    assert grid.has_extra_tower == (total % per_cell != 0)
    assert grid.total_angle + grid.extra_tower_angle == pytest.approx(2 * math.pi, abs=1e-12)
    assert grid.n_phi * per_cell + grid.extra_tower_pmts == total


@pytest.mark.parametrize("total, per_cell", [(0, 1), (10, 0), (3, 4), (-5, 1)])
def test_invalid_counts_are_rejected(total, per_cell):
    with pytest.raises(ProfileError):
        compute_cell_grid(total, per_cell)
