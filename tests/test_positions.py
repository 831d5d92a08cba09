import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.append(str(Path(__file__).resolve().parent.parent / "src"))
from wcgeom.errors import PositionTableError
from wcgeom.geometry.positions import (
    GridPositions,
    JitteredPositions,
    TablePositions,
    read_position_table,
)


def test_whitespace_table_without_header(tmp_path):
    table_file = tmp_path / "positions.txt"
    table_file.write_text("# sensor positions\n1 2 3\n\n  4.5   5 6\n7 8 9\n")
    table = read_position_table(table_file)
    assert len(table) == 3
    assert table.n_used == 3
    assert table.position_for(1, np.zeros(3)) == pytest.approx([4.5, 5.0, 6.0])


def test_csv_table_with_header_and_use_column(tmp_path, caplog):
    table_file = tmp_path / "positions.csv"
    table_file.write_text("x,y,z,use\n0,0,100,1\n10, 20, 30, 0\n-5,5,0,1\n")
    with caplog.at_level("INFO"):
        table = read_position_table(table_file)
    assert len(table) == 3
    assert table.n_used == 2
    assert table.position_for(1, np.zeros(3)) is None
    assert table.position_for(2, np.zeros(3)) == pytest.approx([-5.0, 5.0, 0.0])
    assert f"Read 3 sensor positions (2 in use) from {table_file}" in caplog.text


def test_table_shorter_than_layout():
    table = TablePositions([[0.0, 0.0, 0.0]])
    with pytest.raises(PositionTableError, match="1 rows"):
        table.position_for(1, np.zeros(3))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_position_table(tmp_path / "absent.txt")


def test_empty_file(tmp_path):
    table_file = tmp_path / "empty.txt"
    table_file.write_text("# nothing here\n\n")
    with pytest.raises(PositionTableError, match="no positions"):
        read_position_table(table_file)


def test_wrong_column_count(tmp_path):
    table_file = tmp_path / "bad.txt"
    table_file.write_text("1 2\n3 4\n")
    with pytest.raises(PositionTableError, match="3 or 4 columns"):
        read_position_table(table_file)


def test_non_numeric_values(tmp_path):
    table_file = tmp_path / "bad.txt"
    table_file.write_text("1 2 3\n4 five 6\n")
    with pytest.raises(PositionTableError):
        read_position_table(table_file)


def test_mismatched_use_column():
    with pytest.raises(PositionTableError):
        TablePositions([[0, 0, 0], [1, 1, 1]], use=[1])


def test_grid_returns_nominal():
    nominal = np.array([1.0, 2.0, 3.0])
    assert GridPositions().position_for(7, nominal) == pytest.approx(nominal)


def test_jitter_is_reproducible_with_seed():
    nominal = np.array([100.0, 0.0, -50.0])
    first = JitteredPositions(GridPositions(), 5.0, seed=3)
    second = JitteredPositions(GridPositions(), 5.0, seed=3)
    a = [first.position_for(i, nominal) for i in range(5)]
    b = [second.position_for(i, nominal) for i in range(5)]
    assert np.allclose(a, b)
    assert not np.allclose(a[0], nominal)


def test_jitter_keeps_unused_rows_empty():
    table = TablePositions([[0, 0, 0], [1, 1, 1]], use=[0, 1])
    jittered = JitteredPositions(table, 1.0, seed=0)
    assert jittered.position_for(0, np.zeros(3)) is None
    assert jittered.position_for(1, np.zeros(3)) is not None


def test_zero_jitter_is_identity():
    jittered = JitteredPositions(GridPositions(), 0.0)
    assert jittered.position_for(0, np.ones(3)) == pytest.approx([1.0, 1.0, 1.0])


def test_negative_jitter_rejected():
    with pytest.raises(ValueError):
        JitteredPositions(GridPositions(), -1.0)
