"""Detector geometry: profile, sensor tiling and volume construction."""

from .construct import Detector, DetectorConstruction, construct_cylinder
from .positions import GridPositions, JitteredPositions, TablePositions, read_position_table
from .presets import DEFAULT_PRESET, PRESETS, get_preset
from .profile import CapGrid, CellGrid, DetectorProfile, Orientation, compute_cell_grid
from .scene import SceneBuilder
from .tiling import SensorPlacement

__all__ = [
    "CapGrid",
    "CellGrid",
    "DEFAULT_PRESET",
    "Detector",
    "DetectorConstruction",
    "DetectorProfile",
    "GridPositions",
    "JitteredPositions",
    "Orientation",
    "PRESETS",
    "SceneBuilder",
    "SensorPlacement",
    "TablePositions",
    "compute_cell_grid",
    "construct_cylinder",
    "get_preset",
    "read_position_table",
]
