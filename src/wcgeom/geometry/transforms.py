"""Rotation helpers built on :class:`scipy.spatial.transform.Rotation`.

Placement rotations use the frame convention of the toolkit: the matrix
rotates the mother frame into the daughter frame, and a further rotation is
composed on the left (``Rotation.from_euler("x", a) * r``), so successive
compositions read in the order the rotations are applied.
"""

from __future__ import annotations

import warnings

import numpy as np
from scipy.spatial.transform import Rotation


def rotate_about_z(vector, angle: float) -> np.ndarray:
    """Rotate a position vector about the Z axis by ``angle``."""

    return Rotation.from_euler("z", angle).apply(np.asarray(vector, dtype=float))


def matrix_to_xyz_angles(matrix: np.ndarray) -> tuple[float, float, float]:
    """Decompose ``matrix`` into the extrinsic angles ``(ax, ay, az)``.

    Rotating about X, then Y, then Z by these angles rebuilds the matrix,
    which is the order in which GDML rotation elements are applied.
    """

    # gimbal lock leaves the Z angle at zero, which still rebuilds the matrix
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        angles = Rotation.from_matrix(np.asarray(matrix, dtype=float)).as_euler("xyz")
    return tuple(float(a) for a in angles)
