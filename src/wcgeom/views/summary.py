"""Tabular summaries of sensor placements."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from ..geometry.construct import Detector

logger = logging.getLogger(__name__)

PLACEMENT_COLUMNS = [
    "sensor_id",
    "table_index",
    "copy_number",
    "region",
    "mother",
    "x",
    "y",
    "z",
    "local_x",
    "local_y",
    "local_z",
    "phi",
    "r",
]


def placements_to_frame(detector: Detector) -> pd.DataFrame:
    """Return one row per placed sensor, ordered by ``sensor_id``.

    ``x``, ``y`` and ``z`` are global coordinates in millimetres; the
    ``local_`` columns are relative to the sensor's mother volume.
    ``table_index`` is missing for sensors that do not read a table row.
    """

    rows = []
    for p in detector.placements:
        gx, gy, gz = (float(c) for c in p.global_position)
        lx, ly, lz = (float(c) for c in p.position)
        rows.append(
            {
                "sensor_id": p.sensor_id,
                "table_index": p.table_index,
                "copy_number": p.copy_number,
                "region": p.region,
                "mother": p.mother,
                "x": gx,
                "y": gy,
                "z": gz,
                "local_x": lx,
                "local_y": ly,
                "local_z": lz,
                "phi": float(np.arctan2(gy, gx)),
                "r": float(np.hypot(gx, gy)),
            }
        )
    frame = pd.DataFrame(rows, columns=PLACEMENT_COLUMNS)
    frame["table_index"] = frame["table_index"].astype("Int64")
    return frame


def write_placements(detector: Detector, path: str | Path) -> Path:
    """Write the placement table of ``detector`` to a CSV file."""

    path = Path(path)
    placements_to_frame(detector).to_csv(path, index=False)
    logger.info(f"Saved: {path}")
    return path


def coverage_summary(detector: Detector) -> pd.DataFrame:
    """Sensor count and coverage per region."""

    counts = detector.region_counts()
    return pd.DataFrame(
        {
            "region": list(counts),
            "sensors": list(counts.values()),
            "coverage": [detector.coverage(region) for region in counts],
        }
    )
