"""Sources of sensor positions used by the tiling.

The tiling asks a provider for the position of every sensor slot it visits,
identified by the slot's table index. A provider may return the nominal grid
position, substitute its own, or return ``None`` to leave the slot empty.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol

import numpy as np
import pandas as pd

from ..errors import PositionTableError

logger = logging.getLogger(__name__)

TABLE_COLUMNS = ["x", "y", "z", "use"]


class SensorPositionProvider(Protocol):
    """Supply the global position of the sensor at ``table_index``."""

    def position_for(self, table_index: int, nominal: np.ndarray) -> Optional[np.ndarray]:
        ...


class GridPositions:
    """Keep every sensor at its nominal grid position."""

    def position_for(self, table_index: int, nominal: np.ndarray) -> np.ndarray:
        return np.asarray(nominal, dtype=float)


class TablePositions:
    """Positions read from a table, one row per sensor slot.

    Row ``n`` holds the global position for table index ``n``. Rows whose
    ``use`` flag is zero leave their slot empty.
    """

    def __init__(self, positions, use=None) -> None:
        self.positions = np.asarray(positions, dtype=float).reshape(-1, 3)
        if use is None:
            use = np.ones(len(self.positions), dtype=bool)
        self.use = np.asarray(use, dtype=bool)
        if len(self.use) != len(self.positions):
            raise PositionTableError("position and use columns differ in length")

    def __len__(self) -> int:
        return len(self.positions)

    @property
    def n_used(self) -> int:
        return int(self.use.sum())

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> "TablePositions":
        missing = [c for c in ("x", "y", "z") if c not in frame.columns]
        if missing:
            raise PositionTableError(f"position table lacks column(s): {', '.join(missing)}")
        use = frame["use"].to_numpy() if "use" in frame.columns else None
        return cls(frame[["x", "y", "z"]].to_numpy(dtype=float), use)

    def position_for(self, table_index: int, nominal: np.ndarray) -> Optional[np.ndarray]:
        if table_index >= len(self.positions):
            raise PositionTableError(
                f"position table has {len(self.positions)} rows but sensor "
                f"{table_index} was requested"
            )
        if not self.use[table_index]:
            return None
        return self.positions[table_index].copy()


class JitteredPositions:
    """Add Gaussian noise to the positions returned by another provider.

    Each coordinate receives independent noise of standard deviation
    ``sigma`` (mm). A fixed ``seed`` reproduces the same layout.
    """

    def __init__(self, inner: SensorPositionProvider, sigma: float, seed: int | None = None) -> None:
        if sigma < 0:
            raise ValueError(f"jitter sigma must not be negative, got {sigma}")
        self.inner = inner
        self.sigma = float(sigma)
        self.rng = np.random.default_rng(seed)

    def position_for(self, table_index: int, nominal: np.ndarray) -> Optional[np.ndarray]:
        position = self.inner.position_for(table_index, nominal)
        if position is None:
            return None
        if self.sigma == 0.0:
            return position
        return position + self.rng.normal(0.0, self.sigma, size=3)


def read_position_table(path: str | Path) -> TablePositions:
    """Read a sensor position table.

    The file holds one sensor per line with whitespace or comma separated
    ``x y z`` columns in millimetres and an optional fourth ``use`` column
    (``1`` to place the sensor, ``0`` to skip it). Lines starting with ``#``
    are comments. A first line of column names is accepted.

    Parameters
    ----------
    path : str | Path
        Path to the table file.

    Returns
    -------
    TablePositions
        Provider serving the rows in file order.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    PositionTableError
        If the file is empty or holds non-numeric values.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    text = path.read_text(encoding="utf-8")
    lines = [line for line in text.splitlines() if line.strip() and not line.lstrip().startswith("#")]
    if not lines:
        raise PositionTableError(f"no positions found in {path}")

    sep = "," if "," in lines[0] else r"\s+"
    first = lines[0].replace(",", " ").split()
    has_header = first and first[0].lower() == "x"
    try:
        frame = pd.read_csv(
            path,
            sep=sep,
            comment="#",
            header=0 if has_header else None,
            engine="python",
            skip_blank_lines=True,
            skipinitialspace=True,
        )
    except (ValueError, pd.errors.ParserError) as exc:
        raise PositionTableError(f"could not parse position table {path}") from exc

    if not has_header:
        if frame.shape[1] not in (3, 4):
            raise PositionTableError(
                f"expected 3 or 4 columns in {path}, found {frame.shape[1]}"
            )
        frame.columns = TABLE_COLUMNS[: frame.shape[1]]
    else:
        frame.columns = [str(c).strip().lower() for c in frame.columns]
    try:
        frame = frame.apply(pd.to_numeric)
    except (ValueError, TypeError) as exc:
        raise PositionTableError(f"non-numeric data in position table {path}") from exc

    table = TablePositions.from_frame(frame)
    logger.info(f"Read {len(table)} sensor positions ({table.n_used} in use) from {path}")
    return table
