"""Root logger setup for the ``wcgeom`` command line.

Library modules only create ``logging.getLogger(__name__)`` loggers; the
CLI calls :func:`configure` once with its ``--log-level`` option so that
construction totals, tuning changes and ``Saved:`` lines reach stderr.
Without an option the ``LOG_LEVEL`` environment variable decides.
"""

from __future__ import annotations

import logging
import os
from typing import Union

DEFAULT_FORMAT = "%(levelname)s:%(name)s:%(message)s"


def configure(level: Union[str, int, None] = None) -> None:
    """Route log records of every ``wcgeom`` module to stderr.

    ``level`` may be a level name such as ``"debug"`` or a number. Names
    that :mod:`logging` does not know select ``INFO``. Handlers installed
    by an earlier call are replaced.
    """

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=DEFAULT_FORMAT, force=True)
