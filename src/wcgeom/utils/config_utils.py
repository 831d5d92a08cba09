"""Persistent JSON settings for the wcgeom command line tools."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

# Paths used for storing configuration
PROJECT_SETTINGS_PATH = Path.cwd() / "wcgeom.json"
HOME_SETTINGS_PATH = Path.home() / ".wcgeom_settings.json"
SETTINGS_ENV_VAR = "WCGEOM_SETTINGS"


@dataclass(slots=True)
class JsonConfigStore:
    """Simple JSON-backed store for persisting configuration dictionaries."""

    path: Path

    def load(self) -> Dict[str, Any]:
        """Return the JSON payload stored at :attr:`path` if it exists."""

        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"settings file {self.path} does not hold a JSON object")
        return data

    def merge(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Merge ``updates`` into the existing JSON configuration."""

        data = self.load()
        data.update(updates)
        with open(self.path, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2)
        return data


def settings_paths() -> list[Path]:
    """Return candidate settings files in order of precedence.

    1. The file named by the ``WCGEOM_SETTINGS`` environment variable
    2. ``wcgeom.json`` in the current working directory
    3. ``~/.wcgeom_settings.json``
    """

    paths = []
    override = os.getenv(SETTINGS_ENV_VAR)
    if override:
        paths.append(Path(override).expanduser())
    paths.extend([PROJECT_SETTINGS_PATH, HOME_SETTINGS_PATH])
    return paths


def load_settings() -> Dict[str, Any]:
    """Load settings from the first readable settings file.

    Malformed files are reported and skipped so that the next candidate is
    used instead.
    """

    for path in settings_paths():
        try:
            data = JsonConfigStore(path).load()
        except (OSError, ValueError) as exc:
            logger.warning(f"Ignoring unreadable settings file {path}: {exc}")
            continue
        if data:
            logger.debug(f"Loaded settings from {path}")
            return data
    return {}


def save_settings(data: Dict[str, Any], path: Path | None = None) -> Dict[str, Any]:
    """Persist ``data`` to ``path`` (the project settings file by default).

    Existing settings are merged so that only provided keys are updated.
    """

    store = JsonConfigStore(Path(path) if path is not None else PROJECT_SETTINGS_PATH)
    return store.merge(data)
