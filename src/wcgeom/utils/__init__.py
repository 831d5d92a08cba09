"""Utility helpers for wcgeom."""

from .config_utils import JsonConfigStore, load_settings, save_settings

__all__ = ["JsonConfigStore", "load_settings", "save_settings"]
