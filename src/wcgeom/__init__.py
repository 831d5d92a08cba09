"""Geometry layout for cylindrical water-Cherenkov detectors."""

__version__ = "0.1.0"
