"""Tabular, 2-D and 3-D views of a constructed detector."""

from .layout_plot import plot_layout
from .summary import coverage_summary, placements_to_frame, write_placements

__all__ = ["coverage_summary", "placements_to_frame", "plot_layout", "write_placements"]
