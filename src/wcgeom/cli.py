#!/usr/bin/env python3

"""Command line interface for building detector geometries.

Builds a preset detector, optionally tuned by a macro file and individual
``--set`` commands, and writes the sensor placements, a layout plot or a
GDML file. Settings stored in ``wcgeom.json`` (see
:mod:`wcgeom.utils.config_utils`) provide defaults for the options.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .errors import WCGeomError
from .geometry.construct import DetectorConstruction
from .geometry.positions import GridPositions, JitteredPositions, read_position_table
from .geometry.presets import DEFAULT_PRESET, PRESETS, get_preset
from .geometry.scene import SceneBuilder
from .tuning.messenger import TuningMessenger
from .tuning.parameters import TuningParameters
from .utils import logging_config
from .utils.config_utils import load_settings

logger = logging.getLogger(__name__)


def build_parser(settings: dict) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wcgeom",
        description="Lay out the sensors of a cylindrical water-Cherenkov detector.",
        epilog="Tuning commands use the /WCSim/tuning/ directory, e.g. --set rayff=0.8",
    )
    parser.add_argument(
        "-p",
        "--preset",
        default=settings.get("preset", DEFAULT_PRESET),
        help=f"Detector preset (default: {settings.get('preset', DEFAULT_PRESET)})",
    )
    parser.add_argument("-m", "--macro", type=str, help="Macro file with /WCSim/tuning/ commands")
    parser.add_argument(
        "-s",
        "--set",
        dest="settings",
        action="append",
        default=[],
        metavar="CMD=VALUE",
        help="Apply one tuning command, e.g. topveto=true (repeatable)",
    )
    parser.add_argument("-t", "--table", type=str, default=settings.get("table"),
                        help="Sensor position table to read instead of the regular grid")
    parser.add_argument("--jitter", type=float, default=settings.get("jitter", 0.0),
                        help="Gaussian position jitter in mm (default: 0)")
    parser.add_argument("--seed", type=int, default=settings.get("seed"),
                        help="Random seed for the jitter")
    parser.add_argument("-o", "--output", type=str, help="Write sensor placements to this CSV file")
    parser.add_argument("--plot", type=str, help="Save a layout plot to this file")
    parser.add_argument("--gdml", type=str, help="Write the geometry to this GDML file (needs pyg4ometry)")
    parser.add_argument("--view", action="store_true", help="Show the sensors in 3-D (needs vedo)")
    parser.add_argument(
        "--no-overlap-check",
        dest="check_overlaps",
        action="store_false",
        default=settings.get("check_overlaps", True),
        help="Do not fail on intersecting sensors",
    )
    parser.add_argument("--list-presets", action="store_true", help="List detector presets and exit")
    parser.add_argument("--list-commands", action="store_true", help="List tuning commands and exit")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level (default: LOG_LEVEL or INFO)")
    return parser


def _apply_tuning(messenger: TuningMessenger, args: argparse.Namespace, settings: dict) -> None:
    for path, value in settings.get("tuning", {}).items():
        messenger.set_new_value(path, value if isinstance(value, str) else str(value))
    if args.macro:
        messenger.apply_macro(args.macro)
    for item in args.settings:
        name, sep, value = item.partition("=")
        messenger.set_new_value(name.strip(), value if sep else None)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the geometry CLI. Returns the process exit code."""

    settings = load_settings()
    parser = build_parser(settings)
    args = parser.parse_args(argv)
    logging_config.configure(args.log_level)

    if args.list_presets:
        for name, profile in PRESETS.items():
            print(
                f"{name}: {profile.barrel_num_pmt_horizontal} x {profile.barrel_n_rings} barrel, "
                f"ID {profile.id_diameter / 1000:g} m x {profile.id_height / 1000:g} m"
            )
        return 0

    messenger = TuningMessenger(TuningParameters())
    if args.list_commands:
        for line in messenger.guidance():
            print(line)
        return 0

    try:
        profile = get_preset(args.preset)
        _apply_tuning(messenger, args, settings)
        provider = read_position_table(args.table) if args.table else GridPositions()
        if args.jitter:
            provider = JitteredPositions(provider, args.jitter, args.seed)
    except (WCGeomError, OSError, ValueError) as exc:
        logger.error(str(exc))
        return 2

    if args.gdml:
        from .geometry.gdml import Pyg4ometryBuilder

        builder = Pyg4ometryBuilder()
    else:
        builder = SceneBuilder()

    construction = DetectorConstruction(
        profile,
        messenger.parameters,
        builder,
        provider,
        check_overlaps=args.check_overlaps,
    )
    try:
        detector = construction.construct_cylinder()
    except WCGeomError as exc:
        logger.error(f"Construction failed: {exc}")
        return 1
    if detector is None:
        logger.error("Construction failed: no sensor unit could be built")
        return 1

    for region, count in detector.region_counts().items():
        logger.info(f"{region}: {count} sensors")

    if args.output:
        from .views.summary import write_placements

        write_placements(detector, args.output)
    if args.plot:
        from .views.layout_plot import plot_layout

        plot_layout(detector, args.plot)
    if args.gdml:
        from .geometry.gdml import write_gdml

        write_gdml(builder, Path(args.gdml))
    if args.view:
        from .views.vedo_view import show_layout_3d

        show_layout_3d(detector)
    return 0


if __name__ == "__main__":
    sys.exit(main())
