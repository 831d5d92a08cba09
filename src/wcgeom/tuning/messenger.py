"""Command interface mapping ``/WCSim/tuning/`` paths onto parameter setters.

Commands follow the macro syntax of the simulation they tune::

    /WCSim/tuning/rayff 0.8
    /WCSim/tuning/topveto true

A command given without a value applies its default.
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from ..errors import TuningError
from .parameters import TuningParameters, parse_bool

logger = logging.getLogger(__name__)

DIRECTORY = "/WCSim/tuning/"
DIRECTORY_GUIDANCE = "Commands to change tuning parameters"

_CONVERTERS: dict[type, Callable[[str], Any]] = {
    float: float,
    int: int,
    bool: parse_bool,
}


@dataclass(frozen=True)
class TuningCommand:
    """One command of the tuning directory."""

    name: str
    value_type: type
    default: Any
    guidance: str
    setter: str

    @property
    def path(self) -> str:
        return DIRECTORY + self.name

    def convert(self, text: str | None) -> Any:
        """Return ``text`` converted to the command's type, or the default."""

        if text is None or not text.strip():
            return self.default
        try:
            return _CONVERTERS[self.value_type](text.strip())
        except ValueError as exc:
            raise TuningError(
                f"invalid value {text!r} for {self.path} "
                f"(expected {self.value_type.__name__})"
            ) from exc


COMMANDS = (
    TuningCommand("rayff", float, 0.75, "Set the Rayleigh scattering parameter", "set_rayff"),
    TuningCommand("bsrff", float, 2.50, "Set the Blacksheet reflection parameter", "set_bsrff"),
    TuningCommand("abwff", float, 1.30, "Set the water attenuation parameter", "set_abwff"),
    TuningCommand("rgcff", float, 0.32, "Set the cathode reflectivity parameter", "set_rgcff"),
    TuningCommand("mieff", float, 0.0, "Set the Mie scattering parameter", "set_mieff"),
    TuningCommand(
        "pmtsurftype", int, 0, "Set the PMT photocathode surface optical model", "set_pmt_surf_type"
    ),
    TuningCommand(
        "cathodepara", int, 0, "Set the PMT photocathode surface parameters", "set_cathode_para"
    ),
    TuningCommand("tvspacing", float, 100.0, "Set the Top Veto PMT Spacing, in cm.", "set_tv_spacing"),
    TuningCommand("topveto", bool, False, "Turn Top Veto simulation on/off", "set_top_veto"),
)


class TuningMessenger:
    """Dispatch tuning commands to a :class:`TuningParameters` instance."""

    def __init__(self, parameters: TuningParameters | None = None) -> None:
        self.parameters = parameters if parameters is not None else TuningParameters()
        self.commands = {command.path: command for command in COMMANDS}

    def command(self, path: str) -> TuningCommand:
        """Return the command registered under ``path``.

        A bare command name such as ``"rayff"`` is resolved inside the tuning
        directory.
        """

        if not path.startswith("/"):
            path = DIRECTORY + path
        try:
            return self.commands[path]
        except KeyError as exc:
            raise TuningError(f"command not found: {path}") from exc

    def set_new_value(self, path: str, value: Any) -> Any:
        """Apply ``value`` to the command at ``path`` and return the stored value.

        String values are converted with the command's parameter type; other
        values are passed to the setter unchanged.
        """

        command = self.command(path)
        if value is None or isinstance(value, str):
            value = command.convert(value)
        getattr(self.parameters, command.setter)(value)
        return value

    def apply(self, line: str) -> Any:
        """Execute one macro line such as ``"/WCSim/tuning/rayff 0.8"``."""

        parts = shlex.split(line, comments=True)
        if not parts:
            raise TuningError("empty command line")
        if len(parts) > 2:
            raise TuningError(f"too many parameters in {line!r}")
        value = parts[1] if len(parts) == 2 else None
        return self.set_new_value(parts[0], value)

    def apply_macro(self, path: str | Path) -> int:
        """Run every tuning command found in the macro file at ``path``.

        Blank lines, ``#`` comments and commands outside the tuning directory
        are skipped. Returns the number of commands applied.

        Raises
        ------
        FileNotFoundError
            If the macro file does not exist.
        TuningError
            If a tuning command is unknown or carries an invalid value. The
            message names the offending line.
        """

        path = Path(path)
        applied = 0
        for lineno, raw in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if not line.startswith(DIRECTORY):
                logger.debug(f"{path}:{lineno}: skipping {line.split()[0]}")
                continue
            try:
                self.apply(line)
            except TuningError as exc:
                raise TuningError(f"{path}:{lineno}: {exc}") from exc
            applied += 1
        logger.info(f"Applied {applied} tuning command(s) from {path}")
        return applied

    def guidance(self) -> list[str]:
        """Return ``path (type, default): guidance`` lines for every command."""

        lines = [f"{DIRECTORY} {DIRECTORY_GUIDANCE}"]
        for command in COMMANDS:
            lines.append(
                f"{command.path} ({command.value_type.__name__}, "
                f"default {command.default}): {command.guidance}"
            )
        return lines
