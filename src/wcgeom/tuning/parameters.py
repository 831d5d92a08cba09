"""Store for the optical tuning parameters used during construction."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import TuningError

logger = logging.getLogger(__name__)

PMT_SURFACE_MODELS = {0: "dielectric", 1: "photocathode thin film"}
CATHODE_PARAMETER_SETS = {0: "SK", 1: "KCsRb", 2: "RbCsCb"}

_TRUE = {"true", "1", "yes", "y", "on", "t"}
_FALSE = {"false", "0", "no", "n", "off", "f"}


def parse_bool(text: str) -> bool:
    """Parse a boolean command argument the way the macro interpreter does."""

    value = text.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise TuningError(f"cannot interpret {text!r} as a boolean")


@dataclass
class TuningParameters:
    """Optical tuning factors and top-veto switches.

    ``tv_spacing`` is stored in centimetres, the unit used on the command
    line; convert it with :data:`wcgeom.units.cm` before laying out sensors.
    """

    rayff: float = 0.75
    bsrff: float = 2.50
    abwff: float = 1.30
    rgcff: float = 0.32
    mieff: float = 0.0
    pmt_surf_type: int = 0
    cathode_para: int = 0
    tv_spacing: float = 100.0
    top_veto: bool = False

    def set_rayff(self, value: float) -> None:
        """Set the Rayleigh scattering parameter."""

        self.rayff = float(value)
        logger.info(f"Setting Rayleigh scattering parameter {self.rayff:f}")

    def set_bsrff(self, value: float) -> None:
        """Set the blacksheet reflection parameter."""

        self.bsrff = float(value)
        logger.info(f"Setting blacksheet reflection parameter {self.bsrff:f}")

    def set_abwff(self, value: float) -> None:
        """Set the water attenuation parameter."""

        self.abwff = float(value)
        logger.info(f"Setting water attenuation parameter {self.abwff:f}")

    def set_rgcff(self, value: float) -> None:
        """Set the cathode reflectivity parameter."""

        self.rgcff = float(value)
        logger.info(f"Setting cathode reflectivity parameter {self.rgcff:f}")

    def set_mieff(self, value: float) -> None:
        """Set the Mie scattering parameter."""

        self.mieff = float(value)
        logger.info(f"Setting Mie scattering parameter {self.mieff:f}")

    def set_pmt_surf_type(self, value: int) -> None:
        """Select the photocathode surface optical model."""

        value = int(value)
        if value not in PMT_SURFACE_MODELS:
            raise TuningError(
                f"unknown PMT surface model {value}; choose from {sorted(PMT_SURFACE_MODELS)}"
            )
        self.pmt_surf_type = value
        logger.info(
            f"Setting PMT photocathode surface optical model as Model {value} "
            "(0 means default dielectric model)"
        )

    def set_cathode_para(self, value: int) -> None:
        """Select the photocathode surface parameter set."""

        value = int(value)
        if value not in CATHODE_PARAMETER_SETS:
            raise TuningError(
                f"unknown cathode parameter set {value}; choose from {sorted(CATHODE_PARAMETER_SETS)}"
            )
        self.cathode_para = value
        logger.info(
            f"Setting PMT photocathode surface parameters as Choice {value} "
            "(0 = SK, 1 = KCsRb, 2 = RbCsCb)"
        )

    def set_tv_spacing(self, value: float) -> None:
        """Set the top-veto sensor spacing in centimetres."""

        value = float(value)
        if value <= 0:
            raise TuningError(f"top veto spacing must be positive, got {value}")
        self.tv_spacing = value
        logger.info(f"Setting Top Veto PMT Spacing {value:f}")

    def set_top_veto(self, enabled: bool | str) -> None:
        """Turn the top-veto volume and its sensors on or off.

        Strings such as ``"false"`` or ``"on"`` are parsed with
        :func:`parse_bool`.
        """

        self.top_veto = parse_bool(enabled) if isinstance(enabled, str) else bool(enabled)
        logger.info("Setting Top Veto On" if self.top_veto else "Setting Top Veto Off")

