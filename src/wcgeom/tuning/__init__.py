"""Runtime-tunable optical parameters and the command interface setting them."""

from .messenger import TuningCommand, TuningMessenger
from .parameters import TuningParameters

__all__ = ["TuningCommand", "TuningMessenger", "TuningParameters"]
