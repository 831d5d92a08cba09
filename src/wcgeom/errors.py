"""Exception types raised by :mod:`wcgeom`."""


class WCGeomError(Exception):
    """Base class for all errors raised by this package."""


class ProfileError(WCGeomError, ValueError):
    """A detector profile holds dimensions that cannot be laid out."""


class TuningError(WCGeomError, ValueError):
    """A tuning command or parameter value was rejected."""


class PositionTableError(WCGeomError, ValueError):
    """A sensor position table is malformed or too short."""


class GeometryError(WCGeomError):
    """The geometry being built is inconsistent."""


class GeometryOverlapError(GeometryError):
    """Two sensors placed in the same mother volume intersect."""

    def __init__(self, overlaps):
        self.overlaps = list(overlaps)
        first = self.overlaps[0]
        super().__init__(
            f"{len(self.overlaps)} overlapping sensor pair(s); first is "
            f"{first.first} and {first.second} in {first.mother} "
            f"({first.distance:.3f} mm apart)"
        )
