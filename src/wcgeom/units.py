"""Length units.

All lengths handled by :mod:`wcgeom` are expressed in millimetres and all
angles in radians. Multiply a value by one of these constants to convert it
into internal units, e.g. ``2.3 * m``.
"""

mm = 1.0
cm = 10.0 * mm
m = 1000.0 * mm
