"""Horizontal positions."""

from dataclasses import dataclass
from typing import Any

import pyproj

from derivekit.core.domains import WGS84


@dataclass(frozen=True)
class HorizontalPosition:
    """A point in the horizontal plane.

    Parameters
    ----------
    x : float
        First coordinate in ``crs`` (longitude for geographic systems).
    y : float
        Second coordinate in ``crs`` (latitude for geographic systems).
    crs : optional
        Anything accepted by ``pyproj.CRS.from_user_input``. Defaults to WGS84.

    """

    x: float
    y: float
    crs: Any = None

    def __post_init__(self):
        crs = WGS84 if self.crs is None else pyproj.CRS.from_user_input(self.crs)
        object.__setattr__(self, "crs", crs)

    def to_crs(self, crs: Any) -> "HorizontalPosition":
        """Return this position expressed in another coordinate reference system."""
        target = pyproj.CRS.from_user_input(crs)
        if self.crs.equals(target, ignore_axis_order=True):
            return HorizontalPosition(self.x, self.y, target)
        transformer = pyproj.Transformer.from_crs(self.crs, target, always_xy=True)
        x, y = transformer.transform(self.x, self.y)
        return HorizontalPosition(x, y, target)

    def to_wgs84(self) -> "HorizontalPosition":
        return self.to_crs(WGS84)
