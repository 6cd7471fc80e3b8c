"""Domain value types.

Horizontal, vertical and temporal domains describe where a variable has
values. They are small immutable value objects: plugins read them from source
metadata and synthesize new ones for the variables they derive.

Classes
-------
Extent
    Closed range between a low and a high value.
GeographicBoundingBox
    West/east/south/north bounds in degrees (WGS84).
HorizontalDomain
    Rectangular horizontal extent in a native coordinate reference system.
VerticalCrs
    Description of a vertical axis (units, direction, pressure or not).
VerticalDomain
    Vertical extent plus its vertical reference system.
TemporalDomain
    Time extent plus the CF calendar it is expressed in.

Functions
---------
calendar_bounds
    Earliest and latest representable instants in a CF calendar.
to_cftime
    Coerce a date-like value to a ``cftime.datetime`` in a given calendar.

"""

import datetime
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

import cftime
import numpy as np
import pandas as pd
import pyproj

from derivekit.core.constants import (
    CALENDAR_MAX_DATE,
    CALENDAR_MIN_DATE,
    DEFAULT_CALENDAR,
    THIRTY_DAY_CALENDARS,
    WGS84_EPSG,
)

WGS84 = pyproj.CRS.from_epsg(WGS84_EPSG)


@dataclass(frozen=True)
class Extent:
    """Closed range between ``low`` and ``high``."""

    low: Any
    high: Any

    def contains(self, value: Any) -> bool:
        return self.low <= value <= self.high


@dataclass(frozen=True)
class GeographicBoundingBox:
    """Bounding box in WGS84 degrees.

    Attributes
    ----------
    west : float
        Western bound longitude.
    east : float
        Eastern bound longitude.
    south : float
        Southern bound latitude.
    north : float
        Northern bound latitude.

    """

    west: float
    east: float
    south: float
    north: float


class HorizontalDomain:
    """Rectangular horizontal domain in a native coordinate reference system.

    Parameters
    ----------
    min_x, min_y, max_x, max_y : float
        Bounds of the domain, in the units of ``crs``.
    crs : pyproj.CRS or any input accepted by ``pyproj.CRS.from_user_input``, optional
        Native coordinate reference system. Defaults to WGS84.

    Notes
    -----
    The geographic bounding box is computed with ``pyproj.Transformer`` on
    first access, so projected domains report their extent in degrees
    regardless of the native system.

    """

    def __init__(
        self,
        min_x: float,
        min_y: float,
        max_x: float,
        max_y: float,
        crs: Any = None,
    ):
        self.min_x = float(min_x)
        self.min_y = float(min_y)
        self.max_x = float(max_x)
        self.max_y = float(max_y)
        self.crs = WGS84 if crs is None else pyproj.CRS.from_user_input(crs)
        self._geographic_bounding_box = None

    @classmethod
    def from_geographic_bounding_box(
        cls, bbox: GeographicBoundingBox
    ) -> "HorizontalDomain":
        return cls(bbox.west, bbox.south, bbox.east, bbox.north, crs=WGS84)

    @property
    def is_geographic(self) -> bool:
        return self.crs.equals(WGS84, ignore_axis_order=True)

    @property
    def geographic_bounding_box(self) -> GeographicBoundingBox:
        if self._geographic_bounding_box is None:
            if self.is_geographic:
                west, south, east, north = (
                    self.min_x,
                    self.min_y,
                    self.max_x,
                    self.max_y,
                )
            else:
                transformer = pyproj.Transformer.from_crs(
                    self.crs, WGS84, always_xy=True
                )
                west, south, east, north = transformer.transform_bounds(
                    self.min_x, self.min_y, self.max_x, self.max_y
                )
            self._geographic_bounding_box = GeographicBoundingBox(
                west=west, east=east, south=south, north=north
            )
        return self._geographic_bounding_box

    def contains(self, x: float, y: float) -> bool:
        """Check whether a point in the native CRS lies inside this domain."""
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def __eq__(self, other):
        if not isinstance(other, HorizontalDomain):
            return NotImplemented
        return (
            self.min_x,
            self.min_y,
            self.max_x,
            self.max_y,
        ) == (other.min_x, other.min_y, other.max_x, other.max_y) and self.crs.equals(
            other.crs
        )

    def __hash__(self):
        return hash((self.min_x, self.min_y, self.max_x, self.max_y))

    def __repr__(self):
        return (
            f"HorizontalDomain(min_x={self.min_x}, min_y={self.min_y}, "
            f"max_x={self.max_x}, max_y={self.max_y}, crs={self.crs.to_string()!r})"
        )


@dataclass(frozen=True)
class VerticalCrs:
    """Vertical coordinate reference system, compared by value.

    Attributes
    ----------
    units : str, optional
        Units of the vertical axis (e.g. ``"m"`` or ``"hPa"``).
    positive_upwards : bool
        Whether values increase upwards (height) or downwards (depth).
    pressure : bool
        Whether the axis is a pressure axis.
    dimensionless : bool
        Whether the axis is dimensionless (e.g. sigma levels).

    """

    units: Optional[str] = None
    positive_upwards: bool = True
    pressure: bool = False
    dimensionless: bool = False


@dataclass(frozen=True)
class VerticalDomain:
    """Vertical extent expressed in ``vertical_crs``, which may be absent."""

    extent: Extent
    vertical_crs: Optional[VerticalCrs] = None

    @classmethod
    def from_bounds(
        cls, low: float, high: float, vertical_crs: Optional[VerticalCrs] = None
    ) -> "VerticalDomain":
        return cls(Extent(float(low), float(high)), vertical_crs)


def calendar_bounds(calendar: str) -> Tuple[cftime.datetime, cftime.datetime]:
    """Return the earliest and latest representable instants in ``calendar``.

    Parameters
    ----------
    calendar : str
        A CF calendar name.

    Returns
    -------
    tuple(cftime.datetime, cftime.datetime)

    """
    year, month, day, hour, minute, second = CALENDAR_MAX_DATE
    if calendar in THIRTY_DAY_CALENDARS:
        day = 30
    low = cftime.datetime(*CALENDAR_MIN_DATE, calendar=calendar)
    high = cftime.datetime(year, month, day, hour, minute, second, calendar=calendar)
    return low, high


def _days_in_month(year: int, month: int, calendar: str) -> int:
    if month == 12:
        following = cftime.datetime(year + 1, 1, 1, calendar=calendar)
    else:
        following = cftime.datetime(year, month + 1, 1, calendar=calendar)
    return (following - datetime.timedelta(days=1)).day


def to_cftime(value: Any, calendar: str = DEFAULT_CALENDAR) -> cftime.datetime:
    """Coerce a date-like value to a ``cftime.datetime`` in ``calendar``.

    Values are converted field by field, so 2000-02-01 stays 2000-02-01 in
    every calendar. Days that do not exist in ``calendar`` (29 February in
    ``noleap``, the 31st in ``360_day``) are moved back to the last day of
    their month.

    Parameters
    ----------
    value : cftime.datetime, datetime.datetime, datetime.date, pd.Timestamp, np.datetime64 or str
        The date to convert.
    calendar : str, optional
        Target CF calendar. Defaults to ``"standard"``.

    Returns
    -------
    cftime.datetime

    Raises
    ------
    TypeError
        If ``value`` is not date-like.

    """
    if isinstance(value, cftime.datetime) and value.calendar == calendar:
        return value
    if isinstance(value, (str, np.datetime64)):
        value = pd.Timestamp(value)
    if not isinstance(value, (cftime.datetime, datetime.date)):
        raise TypeError(f"Cannot interpret {value!r} as a date")

    # datetime.date has no time fields
    hour = getattr(value, "hour", 0)
    minute = getattr(value, "minute", 0)
    second = getattr(value, "second", 0)
    microsecond = getattr(value, "microsecond", 0)
    day = min(value.day, _days_in_month(value.year, value.month, calendar))
    return cftime.datetime(
        value.year,
        value.month,
        day,
        hour,
        minute,
        second,
        microsecond,
        calendar=calendar,
    )


@dataclass(frozen=True)
class TemporalDomain:
    """Time extent in a CF calendar.

    The bounds are coerced to ``cftime.datetime`` in ``calendar`` on
    construction.
    """

    low: Any
    high: Any
    calendar: str = DEFAULT_CALENDAR
    extent: Extent = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        low = to_cftime(self.low, self.calendar)
        high = to_cftime(self.high, self.calendar)
        # frozen dataclass, so bypass __setattr__
        object.__setattr__(self, "low", low)
        object.__setattr__(self, "high", high)
        object.__setattr__(self, "extent", Extent(low, high))
