# constants.py
"""This module defines constants across the codebase"""

import numpy as np

# Sentinel for unset values
# This is used to differentiate between a value that is set to None
# and a value that is not set at all.
UNSET = object()

# Canonical geographic reference system for synthesized horizontal domains
WGS84_EPSG = 4326

# Whole-globe bounds, in degrees
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0

# Widest possible vertical extent
MIN_VERTICAL_VALUE = -float(np.finfo(np.float64).max)
MAX_VERTICAL_VALUE = float(np.finfo(np.float64).max)

# CF calendar used when a time coordinate does not declare one
DEFAULT_CALENDAR = "standard"

# Earliest and latest representable instants, as (year, month, day, hour, minute, second)
CALENDAR_MIN_DATE = (1, 1, 1, 0, 0, 0)
CALENDAR_MAX_DATE = (9999, 12, 31, 23, 59, 59)

# Calendars whose months all have 30 days
THIRTY_DAY_CALENDARS = ["360_day"]


# Coordinate names recognised when inferring domains from xarray objects
LONGITUDE_NAMES = ["lon", "longitude"]
LATITUDE_NAMES = ["lat", "latitude"]
PROJECTED_X_NAMES = ["x"]
PROJECTED_Y_NAMES = ["y"]
VERTICAL_NAMES = ["depth", "height", "z", "lev", "plev"]
TIME_NAMES = ["time"]

# Units that mark a vertical axis as pressure
PRESSURE_UNITS = ["Pa", "hPa", "mbar", "millibar", "bar", "dbar", "decibar", "atm"]

# Suffixes and direction conventions for vector plugins
VECTOR_MAGNITUDE_SUFFIX = "mag"
VECTOR_DIRECTION_SUFFIX = "dir"
VECTOR_GROUP_SUFFIX = "group"
VECTOR_DIRECTION_OFFSETS = {
    # direction the vector points TO, clockwise from north
    "to": 90.0,
    # meteorological convention, direction the vector comes FROM
    "from": 270.0,
}

# Attribute value written on materialized derived variables
DERIVED_BY = "derivekit"
