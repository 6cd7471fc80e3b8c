"""Combine the domains of several source variables.

A derived variable only has values where every one of its sources has
values, so the "union" helpers below return the region common to all the
inputs: the intersection of their extents. The names follow the plugin API
they serve.

Functions
---------
get_union_of_horizontal_domains
    Common geographic bounding box, in WGS84.
get_union_of_vertical_domains
    Common vertical extent; all inputs must share a vertical CRS.
get_union_of_temporal_domains
    Common time window, in the calendar of the first input.

"""

import logging
from typing import Sequence

from derivekit.core.constants import (
    MAX_LATITUDE,
    MAX_LONGITUDE,
    MAX_VERTICAL_VALUE,
    MIN_LATITUDE,
    MIN_LONGITUDE,
    MIN_VERTICAL_VALUE,
)
from derivekit.core.domains import (
    WGS84,
    Extent,
    HorizontalDomain,
    TemporalDomain,
    VerticalDomain,
    calendar_bounds,
    to_cftime,
)
from derivekit.core.exceptions import EmptyInputError, IncompatibleReferenceError

# Module logger
logger = logging.getLogger(__name__)


def get_union_of_horizontal_domains(
    domains: Sequence[HorizontalDomain],
) -> HorizontalDomain:
    """Get the area where valid values can be found in all the domains.

    Parameters
    ----------
    domains : sequence of HorizontalDomain
        Domains in any coordinate reference system. Each is compared through
        its geographic bounding box.

    Returns
    -------
    HorizontalDomain
        Domain in WGS84 bounded by the largest west and south bounds and the
        smallest east and north bounds of the inputs. Inputs that do not
        overlap give a crossed box (west > east or south > north); it is
        returned as is.

    Notes
    -----
    The bounds start from the whole globe and shrink to each input, so the
    result is the intersection of the inputs rather than a box grown from
    inverted sentinels.

    Raises
    ------
    EmptyInputError
        If ``domains`` is empty.

    """
    if len(domains) == 0:
        raise EmptyInputError("Must provide multiple domains to get a union")

    west, east = MIN_LONGITUDE, MAX_LONGITUDE
    south, north = MIN_LATITUDE, MAX_LATITUDE
    for domain in domains:
        bbox = domain.geographic_bounding_box
        if bbox.west > west:
            west = bbox.west
        if bbox.east < east:
            east = bbox.east
        if bbox.south > south:
            south = bbox.south
        if bbox.north < north:
            north = bbox.north

    if west > east or south > north:
        logger.debug(
            "Horizontal domains do not overlap: west=%s east=%s south=%s north=%s",
            west,
            east,
            south,
            north,
        )
    return HorizontalDomain(west, south, east, north, crs=WGS84)


def get_union_of_vertical_domains(domains: Sequence[VerticalDomain]) -> VerticalDomain:
    """Get the vertical range where valid values can be found in all the domains.

    Parameters
    ----------
    domains : sequence of VerticalDomain
        Domains which must all share the same ``VerticalCrs``. Domains
        without a vertical CRS only match other domains without one.

    Returns
    -------
    VerticalDomain
        Extent from the highest low bound to the lowest high bound, in the
        shared vertical CRS.

    Raises
    ------
    EmptyInputError
        If ``domains`` is empty.
    IncompatibleReferenceError
        If the vertical CRSs differ.

    """
    if len(domains) == 0:
        raise EmptyInputError("Must provide multiple domains to get a union")

    vertical_crs = domains[0].vertical_crs
    low, high = MIN_VERTICAL_VALUE, MAX_VERTICAL_VALUE
    for domain in domains:
        if domain.vertical_crs != vertical_crs:
            raise IncompatibleReferenceError(
                "Vertical domain CRSs must match to calculate their union"
            )
        if domain.extent.low > low:
            low = domain.extent.low
        if domain.extent.high < high:
            high = domain.extent.high
    return VerticalDomain(Extent(low, high), vertical_crs)


def get_union_of_temporal_domains(domains: Sequence[TemporalDomain]) -> TemporalDomain:
    """Get the time window where valid values can be found in all the domains.

    Parameters
    ----------
    domains : sequence of TemporalDomain
        Domains in any calendar.

    Returns
    -------
    TemporalDomain
        Window from the latest start to the earliest end, in the calendar of
        the first domain. Bounds in other calendars are converted to it with
        ``to_cftime`` before comparison.

    Raises
    ------
    EmptyInputError
        If ``domains`` is empty.

    """
    if len(domains) == 0:
        raise EmptyInputError("Must provide multiple domains to get a union")

    calendar = domains[0].calendar
    low, high = calendar_bounds(calendar)
    for domain in domains:
        domain_low = to_cftime(domain.extent.low, calendar)
        domain_high = to_cftime(domain.extent.high, calendar)
        if domain_low > low:
            low = domain_low
        if domain_high < high:
            high = domain_high
    return TemporalDomain(low, high, calendar)
