"""Expose derived variables alongside the variables of an xarray Dataset.

``PluginDataset`` wraps an in-memory ``xarray.Dataset``, describes its data
variables in a ``MetadataTree`` and lets plugins add derived variables to
it. Derived variables are read exactly like source variables, but their
values are computed on access from the source values.

Example Usage
-------------
    >>> from derivekit.dataset import PluginDataset
    >>> pds = PluginDataset(ds)
    >>> pds.add_variable_plugin("vector", "u10", "v10", "Wind at 10m")
    >>> speed = pds.read_map("u10v10mag", time=0)
    >>> speed[0, 0]
    2.23606797749979

Functions
---------
variable_metadata_from_dataarray
    Build a ``VariableMetadata`` node describing a DataArray.

"""

import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
import xarray as xr

from derivekit.core.array2d import Array2D, NumpyArray2D, is_missing
from derivekit.core.constants import (
    DEFAULT_CALENDAR,
    DERIVED_BY,
    LATITUDE_NAMES,
    LONGITUDE_NAMES,
    PRESSURE_UNITS,
    PROJECTED_X_NAMES,
    PROJECTED_Y_NAMES,
    TIME_NAMES,
    VERTICAL_NAMES,
)
from derivekit.core.domains import (
    WGS84,
    HorizontalDomain,
    TemporalDomain,
    VerticalCrs,
    VerticalDomain,
)
from derivekit.core.exceptions import UnknownVariableError
from derivekit.core.metadata import MetadataTree, Parameter, VariableMetadata
from derivekit.core.positions import HorizontalPosition
from derivekit.plugins import VariablePlugin, create_plugin

# Module logger
logger = logging.getLogger(__name__)


def _find_coord(da: xr.DataArray, names: List[str]) -> Optional[xr.DataArray]:
    for name in names:
        if name in da.coords:
            return da.coords[name]
    return None


def _horizontal_domain(da: xr.DataArray, crs: Any = None) -> Optional[HorizontalDomain]:
    lon = _find_coord(da, LONGITUDE_NAMES)
    lat = _find_coord(da, LATITUDE_NAMES)
    if lon is not None and lat is not None:
        return HorizontalDomain(
            float(lon.min()), float(lat.min()), float(lon.max()), float(lat.max()), WGS84
        )

    x = _find_coord(da, PROJECTED_X_NAMES)
    y = _find_coord(da, PROJECTED_Y_NAMES)
    if x is not None and y is not None and crs is not None:
        return HorizontalDomain(
            float(x.min()), float(y.min()), float(x.max()), float(y.max()), crs
        )
    return None


def _vertical_domain(da: xr.DataArray) -> Optional[VerticalDomain]:
    for name in VERTICAL_NAMES:
        if name in da.coords:
            coord = da.coords[name]
            break
    else:
        return None

    units = coord.attrs.get("units")
    pressure = units in PRESSURE_UNITS
    positive = coord.attrs.get("positive")
    if positive is None:
        # depth and pressure increase downwards unless stated otherwise
        positive_upwards = not (pressure or name == "depth")
    else:
        positive_upwards = positive.lower() == "up"
    vertical_crs = VerticalCrs(
        units=units,
        positive_upwards=positive_upwards,
        pressure=pressure,
        dimensionless=units in (None, "", "1"),
    )
    return VerticalDomain.from_bounds(float(coord.min()), float(coord.max()), vertical_crs)


def _temporal_domain(da: xr.DataArray) -> Optional[TemporalDomain]:
    coord = _find_coord(da, TIME_NAMES)
    if coord is None:
        return None
    values = np.asarray(coord.values).ravel()
    if values.size == 0:
        return None
    if values.dtype.kind == "M":
        return TemporalDomain(
            pd.Timestamp(values.min()), pd.Timestamp(values.max()), DEFAULT_CALENDAR
        )
    # object arrays of cftime datetimes carry their own calendar
    calendar = getattr(values[0], "calendar", None) or DEFAULT_CALENDAR
    return TemporalDomain(min(values), max(values), calendar)


def variable_metadata_from_dataarray(
    da: xr.DataArray, var_id: Optional[str] = None, crs: Any = None
) -> VariableMetadata:
    """Describe a DataArray as a ``VariableMetadata`` root node.

    Parameters
    ----------
    da : xr.DataArray
        The variable to describe.
    var_id : str, optional
        ID of the node. Defaults to the name of ``da``.
    crs : optional
        Coordinate reference system of projected ``x``/``y`` coordinates.
        Falls back to the ``crs`` attribute of ``da``.

    Returns
    -------
    VariableMetadata

    Notes
    -----
    Domains are inferred from coordinates: longitude/latitude (or projected
    x/y with a CRS) for the horizontal domain, the first vertical coordinate
    found for the vertical domain, and ``time`` for the temporal domain.
    Missing axes give ``None`` domains.

    """
    var_id = var_id if var_id is not None else str(da.name)
    attrs = dict(da.attrs)
    parameter = Parameter(
        var_id,
        title=attrs.get("long_name", var_id),
        description=attrs.get("description", ""),
        units=attrs.get("units", ""),
        standard_name=attrs.get("standard_name"),
    )
    return VariableMetadata(
        var_id,
        parameter=parameter,
        horizontal_domain=_horizontal_domain(da, crs if crs is not None else attrs.get("crs")),
        vertical_domain=_vertical_domain(da),
        temporal_domain=_temporal_domain(da),
        attrs=attrs,
    )


class PluginDataset:
    """An xarray Dataset extended with plugin-derived variables.

    Parameters
    ----------
    ds : xr.Dataset
        Source data. It is referenced, not copied.
    dataset_id : str, optional
        Identifier of the dataset, used in log messages.

    Attributes
    ----------
    ds : xr.Dataset
        The source data.
    metadata_tree : MetadataTree
        Metadata for source variables and everything plugins have added.

    """

    def __init__(self, ds: xr.Dataset, dataset_id: str = "dataset"):
        self.id = dataset_id
        self.ds = ds
        crs = ds.attrs.get("crs")
        self.metadata_tree = MetadataTree(
            variable_metadata_from_dataarray(ds[name], str(name), crs=crs)
            for name in ds.data_vars
        )
        self._plugins: Dict[str, VariablePlugin] = {}

    def __repr__(self):
        return (
            f"PluginDataset(id={self.id!r}, variables={list(self.ds.data_vars)}, "
            f"derived={list(self._plugins)})"
        )

    @property
    def variable_ids(self) -> List[str]:
        """IDs of all readable variables, source then derived."""
        return [str(name) for name in self.ds.data_vars] + list(self._plugins)

    def is_derived(self, var_id: str) -> bool:
        return var_id in self._plugins

    def get_plugin(self, var_id: str) -> VariablePlugin:
        try:
            return self._plugins[var_id]
        except KeyError:
            raise UnknownVariableError(
                var_id, f"Variable '{var_id}' is not derived by a plugin"
            ) from None

    def get_variable_metadata(self, var_id: str) -> VariableMetadata:
        return self.metadata_tree.get(var_id)

    def add_variable_plugin(
        self, plugin: VariablePlugin | str, *args, **kwargs
    ) -> VariablePlugin:
        """Add the variables a plugin provides to this dataset.

        Parameters
        ----------
        plugin : VariablePlugin or str
            A plugin instance, or the registry key of a plugin class.
        *args, **kwargs
            Constructor arguments when ``plugin`` is a registry key.

        Returns
        -------
        VariablePlugin
            The plugin, after its metadata has been processed.

        Raises
        ------
        UnknownVariableError
            If the plugin uses a variable this dataset does not have.
        ValueError
            If the plugin provides a variable, or creates a metadata node, this
            dataset already has. The metadata tree is left unchanged.
        TypeError
            If constructor arguments are given with a plugin instance.

        """
        if isinstance(plugin, str):
            plugin = create_plugin(plugin, *args, **kwargs)
        elif args or kwargs:
            raise TypeError(
                "Constructor arguments can only be given with a plugin registry key"
            )

        available = set(self.variable_ids)
        missing = [var_id for var_id in plugin.uses_variables if var_id not in available]
        if missing:
            raise UnknownVariableError(
                missing[0],
                f"{plugin!r} uses variables not present in dataset '{self.id}': {missing}",
            )
        clashes = [
            var_id
            for var_id in plugin.provides_variables
            if var_id in available or var_id in self.metadata_tree
        ]
        if clashes:
            raise ValueError(
                f"{plugin!r} provides variables already present in dataset '{self.id}': {clashes}"
            )

        # the hook may re-parent any node, so a failed add restores every parent
        parents = {node.var_id: node.parent_id for node in self.metadata_tree}
        try:
            sources = [self.metadata_tree.get(var_id) for var_id in plugin.uses_variables]
            new_metadata = plugin.process_variable_metadata(*sources)
            taken = [
                node.var_id
                for node in new_metadata
                if node.var_id in self.metadata_tree or node.var_id in available
            ]
            if taken:
                raise ValueError(
                    f"{plugin!r} creates metadata already present in dataset '{self.id}': {taken}"
                )
            self.metadata_tree.attach(new_metadata)
        except Exception:
            for node in self.metadata_tree:
                node.parent_id = parents[node.var_id]
            logger.debug("Restored metadata tree of dataset '%s' after failed add", self.id)
            raise
        for var_id in plugin.provides_variables:
            self._plugins[var_id] = plugin

        logger.info(
            "Added %s to dataset '%s', providing %s",
            type(plugin).__name__,
            self.id,
            list(plugin.provides_variables),
        )
        return plugin

    def _source_dataarray(self, var_id: str, **indexers) -> xr.DataArray:
        if var_id not in self.ds.data_vars:
            raise UnknownVariableError(
                var_id, f"Variable '{var_id}' is not in dataset '{self.id}'"
            )
        da = self.ds[var_id]
        # sources need not share every dimension
        valid = {dim: index for dim, index in indexers.items() if dim in da.dims}
        return da.isel(valid) if valid else da

    def _template_dataarray(self, var_id: str, **indexers) -> xr.DataArray:
        while var_id in self._plugins:
            var_id = self._plugins[var_id].uses_variables[0]
        return self._source_dataarray(var_id, **indexers)

    def read_map(self, var_id: str, **indexers) -> Array2D:
        """Read a 2D slice of a variable.

        Parameters
        ----------
        var_id : str
            ID of a source or derived variable.
        **indexers
            Integer positions along the non-horizontal dimensions, passed to
            ``xarray.DataArray.isel``.

        Returns
        -------
        Array2D
            A ``NumpyArray2D`` for source variables, or a lazy
            ``DerivedArray2D`` for derived ones.

        Raises
        ------
        UnknownVariableError
            If the variable does not exist.
        ValueError
            If the indexers do not reduce the variable to two dimensions.

        """
        if var_id in self._plugins:
            plugin = self._plugins[var_id]
            sources = [self.read_map(source, **indexers) for source in plugin.uses_variables]
            logger.debug("Reading derived map '%s' from %s", var_id, plugin.uses_variables)
            return plugin.generate_array2d(var_id, *sources)

        da = self._source_dataarray(var_id, **indexers)
        if da.ndim != 2:
            raise ValueError(
                f"Indexers {indexers} leave '{var_id}' with dimensions {da.dims}; "
                "a map needs exactly two"
            )
        return NumpyArray2D.from_dataarray(da)

    def read_single_point(
        self,
        var_id: str,
        position: Optional[HorizontalPosition] = None,
        **indexers,
    ) -> Optional[Any]:
        """Read a single value of a variable.

        Parameters
        ----------
        var_id : str
            ID of a source or derived variable.
        position : HorizontalPosition, optional
            Selects the nearest grid cell by longitude/latitude.
        **indexers
            Integer positions along the remaining dimensions.

        Returns
        -------
        The value, or ``None`` where there is no data.

        Raises
        ------
        ValueError
            If the selection does not reduce the variable to a single value,
            or ``position`` is given for data without longitude/latitude
            coordinates.

        """
        if var_id in self._plugins:
            plugin = self._plugins[var_id]
            values = [
                self.read_single_point(source, position, **indexers)
                for source in plugin.uses_variables
            ]
            return plugin.get_value(var_id, *values)

        da = self._source_dataarray(var_id, **indexers)
        if position is not None:
            lon = _find_coord(da, LONGITUDE_NAMES)
            lat = _find_coord(da, LATITUDE_NAMES)
            if lon is None or lat is None:
                raise ValueError(
                    f"Variable '{var_id}' has no longitude/latitude coordinates"
                )
            position = position.to_wgs84()
            da = da.sel({lon.name: position.x, lat.name: position.y}, method="nearest")
        if da.ndim != 0:
            raise ValueError(
                f"Selection leaves '{var_id}' with dimensions {da.dims}; "
                "a single point needs none"
            )
        value = da.values.item()
        return None if is_missing(value) else value

    def to_dataarray(self, var_id: str, **indexers) -> xr.DataArray:
        """Materialize a 2D slice of a variable as an ``xarray.DataArray``.

        Derived variables take their coordinates from their first source and
        are annotated with ``derived_from`` and ``derived_by`` attributes.
        """
        values = self.read_map(var_id, **indexers).to_numpy()
        template = self._template_dataarray(var_id, **indexers)
        if var_id in self._plugins:
            parameter = (
                self.metadata_tree.get(var_id).parameter
                if var_id in self.metadata_tree
                else None
            )
            attrs = {
                "units": parameter.units if parameter else "",
                "long_name": parameter.title if parameter else var_id,
                "derived_from": ", ".join(self._plugins[var_id].uses_variables),
                "derived_by": DERIVED_BY,
            }
        else:
            attrs = dict(template.attrs)
        return xr.DataArray(
            values,
            dims=template.dims,
            coords=template.coords,
            name=var_id,
            attrs=attrs,
        )
