"""Shared data and fixtures between multiple unit tests."""

import numpy as np
import pandas as pd
import pytest
import xarray as xr

from create_test_dataset import create_test_dataset
from derivekit.core.domains import (
    HorizontalDomain,
    TemporalDomain,
    VerticalCrs,
    VerticalDomain,
)
from derivekit.core.metadata import Parameter, VariableMetadata
from derivekit.plugins.base import VariablePlugin


class SumPlugin(VariablePlugin):
    """Minimal plugin adding its source values, for exercising the base class."""

    def __init__(self, uses, suffixes=("sum",)):
        self.calls = 0
        super().__init__(uses, suffixes)

    def _do_process_variable_metadata(self, *metadata):
        self.calls += 1
        return [VariableMetadata(self.get_full_id(suffix)) for suffix in self.provides_suffixes]

    def _generate_value(self, var_suffix, *source_values):
        if any(value is None for value in source_values):
            return None
        return sum(source_values)


@pytest.fixture
def sum_plugin_class():
    return SumPlugin


@pytest.fixture
def test_dataset():
    """Synthetic 4D dataset (time, depth, latitude, longitude)."""
    return create_test_dataset()


@pytest.fixture
def wind_dataset():
    """Synthetic WRF-like dataset with u10 and v10."""
    time = pd.date_range("2020-01-01", periods=3)
    shape = (3, 2, 2)
    u10 = np.linspace(-2.0, 2.0, num=np.prod(shape)).reshape(shape)
    v10 = np.linspace(1.0, -1.0, num=np.prod(shape)).reshape(shape)

    ds = xr.Dataset(
        {
            "u10": (("time", "lat", "lon"), u10, {"units": "m s-1"}),
            "v10": (("time", "lat", "lon"), v10, {"units": "m s-1"}),
        },
        coords={
            "time": time,
            "lat": np.linspace(32, 42, 2),
            "lon": np.linspace(-125, -114, 2),
        },
    )
    return ds


@pytest.fixture
def depth_crs():
    return VerticalCrs(units="m", positive_upwards=False)


@pytest.fixture
def u_metadata(depth_crs):
    """Metadata for an eastward component under a 'currents' parent."""
    return VariableMetadata(
        "u",
        parameter=Parameter("u", title="Eastward current", units="m s-1"),
        horizontal_domain=HorizontalDomain(-10, -5, 10, 5),
        vertical_domain=VerticalDomain.from_bounds(0, 100, depth_crs),
        temporal_domain=TemporalDomain("2000-01-01", "2000-12-31"),
        parent_id="currents",
    )


@pytest.fixture
def v_metadata(depth_crs):
    """Metadata for a northward component under a 'currents' parent."""
    return VariableMetadata(
        "v",
        parameter=Parameter("v", title="Northward current", units="m s-1"),
        horizontal_domain=HorizontalDomain(-5, -2, 5, 2),
        vertical_domain=VerticalDomain.from_bounds(20, 80, depth_crs),
        temporal_domain=TemporalDomain("2000-03-01", "2001-06-30"),
        parent_id="currents",
    )
