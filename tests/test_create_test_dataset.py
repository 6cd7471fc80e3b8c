"""
Check that the synthetic test dataset has the layout the other tests rely on.
"""

import numpy as np

from create_test_dataset import QUADRANTS, create_test_dataset


def test_dimensions():
    ds = create_test_dataset(nlon=8, nlat=5, nz=3, nt=4)
    assert dict(ds.sizes) == {"time": 4, "depth": 3, "latitude": 5, "longitude": 8}
    for name in ds.data_vars:
        assert ds[name].dims == ("time", "depth", "latitude", "longitude")


def test_progressions():
    ds = create_test_dataset(nlon=8, nlat=5, nz=3, nt=4)
    np.testing.assert_allclose(ds["vLon"].isel(time=0, depth=0, latitude=0), np.linspace(0, 100, 8), rtol=1e-6)
    np.testing.assert_allclose(ds["vLat"].isel(time=0, depth=0, longitude=0), np.linspace(0, 100, 5), rtol=1e-6)
    np.testing.assert_allclose(ds["vDepth"].isel(time=0, latitude=0, longitude=0), [0, 50, 100])
    np.testing.assert_allclose(ds["vTime"].isel(depth=0, latitude=0, longitude=0), np.linspace(0, 100, 4), rtol=1e-6)
    # constant along the other axes
    assert float(ds["vLon"].isel(longitude=3).std()) == 0.0


def test_quadrant_components():
    ds = create_test_dataset(nlon=4, nlat=3, nz=2, nt=2)
    for quadrant, (north, east) in QUADRANTS.items():
        assert np.all(ds[f"{quadrant}NComp"] == north)
        assert np.all(ds[f"{quadrant}EComp"] == east)
    assert ds["southWestNComp"].attrs["standard_name"] == "northward_SW"
    assert ds["depth"].attrs["positive"] == "down"
