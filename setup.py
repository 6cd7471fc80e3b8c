#!/usr/bin/env python
# read the contents of your README file
from pathlib import Path

from setuptools import find_packages, setup

this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

setup(
    name="derivekit",
    version="0.1.0",
    description="Derived variables computed on demand from gridded geoscience data",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["derivekit", "derivekit.*"]),
    python_requires=">=3.10",
    install_requires=[
        "cftime",
        "numpy",
        "pandas",
        "pyproj",
        "xarray",
    ],
    extras_require={
        "test": ["pytest", "netCDF4"],
    },
)
