"""Two-dimensional arrays with a "no value" sentinel.

Values are read with ``array[j, i]`` where ``j`` indexes the y axis and ``i``
the x axis. A position with no data reads as ``None``.

Classes
-------
Array2D
    Abstract base class for all 2D arrays.
NumpyArray2D
    Array backed by a numpy (or masked) array, without copying it.
DerivedArray2D
    Read-only view computing each value from several source arrays on access.

Functions
---------
is_missing
    Whether a value represents "no data".

"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterator, Optional, Sequence, Tuple

import numpy as np
import xarray as xr

from derivekit.core.exceptions import ImmutableArrayError


def is_missing(value: Any) -> bool:
    """Return True for ``None``, NaN and numpy's masked constant."""
    if value is None or value is np.ma.masked:
        return True
    if isinstance(value, (float, np.floating)):
        return bool(np.isnan(value))
    return False


class Array2D(ABC):
    """Abstract two-dimensional array.

    Subclasses implement ``_get`` and ``_set``; index validation is done here.

    Parameters
    ----------
    y_size : int
        Number of rows.
    x_size : int
        Number of columns.

    """

    def __init__(self, y_size: int, x_size: int):
        self.y_size = int(y_size)
        self.x_size = int(x_size)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.y_size, self.x_size)

    def __len__(self) -> int:
        return self.y_size * self.x_size

    def _normalise_index(self, key) -> Tuple[int, int]:
        try:
            j, i = key
        except (TypeError, ValueError):
            raise IndexError(
                f"2D arrays are indexed with (j, i), got {key!r}"
            ) from None
        j, i = int(j), int(i)
        if j < 0:
            j += self.y_size
        if i < 0:
            i += self.x_size
        if not (0 <= j < self.y_size and 0 <= i < self.x_size):
            raise IndexError(f"Index {key!r} is out of bounds for shape {self.shape}")
        return j, i

    def __getitem__(self, key) -> Optional[Any]:
        j, i = self._normalise_index(key)
        return self._get(j, i)

    def __setitem__(self, key, value: Optional[Any]):
        j, i = self._normalise_index(key)
        self._set(j, i, value)

    def __iter__(self) -> Iterator[Optional[Any]]:
        for j in range(self.y_size):
            for i in range(self.x_size):
                yield self._get(j, i)

    def to_numpy(self) -> np.ndarray:
        """Materialize the values as a float64 array, with NaN for no data."""
        out = np.full(self.shape, np.nan, dtype=np.float64)
        for j in range(self.y_size):
            for i in range(self.x_size):
                value = self._get(j, i)
                if not is_missing(value):
                    out[j, i] = value
        return out

    @abstractmethod
    def _get(self, j: int, i: int) -> Optional[Any]:
        """Read the value at a validated position."""

    @abstractmethod
    def _set(self, j: int, i: int, value: Optional[Any]):
        """Write the value at a validated position."""


class NumpyArray2D(Array2D):
    """Array backed by a 2D numpy array.

    The array is wrapped, not copied, so writes through this object are
    visible to the owner of the numpy array and vice versa. NaN and masked
    cells read as ``None``.

    Parameters
    ----------
    values : array-like
        Two-dimensional data, indexed ``[y, x]``.

    Raises
    ------
    ValueError
        If ``values`` is not two-dimensional.

    """

    def __init__(self, values):
        if not isinstance(values, np.ndarray):
            values = np.asarray(values)
        if values.ndim != 2:
            raise ValueError(
                f"NumpyArray2D requires 2 dimensions, got {values.ndim}"
            )
        super().__init__(*values.shape)
        self.values = values

    @classmethod
    def from_dataarray(cls, da: xr.DataArray) -> "NumpyArray2D":
        """Wrap the values of a 2D ``xarray.DataArray``.

        Numpy-backed arrays are wrapped without copying; lazily loaded
        (e.g. dask) arrays are computed first.
        """
        if da.ndim != 2:
            raise ValueError(
                f"Expected a 2D DataArray, got dimensions {da.dims}"
            )
        return cls(da.values)

    def _get(self, j: int, i: int) -> Optional[Any]:
        value = self.values[j, i]
        if is_missing(value):
            return None
        return value.item() if isinstance(value, np.generic) else value

    def _set(self, j: int, i: int, value: Optional[Any]):
        if value is None:
            if np.ma.isMaskedArray(self.values):
                self.values[j, i] = np.ma.masked
                return
            value = np.nan
        self.values[j, i] = value

    def to_numpy(self) -> np.ndarray:
        return np.ma.filled(np.ma.asarray(self.values, dtype=np.float64), np.nan)


class DerivedArray2D(Array2D):
    """Read-only view whose values are computed from source arrays.

    Every read goes back to the sources: the value at ``(j, i)`` is
    ``value_func(*[source[j, i] for source in sources])``, or ``None`` when
    any source has no data there. Nothing is cached, and the sources are
    referenced rather than copied, so the view reflects later changes to
    them.

    Parameters
    ----------
    sources : sequence of Array2D
        Source arrays, in the order ``value_func`` expects their values.
        The view takes the shape of the first one.
    value_func : callable
        Pure function of the source values.

    Raises
    ------
    ValueError
        If no sources are given.

    """

    def __init__(self, sources: Sequence[Array2D], value_func: Callable[..., Any]):
        if len(sources) == 0:
            raise ValueError("DerivedArray2D needs at least one source array")
        super().__init__(sources[0].y_size, sources[0].x_size)
        self.sources = tuple(sources)
        self.value_func = value_func

    def _get(self, j: int, i: int) -> Optional[Any]:
        values = []
        for source in self.sources:
            value = source[j, i]
            if is_missing(value):
                return None
            values.append(value)
        return self.value_func(*values)

    def _set(self, j: int, i: int, value: Optional[Any]):
        raise ImmutableArrayError("This Array is immutable")
