# -*- coding: utf-8 -*-
"""
Volume - A 3-D image with per-axis physical voxel size.

Voxel coordinates are comparable between two volumes only after scaling by
their units, so every volume carries the physical size of one voxel along
each array axis.

Dependencies
------------
numpy

Author
------
Duane Smalley, PhD
duane.d.smalley@gmail.com

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-10-19

Modified
--------
2026-10-19
"""

# Standard library
from typing import Sequence, Tuple

# Third-party
import numpy as np

# volreg internal
from volreg.exceptions import ValidationError

#: Spatial dimensionality of every volume handled by volreg.
NDIMS = 3


def validate_units(units: Sequence[float], name: str = 'units') -> Tuple[float, ...]:
    """Check a unit vector and return it as an immutable tuple.

    Parameters
    ----------
    units : Sequence[float]
        Physical voxel size along each array axis.
    name : str
        Name used in error messages.

    Returns
    -------
    Tuple[float, ...]
        Units as a tuple of ``NDIMS`` Python floats.

    Raises
    ------
    ValidationError
        If *units* does not have ``NDIMS`` finite, positive entries.
    """
    arr = np.asarray(units, dtype=np.float64)
    if arr.shape != (NDIMS,):
        raise ValidationError(
            f"{name} must have {NDIMS} entries, got shape {arr.shape}"
        )
    if not np.all(np.isfinite(arr)) or np.any(arr <= 0):
        raise ValidationError(
            f"{name} must be finite and positive, got {tuple(arr)}"
        )
    return tuple(float(u) for u in arr)


class Volume:
    """A 3-D image and the physical size of its voxels.

    Parameters
    ----------
    data : np.ndarray
        Voxel intensities. Shape (nx, ny, nz).
    units : Sequence[float]
        Physical size of one voxel along each array axis (e.g. mm).
        Default is isotropic 1.0.

    Raises
    ------
    ValidationError
        If *data* is not 3-D or *units* is invalid.

    Examples
    --------
    >>> vol = Volume(np.zeros((64, 64, 32)), units=(0.5, 0.5, 1.0))
    >>> vol.shape
    (64, 64, 32)
    """

    def __init__(
        self,
        data: np.ndarray,
        units: Sequence[float] = (1.0, 1.0, 1.0),
    ) -> None:
        data = np.asarray(data)
        if data.ndim != NDIMS:
            raise ValidationError(
                f"Volume data must be {NDIMS}-D, got {data.ndim}-D"
            )
        self.data = data
        self._units = validate_units(units)

    @property
    def units(self) -> Tuple[float, ...]:
        """Physical voxel size along each axis."""
        return self._units

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.data.shape

    @property
    def extent(self) -> np.ndarray:
        """Physical size of the volume along each axis.

        Returns
        -------
        np.ndarray
            ``shape * units``. Shape (3,).
        """
        return np.asarray(self.data.shape, dtype=np.float64) * np.asarray(self._units)

    def __repr__(self) -> str:
        return f"Volume(shape={self.data.shape}, units={self._units})"
