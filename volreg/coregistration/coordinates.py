# -*- coding: utf-8 -*-
"""
Coordinate Conversion - Voxel space to physical space and back.

Voxel coordinates of two volumes with different voxel sizes are not
comparable. Matched points are scaled into physical space before a
transform is estimated, and the estimated transform is then rewritten to
act on voxel coordinates.

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
from typing import Callable, Dict, Sequence

# Third-party
import numpy as np

# volreg internal
from volreg.coregistration.transforms import AffineTransform, Transform
from volreg.exceptions import UnsupportedTransformError, ValidationError
from volreg.image import NDIMS, validate_units
from volreg.vocabulary import TransformType


def to_physical(points: np.ndarray, units: Sequence[float]) -> np.ndarray:
    """Convert voxel coordinates to physical coordinates.

    Parameters
    ----------
    points : np.ndarray
        Voxel coordinates. Shape (N, 3), real floating point.
    units : Sequence[float]
        Physical voxel size along each axis.

    Returns
    -------
    np.ndarray
        New array with column ``j`` multiplied by ``units[j]``.
        Shape (N, 3).

    Raises
    ------
    ValidationError
        If *points* is not (N, 3), is not real floating point, or *units*
        is invalid.
    """
    points = np.asarray(points)
    if points.ndim != 2 or points.shape[1] != NDIMS:
        raise ValidationError(
            f"Points must have shape (N, {NDIMS}), got {points.shape}"
        )
    if not np.issubdtype(points.dtype, np.floating):
        raise ValidationError(
            f"Points must be real floating point, got dtype {points.dtype}"
        )
    units = np.asarray(validate_units(units), dtype=points.dtype)
    return points * units


def _affine_to_voxel(
    transform: AffineTransform,
    src_units: np.ndarray,
    ref_units: np.ndarray,
) -> None:
    A = transform.matrix
    if A.shape[0] != NDIMS:
        raise ValidationError(
            f"Invalid affine dimensionality: {A.shape[0]} rows, "
            f"expected {NDIMS}"
        )
    # Input side: reference voxel -> mm; output side: mm -> source voxel
    A[:, :NDIMS] *= ref_units[np.newaxis, :]
    A /= src_units[:, np.newaxis]


_TO_VOXEL: Dict[TransformType, Callable[..., None]] = {
    TransformType.AFFINE: _affine_to_voxel,
}


def to_voxel(
    transform: Transform,
    src_units: Sequence[float],
    ref_units: Sequence[float],
) -> Transform:
    """Convert a physical-space transform to voxel space, in place.

    For an affine ``[A | t]`` estimated on physical coordinates, every
    linear entry ``A[i, j]`` is multiplied by ``ref_units[j]`` and every
    entry of row ``i`` (translation included) is divided by
    ``src_units[i]``. This is the exact voxel form
    ``diag(src_units)^-1 [A | t] diag(ref_units, 1)`` of a transform taking
    reference points to source points.

    Parameters
    ----------
    transform : Transform
        Transform to convert. Modified in place.
    src_units : Sequence[float]
        Voxel size of the source image.
    ref_units : Sequence[float]
        Voxel size of the reference image.

    Returns
    -------
    Transform
        The same *transform* object.

    Raises
    ------
    UnsupportedTransformError
        If the transform variant has no conversion.
    ValidationError
        If the units are invalid or the matrix has the wrong number of
        rows.
    """
    handler = _TO_VOXEL.get(getattr(transform, 'kind', None))
    if handler is None:
        raise UnsupportedTransformError(
            f"No voxel-space conversion for transform "
            f"{type(transform).__name__} "
            f"(kind={getattr(transform, 'kind', None)!r})"
        )
    handler(
        transform,
        np.asarray(validate_units(src_units, 'src_units')),
        np.asarray(validate_units(ref_units, 'ref_units')),
    )
    return transform
