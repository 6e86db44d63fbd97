# -*- coding: utf-8 -*-
"""
Co-Registration Utilities - Quality metrics, warping, and resampling.

Provides helper functions for computing registration quality metrics,
warping a moving volume onto a reference grid, and resampling a volume to
new voxel spacing.

Dependencies
------------
scipy

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
import logging
from typing import Optional, Sequence, Tuple

# Third-party
import numpy as np
from scipy.ndimage import map_coordinates

# volreg internal
from volreg.coregistration.transforms import Transform
from volreg.exceptions import ResampleError, ValidationError
from volreg.image import NDIMS, Volume, validate_units
from volreg.vocabulary import Interpolation

logger = logging.getLogger(__name__)


def apply_transform_to_points(
    points: np.ndarray,
    transform: Transform,
) -> np.ndarray:
    """Apply a spatial transform to a set of 3D points.

    Parameters
    ----------
    points : np.ndarray
        Points to transform. Shape (N, 3).
    transform : Transform
        Transform to apply.

    Returns
    -------
    np.ndarray
        Transformed points. Shape (N, 3).
    """
    points = np.asarray(points, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != NDIMS:
        raise ValidationError(
            f"Points must have shape (N, {NDIMS}), got {points.shape}"
        )
    return transform.apply(points)


def compute_residuals(
    src_points: np.ndarray,
    ref_points: np.ndarray,
    transform: Transform,
) -> np.ndarray:
    """Compute per-point residuals after applying a transform.

    Maps the reference points through the transform and measures the
    Euclidean distance to the corresponding source points.

    Parameters
    ----------
    src_points : np.ndarray
        Source (moving) points. Shape (N, 3).
    ref_points : np.ndarray
        Reference (fixed) points. Shape (N, 3).
    transform : Transform
        Reference -> source transform.

    Returns
    -------
    np.ndarray
        Per-point Euclidean residuals. Shape (N,).
    """
    transformed = apply_transform_to_points(ref_points, transform)
    diff = np.asarray(src_points, dtype=np.float64) - transformed
    return np.sqrt(np.sum(diff ** 2, axis=1))


def compute_rms(residuals: np.ndarray) -> float:
    """Compute root mean square of residual errors.

    Parameters
    ----------
    residuals : np.ndarray
        Per-point residuals. Shape (N,).

    Returns
    -------
    float
        RMS residual error. 0.0 for an empty array.
    """
    if len(residuals) == 0:
        return 0.0
    return float(np.sqrt(np.mean(residuals ** 2)))


def warp_image(
    image: np.ndarray,
    transform: Transform,
    output_shape: Optional[Tuple[int, int, int]] = None,
    order: int = 1,
    fill_value: float = 0.0,
) -> np.ndarray:
    """Warp a moving volume onto the reference grid.

    The transform maps reference voxels to moving voxels, so each output
    voxel is sampled directly at its transformed position.

    Parameters
    ----------
    image : np.ndarray
        Moving volume. Shape (nx, ny, nz).
    transform : Transform
        Reference -> moving transform in voxel space.
    output_shape : Optional[Tuple[int, int, int]]
        Shape of the reference grid. If None, uses the input shape.
    order : int
        Interpolation order: 0=nearest, 1=trilinear, 3=tricubic.
    fill_value : float
        Value for voxels that map outside the input volume.

    Returns
    -------
    np.ndarray
        Warped volume. Shape *output_shape*.
    """
    if image.ndim != NDIMS:
        raise ValidationError(
            f"warp_image requires a {NDIMS}-D volume, got {image.ndim}-D"
        )
    if output_shape is None:
        output_shape = image.shape

    grid = np.indices(output_shape, dtype=np.float64).reshape(NDIMS, -1)
    src_coords = transform.apply(grid.T).T

    result = map_coordinates(
        image,
        src_coords,
        order=order,
        mode='constant',
        cval=fill_value,
    )
    return result.reshape(output_shape)


def resample_image(
    image: Volume,
    units: Sequence[float],
    interpolation: Interpolation = Interpolation.LINEAR,
) -> Volume:
    """Resample a volume to new voxel spacing.

    The output covers the same physical extent: along axis ``i`` it has
    ``ceil(shape[i] * image.units[i] / units[i])`` voxels, and output voxel
    ``k`` samples input position ``k * units[i] / image.units[i]``.

    Parameters
    ----------
    image : Volume
        Volume to resample.
    units : Sequence[float]
        Target voxel size.
    interpolation : Interpolation
        Interpolation mode.

    Returns
    -------
    Volume
        New volume with voxel size *units*.

    Raises
    ------
    ResampleError
        If the target units are invalid or interpolation fails.
    """
    try:
        new_units = np.asarray(validate_units(units), dtype=np.float64)
    except ValidationError as e:
        raise ResampleError(f"Invalid target units: {e}") from e
    old_units = np.asarray(image.units, dtype=np.float64)

    ratio = new_units / old_units
    new_shape = tuple(
        int(n) for n in np.ceil(np.asarray(image.shape) / ratio - 1e-9)
    )
    axes = [np.arange(n, dtype=np.float64) * r for n, r in zip(new_shape, ratio)]
    coords = np.stack(np.meshgrid(*axes, indexing='ij'))

    data = np.asarray(image.data)
    try:
        resampled = map_coordinates(
            data.astype(np.float64) if not np.issubdtype(data.dtype, np.floating) else data,
            coords,
            order=interpolation.order,
            mode='nearest',
        )
    except (MemoryError, RuntimeError, ValueError) as e:
        raise ResampleError(f"Resampling {image} to {tuple(new_units)} failed: {e}") from e

    logger.debug(
        "Resampled %s to shape %s, units %s",
        image, new_shape, tuple(new_units),
    )
    return Volume(resampled, units=new_units)
