# -*- coding: utf-8 -*-
"""
Robust Transform Estimation - RANSAC fitting of matched point sets.

Fits a transform to point correspondences while tolerating a fraction of
mismatched pairs, using OpenCV's RANSAC affine estimator.

Dependencies
------------
opencv-python-headless

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
from dataclasses import dataclass

# Third-party
import numpy as np

try:
    import cv2
except ImportError:
    from volreg.exceptions import DependencyError
    raise DependencyError(
        "Robust estimation requires opencv-python-headless. "
        "Install with: pip install opencv-python-headless>=4.5"
    )

# volreg internal
from volreg.coregistration.transforms import AffineTransform, Transform
from volreg.exceptions import (
    EstimationError,
    UnsupportedTransformError,
    ValidationError,
)
from volreg.image import NDIMS
from volreg.vocabulary import TransformType

logger = logging.getLogger(__name__)

#: Minimum number of correspondences for a 3-D affine fit.
MIN_AFFINE_MATCHES = 4


@dataclass
class RansacConfig:
    """Parameters of robust estimation.

    Attributes
    ----------
    err_thresh : float
        Inlier distance threshold, in the units of the fitted points
        (physical units in the registration pipeline).
    confidence : float
        Required probability that the returned model is outlier free.
    """

    err_thresh: float = 5.0
    confidence: float = 0.99

    def __post_init__(self) -> None:
        if not self.err_thresh > 0:
            raise ValidationError(
                f"err_thresh must be positive, got {self.err_thresh}"
            )
        if not 0 < self.confidence < 1:
            raise ValidationError(
                f"confidence must be in (0, 1), got {self.confidence}"
            )


def estimate_transform_robust(
    config: RansacConfig,
    src: np.ndarray,
    ref: np.ndarray,
    transform: Transform,
) -> np.ndarray:
    """Fit *transform* to correspondences with RANSAC, in place.

    The fitted transform maps reference points to source points, so row
    ``k`` of *ref* is mapped onto row ``k`` of *src*.

    Parameters
    ----------
    config : RansacConfig
        RANSAC parameters.
    src : np.ndarray
        Source points. Shape (N, 3).
    ref : np.ndarray
        Reference points. Shape (N, 3).
    transform : Transform
        Transform to populate. Only affine transforms are supported.

    Returns
    -------
    np.ndarray
        Boolean inlier mask. Shape (N,).

    Raises
    ------
    UnsupportedTransformError
        If *transform* is not affine.
    ValidationError
        If the transform matrix is not (3, 4).
    EstimationError
        If there are too few pairs or RANSAC finds no model.
    """
    if getattr(transform, 'kind', None) is not TransformType.AFFINE:
        raise UnsupportedTransformError(
            f"Robust estimation is not implemented for "
            f"{type(transform).__name__}"
        )
    if transform.matrix.shape != (NDIMS, NDIMS + 1):
        raise ValidationError(
            f"Affine matrix must have shape ({NDIMS}, {NDIMS + 1}), "
            f"got {transform.matrix.shape}"
        )
    src = np.ascontiguousarray(src, dtype=np.float64)
    ref = np.ascontiguousarray(ref, dtype=np.float64)
    if src.shape != ref.shape or src.ndim != 2 or src.shape[1] != NDIMS:
        raise EstimationError(
            f"Point sets must both have shape (N, {NDIMS}). "
            f"Source: {src.shape}, reference: {ref.shape}"
        )
    if src.shape[0] < MIN_AFFINE_MATCHES:
        raise EstimationError(
            f"Insufficient matches ({src.shape[0]}) for affine estimation "
            f"(need >= {MIN_AFFINE_MATCHES})."
        )

    retval, matrix, mask = cv2.estimateAffine3D(
        ref, src,
        ransacThreshold=config.err_thresh,
        confidence=config.confidence,
    )
    if not retval or matrix is None:
        raise EstimationError(
            "Affine estimation failed (RANSAC could not find a valid model)."
        )

    transform.matrix[...] = matrix
    if mask is not None:
        inliers = mask.ravel().astype(bool)
    else:
        inliers = np.ones(src.shape[0], dtype=bool)

    logger.debug(
        "RANSAC kept %d of %d correspondences", int(inliers.sum()), len(inliers)
    )
    return inliers
