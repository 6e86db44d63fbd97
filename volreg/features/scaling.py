# -*- coding: utf-8 -*-
"""
Feature Scaling - Rewrite features for a volume resampled to new spacing.

When two volumes are resampled to a common resolution before detection, the
detected features live in the resampled grid. ``scale_features`` maps them
back onto the original grid without running detection again.

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
import logging
from typing import Sequence

# Third-party
import numpy as np

# volreg internal
from volreg.exceptions import ValidationError
from volreg.features.models import DescriptorStore, KeypointStore
from volreg.image import NDIMS

logger = logging.getLogger(__name__)


def scale_features(
    factors: Sequence[float],
    keypoints: KeypointStore,
    descriptors: DescriptorStore,
) -> None:
    """Scale keypoints and descriptors in place by per-axis factors.

    With ``det = prod(factors)`` and ``s = det ** (-1/3)``:

    - coordinates: ``coords[i] *= factors[i]``
    - scale: ``scale *= s``
    - keypoint orientation: ``R[i, j] *= factors[j] / det``

    Descriptor feature vectors are left untouched. After scaling, the scale
    and orientation of each feature are only approximately meaningful in
    the new grid.

    Parameters
    ----------
    factors : Sequence[float]
        Ratio of resampled voxel size to original voxel size, per axis.
    keypoints : KeypointStore
        Keypoints to rescale.
    descriptors : DescriptorStore
        Descriptors to rescale.

    Raises
    ------
    ValidationError
        If *factors* does not have 3 positive entries.
    """
    f = np.asarray(factors, dtype=np.float64)
    if f.shape != (NDIMS,):
        raise ValidationError(
            f"Scaling factors must have {NDIMS} entries, got shape {f.shape}"
        )
    if np.any(f <= 0):
        raise ValidationError(f"Scaling factors must be positive, got {tuple(f)}")

    det = float(np.prod(f))
    scale_factor = det ** (-1.0 / NDIMS)
    orientation_factor = f[np.newaxis, :] / det

    for key in keypoints:
        key.coords *= f
        key.scale *= scale_factor
        key.orientation *= orientation_factor

    for desc in descriptors:
        desc.coords *= f
        desc.scale *= scale_factor

    logger.debug(
        "Scaled %d keypoints and %d descriptors by %s",
        len(keypoints), len(descriptors), tuple(f),
    )
