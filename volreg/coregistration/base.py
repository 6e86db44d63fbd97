# -*- coding: utf-8 -*-
"""
Co-Registration Base Classes - Abstract interfaces for volume co-registration.

Defines the ``CoRegistration`` ABC and the ``RegistrationResult`` data class
that all co-registration algorithms produce. Co-registration estimates a
spatial transform relating the voxel coordinates of a moving volume to
those of a fixed (reference) volume.

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
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

# Third-party
import numpy as np

# volreg internal
from volreg.coregistration.transforms import Transform
from volreg.coregistration.utils import apply_transform_to_points
from volreg.image import Volume


class RegistrationResult:
    """Result of a volume co-registration estimation.

    Contains the estimated spatial transform and quality metrics produced by
    a ``CoRegistration.estimate()`` call. The transform maps reference
    (fixed) voxel coordinates to moving voxel coordinates.

    Parameters
    ----------
    transform : Transform
        Estimated reference -> moving transform, in voxel space.
    residual_rms : float
        Root mean square residual, in moving-image voxels, over the inlier
        correspondences.
    num_matches : int
        Number of inlier correspondences used to estimate the transform.
    inlier_ratio : float
        Fraction of matches classified as inliers (0.0 to 1.0).
    metadata : Dict[str, Any]
        Algorithm-specific metadata (e.g., total matches, thresholds).

    Attributes
    ----------
    transform : Transform
    residual_rms : float
    num_matches : int
    inlier_ratio : float
    metadata : Dict[str, Any]
    """

    def __init__(
        self,
        transform: Transform,
        residual_rms: float,
        num_matches: int,
        inlier_ratio: float,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.transform = transform
        self.residual_rms = residual_rms
        self.num_matches = num_matches
        self.inlier_ratio = inlier_ratio
        self.metadata = metadata or {}

    def transform_points(
        self,
        points: np.ndarray,
        inverse: bool = False,
    ) -> np.ndarray:
        """Transform a set of 3D points using this registration result.

        Parameters
        ----------
        points : np.ndarray
            Points to transform. Shape (N, 3).
        inverse : bool
            If False (default), map reference points to moving points.
            If True, map moving points to reference points.

        Returns
        -------
        np.ndarray
            Transformed points. Shape (N, 3).
        """
        transform = self.transform.inverse() if inverse else self.transform
        return apply_transform_to_points(points, transform)

    def __repr__(self) -> str:
        return (
            f"RegistrationResult({self.transform.kind.value}, "
            f"rms={self.residual_rms:.4f}vox, "
            f"matches={self.num_matches}, "
            f"inliers={self.inlier_ratio:.1%})"
        )


class CoRegistration(ABC):
    """Abstract base class for volume co-registration algorithms.

    Co-registration aligns a moving volume to a fixed (reference) volume by
    estimating a spatial transform. The two-step interface separates
    estimation (``estimate``) from application (``apply``), allowing the
    same transform to be applied to several volumes.
    """

    @abstractmethod
    def estimate(self, fixed: Volume, moving: Volume) -> RegistrationResult:
        """Estimate the transform that aligns moving to fixed.

        Parameters
        ----------
        fixed : Volume
            Reference volume.
        moving : Volume
            Volume to be registered.

        Returns
        -------
        RegistrationResult
            Estimated transform and quality metrics.
        """
        ...

    @abstractmethod
    def apply(
        self,
        moving: Volume,
        result: RegistrationResult,
        output_shape: Optional[Tuple[int, int, int]] = None,
    ) -> np.ndarray:
        """Warp the moving volume using an estimated transform.

        Parameters
        ----------
        moving : Volume
            Volume to warp.
        result : RegistrationResult
            Registration result from a previous ``estimate`` call.
        output_shape : Optional[Tuple[int, int, int]]
            Shape of the reference grid. If None, uses the moving shape.

        Returns
        -------
        np.ndarray
            Warped volume on the reference grid. Voxels outside the moving
            volume are set to 0.
        """
        ...
