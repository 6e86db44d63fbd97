# -*- coding: utf-8 -*-
"""
Registration Session - Keypoint-based registration of two 3-D volumes.

``RegistrationSession`` owns the features of a source (moving) and a
reference (fixed) volume, matches their descriptors, and estimates a
transform with RANSAC. Matched voxel coordinates are converted to physical
space with the units of the volume they were extracted from before
estimation, and the transform is converted back to voxel space afterwards.

When the two volumes have different voxel sizes, ``register_resample``
harmonises them to a common resolution before feature extraction and maps
the features back onto the original grids.

A session is not thread safe. Use one session per concurrent registration.

Dependencies
------------
numpy
scipy
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
import copy
import logging
from typing import Callable, Optional, Tuple

# Third-party
import numpy as np

# volreg internal
from volreg.coregistration.base import CoRegistration, RegistrationResult
from volreg.coregistration.coordinates import to_physical, to_voxel
from volreg.coregistration.ransac import RansacConfig, estimate_transform_robust
from volreg.coregistration.transforms import AffineTransform, Transform
from volreg.coregistration.utils import (
    compute_residuals,
    compute_rms,
    resample_image,
    warp_image,
)
from volreg.exceptions import (
    InitializationError,
    NoFeaturesError,
    NoMatchesError,
    ValidationError,
)
from volreg.features.detector import (
    DetectorConfig,
    FeatureDetector,
    ScaleSpaceDetector,
)
from volreg.features.matching import (
    NO_MATCH,
    match_forward_backward,
    matches_to_coordinates,
)
from volreg.features.models import FeatureBundle
from volreg.features.scaling import scale_features
from volreg.image import NDIMS, Volume
from volreg.versioning import processor_version
from volreg.vocabulary import Interpolation

logger = logging.getLogger(__name__)

#: Default nearest-neighbour distance ratio for descriptor matching.
DEFAULT_MATCH_THRESHOLD = 0.8


def _empty_coords() -> np.ndarray:
    return np.empty((0, NDIMS), dtype=np.float64)


@processor_version('0.1.0')
class RegistrationSession(CoRegistration):
    """Stateful keypoint registration of a source volume to a reference.

    Typical use sets both volumes, then registers::

        with RegistrationSession() as session:
            session.set_source(moving)
            session.set_reference(fixed)
            tform = session.register(AffineTransform())
            match_src, match_ref = session.get_matches()

    The estimated transform maps reference voxel coordinates to source
    voxel coordinates, so ``warp_image(moving.data, tform, fixed.shape)``
    resamples the source onto the reference grid.

    Parameters
    ----------
    detector_factory : Callable[[], FeatureDetector]
        Builds the keypoint detector / descriptor extractor owned by the
        session. Default ``ScaleSpaceDetector``.
    interpolation : Interpolation
        Interpolation used by ``estimate`` when resampling and by
        ``apply`` when warping. Default linear.

    Raises
    ------
    InitializationError
        If the detector or the default configurations cannot be built.
    """

    def __init__(
        self,
        detector_factory: Callable[[], FeatureDetector] = ScaleSpaceDetector,
        interpolation: Interpolation = Interpolation.LINEAR,
    ) -> None:
        self._match_threshold = DEFAULT_MATCH_THRESHOLD
        self._interpolation = Interpolation(interpolation)
        try:
            self._ransac_config = RansacConfig()
            self._detector_config = DetectorConfig()
            self._detector = detector_factory()
        except Exception as e:
            raise InitializationError(
                f"Failed to initialize registration session: {e}"
            ) from e
        if not isinstance(self._detector, FeatureDetector):
            raise InitializationError(
                f"detector_factory must build a FeatureDetector, "
                f"got {type(self._detector).__name__}"
            )

        self._source = FeatureBundle()
        self._reference = FeatureBundle()
        self._matches: Optional[np.ndarray] = None
        self._inliers: Optional[np.ndarray] = None
        self._match_src = _empty_coords()
        self._match_ref = _empty_coords()

    # -----------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------
    def close(self) -> None:
        """Release all features, matches, and the detector.

        The session cannot be used again after closing.
        """
        self._matches = None
        self._inliers = None
        self._source = FeatureBundle()
        self._reference = FeatureBundle()
        self._match_src = _empty_coords()
        self._match_ref = _empty_coords()
        self._detector = None

    def __enter__(self) -> 'RegistrationSession':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    # -----------------------------------------------------------------
    # Configuration
    # -----------------------------------------------------------------
    @property
    def match_threshold(self) -> float:
        return self._match_threshold

    def set_match_threshold(self, threshold: float) -> None:
        """Set the descriptor matching threshold.

        Parameters
        ----------
        threshold : float
            Nearest/second-nearest distance ratio, in (0, 1].

        Raises
        ------
        ValidationError
            If *threshold* is outside (0, 1]. The previous threshold is
            kept.
        """
        if not 0 < threshold <= 1:
            raise ValidationError(
                f"Invalid matching threshold: {threshold}. "
                f"Must be in (0, 1]."
            )
        self._match_threshold = float(threshold)

    @property
    def estimator_config(self) -> RansacConfig:
        """Copy of the RANSAC configuration."""
        return copy.deepcopy(self._ransac_config)

    def set_estimator_config(self, config: RansacConfig) -> None:
        """Set the RANSAC parameters. *config* is copied."""
        if not isinstance(config, RansacConfig):
            raise ValidationError(
                f"Expected RansacConfig, got {type(config).__name__}"
            )
        self._ransac_config = copy.deepcopy(config)

    @property
    def detector_config(self) -> DetectorConfig:
        """Copy of the detector configuration."""
        return copy.deepcopy(self._detector_config)

    def set_detector_config(self, config: DetectorConfig) -> None:
        """Set the detector parameters. *config* is copied."""
        if not isinstance(config, DetectorConfig):
            raise ValidationError(
                f"Expected DetectorConfig, got {type(config).__name__}"
            )
        self._detector_config = copy.deepcopy(config)

    # -----------------------------------------------------------------
    # Features
    # -----------------------------------------------------------------
    @property
    def source(self) -> FeatureBundle:
        """Units, keypoints, and descriptors of the source volume."""
        return self._source

    @property
    def reference(self) -> FeatureBundle:
        """Units, keypoints, and descriptors of the reference volume."""
        return self._reference

    def set_source(self, image: Volume) -> None:
        """Detect and describe the features of the source volume.

        Replaces any previous source features. If detection or extraction
        fails, the source side is left in an indeterminate state; calling
        ``set_source`` again fully overwrites it.

        Raises
        ------
        DetectionError
            If keypoint detection fails.
        ExtractionError
            If descriptor extraction fails.
        """
        self._extract_features(self._source, image, 'source')

    def set_reference(self, image: Volume) -> None:
        """Same as ``set_source``, for the reference volume."""
        self._extract_features(self._reference, image, 'reference')

    def _extract_features(
        self,
        bundle: FeatureBundle,
        image: Volume,
        side: str,
    ) -> None:
        bundle.units = image.units
        bundle.keypoints = self._detector.detect(image, self._detector_config)
        bundle.descriptors = self._detector.extract(
            image, bundle.keypoints, self._detector_config
        )
        logger.debug(
            "%s: %d keypoints, %d descriptors, units %s",
            side, len(bundle.keypoints), len(bundle.descriptors), bundle.units,
        )

    # -----------------------------------------------------------------
    # Registration
    # -----------------------------------------------------------------
    def register(self, transform: Optional[Transform] = None) -> Optional[Transform]:
        """Match the current features and estimate a transform.

        Matches and matched voxel coordinates are committed to the session
        before estimation starts, so they stay available through
        ``get_matches`` even if estimation fails. If matching itself
        fails, the previous match list and coordinates are kept together.

        Parameters
        ----------
        transform : Optional[Transform]
            Transform to populate in place, in voxel space, mapping
            reference voxels to source voxels. If None, only matching is
            performed.

        Returns
        -------
        Optional[Transform]
            *transform*, or None in matching-only mode.

        Raises
        ------
        NoFeaturesError
            If either side has no descriptors.
        MatchError
            If descriptor matching fails.
        EstimationError
            If RANSAC finds no model.
        UnsupportedTransformError
            If *transform* is not a supported variant.
        ValidationError
            If *transform* has a malformed matrix.
        """
        src, ref = self._source, self._reference
        if len(src.descriptors) == 0:
            raise NoFeaturesError('source')
        if len(ref.descriptors) == 0:
            raise NoFeaturesError('reference')

        matches = match_forward_backward(
            src.descriptors, ref.descriptors, self._match_threshold
        )
        match_src, match_ref = matches_to_coordinates(
            src.descriptors, ref.descriptors, matches
        )
        self._matches = matches
        self._match_src, self._match_ref = match_src, match_ref
        self._inliers = None
        logger.info(
            "Matched %d of %d source descriptors",
            self._match_src.shape[0], len(src.descriptors),
        )

        if transform is None:
            return None

        src_mm = ref_mm = None
        try:
            src_mm = to_physical(self._match_src, src.units)
            ref_mm = to_physical(self._match_ref, ref.units)
            self._inliers = estimate_transform_robust(
                self._ransac_config, src_mm, ref_mm, transform
            )
            to_voxel(transform, src.units, ref.units)
        finally:
            del src_mm, ref_mm

        logger.info(
            "Estimated %s transform from %d inliers",
            transform.kind.value, int(np.count_nonzero(self._inliers)),
        )
        return transform

    def register_resample(
        self,
        src: Volume,
        ref: Volume,
        interpolation: Interpolation = Interpolation.LINEAR,
        transform: Optional[Transform] = None,
    ) -> Optional[Transform]:
        """Register two volumes after harmonising their resolution.

        Both volumes are resampled to the element-wise minimum of their
        voxel sizes, features are extracted at that resolution, rescaled
        back to each volume's own voxel grid, and registered. Volumes with
        identical units are registered directly without resampling.

        The scale and orientation of the rescaled keypoints are only
        approximately meaningful in the original grids.

        Parameters
        ----------
        src : Volume
            Source (moving) volume.
        ref : Volume
            Reference (fixed) volume.
        interpolation : Interpolation
            Interpolation used for resampling. An ``Interpolation`` member or
            its value (``"nearest"``, ``"linear"``).
        transform : Optional[Transform]
            See ``register``.

        Returns
        -------
        Optional[Transform]
            See ``register``.

        Raises
        ------
        ResampleError
            If either volume cannot be resampled.
        DetectionError, ExtractionError, NoFeaturesError, MatchError, EstimationError
            From the feature extraction and registration steps.
        """
        interpolation = Interpolation(interpolation)
        if src.units == ref.units:
            self.set_source(src)
            self.set_reference(ref)
            return self.register(transform)

        src_units = np.asarray(src.units)
        ref_units = np.asarray(ref.units)
        units_min = np.minimum(src_units, ref_units)
        factors_src = units_min / src_units
        factors_ref = units_min / ref_units
        logger.debug(
            "Harmonising %s and %s to units %s",
            src, ref, tuple(units_min),
        )

        src_interp = ref_interp = None
        try:
            src_interp = resample_image(src, units_min, interpolation)
            ref_interp = resample_image(ref, units_min, interpolation)

            self.set_source(src_interp)
            self.set_reference(ref_interp)

            scale_features(factors_src, self._source.keypoints, self._source.descriptors)
            scale_features(factors_ref, self._reference.keypoints, self._reference.descriptors)

            return self.register(transform)
        finally:
            del src_interp, ref_interp

    # -----------------------------------------------------------------
    # Results
    # -----------------------------------------------------------------
    @property
    def matches(self) -> Optional[np.ndarray]:
        """Copy of the last match list, or None before any registration.

        Entry ``k`` is the reference descriptor matched to source
        descriptor ``k``, or ``NO_MATCH``.
        """
        return None if self._matches is None else self._matches.copy()

    @property
    def num_matches(self) -> int:
        if self._matches is None:
            return 0
        return int(np.count_nonzero(self._matches != NO_MATCH))

    @property
    def inliers(self) -> Optional[np.ndarray]:
        """Copy of the RANSAC inlier mask of the last estimation, or None."""
        return None if self._inliers is None else self._inliers.copy()

    def get_matches(self) -> Tuple[np.ndarray, np.ndarray]:
        """Coordinates of the matched keypoints from the last registration.

        Returns
        -------
        Tuple[np.ndarray, np.ndarray]
            Copies of ``(match_src, match_ref)``, each shape (N, 3), in
            voxel coordinates. Row ``k`` of both is one matched pair.

        Raises
        ------
        NoMatchesError
            If no registration has run.
        """
        if self._matches is None:
            raise NoMatchesError(
                "No matches available. Run register() or "
                "register_resample() first."
            )
        return self._match_src.copy(), self._match_ref.copy()

    # -----------------------------------------------------------------
    # CoRegistration interface
    # -----------------------------------------------------------------
    def estimate(self, fixed: Volume, moving: Volume) -> RegistrationResult:
        """Register *moving* to *fixed* with an affine transform.

        Runs ``register_resample`` with a new ``AffineTransform``.

        Parameters
        ----------
        fixed : Volume
            Reference volume.
        moving : Volume
            Volume to register.

        Returns
        -------
        RegistrationResult
            Reference -> moving transform in voxel space, with the RMS
            residual (moving voxels) over the RANSAC inliers.
        """
        transform = AffineTransform()
        self.register_resample(moving, fixed, self._interpolation, transform)

        inliers = self._inliers
        residuals = compute_residuals(
            self._match_src[inliers], self._match_ref[inliers], transform
        )
        num_inliers = int(np.count_nonzero(inliers))
        total = len(inliers)

        return RegistrationResult(
            transform=transform,
            residual_rms=compute_rms(residuals),
            num_matches=num_inliers,
            inlier_ratio=num_inliers / total if total else 0.0,
            metadata={
                'method': 'keypoint_ransac',
                'transform_type': transform.kind.value,
                'total_matches': total,
                'num_inliers': num_inliers,
                'match_threshold': self._match_threshold,
                'ransac_threshold': self._ransac_config.err_thresh,
                'fixed_units': fixed.units,
                'moving_units': moving.units,
                'max_residual': float(np.max(residuals)) if len(residuals) > 0 else 0.0,
            },
        )

    def apply(
        self,
        moving: Volume,
        result: RegistrationResult,
        output_shape: Optional[Tuple[int, int, int]] = None,
    ) -> np.ndarray:
        """Warp *moving* onto the reference grid of *result*.

        Parameters
        ----------
        moving : Volume
            Volume to warp.
        result : RegistrationResult
            Registration result from ``estimate``.
        output_shape : Optional[Tuple[int, int, int]]
            Reference grid shape. If None, uses the moving shape.

        Returns
        -------
        np.ndarray
            Warped volume.
        """
        return warp_image(
            np.asarray(moving.data),
            result.transform,
            output_shape=output_shape,
            order=self._interpolation.order,
        )

    def __repr__(self) -> str:
        return (
            f"RegistrationSession(source={len(self._source.descriptors)}, "
            f"reference={len(self._reference.descriptors)}, "
            f"matches={self.num_matches}, "
            f"threshold={self._match_threshold})"
        )
