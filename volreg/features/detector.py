# -*- coding: utf-8 -*-
"""
Feature Detection - Keypoint detection and descriptor extraction for volumes.

Defines the ``FeatureDetector`` interface a registration session depends on,
the ``DetectorConfig`` value type, and ``ScaleSpaceDetector``, a compact
difference-of-Gaussians detector with oriented gradient-histogram
descriptors built on ``scipy.ndimage``.

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
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

# Third-party
import numpy as np
from scipy.ndimage import gaussian_filter, maximum_filter, minimum_filter

# volreg internal
from volreg.exceptions import DetectionError, ExtractionError, ValidationError
from volreg.features.models import (
    Descriptor,
    DescriptorStore,
    Keypoint,
    KeypointStore,
)
from volreg.image import NDIMS, Volume
from volreg.versioning import processor_version

logger = logging.getLogger(__name__)

#: Length of the descriptors produced by ``ScaleSpaceDetector``.
DESCRIPTOR_SIZE = 64

# Descriptor entries are clipped to this value before renormalising.
_DESCRIPTOR_CLIP = 0.2


@dataclass
class DetectorConfig:
    """Parameters of keypoint detection and descriptor extraction.

    Attributes
    ----------
    sigma_n : float
        Nominal blur already present in the input, in voxels.
    sigma0 : float
        Scale of the first keypoint level, in voxels. This is also the
        smallest reported keypoint scale: extrema on the level below are
        discarded, so blobs finer than about 1.4 voxels (at the defaults)
        produce no keypoints. Lower ``sigma0`` or upsample the volume to
        detect finer structure.
    num_kp_levels : int
        Number of scale levels searched for keypoints.
    peak_thresh : float
        Minimum DoG response, as a fraction of the strongest response.
    corner_thresh : float
        Minimum ratio of the smallest to largest structure-tensor
        eigenvalue. Rejects edge- and plane-like responses.
    """

    sigma_n: float = 1.15
    sigma0: float = 1.6
    num_kp_levels: int = 3
    peak_thresh: float = 0.1
    corner_thresh: float = 0.4

    def __post_init__(self) -> None:
        if self.sigma_n < 0:
            raise ValidationError(f"sigma_n must be >= 0, got {self.sigma_n}")
        if self.sigma0 <= self.sigma_n:
            raise ValidationError(
                f"sigma0 ({self.sigma0}) must exceed sigma_n ({self.sigma_n})"
            )
        if int(self.num_kp_levels) != self.num_kp_levels or self.num_kp_levels < 1:
            raise ValidationError(
                f"num_kp_levels must be a positive integer, "
                f"got {self.num_kp_levels}"
            )
        if not 0 <= self.peak_thresh <= 1:
            raise ValidationError(
                f"peak_thresh must be in [0, 1], got {self.peak_thresh}"
            )
        if not 0 <= self.corner_thresh <= 1:
            raise ValidationError(
                f"corner_thresh must be in [0, 1], got {self.corner_thresh}"
            )


class FeatureDetector(ABC):
    """Interface for keypoint detectors and descriptor extractors.

    Implementations must raise ``DetectionError`` from ``detect`` and
    ``ExtractionError`` from ``extract`` on failure, and must return fresh
    stores on every call.
    """

    @abstractmethod
    def detect(self, image: Volume, config: DetectorConfig) -> KeypointStore:
        """Detect keypoints in a volume.

        Parameters
        ----------
        image : Volume
            Volume to search.
        config : DetectorConfig
            Detection parameters.

        Returns
        -------
        KeypointStore
            Detected keypoints, in voxel coordinates of *image*.
        """
        ...

    @abstractmethod
    def extract(
        self,
        image: Volume,
        keypoints: KeypointStore,
        config: DetectorConfig,
    ) -> DescriptorStore:
        """Extract one descriptor per keypoint.

        Parameters
        ----------
        image : Volume
            Volume the keypoints were detected in.
        keypoints : KeypointStore
            Keypoints from ``detect``.
        config : DetectorConfig
            Detection parameters.

        Returns
        -------
        DescriptorStore
            Descriptors in keypoint order.
        """
        ...


def _normalize(data: np.ndarray) -> Optional[np.ndarray]:
    """Scale intensities to [0, 1]; None for constant volumes."""
    data = np.asarray(data, dtype=np.float64)
    vmin, vmax = np.nanmin(data), np.nanmax(data)
    if not vmax - vmin > 0:
        return None
    return np.nan_to_num((data - vmin) / (vmax - vmin))


def _level_sigmas(config: DetectorConfig) -> np.ndarray:
    # One level below and two above the keypoint levels, so that every
    # keypoint level has DoG neighbours on both sides.
    k = np.arange(config.num_kp_levels + 3) - 1
    return config.sigma0 * 2.0 ** (k / config.num_kp_levels)


def _blur(data: np.ndarray, sigma: float, sigma_n: float) -> np.ndarray:
    extra = np.sqrt(max(sigma ** 2 - sigma_n ** 2, 0.0))
    if extra == 0:
        return data.copy()
    return gaussian_filter(data, extra, mode='nearest')


def _window(
    center: np.ndarray,
    radius: int,
    shape: Tuple[int, ...],
) -> Tuple[Tuple[slice, ...], np.ndarray]:
    """Slices of a cubic window clipped to the volume, plus voxel offsets."""
    c = np.round(center).astype(int)
    lo = np.maximum(c - radius, 0)
    hi = np.minimum(c + radius + 1, shape)
    slices = tuple(slice(int(a), int(b)) for a, b in zip(lo, hi))
    grids = np.meshgrid(
        *[np.arange(a, b) - ci for a, b, ci in zip(lo, hi, center)],
        indexing='ij',
    )
    offsets = np.stack([g.ravel() for g in grids], axis=1).astype(np.float64)
    return slices, offsets


@processor_version('0.1.0')
class ScaleSpaceDetector(FeatureDetector):
    """Difference-of-Gaussians keypoint detector for 3-D volumes.

    Builds a single-octave Gaussian scale space, takes extrema of the
    difference-of-Gaussians over a 3x3x3x3 neighbourhood (space and scale),
    refines them to sub-voxel accuracy, and assigns an orientation frame
    from the local structure tensor. Descriptors histogram gradient
    directions in the keypoint frame over 2x2x2 spatial cells.

    Detection works in voxel space; anisotropic volumes should be resampled
    to a common spacing first (see ``RegistrationSession.register_resample``).

    Examples
    --------
    >>> detector = ScaleSpaceDetector()
    >>> keypoints = detector.detect(volume, DetectorConfig())
    >>> descriptors = detector.extract(volume, keypoints, DetectorConfig())
    """

    def detect(self, image: Volume, config: DetectorConfig) -> KeypointStore:
        data = np.asarray(image.data)
        if data.ndim != NDIMS:
            raise DetectionError(
                f"Detection requires a {NDIMS}-D volume, got {data.ndim}-D"
            )
        if np.iscomplexobj(data):
            data = np.abs(data)
        data = _normalize(data)
        keypoints = KeypointStore()
        if data is None:
            logger.debug("Constant volume, no keypoints detected")
            return keypoints

        sigmas = _level_sigmas(config)
        gauss = [_blur(data, s, config.sigma_n) for s in sigmas]
        dog = np.stack([b - a for a, b in zip(gauss[:-1], gauss[1:])])

        peak = np.max(np.abs(dog))
        if peak == 0:
            return keypoints

        is_max = dog == maximum_filter(dog, size=3, mode='nearest')
        is_min = dog == minimum_filter(dog, size=3, mode='nearest')
        candidates = (is_max | is_min) & (np.abs(dog) >= config.peak_thresh * peak)
        # Only interior voxels of the keypoint levels
        interior = np.zeros_like(candidates)
        interior[1:-1, 1:-1, 1:-1, 1:-1] = True
        candidates &= interior

        gradients: Dict[int, List[np.ndarray]] = {}
        for level, *voxel in np.argwhere(candidates):
            voxel = np.asarray(voxel)
            coords = voxel + self._refine(dog[level], voxel)
            if level not in gradients:
                gradients[level] = np.gradient(gauss[level])
            frame = self._orientation(
                gradients[level], coords, sigmas[level], config.corner_thresh
            )
            if frame is None:
                continue
            keypoints.append(Keypoint(
                coords=coords,
                scale=sigmas[level],
                orientation=frame,
                level=int(level),
            ))

        logger.debug(
            "Detected %d keypoints from %d candidates in %s",
            len(keypoints), int(np.count_nonzero(candidates)), image,
        )
        return keypoints

    def extract(
        self,
        image: Volume,
        keypoints: KeypointStore,
        config: DetectorConfig,
    ) -> DescriptorStore:
        data = np.asarray(image.data)
        if data.ndim != NDIMS:
            raise ExtractionError(
                f"Extraction requires a {NDIMS}-D volume, got {data.ndim}-D"
            )
        if np.iscomplexobj(data):
            data = np.abs(data)
        descriptors = DescriptorStore()
        if len(keypoints) == 0:
            return descriptors
        data = _normalize(data)
        if data is None:
            data = np.zeros(image.shape, dtype=np.float64)

        gradients: Dict[float, List[np.ndarray]] = {}
        for key in keypoints:
            if key.coords.shape != (NDIMS,) or key.orientation.shape != (NDIMS, NDIMS):
                raise ExtractionError(f"Malformed keypoint: {key}")
            sigma = round(key.scale, 6)
            if sigma not in gradients:
                gradients[sigma] = np.gradient(_blur(data, sigma, config.sigma_n))
            descriptors.append(Descriptor(
                coords=key.coords.copy(),
                scale=key.scale,
                features=self._histogram(gradients[sigma], key),
            ))

        logger.debug("Extracted %d descriptors", len(descriptors))
        return descriptors

    @staticmethod
    def _refine(response: np.ndarray, voxel: np.ndarray) -> np.ndarray:
        """Per-axis quadratic fit of the peak position, in [-0.5, 0.5]."""
        offset = np.zeros(NDIMS)
        center = response[tuple(voxel)]
        for axis in range(NDIMS):
            step = np.zeros(NDIMS, dtype=int)
            step[axis] = 1
            plus = response[tuple(voxel + step)]
            minus = response[tuple(voxel - step)]
            curvature = plus - 2.0 * center + minus
            if curvature != 0:
                offset[axis] = np.clip(-0.5 * (plus - minus) / curvature, -0.5, 0.5)
        return offset

    @staticmethod
    def _orientation(
        gradient: List[np.ndarray],
        coords: np.ndarray,
        sigma: float,
        corner_thresh: float,
    ) -> Optional[np.ndarray]:
        """Structure-tensor frame at a keypoint, or None if rejected."""
        radius = max(1, int(np.ceil(1.5 * sigma)))
        slices, offsets = _window(coords, radius, gradient[0].shape)
        g = np.stack([comp[slices].ravel() for comp in gradient], axis=1)
        weights = np.exp(-np.sum(offsets ** 2, axis=1) / (2.0 * (1.5 * sigma) ** 2))

        tensor = (g * weights[:, np.newaxis]).T @ g
        eigvals, eigvecs = np.linalg.eigh(tensor)
        if eigvals[-1] <= 0 or eigvals[0] / eigvals[-1] < corner_thresh:
            return None

        # Columns by decreasing eigenvalue, signs fixed by the gradient skew
        frame = eigvecs[:, ::-1].copy()
        for col in range(NDIMS - 1):
            if np.sum(weights * (g @ frame[:, col]) ** 3) < 0:
                frame[:, col] *= -1
        frame[:, -1] = np.cross(frame[:, 0], frame[:, 1])
        return frame

    @staticmethod
    def _histogram(gradient: List[np.ndarray], key: Keypoint) -> np.ndarray:
        """Oriented gradient histogram over 2x2x2 cells x 8 octants."""
        radius = max(2, int(np.ceil(3.0 * key.scale)))
        slices, offsets = _window(key.coords, radius, gradient[0].shape)
        g = np.stack([comp[slices].ravel() for comp in gradient], axis=1)

        local_pos = offsets @ key.orientation
        local_grad = g @ key.orientation
        weights = np.linalg.norm(g, axis=1) * np.exp(
            -np.sum(offsets ** 2, axis=1) / (2.0 * (0.5 * radius) ** 2)
        )
        inside = np.sum(offsets ** 2, axis=1) <= radius ** 2

        bits = 1 << np.arange(NDIMS)
        cell = (local_pos >= 0).astype(int) @ bits
        octant = (local_grad >= 0).astype(int) @ bits
        hist = np.zeros((2 ** NDIMS, 2 ** NDIMS), dtype=np.float64)
        np.add.at(hist, (cell[inside], octant[inside]), weights[inside])

        hist = hist.ravel()
        norm = np.linalg.norm(hist)
        if norm == 0:
            return hist
        hist = np.minimum(hist / norm, _DESCRIPTOR_CLIP)
        return hist / np.linalg.norm(hist)
