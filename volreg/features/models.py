# -*- coding: utf-8 -*-
"""
Feature Models - Keypoints, descriptors, and their per-image stores.

Keypoints and descriptors are produced by a ``FeatureDetector`` and are only
mutated afterwards by ``scale_features``. Stores are ordered and resizable;
a registration session replaces (never merges) their contents on every new
source or reference image.

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
from dataclasses import dataclass, field
from typing import Generic, Iterable, Iterator, List, Optional, Tuple, TypeVar

# Third-party
import numpy as np

# volreg internal
from volreg.image import NDIMS


@dataclass
class Keypoint:
    """A detected feature location.

    Attributes
    ----------
    coords : np.ndarray
        Sub-voxel position in array-axis order. Shape (3,).
    scale : float
        Characteristic scale (Gaussian sigma, voxels).
    orientation : np.ndarray
        Local orientation frame. Shape (3, 3), columns are basis vectors.
    level : int
        Scale-space level the keypoint was found at.
    """

    coords: np.ndarray
    scale: float
    orientation: np.ndarray = field(
        default_factory=lambda: np.eye(NDIMS, dtype=np.float64)
    )
    level: int = 0

    def __post_init__(self) -> None:
        self.coords = np.array(self.coords, dtype=np.float64)
        self.orientation = np.array(self.orientation, dtype=np.float64)
        self.scale = float(self.scale)


@dataclass
class Descriptor:
    """A feature vector bound to a keypoint location.

    Attributes
    ----------
    coords : np.ndarray
        Position in array-axis order. Shape (3,).
    scale : float
        Scale of the originating keypoint.
    features : np.ndarray
        Descriptor vector. Shape (D,).
    """

    coords: np.ndarray
    scale: float
    features: np.ndarray

    def __post_init__(self) -> None:
        self.coords = np.array(self.coords, dtype=np.float64)
        self.features = np.asarray(self.features, dtype=np.float64)
        self.scale = float(self.scale)


T = TypeVar('T')


class _FeatureStore(Generic[T]):
    """Ordered, resizable list of features for one image."""

    def __init__(self, items: Optional[Iterable[T]] = None) -> None:
        self._items: List[T] = list(items) if items is not None else []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __getitem__(self, index: int) -> T:
        return self._items[index]

    def append(self, item: T) -> None:
        self._items.append(item)

    def extend(self, items: Iterable[T]) -> None:
        self._items.extend(items)

    def clear(self) -> None:
        self._items.clear()

    def coordinates(self) -> np.ndarray:
        """Stack the positions of all items.

        Returns
        -------
        np.ndarray
            Fresh array of positions. Shape (N, 3).
        """
        if not self._items:
            return np.empty((0, NDIMS), dtype=np.float64)
        return np.stack([item.coords for item in self._items]).astype(np.float64)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(num={len(self._items)})"


class KeypointStore(_FeatureStore[Keypoint]):
    """Keypoints detected in one image."""


class DescriptorStore(_FeatureStore[Descriptor]):
    """Descriptors extracted for one image."""

    def feature_matrix(self) -> np.ndarray:
        """Stack all descriptor vectors.

        Returns
        -------
        np.ndarray
            Shape (N, D). ``(0, 0)`` when the store is empty.

        Raises
        ------
        ValueError
            If descriptors have different lengths.
        """
        if not self._items:
            return np.empty((0, 0), dtype=np.float64)
        return np.stack([d.features for d in self._items]).astype(np.float64)


@dataclass
class FeatureBundle:
    """Features and units captured from one side of a registration.

    Keeps the unit vector next to the features extracted with it, so
    coordinate conversion always uses the units of the image the features
    came from.

    Attributes
    ----------
    units : Tuple[float, ...]
        Voxel size of the image the features were extracted from.
    keypoints : KeypointStore
    descriptors : DescriptorStore
    """

    units: Tuple[float, ...] = (1.0, 1.0, 1.0)
    keypoints: KeypointStore = field(default_factory=KeypointStore)
    descriptors: DescriptorStore = field(default_factory=DescriptorStore)

    def clear(self) -> None:
        """Drop all features, keeping the units."""
        self.keypoints = KeypointStore()
        self.descriptors = DescriptorStore()
