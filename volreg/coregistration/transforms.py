# -*- coding: utf-8 -*-
"""
Transforms - Tagged spatial transform variants.

``Transform`` is the base of a closed set of variants, each identified by a
``TransformType`` tag. Operations that depend on the variant (coordinate
conversion, robust estimation) dispatch on ``Transform.kind`` and raise
``UnsupportedTransformError`` for variants they have no handler for.

Registration transforms follow the inverse-warp convention: they map a
point of the reference (fixed) image to the corresponding point of the
source (moving) image, which is what is needed to resample the source onto
the reference grid.

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
from abc import ABC, abstractmethod
from typing import Optional

# Third-party
import numpy as np

# volreg internal
from volreg.exceptions import ValidationError
from volreg.image import NDIMS
from volreg.vocabulary import TransformType


class Transform(ABC):
    """Base class of all spatial transforms."""

    @property
    @abstractmethod
    def kind(self) -> TransformType:
        """Variant tag of this transform."""
        ...

    @abstractmethod
    def apply(self, points: np.ndarray) -> np.ndarray:
        """Map an (N, 3) array of points through the transform."""
        ...

    @abstractmethod
    def inverse(self) -> 'Transform':
        ...

    @abstractmethod
    def copy(self) -> 'Transform':
        ...


class AffineTransform(Transform):
    """3-D affine transform ``y = A x + t``.

    Parameters
    ----------
    matrix : Optional[np.ndarray]
        Homogeneous matrix ``[A | t]``. Shape (3, 4): rows index output
        axes, the first three columns index input axes and the last column
        is the translation. Defaults to the identity.

    Raises
    ------
    ValidationError
        If *matrix* is not (3, 4).

    Examples
    --------
    >>> tform = AffineTransform.from_parts(np.diag([2.0, 1.0, 1.0]), [0, 5, 0])
    >>> tform.apply(np.array([[1.0, 1.0, 1.0]]))
    array([[2., 6., 1.]])
    """

    def __init__(self, matrix: Optional[np.ndarray] = None) -> None:
        if matrix is None:
            matrix = np.hstack([np.eye(NDIMS), np.zeros((NDIMS, 1))])
        matrix = np.array(matrix, dtype=np.float64)
        if matrix.shape != (NDIMS, NDIMS + 1):
            raise ValidationError(
                f"Affine matrix must have shape (3, 4), got {matrix.shape}"
            )
        self.matrix = matrix

    @classmethod
    def from_parts(cls, linear: np.ndarray, translation: np.ndarray) -> 'AffineTransform':
        """Build from a (3, 3) linear part and a length-3 translation."""
        linear = np.asarray(linear, dtype=np.float64)
        translation = np.asarray(translation, dtype=np.float64).reshape(-1, 1)
        return cls(np.hstack([linear, translation]))

    @property
    def kind(self) -> TransformType:
        return TransformType.AFFINE

    @property
    def linear(self) -> np.ndarray:
        """Linear part ``A``. Shape (3, 3). A view into ``matrix``."""
        return self.matrix[:, :NDIMS]

    @property
    def translation(self) -> np.ndarray:
        """Translation ``t``. Shape (3,). A view into ``matrix``."""
        return self.matrix[:, NDIMS]

    def apply(self, points: np.ndarray) -> np.ndarray:
        points = np.asarray(points, dtype=np.float64)
        return points @ self.linear.T + self.translation

    def inverse(self) -> 'AffineTransform':
        """Inverse transform.

        Raises
        ------
        np.linalg.LinAlgError
            If the linear part is singular.
        """
        inv = np.linalg.inv(self.linear)
        return AffineTransform.from_parts(inv, -inv @ self.translation)

    def copy(self) -> 'AffineTransform':
        return AffineTransform(self.matrix.copy())

    def __repr__(self) -> str:
        return f"AffineTransform(\n{self.matrix!r})"
