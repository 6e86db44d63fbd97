# -*- coding: utf-8 -*-
"""
Vocabulary - Canonical enums for volreg.

Single source of truth for the controlled vocabularies used across the
package: transform variants and interpolation modes.

Author
------
Steven Siebert

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

from enum import Enum


class TransformType(Enum):
    """Tags identifying each transform variant.

    Every ``Transform`` subclass reports one of these through its ``kind``
    property. Operations that depend on the variant dispatch on this tag.
    """

    AFFINE = "affine"


class Interpolation(Enum):
    """Interpolation modes used when resampling volumes."""

    NEAREST = "nearest"
    LINEAR = "linear"

    @property
    def order(self) -> int:
        """Spline order passed to ``scipy.ndimage``.

        Returns
        -------
        int
            0 for nearest neighbour, 1 for trilinear.
        """
        return 0 if self is Interpolation.NEAREST else 1
