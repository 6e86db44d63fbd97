# -*- coding: utf-8 -*-
"""
Co-Registration Module - Keypoint-based alignment of 3-D volumes.

Provides the registration session, the voxel/physical coordinate
conversions, RANSAC transform estimation, and warping and resampling
utilities for registering a moving (source) volume to a fixed (reference)
volume.

Key Classes
-----------
- RegistrationSession: Stateful keypoint registration of two volumes
- CoRegistration: Abstract base class for co-registration algorithms
- RegistrationResult: Result container with transform and quality metrics
- AffineTransform: 3-D affine transform, the supported transform variant
- RansacConfig: Parameters of robust estimation

Usage
-----
Register a moving volume to a fixed reference:

    >>> from volreg.coregistration import RegistrationSession
    >>> session = RegistrationSession()
    >>> result = session.estimate(fixed_volume, moving_volume)
    >>> aligned = session.apply(moving_volume, result, fixed_volume.shape)

Dependencies
------------
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

from volreg.coregistration.base import CoRegistration, RegistrationResult
from volreg.coregistration.coordinates import to_physical, to_voxel
from volreg.coregistration.ransac import RansacConfig, estimate_transform_robust
from volreg.coregistration.session import (
    DEFAULT_MATCH_THRESHOLD,
    RegistrationSession,
)
from volreg.coregistration.transforms import AffineTransform, Transform
from volreg.coregistration.utils import (
    apply_transform_to_points,
    compute_residuals,
    compute_rms,
    resample_image,
    warp_image,
)

__all__ = [
    'CoRegistration',
    'RegistrationResult',
    'RegistrationSession',
    'DEFAULT_MATCH_THRESHOLD',
    'Transform',
    'AffineTransform',
    'RansacConfig',
    'estimate_transform_robust',
    'to_physical',
    'to_voxel',
    'apply_transform_to_points',
    'compute_residuals',
    'compute_rms',
    'resample_image',
    'warp_image',
]
