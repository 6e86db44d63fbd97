# -*- coding: utf-8 -*-
"""
volreg - Keypoint-based registration of 3-D volumes.

Registers a moving (source) volume to a fixed (reference) volume by
matching scale-space keypoint descriptors and fitting an affine transform
with RANSAC. Each volume carries its own physical voxel size; matched
points are compared in physical space and the result is reported in voxel
space.

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

__version__ = "0.1.0"
__author__ = "Duane Smalley"

from volreg.exceptions import (
    VolregError,
    ValidationError,
    UnsupportedTransformError,
    NoFeaturesError,
    NoMatchesError,
    InitializationError,
    ProcessorError,
    DetectionError,
    ExtractionError,
    MatchError,
    EstimationError,
    ResampleError,
    DependencyError,
)
from volreg.image import NDIMS, Volume
from volreg.vocabulary import Interpolation, TransformType
from volreg.coregistration import (
    AffineTransform,
    CoRegistration,
    RansacConfig,
    RegistrationResult,
    RegistrationSession,
    Transform,
)
from volreg.features import DetectorConfig, FeatureDetector, ScaleSpaceDetector

__all__ = [
    'VolregError',
    'ValidationError',
    'UnsupportedTransformError',
    'NoFeaturesError',
    'NoMatchesError',
    'InitializationError',
    'ProcessorError',
    'DetectionError',
    'ExtractionError',
    'MatchError',
    'EstimationError',
    'ResampleError',
    'DependencyError',
    'NDIMS',
    'Volume',
    'Interpolation',
    'TransformType',
    'AffineTransform',
    'CoRegistration',
    'RansacConfig',
    'RegistrationResult',
    'RegistrationSession',
    'Transform',
    'DetectorConfig',
    'FeatureDetector',
    'ScaleSpaceDetector',
]
