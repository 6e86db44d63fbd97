# -*- coding: utf-8 -*-
"""
Features Module - Keypoints, descriptors, matching, and rescaling.

Key Classes
-----------
- Keypoint, Descriptor: Detected features and their descriptor vectors
- KeypointStore, DescriptorStore: Ordered per-image feature stores
- FeatureBundle: Units and features of one side of a registration
- FeatureDetector: Interface for detectors/extractors
- ScaleSpaceDetector: Difference-of-Gaussians detector for volumes
- DetectorConfig: Detection parameters

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

from volreg.features.detector import (
    DESCRIPTOR_SIZE,
    DetectorConfig,
    FeatureDetector,
    ScaleSpaceDetector,
)
from volreg.features.matching import (
    NO_MATCH,
    match_forward_backward,
    matches_to_coordinates,
)
from volreg.features.models import (
    Descriptor,
    DescriptorStore,
    FeatureBundle,
    Keypoint,
    KeypointStore,
)
from volreg.features.scaling import scale_features

__all__ = [
    'DESCRIPTOR_SIZE',
    'DetectorConfig',
    'FeatureDetector',
    'ScaleSpaceDetector',
    'NO_MATCH',
    'match_forward_backward',
    'matches_to_coordinates',
    'Descriptor',
    'DescriptorStore',
    'FeatureBundle',
    'Keypoint',
    'KeypointStore',
    'scale_features',
]
