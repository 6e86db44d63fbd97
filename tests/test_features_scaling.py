# -*- coding: utf-8 -*-
"""
Tests for rescaling keypoints and descriptors to a new voxel grid.

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

import copy

import numpy as np
import pytest

from volreg.exceptions import ValidationError
from volreg.features.models import (
    Descriptor,
    DescriptorStore,
    Keypoint,
    KeypointStore,
)
from volreg.features.scaling import scale_features


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def stores():
    """Five random keypoints with matching descriptors."""
    rng = np.random.default_rng(7)
    keypoints = KeypointStore()
    descriptors = DescriptorStore()
    for _ in range(5):
        coords = rng.uniform(0, 50, 3)
        scale = rng.uniform(1, 4)
        q, _ = np.linalg.qr(rng.normal(size=(3, 3)))
        keypoints.append(Keypoint(coords=coords, scale=scale, orientation=q))
        descriptors.append(Descriptor(
            coords=coords, scale=scale, features=rng.random(16),
        ))
    return keypoints, descriptors


# ---------------------------------------------------------------------------
# scale_features
# ---------------------------------------------------------------------------

class TestScaleFeatures:

    def test_volume_preserving_factors(self, stores):
        """det == 1 leaves the scale unchanged and scales R columns."""
        keypoints, descriptors = stores
        before = copy.deepcopy(keypoints)
        factors = np.array([0.5, 1.0, 2.0])

        scale_features(factors, keypoints, descriptors)

        for old, new in zip(before, keypoints):
            np.testing.assert_allclose(new.coords, old.coords * factors)
            assert new.scale == pytest.approx(old.scale)
            np.testing.assert_allclose(
                new.orientation, old.orientation * factors[np.newaxis, :]
            )

    def test_isotropic_factors(self, stores):
        keypoints, descriptors = stores
        before_kp = copy.deepcopy(keypoints)
        before_desc = copy.deepcopy(descriptors)

        scale_features([0.5, 0.5, 0.5], keypoints, descriptors)

        for old, new in zip(before_kp, keypoints):
            np.testing.assert_allclose(new.coords, old.coords * 0.5)
            assert new.scale == pytest.approx(old.scale * 2.0)
            # f[j] / det = 0.5 / 0.125
            np.testing.assert_allclose(new.orientation, old.orientation * 4.0)
        for old, new in zip(before_desc, descriptors):
            np.testing.assert_allclose(new.coords, old.coords * 0.5)
            assert new.scale == pytest.approx(old.scale * 2.0)

    def test_descriptor_features_untouched(self, stores):
        keypoints, descriptors = stores
        before = [d.features.copy() for d in descriptors]

        scale_features([0.25, 0.5, 1.0], keypoints, descriptors)

        for old, new in zip(before, descriptors):
            np.testing.assert_array_equal(new.features, old)

    def test_inverse_factors_restore_features(self, stores):
        keypoints, descriptors = stores
        before_kp = copy.deepcopy(keypoints)
        before_desc = copy.deepcopy(descriptors)
        factors = np.array([0.3, 0.75, 1.9])

        scale_features(factors, keypoints, descriptors)
        scale_features(1.0 / factors, keypoints, descriptors)

        for old, new in zip(before_kp, keypoints):
            np.testing.assert_allclose(new.coords, old.coords)
            assert new.scale == pytest.approx(old.scale)
            np.testing.assert_allclose(new.orientation, old.orientation)
        for old, new in zip(before_desc, descriptors):
            np.testing.assert_allclose(new.coords, old.coords)
            assert new.scale == pytest.approx(old.scale)

    def test_modifies_in_place(self, stores):
        keypoints, descriptors = stores
        first = keypoints[0]
        scale_features([2.0, 2.0, 2.0], keypoints, descriptors)
        assert keypoints[0] is first

    def test_empty_stores(self):
        scale_features([0.5, 0.5, 0.5], KeypointStore(), DescriptorStore())

    def test_wrong_length_raises(self, stores):
        with pytest.raises(ValidationError, match="3 entries"):
            scale_features([0.5, 0.5], *stores)

    def test_non_positive_raises(self, stores):
        with pytest.raises(ValidationError, match="positive"):
            scale_features([0.5, 0.0, 1.0], *stores)
