# -*- coding: utf-8 -*-
"""
Tests for the co-registration module.

Tests co-registration base classes, the affine transform variant, and
utility functions (residuals, warping, resampling) using synthetic volumes
with known transforms.

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

import numpy as np
import pytest

from volreg.coregistration.base import CoRegistration, RegistrationResult
from volreg.coregistration.transforms import AffineTransform
from volreg.coregistration.utils import (
    apply_transform_to_points,
    compute_residuals,
    compute_rms,
    resample_image,
    warp_image,
)
from volreg.exceptions import ResampleError, ValidationError
from volreg.image import Volume
from volreg.vocabulary import Interpolation, TransformType


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def synthetic_volume():
    """Create a 20x20x20 synthetic volume with distinct structure."""
    rng = np.random.default_rng(42)
    vol = rng.random((20, 20, 20)).astype(np.float64)
    vol[4:8, 4:8, 4:8] = 1.0
    vol[12:16, 10:14, 6:10] = 0.0
    return vol


@pytest.fixture
def identity_affine():
    return AffineTransform()


@pytest.fixture
def translation_affine():
    """Translation-only affine: shift by (2, 3, 1) voxels."""
    return AffineTransform.from_parts(np.eye(3), [2.0, 3.0, 1.0])


# ---------------------------------------------------------------------------
# AffineTransform Tests
# ---------------------------------------------------------------------------

class TestAffineTransform:

    def test_default_is_identity(self):
        tform = AffineTransform()
        np.testing.assert_array_equal(tform.linear, np.eye(3))
        np.testing.assert_array_equal(tform.translation, np.zeros(3))
        assert tform.kind is TransformType.AFFINE

    def test_apply(self):
        tform = AffineTransform.from_parts(np.diag([2.0, 1.0, 1.0]), [0, 5, 0])
        np.testing.assert_allclose(
            tform.apply(np.array([[1.0, 1.0, 1.0]])), [[2.0, 6.0, 1.0]]
        )

    def test_inverse(self):
        tform = AffineTransform.from_parts(
            [[1.0, 0.2, 0.0], [0.0, 2.0, 0.0], [0.1, 0.0, 0.5]], [1, -2, 3]
        )
        pts = np.array([[1.0, 2.0, 3.0], [-4.0, 0.5, 9.0]])
        np.testing.assert_allclose(tform.inverse().apply(tform.apply(pts)), pts)

    def test_copy_is_independent(self, translation_affine):
        dup = translation_affine.copy()
        dup.matrix[0, 3] = 99.0
        assert translation_affine.matrix[0, 3] == 2.0

    def test_views_share_matrix(self):
        tform = AffineTransform()
        tform.translation[:] = [1.0, 2.0, 3.0]
        np.testing.assert_array_equal(tform.matrix[:, 3], [1.0, 2.0, 3.0])

    def test_bad_matrix_shape_raises(self):
        with pytest.raises(ValidationError):
            AffineTransform(np.eye(3))

    @pytest.mark.parametrize("shape", [(2, 4), (4, 4)])
    def test_wrong_row_count_raises(self, shape):
        with pytest.raises(ValidationError, match=r"\(3, 4\)"):
            AffineTransform(np.zeros(shape))


# ---------------------------------------------------------------------------
# RegistrationResult Tests
# ---------------------------------------------------------------------------

class TestRegistrationResult:

    def test_attributes(self, translation_affine):
        result = RegistrationResult(
            transform=translation_affine,
            residual_rms=0.5,
            num_matches=10,
            inlier_ratio=0.8,
        )
        assert result.transform is translation_affine
        assert result.num_matches == 10
        assert result.metadata == {}

    def test_transform_points(self, translation_affine):
        result = RegistrationResult(translation_affine, 0.0, 4, 1.0)
        pts = np.array([[0.0, 0.0, 0.0]])
        np.testing.assert_allclose(result.transform_points(pts), [[2.0, 3.0, 1.0]])
        np.testing.assert_allclose(
            result.transform_points(np.array([[2.0, 3.0, 1.0]]), inverse=True),
            pts,
        )

    def test_repr(self, identity_affine):
        result = RegistrationResult(identity_affine, 1.2345, 50, 0.75)
        r = repr(result)
        assert 'affine' in r
        assert '1.2345' in r
        assert '50' in r


# ---------------------------------------------------------------------------
# Utility Tests
# ---------------------------------------------------------------------------

class TestApplyTransformToPoints:

    def test_identity(self, identity_affine):
        pts = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
        np.testing.assert_allclose(apply_transform_to_points(pts, identity_affine), pts)

    def test_translation(self, translation_affine):
        pts = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]])
        np.testing.assert_allclose(
            apply_transform_to_points(pts, translation_affine),
            [[2.0, 3.0, 1.0], [3.0, 4.0, 2.0]],
        )

    def test_invalid_shape_raises(self, identity_affine):
        with pytest.raises(ValidationError):
            apply_transform_to_points(np.zeros((3, 2)), identity_affine)


class TestComputeResiduals:

    def test_zero_residuals_identity(self, identity_affine):
        pts = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
        np.testing.assert_allclose(compute_residuals(pts, pts, identity_affine), 0.0)

    def test_known_residuals(self, translation_affine):
        ref = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]])
        src = np.array([[2.0, 3.0, 1.0], [3.0, 4.0, 5.0]])
        residuals = compute_residuals(src, ref, translation_affine)
        np.testing.assert_allclose(residuals, [0.0, 3.0])


class TestComputeRms:

    def test_zero_residuals(self):
        assert compute_rms(np.zeros(5)) == 0.0

    def test_known_rms(self):
        assert compute_rms(np.array([3.0, 4.0])) == pytest.approx(np.sqrt(12.5))

    def test_empty(self):
        assert compute_rms(np.array([])) == 0.0


class TestWarpImage:

    def test_identity_preserves_volume(self, synthetic_volume, identity_affine):
        warped = warp_image(synthetic_volume, identity_affine)
        np.testing.assert_allclose(warped, synthetic_volume, atol=1e-10)

    def test_translation_samples_shifted_voxels(self, synthetic_volume, translation_affine):
        warped = warp_image(synthetic_volume, translation_affine, order=0)
        np.testing.assert_allclose(warped[:18, :17, :19], synthetic_volume[2:, 3:, 1:])
        # Outside the moving volume
        assert np.all(warped[18:, :, :] == 0.0)

    def test_custom_output_shape(self, synthetic_volume, identity_affine):
        warped = warp_image(synthetic_volume, identity_affine, output_shape=(10, 12, 8))
        assert warped.shape == (10, 12, 8)
        np.testing.assert_allclose(warped, synthetic_volume[:10, :12, :8], atol=1e-10)

    def test_non_volume_raises(self, identity_affine):
        with pytest.raises(ValidationError):
            warp_image(np.zeros((4, 4)), identity_affine)


class TestResampleImage:

    def test_upsample_linear(self):
        data = np.broadcast_to(np.arange(4.0), (4, 4, 4)).copy()
        vol = Volume(data, units=(1.0, 1.0, 2.0))

        out = resample_image(vol, (1.0, 1.0, 1.0), Interpolation.LINEAR)

        assert out.shape == (4, 4, 8)
        assert out.units == (1.0, 1.0, 1.0)
        np.testing.assert_allclose(out.data[0, 0, :7], np.arange(7) * 0.5)

    def test_downsample_shape(self):
        vol = Volume(np.zeros((4, 5, 6)), units=(1.0, 1.0, 1.0))
        out = resample_image(vol, (2.0, 2.0, 2.0), Interpolation.NEAREST)
        assert out.shape == (2, 3, 3)

    def test_same_units_is_identity(self, synthetic_volume):
        vol = Volume(synthetic_volume, units=(0.5, 0.5, 0.5))
        out = resample_image(vol, (0.5, 0.5, 0.5), Interpolation.NEAREST)
        np.testing.assert_allclose(out.data, synthetic_volume)

    def test_integer_input(self):
        vol = Volume(np.ones((3, 3, 3), dtype=np.uint8), units=(2.0, 2.0, 2.0))
        out = resample_image(vol, (1.0, 1.0, 1.0))
        assert out.shape == (6, 6, 6)
        np.testing.assert_allclose(out.data, 1.0)

    def test_invalid_units_raise(self):
        vol = Volume(np.zeros((4, 4, 4)))
        with pytest.raises(ResampleError):
            resample_image(vol, (1.0, 0.0, 1.0))


class TestCoRegistrationABC:

    def test_cannot_instantiate_abc(self):
        with pytest.raises(TypeError):
            CoRegistration()
