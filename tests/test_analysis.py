"""Tests for intensity post-processing."""

import numpy as np
import pytest

from strata_field import focal_region, intensity_to_db, normalize_intensity


class TestNormalize:
    def test_peak_is_one(self):
        np.testing.assert_allclose(normalize_intensity([1.0, 4.0, 2.0]), [0.25, 1.0, 0.5])

    def test_all_zero_warns(self):
        with pytest.warns(UserWarning, match="no positive"):
            out = normalize_intensity(np.zeros(3))
        np.testing.assert_array_equal(out, [0.0, 0.0, 0.0])


class TestIntensityToDb:
    def test_relative_to_peak(self):
        levels = intensity_to_db([1.0, 10.0, 100.0])
        np.testing.assert_allclose(levels, [-20.0, -10.0, 0.0])

    def test_explicit_reference(self):
        assert intensity_to_db([2.0], reference=1.0)[0] == pytest.approx(10 * np.log10(2.0))

    def test_zero_is_minus_inf(self):
        levels = intensity_to_db([0.0, 1.0])
        assert levels[0] == -np.inf

    def test_bad_reference(self):
        with pytest.raises(ValueError):
            intensity_to_db([0.0, 0.0])


class TestFocalRegion:
    def test_minus_six_db(self):
        mask = focal_region([1.0, 0.3, 0.2, 0.26, 0.9])
        np.testing.assert_array_equal(mask, [True, True, False, True, True])

    def test_positive_threshold_rejected(self):
        with pytest.raises(ValueError):
            focal_region([1.0], threshold_db=3.0)
