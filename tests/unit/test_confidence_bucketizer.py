import math

import numpy as np
import pytest

from app.services.confidence_bucketizer import ConfidenceBucketizer, confidence_bucketizer


@pytest.mark.parametrize("value, expected", [
    (1.0, 0),
    (0.91, 0),
    (0.90, 1),
    (0.81, 1),
    (0.80, 2),
    (0.61, 3),
    (0.55, 4),
    (0.5, 5),
    (0.4, 6),
    (0.25, 7),
    (0.11, 8),
    (0.10, 9),
    (0.01, 9),
])
def test_band_boundaries_are_inclusive(value, expected):
    assert confidence_bucketizer.bucket(value) == expected


def test_values_between_bands_default_to_first_bucket():
    assert confidence_bucketizer.bucket(0.905) == 0
    assert confidence_bucketizer.bucket(0.904) == 0
    assert confidence_bucketizer.bucket(0.105) == 0
    assert confidence_bucketizer.bucket(0.805) == 0


@pytest.mark.parametrize("value", [0.0, 0.004, 0.005, 0.006, 0.0099, 0.904, 1.5, -0.2])
@pytest.mark.parametrize("dtype", [float, np.float32, np.float64])
def test_uncovered_values_default_to_first_bucket(value, dtype):
    assert confidence_bucketizer.bucket(dtype(value)) == 0


def test_nan_and_huge_values_default_to_first_bucket():
    assert confidence_bucketizer.bucket(math.nan) == 0
    assert confidence_bucketizer.bucket(np.float32("nan")) == 0
    assert confidence_bucketizer.bucket(1e300) == 0
    assert confidence_bucketizer.bucket(-math.inf) == 0


def test_float32_model_values():
    # float32(0.8) is slightly above 0.8 but still belongs to 71%-80%
    assert confidence_bucketizer.bucket(np.float32(0.8)) == 2
    assert confidence_bucketizer.bucket(np.float32(0.9)) == 1
    assert confidence_bucketizer.bucket(np.float32(0.4)) == 6


def test_custom_default_bucket():
    bucketizer = ConfidenceBucketizer(default_bucket=9)
    assert bucketizer.bucket(0.0) == 9
    assert bucketizer.bucket_count == 10


@pytest.mark.parametrize("value, expected", [
    (0.91, 0),
    (0.90, 1),
    (0.10, 9),
    (0.01, 9),
])
def test_float32_band_limits_are_inclusive(value, expected):
    assert confidence_bucketizer.bucket(np.float32(value)) == expected
