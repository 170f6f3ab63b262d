import math

import pytest

from app.errors import TensorReadError
from app.services.pixel_classifier import pixel_classifier
from app.services.tensor_accessor import NumpyTensorAccessor, TensorAccessor


class GappyAccessor(TensorAccessor):
    """Accessor with a single unreadable value at (1, 0, 2)."""

    width = 2
    height = 1
    class_count = 3

    def __init__(self):
        self.reads = []

    def get_value(self, x, y, class_index):
        self.reads.append((x, y, class_index))
        if (x, y, class_index) == (1, 0, 2):
            return None
        return 0.5


def test_argmax_picks_highest_class():
    assert pixel_classifier.classify([0.2, 0.2, 0.5, 0.1]) == (2, 0.5)


def test_ties_keep_lowest_index():
    assert pixel_classifier.classify([0.3, 0.3]) == (0, 0.3)
    assert pixel_classifier.classify([0.1, 0.6, 0.6, 0.2]) == (1, 0.6)


def test_all_zero_pixel_defaults_to_class_zero():
    assert pixel_classifier.classify([0.0, 0.0, 0.0]) == (0, 0.0)


def test_nan_values_are_skipped():
    index, value = pixel_classifier.classify([math.nan, 0.3, 0.2])
    assert index == 1
    assert value == 0.3


def test_classify_position_reads_through_accessor(wound_tensor):
    accessor = NumpyTensorAccessor(wound_tensor)
    index, value = pixel_classifier.classify_position(accessor, 0, 1)
    assert index == 2
    assert value == pytest.approx(0.8)


def test_unreadable_value_raises():
    accessor = GappyAccessor()
    assert pixel_classifier.classify_position(accessor, 0, 0) == (0, 0.5)

    with pytest.raises(TensorReadError) as exc_info:
        pixel_classifier.classify_position(accessor, 1, 0)
    assert (exc_info.value.x, exc_info.value.y, exc_info.value.class_index) == (1, 0, 2)
