import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)


class TensorAccessor(ABC):
    """
    Read-only view of a model's per-pixel class probabilities.

    The logical shape is (width, height, class_count). get_value returns None
    when the value cannot be produced; callers treat that as a failed read.
    """

    @property
    @abstractmethod
    def width(self) -> int:
        ...

    @property
    @abstractmethod
    def height(self) -> int:
        ...

    @property
    @abstractmethod
    def class_count(self) -> int:
        ...

    @abstractmethod
    def get_value(self, x: int, y: int, class_index: int) -> Optional[float]:
        ...


class NumpyTensorAccessor(TensorAccessor):
    """
    Accessor over a dense float array, as returned by the interpreter.

    Accepts (W, H, C), (1, W, H, C) with a batch dimension, or a flat buffer
    together with explicit extents laid out as x * H * C + y * C + class_index.
    """

    def __init__(self, data, width: Optional[int] = None, height: Optional[int] = None,
                 class_count: Optional[int] = None):
        array = np.asarray(data, dtype=np.float32)

        if array.ndim == 1:
            if width is None or height is None or class_count is None:
                raise ValueError("Flat tensors need explicit width, height and class_count")
            if array.size != width * height * class_count:
                raise ValueError(
                    f"Flat tensor has {array.size} values, expected "
                    f"{width} x {height} x {class_count} = {width * height * class_count}"
                )
            array = array.reshape(width, height, class_count)
        elif array.ndim == 4:
            if array.shape[0] != 1:
                raise ValueError(f"Only batch size 1 is supported, got shape {array.shape}")
            array = array[0]
        elif array.ndim != 3:
            raise ValueError(f"Expected a (W, H, C) or (1, W, H, C) tensor, got shape {array.shape}")

        if 0 in array.shape:
            raise ValueError(f"Tensor has an empty dimension: {array.shape}")

        self._array = array
        self._width, self._height, self._class_count = array.shape

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def class_count(self) -> int:
        return self._class_count

    @property
    def array(self) -> np.ndarray:
        """The (W, H, C) float32 view backing this accessor."""
        return self._array

    def get_value(self, x: int, y: int, class_index: int) -> Optional[float]:
        if not (0 <= x < self._width and 0 <= y < self._height and 0 <= class_index < self._class_count):
            logger.debug(f"Read outside tensor bounds at ({x}, {y}, {class_index})")
            return None
        return float(self._array[x, y, class_index])


class NestedListTensorAccessor(NumpyTensorAccessor):
    """Accessor over JSON-decoded nested lists (W x H x C or 1 x W x H x C)."""

    def __init__(self, values: Sequence):
        try:
            data = np.array(values, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Probabilities are not a rectangular numeric array: {e}")
        super().__init__(data)
