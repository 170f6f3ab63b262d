from typing import Iterable, Iterator, Optional, Tuple

from app.errors import TensorReadError
from app.services.tensor_accessor import TensorAccessor


class PixelClassifier:
    """Finds the most probable class at a single spatial position."""

    def classify(self, values: Iterable[float]) -> Tuple[int, float]:
        """
        Returns (best_index, best_value) over a sequence of class probabilities.

        The best value starts at 0.0 and only a strictly greater value replaces it,
        so ties keep the lowest index and an all-zero pixel yields (0, 0.0).
        NaN never compares greater and is skipped.
        """
        best_index = 0
        best_value = 0.0
        for class_index, value in enumerate(values):
            if value > best_value:
                best_value = value
                best_index = class_index
        return best_index, best_value

    def classify_position(self, accessor: TensorAccessor, x: int, y: int,
                          class_count: Optional[int] = None) -> Tuple[int, float]:
        """
        Classifies position (x, y), reading class values lazily from the accessor.
        Reads class_count values (default: the accessor's class count); a value the
        accessor cannot produce raises TensorReadError.
        """
        if class_count is None:
            class_count = accessor.class_count
        return self.classify(self._read_classes(accessor, x, y, class_count))

    @staticmethod
    def _read_classes(accessor: TensorAccessor, x: int, y: int, class_count: int) -> Iterator[float]:
        for class_index in range(class_count):
            value = accessor.get_value(x, y, class_index)
            if value is None:
                raise TensorReadError(x, y, class_index)
            yield value


pixel_classifier = PixelClassifier()
