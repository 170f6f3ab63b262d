import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, NamedTuple, Optional, Set, Tuple

import numpy as np

from app.config import SEGMENTATION_WORKERS
from app.errors import TensorReadError
from app.services.color_palette import LabelTable, confidence_label_table, tissue_label_table
from app.services.confidence_bucketizer import ConfidenceBucketizer, confidence_bucketizer
from app.services.pixel_classifier import PixelClassifier, pixel_classifier
from app.services.tensor_accessor import NumpyTensorAccessor, TensorAccessor

logger = logging.getLogger(__name__)


class SegmentationMap(NamedTuple):
    """Per-pixel colors and observed label indices for one model output."""
    class_buffer: np.ndarray
    class_indices: Set[int]
    confidence_buffer: np.ndarray
    confidence_indices: Set[int]
    width: int
    height: int


class _BuildAborted(Exception):
    """Raised inside a worker when another worker already failed."""


class SegmentationMapBuilder:
    """
    Classifies every position of a probability tensor into a tissue class and a
    confidence bucket, and records the matching palette colors.

    Colors are written at offset x * height + y of flat uint32 buffers, x running
    over the tensor's first spatial axis.
    """

    def __init__(self,
                 tissue_labels: LabelTable = tissue_label_table,
                 confidence_labels: LabelTable = confidence_label_table,
                 classifier: PixelClassifier = pixel_classifier,
                 bucketizer: ConfidenceBucketizer = confidence_bucketizer,
                 workers: int = SEGMENTATION_WORKERS):
        self.tissue_labels = tissue_labels
        self.confidence_labels = confidence_labels
        self.classifier = classifier
        self.bucketizer = bucketizer
        self.workers = max(1, workers)

    def build(self, accessor: TensorAccessor, vectorize: bool = True) -> SegmentationMap:
        """Builds the segmentation map using the accessor's own extents."""
        return self.build_map(accessor.width, accessor.height, accessor.class_count,
                              accessor, vectorize=vectorize)

    def build_map(self, width: int, height: int, class_count: int,
                  accessor: TensorAccessor, vectorize: bool = True) -> SegmentationMap:
        if width <= 0 or height <= 0 or class_count <= 0:
            raise ValueError(f"Invalid tensor extents: {width} x {height} x {class_count}")

        start_time = time.perf_counter()
        if vectorize and self._can_vectorize(accessor, width, height, class_count):
            result = self._build_vectorized(accessor, class_count)
            mode = "vectorized"
        elif self.workers > 1 and width > 1:
            result = self._build_parallel(width, height, class_count, accessor)
            mode = f"{self.workers} workers"
        else:
            result = self._build_sequential(width, height, class_count, accessor)
            mode = "sequential"

        logger.debug(
            f"Built {width}x{height}x{class_count} segmentation map ({mode}) in "
            f"{(time.perf_counter() - start_time):.3f}s: classes={sorted(result.class_indices)}, "
            f"confidence={sorted(result.confidence_indices)}"
        )
        return result

    @staticmethod
    def _can_vectorize(accessor: TensorAccessor, width: int, height: int, class_count: int) -> bool:
        return (isinstance(accessor, NumpyTensorAccessor)
                and accessor.array.shape == (width, height, class_count))

    def _new_buffers(self, width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
        return (np.zeros(width * height, dtype=np.uint32),
                np.zeros(width * height, dtype=np.uint32))

    def _classify_columns(self, xs: range, height: int, class_count: int,
                          accessor: TensorAccessor,
                          class_buffer: np.ndarray, confidence_buffer: np.ndarray,
                          stop: Optional[threading.Event] = None) -> Tuple[Set[int], Set[int]]:
        """Classifies columns xs, writing only offsets x * height + y for x in xs."""
        class_indices: Set[int] = set()
        confidence_indices: Set[int] = set()
        for x in xs:
            if stop is not None and stop.is_set():
                raise _BuildAborted()
            for y in range(height):
                class_index, max_value = self.classifier.classify_position(accessor, x, y, class_count)
                offset = x * height + y
                class_buffer[offset] = self.tissue_labels.packed_color(class_index)
                class_indices.add(class_index)

                confidence_index = self.bucketizer.bucket(max_value)
                confidence_buffer[offset] = self.confidence_labels.packed_color(confidence_index)
                confidence_indices.add(confidence_index)
        return class_indices, confidence_indices

    def _build_sequential(self, width: int, height: int, class_count: int,
                          accessor: TensorAccessor) -> SegmentationMap:
        class_buffer, confidence_buffer = self._new_buffers(width, height)
        try:
            class_indices, confidence_indices = self._classify_columns(
                range(width), height, class_count, accessor, class_buffer, confidence_buffer
            )
        except TensorReadError as e:
            logger.error(f"Error parsing model output: {e}")
            raise
        return SegmentationMap(class_buffer, class_indices, confidence_buffer,
                               confidence_indices, width, height)

    def _build_parallel(self, width: int, height: int, class_count: int,
                        accessor: TensorAccessor) -> SegmentationMap:
        class_buffer, confidence_buffer = self._new_buffers(width, height)
        stop = threading.Event()
        chunks = self._split(width, self.workers)

        def work(xs: range) -> Tuple[Set[int], Set[int]]:
            try:
                return self._classify_columns(xs, height, class_count, accessor,
                                              class_buffer, confidence_buffer, stop)
            except TensorReadError:
                stop.set()
                raise

        class_indices: Set[int] = set()
        confidence_indices: Set[int] = set()
        failure: Optional[TensorReadError] = None
        with ThreadPoolExecutor(max_workers=len(chunks)) as executor:
            futures = [executor.submit(work, xs) for xs in chunks]
            for future in futures:
                try:
                    chunk_classes, chunk_confidence = future.result()
                except _BuildAborted:
                    continue
                except TensorReadError as e:
                    if failure is None:
                        failure = e
                    continue
                class_indices |= chunk_classes
                confidence_indices |= chunk_confidence

        if failure is not None:
            logger.error(f"Error parsing model output: {failure}")
            raise failure
        return SegmentationMap(class_buffer, class_indices, confidence_buffer,
                               confidence_indices, width, height)

    @staticmethod
    def _split(width: int, workers: int) -> List[range]:
        count = min(workers, width)
        step, extra = divmod(width, count)
        chunks = []
        start = 0
        for i in range(count):
            stop = start + step + (1 if i < extra else 0)
            chunks.append(range(start, stop))
            start = stop
        return chunks

    def _build_vectorized(self, accessor: NumpyTensorAccessor, class_count: int) -> SegmentationMap:
        """Whole-array equivalent of the per-pixel pass for dense numpy tensors."""
        width, height = accessor.width, accessor.height
        array = accessor.array
        values = np.where(np.isnan(array), -np.inf, array)

        best_values = values.max(axis=2)
        best_indices = values.argmax(axis=2)
        # A maximum that is not above the 0.0 floor keeps class 0 with value 0.0.
        above_floor = best_values > 0.0
        best_indices = np.where(above_floor, best_indices, 0).ravel()
        best_values = np.where(above_floor, best_values, np.float32(0.0)).ravel()

        unique_values, inverse = np.unique(best_values, return_inverse=True)
        bucket_lut = np.array([self.bucketizer.bucket(v) for v in unique_values], dtype=np.int64)
        buckets = bucket_lut[inverse.ravel()]

        class_lut = np.array(self.tissue_labels.packed_colors(class_count), dtype=np.uint32)
        confidence_lut = np.array(
            self.confidence_labels.packed_colors(self.bucketizer.bucket_count), dtype=np.uint32
        )

        return SegmentationMap(
            class_buffer=class_lut[best_indices],
            class_indices=set(np.unique(best_indices).tolist()),
            confidence_buffer=confidence_lut[buckets],
            confidence_indices=set(np.unique(buckets).tolist()),
            width=width,
            height=height,
        )


segmentation_map_builder = SegmentationMapBuilder()
