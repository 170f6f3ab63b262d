import math

import numpy as np

from app.config import CONFIDENCE_BUCKET_RANGES, DEFAULT_CONFIDENCE_BUCKET


class ConfidenceBucketizer:
    """
    Maps a pixel's top class probability onto one of the confidence bands.

    Bucket 0 is the most confident band (91%-100%), bucket 9 the least (1%-10%).
    Values outside every band, including 0.0, NaN and the gaps between bands,
    map to the default bucket.

    Model outputs are float32, so values and band limits are both compared at
    float32 precision: float32(0.8) == 0.800000011920929 still lands in 71%-80%,
    while 0.904 or 0.0099 stay outside every band.
    """

    def __init__(self, ranges=CONFIDENCE_BUCKET_RANGES,
                 default_bucket: int = DEFAULT_CONFIDENCE_BUCKET):
        self.ranges = tuple(ranges)
        self.default_bucket = default_bucket
        self._bounds = tuple((np.float32(low), np.float32(high)) for low, high in self.ranges)

    @property
    def bucket_count(self) -> int:
        return len(self.ranges)

    def bucket(self, value: float) -> int:
        value = float(value)
        # Too far out of range for any band; also keeps the float32 cast finite
        if math.isnan(value) or abs(value) > 2.0:
            return self.default_bucket

        value = np.float32(value)
        for index, (low, high) in enumerate(self._bounds):
            if low <= value <= high:
                return index
        return self.default_bucket


confidence_bucketizer = ConfidenceBucketizer()
