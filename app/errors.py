class SegmentationError(Exception):
    """Base class for failures while turning model output into segmentation maps."""


class TensorReadError(SegmentationError):
    """The tensor accessor could not produce a value for a requested position."""

    def __init__(self, x: int, y: int, class_index: int, reason: str = "no value"):
        self.x = x
        self.y = y
        self.class_index = class_index
        super().__init__(f"Failed to read model output at ({x}, {y}, {class_index}): {reason}")


class ImageConstructionError(SegmentationError):
    """A pixel buffer could not be materialized as a bitmap."""


class DimensionMismatchError(SegmentationError):
    """Overlay source and mask do not share the same pixel dimensions."""

    def __init__(self, source_size: tuple, mask_size: tuple):
        self.source_size = source_size
        self.mask_size = mask_size
        super().__init__(
            f"Source image size {source_size} does not match mask size {mask_size}"
        )


class InvalidImageError(SegmentationError):
    """Source image bytes could not be decoded."""
