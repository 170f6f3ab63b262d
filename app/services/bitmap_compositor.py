import logging
from typing import Sequence, Tuple, Union

import numpy as np
from PIL import Image

from app.config import OVERLAY_ALPHA
from app.errors import DimensionMismatchError, ImageConstructionError

logger = logging.getLogger(__name__)


class Bitmap:
    """
    Rendered segmentation mask.

    Each pixel is a 32-bit word 0xAARRGGBB holding 8-bit sRGB channels with
    alpha premultiplied. Words are stored little-endian, so the raw byte order
    in memory is B, G, R, A. Rows are `width` pixels long.
    """

    def __init__(self, pixels: np.ndarray):
        self._pixels = pixels
        self._pixels.setflags(write=False)

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def pixels(self) -> np.ndarray:
        """Read-only (height, width) uint32 view of the packed pixels."""
        return self._pixels

    def pixel(self, x: int, y: int) -> int:
        """Packed word at column x, row y, returned verbatim."""
        return int(self._pixels[y, x])

    def tobytes(self) -> bytes:
        """Raw little-endian premultiplied BGRA bytes, row by row."""
        return self._pixels.astype("<u4").tobytes()

    def to_pil(self) -> Image.Image:
        """Converts to a Pillow RGBA image (straight alpha)."""
        words = self._pixels
        alpha = ((words >> 24) & 0xFF).astype(np.uint16)
        channels = [((words >> shift) & 0xFF).astype(np.uint16) for shift in (16, 8, 0)]

        # Un-premultiply; fully transparent pixels stay black.
        safe_alpha = np.where(alpha == 0, 1, alpha)
        straight = [np.where(alpha == 0, 0, np.minimum(255, (c * 255 + safe_alpha // 2) // safe_alpha))
                    for c in channels]

        rgba = np.stack(straight + [alpha], axis=-1).astype(np.uint8)
        return Image.fromarray(rgba)

    def __repr__(self) -> str:
        return f"Bitmap({self.width}x{self.height})"


class BitmapCompositor:
    """Turns pixel-color buffers into bitmaps and blends them onto source images."""

    def to_image(self, buffer: Union[np.ndarray, Sequence[int]], width: int, height: int) -> Bitmap:
        """
        Builds a bitmap from a flat buffer of packed colors, read row by row.
        Raises ImageConstructionError if the dimensions are not positive or the
        buffer does not hold exactly width * height values.
        """
        if width <= 0 or height <= 0:
            raise ImageConstructionError(f"Invalid bitmap dimensions {width}x{height}")

        try:
            words = np.array(buffer, dtype=np.uint32)
        except (OverflowError, TypeError, ValueError) as e:
            raise ImageConstructionError(f"Buffer is not a sequence of 32-bit colors: {e}")

        if words.ndim != 1:
            raise ImageConstructionError(f"Expected a flat pixel buffer, got shape {words.shape}")
        if words.size != width * height:
            raise ImageConstructionError(
                f"Pixel buffer holds {words.size} values, expected {width}x{height} = {width * height}"
            )

        return Bitmap(words.reshape(height, width))

    def overlay(self, source: Image.Image, mask: Bitmap, alpha: float = OVERLAY_ALPHA) -> Image.Image:
        """
        Draws mask over source at the given global opacity (0.0 - 1.0).
        The source keeps its mode family: RGB in, RGB out; images with alpha come back RGBA.
        """
        if not 0.0 <= alpha <= 1.0:
            raise ValueError(f"Overlay alpha must be within [0, 1], got {alpha}")
        if source.size != mask.size:
            logger.warning(f"Overlay size mismatch: source={source.size}, mask={mask.size}")
            raise DimensionMismatchError(source.size, mask.size)

        has_alpha = source.mode in ("RGBA", "LA", "PA") or "transparency" in source.info
        base = source.convert("RGBA")

        layer = np.array(mask.to_pil())
        layer[..., 3] = np.rint(layer[..., 3].astype(np.float32) * alpha).astype(np.uint8)

        blended = Image.alpha_composite(base, Image.fromarray(layer))
        return blended if has_alpha else blended.convert("RGB")


bitmap_compositor = BitmapCompositor()
