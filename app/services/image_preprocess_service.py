import base64
import io
import logging
from enum import Enum
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from app.errors import InvalidImageError

logger = logging.getLogger(__name__)


class PreprocessStrategy(str, Enum):
    CROP = "crop"
    PAD = "pad"
    NONE = "none"


class ImagePreprocessService:
    """Decodes, orients and fits source photos to the segmentation mask geometry."""

    def decode(self, image_bytes: bytes) -> Image.Image:
        """Decodes image bytes and applies the EXIF orientation."""
        try:
            image = Image.open(io.BytesIO(image_bytes))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            logger.error(f"Failed to decode source image: {e}")
            raise InvalidImageError(f"Unable to decode image: {e}")
        return ImageOps.exif_transpose(image)

    def recommend_strategy(self, size: Tuple[int, int], target_size: Tuple[int, int]) -> PreprocessStrategy:
        """Center crop unless the aspect ratio already matches the target."""
        width, height = size
        target_width, target_height = target_size
        if width * target_height == height * target_width:
            return PreprocessStrategy.NONE
        return PreprocessStrategy.CROP

    def prepare_source(self, image: Image.Image, target_size: Tuple[int, int],
                       strategy: Optional[PreprocessStrategy] = None) -> Image.Image:
        """
        Fits an image to target_size (width, height) so a mask of that size can be
        overlaid on it: center crop (or pad) to the target aspect ratio, then resize.
        """
        if image.mode not in ("RGB", "RGBA"):
            image = image.convert("RGBA" if "transparency" in image.info else "RGB")

        width, height = image.size
        target_width, target_height = target_size
        if strategy is None:
            strategy = self.recommend_strategy(image.size, target_size)

        if strategy == PreprocessStrategy.CROP:
            # Largest centered box with the target aspect ratio
            if width * target_height > height * target_width:
                new_width = max(1, height * target_width // target_height)
                left = (width - new_width) // 2
                image = image.crop((left, 0, left + new_width, height))
            else:
                new_height = max(1, width * target_height // target_width)
                top = (height - new_height) // 2
                image = image.crop((0, top, width, top + new_height))
        elif strategy == PreprocessStrategy.PAD:
            if width * target_height > height * target_width:
                new_width, new_height = width, -(-width * target_height // target_width)
            else:
                new_width, new_height = -(-height * target_width // target_height), height
            # Black background, as for the model input
            padded = Image.new(image.mode, (new_width, new_height))
            padded.paste(image, ((new_width - width) // 2, (new_height - height) // 2))
            image = padded

        if image.size != tuple(target_size):
            logger.debug(f"Resizing source image from {image.size} to {target_size}")
            image = image.resize(tuple(target_size), Image.Resampling.LANCZOS)

        return image

    def to_base64_png(self, image: Image.Image) -> str:
        """Encodes an image as a PNG data URI for the UI."""
        buf = io.BytesIO()
        image.save(buf, format="PNG")
        img_b64 = base64.b64encode(buf.getvalue()).decode("utf-8")
        return f"data:image/png;base64,{img_b64}"

    def decode_base64(self, data: str) -> Image.Image:
        """Decodes a base64 string (optionally a data URI) into an image."""
        if data.startswith("data:") and "," in data:
            data = data.split(",", 1)[1]
        try:
            image_bytes = base64.b64decode(data, validate=True)
        except ValueError as e:
            raise InvalidImageError(f"Image is not valid base64: {e}")
        return self.decode(image_bytes)


image_preprocess_service = ImagePreprocessService()
