from typing import Any, Dict, List, Optional

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field

from app.config import OVERLAY_ALPHA
from app.services.bitmap_compositor import Bitmap
from app.services.color_palette import Color
from app.services.image_preprocess_service import PreprocessStrategy


class SegmentationResult(BaseModel):
    """Everything produced from one model output. Immutable once built."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    original_image: Image.Image
    segmented_image: Bitmap
    overlay_image: Image.Image
    color_legend: Dict[str, Color]
    confidence_segmented_image: Bitmap
    confidence_overlay_image: Image.Image
    confidence_color_legend: Dict[str, Color]
    class_indices: List[int]
    confidence_indices: List[int]


class HealthCheckResponse(BaseModel):
    status: str
    tissue_labels: int
    confidence_labels: int


class SegmentationRequest(BaseModel):
    base64_image: str
    # Model output of shape (W, H, C) or (1, W, H, C)
    probabilities: List[Any]
    alpha: float = Field(default=OVERLAY_ALPHA, ge=0.0, le=1.0)
    # How the photo is fitted to the mask; chosen from the aspect ratio when omitted
    strategy: Optional[PreprocessStrategy] = None


class LegendEntry(BaseModel):
    index: int
    name: str
    color: str  # "#RRGGBB"
    text_color: str  # black on light colors, white on dark ones


class SegmentationResponse(BaseModel):
    width: int
    height: int
    original_image_base64: str
    segmented_image_base64: str
    overlay_image_base64: str
    confidence_segmented_image_base64: str
    confidence_overlay_image_base64: str
    color_legend: List[LegendEntry]
    confidence_color_legend: List[LegendEntry]
    execution_time: Optional[str] = None
