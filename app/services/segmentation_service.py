import logging
import time
from typing import Optional

from PIL import Image

from app.config import OVERLAY_ALPHA
from app.models import SegmentationResult
from app.services.bitmap_compositor import BitmapCompositor, bitmap_compositor
from app.services.image_preprocess_service import (
    ImagePreprocessService,
    PreprocessStrategy,
    image_preprocess_service,
)
from app.services.legend_builder import LegendBuilder, legend_builder
from app.services.segmentation_map_builder import SegmentationMapBuilder, segmentation_map_builder
from app.services.tensor_accessor import NumpyTensorAccessor, TensorAccessor

logger = logging.getLogger(__name__)


class SegmentationService:
    """
    Turns a model output into the tissue and confidence maps shown to the user.

    Steps:
    1. Classify every pixel (tissue class + confidence bucket) into color buffers.
    2. Materialize both buffers as bitmaps.
    3. Fit the source photo to the mask size and overlay each bitmap on it.
    4. Build legends for the classes and buckets that actually occur.
    """

    def __init__(self,
                 builder: SegmentationMapBuilder = segmentation_map_builder,
                 compositor: BitmapCompositor = bitmap_compositor,
                 legends: LegendBuilder = legend_builder,
                 preprocess: ImagePreprocessService = image_preprocess_service):
        self.builder = builder
        self.compositor = compositor
        self.legends = legends
        self.preprocess = preprocess

    def run(self, image: Image.Image, accessor: TensorAccessor,
            alpha: float = OVERLAY_ALPHA,
            strategy: Optional[PreprocessStrategy] = None) -> SegmentationResult:
        start_time = time.perf_counter()

        seg_map = self.builder.build(accessor)

        segmented_image = self.compositor.to_image(seg_map.class_buffer, seg_map.width, seg_map.height)
        confidence_image = self.compositor.to_image(seg_map.confidence_buffer, seg_map.width, seg_map.height)

        original_image = self.preprocess.prepare_source(image, segmented_image.size, strategy)
        overlay_image = self.compositor.overlay(original_image, segmented_image, alpha)
        confidence_overlay_image = self.compositor.overlay(original_image, confidence_image, alpha)

        result = SegmentationResult(
            original_image=original_image,
            segmented_image=segmented_image,
            overlay_image=overlay_image,
            color_legend=self.legends.legend(seg_map.class_indices, self.builder.tissue_labels),
            confidence_segmented_image=confidence_image,
            confidence_overlay_image=confidence_overlay_image,
            confidence_color_legend=self.legends.legend(
                seg_map.confidence_indices, self.builder.confidence_labels
            ),
            class_indices=sorted(seg_map.class_indices),
            confidence_indices=sorted(seg_map.confidence_indices),
        )
        logger.info(
            f"Segmentation of {seg_map.width}x{seg_map.height} output finished in "
            f"{(time.perf_counter() - start_time):.3f}s ({len(result.color_legend)} tissue classes)"
        )
        return result

    def run_array(self, image: Image.Image, output, alpha: float = OVERLAY_ALPHA,
                  strategy: Optional[PreprocessStrategy] = None) -> SegmentationResult:
        """Runs segmentation on a raw (W, H, C) or (1, W, H, C) model output array."""
        return self.run(image, NumpyTensorAccessor(output), alpha, strategy)


segmentation_service = SegmentationService()
