import logging
import time
from typing import List

from fastapi import APIRouter, HTTPException
from starlette.concurrency import run_in_threadpool

from app.errors import (
    DimensionMismatchError,
    ImageConstructionError,
    InvalidImageError,
    TensorReadError,
)
from app.models import LegendEntry, SegmentationRequest, SegmentationResponse, SegmentationResult
from app.services.color_palette import LabelTable
from app.services.image_preprocess_service import image_preprocess_service
from app.services.legend_builder import legend_builder
from app.services.segmentation_service import segmentation_service
from app.services.tensor_accessor import NestedListTensorAccessor

router = APIRouter(prefix="/api/segmentation", tags=["segmentation"])

logger = logging.getLogger(__name__)


def _legend_entries(indices: List[int], table: LabelTable) -> List[LegendEntry]:
    return [
        LegendEntry(
            index=index,
            name=entry.name,
            color=entry.color.hex,
            text_color="#000000" if entry.color.is_light() else "#FFFFFF",
        )
        for index, entry in zip(sorted(indices), legend_builder.entries(indices, table))
    ]


def _to_response(result: SegmentationResult, execution_time: str) -> SegmentationResponse:
    to_png = image_preprocess_service.to_base64_png
    tissue_labels = segmentation_service.builder.tissue_labels
    confidence_labels = segmentation_service.builder.confidence_labels
    return SegmentationResponse(
        width=result.segmented_image.width,
        height=result.segmented_image.height,
        original_image_base64=to_png(result.original_image),
        segmented_image_base64=to_png(result.segmented_image.to_pil()),
        overlay_image_base64=to_png(result.overlay_image),
        confidence_segmented_image_base64=to_png(result.confidence_segmented_image.to_pil()),
        confidence_overlay_image_base64=to_png(result.confidence_overlay_image),
        color_legend=_legend_entries(result.class_indices, tissue_labels),
        confidence_color_legend=_legend_entries(result.confidence_indices, confidence_labels),
        execution_time=execution_time,
    )


@router.post("", response_model=SegmentationResponse)
async def segment(request: SegmentationRequest):
    """Builds tissue and confidence maps, overlays and legends from a model output."""
    start_time = time.perf_counter()

    try:
        image = image_preprocess_service.decode_base64(request.base64_image)
        accessor = NestedListTensorAccessor(request.probabilities)
    except InvalidImageError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValueError as e:
        logger.warning(f"Rejected model output: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    try:
        result = await run_in_threadpool(segmentation_service.run, image, accessor,
                                        request.alpha, request.strategy)
    except (TensorReadError, DimensionMismatchError) as e:
        logger.error(f"Segmentation failed: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except ImageConstructionError as e:
        logger.error(f"Failed to convert pixel data to image: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return _to_response(result, f"{(time.perf_counter() - start_time):.3f}s")
