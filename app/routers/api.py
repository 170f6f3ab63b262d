from fastapi import APIRouter
from app.models import HealthCheckResponse

router = APIRouter(prefix="/api")

from app.services.segmentation_map_builder import segmentation_map_builder

@router.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """Health check endpoint."""
    return HealthCheckResponse(
        status="OK",
        tissue_labels=len(segmentation_map_builder.tissue_labels),
        confidence_labels=len(segmentation_map_builder.confidence_labels)
    )
