import time
import logging
from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.routers.segmentation import router as segmentation_router
from app.routers.api import router as api_router

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Wound Tissue Segmentation",
    description="FastAPI application turning wound segmentation model output into tissue and confidence maps",
    version="1.0.0"
)

# Request timing middleware
class TimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start_time
        response.headers["X-Process-Time"] = f"{elapsed:.3f}"
        logger.debug(f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.3f}s")
        return response

app.add_middleware(TimingMiddleware)

app.include_router(segmentation_router)
app.include_router(api_router)
