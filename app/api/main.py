import random
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.api.n8n import router as n8n_router
from app.config import (
    AD_LIBRARY_URL,
    AD_URLS,
    DEFAULT_BRAND_URL,
    DEFAULT_EMAIL,
    FRONTEND_URL,
    USER_VIDEO_OUTPUT_MODE,
)
from app.errors import ExtractionError, register_error_handlers
from app.logger import get_logger, log_requests, setup_logging
from app.models.video import ExtractionRequest, OutputMode, SelectionPolicy
from app.workers.extraction import ExtractionPipeline
from app.workers.platform_detector import is_supported_ad_url

logger = get_logger("api")

# Deployment variant for /api/get-user-video: multipart envelope or plain attachment
USER_VIDEO_MODE = OutputMode(USER_VIDEO_OUTPUT_MODE)
INVALID_AD_URL = "Invalid ad URL (must be Meta or TikTok)"

app = FastAPI(title="Ad Video Relay")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL, "*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)
app.middleware("http")(log_requests)
register_error_handlers(app)
app.include_router(n8n_router)

_pipeline = ExtractionPipeline()


def get_extraction_pipeline() -> ExtractionPipeline:
    return _pipeline


def pick_ad_url() -> str:
    return random.choice(AD_URLS)


def extraction_failure(e: Exception, error: str) -> JSONResponse:
    if isinstance(e, ExtractionError) and e.status_code == 404:
        return JSONResponse(status_code=404, content={"error": e.message})
    return JSONResponse(status_code=500, content={"error": error, "details": str(e)})


class VideoRequest(BaseModel):
    adUrl: Any = None


@app.on_event("startup")
def _startup():
    setup_logging()
    logger.info(f"✅ Ad Video Relay started ({len(AD_URLS)} sample pages, user video mode: {USER_VIDEO_MODE.value})")


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/api/get-brand-url")
def get_brand_url():
    return {"brandUrl": DEFAULT_BRAND_URL, "email": DEFAULT_EMAIL}


@app.get("/api/get-user-video")
async def get_user_video(pipeline: ExtractionPipeline = Depends(get_extraction_pipeline)):
    """
    First video under the size limit from the configured ads library page.
    Returns the video as a multipart envelope (with brandUrl/email) or a plain attachment.
    """
    request = ExtractionRequest(
        target_url=AD_LIBRARY_URL,
        selection_policy=SelectionPolicy.FIRST_UNDER_LIMIT,
        output_mode=USER_VIDEO_MODE,
        filename="user-meta-video.mp4",
        form_fields=(("brandUrl", DEFAULT_BRAND_URL), ("email", DEFAULT_EMAIL)),
    )
    try:
        return await pipeline.run(request)
    except Exception as e:
        return extraction_failure(e, "Error extracting video")


@app.get("/api/random-meta-video")
async def random_meta_video(
    pipeline: ExtractionPipeline = Depends(get_extraction_pipeline),
    ad_url: str = Depends(pick_ad_url),
):
    """Random video from a random sample page, streamed as an MP4 attachment."""
    request = ExtractionRequest(
        target_url=ad_url,
        selection_policy=SelectionPolicy.UNIFORM_RANDOM,
        output_mode=OutputMode.RAW_ATTACHMENT,
        filename="random-meta-video.mp4",
    )
    try:
        return await pipeline.run(request)
    except Exception as e:
        return JSONResponse(status_code=500, content={"error": "Failed to extract video", "details": str(e)})


@app.post("/api/get-video")
async def get_video(
    body: Optional[VideoRequest] = None,
    download: Optional[str] = Query(None),
    pipeline: ExtractionPipeline = Depends(get_extraction_pipeline),
):
    """
    Video of a single Meta or TikTok ad.
    ?download=true returns the file, otherwise {platform, videoUrl, base64}.
    """
    ad_url = body.adUrl if body else None
    if not is_supported_ad_url(ad_url):
        return JSONResponse(status_code=400, content={"error": INVALID_AD_URL})

    request = ExtractionRequest(
        target_url=ad_url,
        selection_policy=SelectionPolicy.SINGLE_BEST,
        output_mode=OutputMode.RAW_ATTACHMENT if download == "true" else OutputMode.BASE64_JSON,
        filename="ad-video.mp4",
    )
    try:
        return await pipeline.run(request)
    except Exception as e:
        return JSONResponse(status_code=500, content={"error": "Failed to extract video", "details": str(e)})
