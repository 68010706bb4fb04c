"""
FastAPI YTdown Service
Resolves a YouTube URL to metadata and candidate download links
"""

import time
import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, Query, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse

from . import __version__
from .config import settings
from .extractor import InvalidVideoURL, extractor
from .models import (
    ErrorCode,
    ErrorResponse,
    HealthResponse,
    HealthStats,
    StrategyInfo,
    StrategyListResponse,
)

# Logging configuration
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# App metadata
VERSION = __version__
start_time = time.time()

MISSING_URL_MESSAGE = "Missing URL parameter. Use: /YTdown?url=YOUTUBE_URL"
EXAMPLE_VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"

# Statistics tracking
stats = {
    "total_requests": 0,
    "fallback_responses": 0,
    "failed_requests": 0,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for startup/shutdown tasks"""
    logger.info("🚀 Starting YTdown service...")
    logger.info(f"Version: {VERSION}")
    logger.info(f"🌐 Invidious instances: {', '.join(settings.invidious_instances)}")
    logger.info(
        f"⏱️ Outbound timeout: {settings.http_timeout_seconds}s, "
        f"mode: {'concurrent' if settings.concurrent_strategies else 'sequential'}"
    )

    yield

    logger.info("Shutting down YTdown service...")


# Create FastAPI app
app = FastAPI(
    title="YTdown Service",
    description="YouTube metadata and candidate download links with multi-source fallback",
    version=VERSION,
    lifespan=lifespan,
)


# ============================================================================
# CORS
# ============================================================================


def cors_headers(request: Request) -> Dict[str, str]:
    """Cross-origin headers for every response, preflight included."""
    headers = {
        "Access-Control-Allow-Methods": "GET, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }
    origins = settings.allowed_origins
    if "*" in origins:
        headers["Access-Control-Allow-Origin"] = "*"
        return headers

    # Allow-Origin depends on the request, so caches must key on it.
    headers["Vary"] = "Origin"
    origin = request.headers.get("origin")
    if origin in origins:
        headers["Access-Control-Allow-Origin"] = origin
    return headers


@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    # OPTIONS on any path is answered here, before routing.
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=cors_headers(request))
    response = await call_next(request)
    response.headers.update(cors_headers(request))
    return response


# ============================================================================
# API ENDPOINTS
# ============================================================================


@app.get("/YTdown")
@app.get("/YTdown/")
async def ytdown(url: Optional[str] = Query(None, description="YouTube video URL")) -> Response:
    """
    Resolve a YouTube URL to metadata and candidate download links

    **Flow:**
    1. Extract the 11-character video ID (500 if none is found)
    2. Try Invidious mirrors, then the embed page
    3. Fall back to static placeholder links if neither yields a format

    `status: "success"` means no hard failure occurred, not that a direct
    link was found. Check `source` / `formats[].note` for placeholders.
    """
    if not url:
        logger.warning("⚠️ /YTdown request without url parameter")
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(message=MISSING_URL_MESSAGE).model_dump(mode='json', exclude_none=True)
        )

    logger.info(f"📥 YTdown request: {url}")
    stats["total_requests"] += 1

    try:
        result = await extractor.extract(url)
    except InvalidVideoURL as e:
        stats["failed_requests"] += 1
        logger.error(f"❌ Invalid URL: {url}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(message=e.message, code=e.code).model_dump(mode='json')
        )
    except Exception as e:
        stats["failed_requests"] += 1
        logger.exception(f"💥 Unexpected error during extraction: {e}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(message=str(e), code=ErrorCode.SERVER_ERROR).model_dump(mode='json')
        )

    if result.source == extractor.fallback.kind:
        stats["fallback_responses"] += 1

    logger.info(f"✅ {result.video_id}: {len(result.formats)} formats via {result.source}")
    return JSONResponse(content=result.to_response())


@app.get("/api/v1/strategies", response_model=StrategyListResponse)
async def list_strategies():
    """List the extraction chain in priority order with 1-based index numbers."""
    names = extractor.strategy_names()
    return StrategyListResponse(
        total=len(names),
        strategies=[
            StrategyInfo(num=i + 1, name=name, kind=kind)
            for i, (name, kind) in enumerate(names)
        ],
    )


@app.get("/api/v1/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint for monitoring"""
    return HealthResponse(
        status="healthy",
        version=VERSION,
        uptime_seconds=time.time() - start_time,
        stats=HealthStats(**stats),
    )


USAGE_PAGE = """<!DOCTYPE html>
<html>
<head><title>YouTube Downloader API</title></head>
<body>
  <h1>YouTube Downloader API</h1>
  <p><strong>Endpoint:</strong> <code>/YTdown?url=YOUTUBE_URL</code></p>
  <p><strong>Example:</strong></p>
  <code>{origin}/YTdown?url={example}</code>
</body>
</html>
"""


@app.get("/", response_class=HTMLResponse)
@app.get("/{full_path:path}", response_class=HTMLResponse)
async def usage_page(request: Request):
    """Usage page served for every other path"""
    origin = str(request.base_url).rstrip("/")
    return HTMLResponse(USAGE_PAGE.format(origin=origin, example=EXAMPLE_VIDEO_URL))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
