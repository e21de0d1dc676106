"""
FastAPI Backend for YouTube to MP3 Downloader
"""

import logging
import shutil
import structlog
from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import time

# Configure structured logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=False,
)

logger = structlog.get_logger()

# Import settings
from config import settings
from pipeline.error_handler import DownloadError, ErrorCode


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("application_startup", message="FastAPI application starting up")

    ffmpeg = settings.FFMPEG_PATH or shutil.which("ffmpeg")
    if ffmpeg:
        logger.info("ffmpeg_found", path=ffmpeg)
    else:
        logger.warning(
            "ffmpeg_not_found",
            message="FFmpeg not found. MP3 conversion will fail until it is installed "
                    "or FFMPEG_PATH is set."
        )

    if not settings.YTDLP_COOKIES_FROM_BROWSER and not settings.YTDLP_COOKIES_FILE:
        logger.warning(
            "no_cookies_configured",
            message="No cookies configured. YouTube may block requests from cloud hosts. "
                    "Set YTDLP_COOKIES_FROM_BROWSER (local only) or YTDLP_COOKIES_FILE."
        )

    yield

    logger.info("application_shutdown", message="FastAPI application shutting down")


# Initialize FastAPI app
app = FastAPI(
    title="YouTube to MP3 API",
    description="Preview YouTube videos and download their audio as MP3",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests"""
    start_time = time.time()

    logger.info(
        "request_started",
        method=request.method,
        path=request.url.path,
        client_host=request.client.host if request.client else None
    )

    try:
        response = await call_next(request)
        process_time = time.time() - start_time

        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time=f"{process_time:.3f}s"
        )

        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(
            "request_failed",
            method=request.method,
            path=request.url.path,
            error=str(e),
            process_time=f"{process_time:.3f}s"
        )
        raise


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report unusable download bodies as an invalid URL; other routes keep the default 422"""
    if request.method == "POST" and request.url.path.endswith("/download"):
        error = DownloadError(
            ErrorCode.INVALID_URL,
            "Request body does not carry a URL string",
            {"errors": exc.errors()[:3]}
        )
        error.log_error()
        return JSONResponse(status_code=error.status_code, content=error.to_dict())
    return await request_validation_exception_handler(request, exc)


@app.exception_handler(DownloadError)
async def download_error_handler(request: Request, exc: DownloadError):
    """Handle pipeline errors raised outside the handlers (e.g. from dependencies)"""
    exc.log_error()
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Global error handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions"""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={"error": "An unexpected error occurred"}
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint

    Returns:
        dict: Health status of the API
    """
    return {
        "status": "healthy",
        "service": "youtube-mp3-downloader",
        "version": "1.0.0",
        "ffmpeg_available": bool(settings.FFMPEG_PATH or shutil.which("ffmpeg"))
    }


# Include routers
from routers import download

app.include_router(download.router)
app.include_router(download.router, prefix="/api")


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    return {
        "message": "YouTube to MP3 API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "video_info": "GET /api/download?url=...",
            "download_mp3": "POST /api/download",
        },
        "limits": {
            "max_duration_minutes": settings.max_duration_minutes,
            "bitrate_kbps": settings.AUDIO_BITRATE
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
