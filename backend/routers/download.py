"""
Download endpoint router

Validates a YouTube URL, previews its metadata, or converts its audio track
to MP3 in memory (no file saving).
"""

from contextlib import aclosing
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, Response

from config import settings
from pipeline.error_handler import DownloadError, ErrorCode
from pipeline.transcoder import Mp3Transcoder
from schemas import DownloadRequest, ErrorResponse, VideoInfoResponse
from services.audio_stream import AudioStreamer
from services.format_selector import select_audio_format
from services.rate_limiter import RateLimiter, download_rate_limiter
from services.video_info import VideoInfoService
from services.youtube_utils import is_valid_youtube_url, sanitize_filename

logger = structlog.get_logger()

router = APIRouter(tags=["Download"])


def get_video_info_service() -> VideoInfoService:
    return VideoInfoService()


def get_audio_streamer() -> AudioStreamer:
    return AudioStreamer()


def get_transcoder() -> Mp3Transcoder:
    return Mp3Transcoder()


def get_rate_limiter() -> RateLimiter:
    return download_rate_limiter


def client_identity(request: Request) -> str:
    """First X-Forwarded-For entry, falling back to the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def enforce_rate_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    """Reject the request with 429 when rate limiting is enabled and exhausted."""
    if not settings.RATE_LIMIT_ENABLED:
        return
    identity = client_identity(request)
    if not limiter.check(identity):
        raise DownloadError(
            ErrorCode.RATE_LIMIT_EXCEEDED,
            "Rate limit exceeded",
            {"identity": identity}
        )


def _error_response(error: DownloadError) -> JSONResponse:
    error.log_error()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def _unexpected_error(url: str, error: Exception) -> JSONResponse:
    logger.error(
        "download_unexpected_error",
        url=url[:100],
        error=str(error),
        exc_info=True
    )
    return _error_response(DownloadError(ErrorCode.INTERNAL_ERROR, str(error)))


@router.post(
    "/download",
    response_class=Response,
    responses={
        200: {"description": "MP3 audio file", "content": {"audio/mpeg": {}}},
        400: {"model": ErrorResponse, "description": "Invalid URL or video too long"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Fetch, selection or conversion failure"}
    },
    summary="Convert YouTube to MP3 (Memory Only)",
    description="""
Convert a YouTube video's audio track to MP3 without saving any files.

**Process:**
1. Validate the YouTube URL
2. Fetch metadata and reject videos longer than the configured maximum
3. Select an audio-only format (AAC, then Opus, then whatever is first)
4. Stream it through ffmpeg (libmp3lame) and buffer the result
5. Return the MP3 as an attachment

**IMPORTANT:** This is a synchronous endpoint that may take 10-60+ seconds.
"""
)
async def download_mp3(
    request: DownloadRequest,
    video_info: VideoInfoService = Depends(get_video_info_service),
    streamer: AudioStreamer = Depends(get_audio_streamer),
    transcoder: Mp3Transcoder = Depends(get_transcoder),
    _rate_limit: None = Depends(enforce_rate_limit),
):
    """
    Convert a YouTube video to MP3 in memory.

    Every failure is returned as {"error": message}: 400 for an invalid URL
    or a video that is too long, 500 for anything upstream or in encoding.
    """
    url = (request.url or "").strip()
    logger.info("download_request_received", url=url[:100])

    try:
        if not is_valid_youtube_url(url):
            raise DownloadError(ErrorCode.INVALID_URL, "Invalid YouTube URL", {"url": url[:100]})

        details = await video_info.fetch_details(url)
        metadata = details.metadata

        if metadata.duration_seconds > settings.MAX_VIDEO_DURATION:
            raise DownloadError(
                ErrorCode.VIDEO_TOO_LONG,
                f"Video is {metadata.duration_seconds}s, maximum is {settings.MAX_VIDEO_DURATION}s",
                {"video_id": metadata.video_id}
            )

        audio_format = select_audio_format(details.formats)
        logger.info(
            "audio_format_selected",
            video_id=metadata.video_id,
            format_id=audio_format.format_id,
            codec=audio_format.codec,
            bitrate_kbps=audio_format.bitrate_kbps
        )

        async with aclosing(streamer.open(audio_format)) as source:
            audio_data = await transcoder.transcode(source)

    except DownloadError as e:
        return _error_response(e)
    except Exception as e:
        return _unexpected_error(url, e)

    filename = f"{sanitize_filename(metadata.title)}.mp3"
    logger.info(
        "download_completed",
        video_id=metadata.video_id,
        filename=filename,
        audio_size_bytes=len(audio_data)
    )

    return Response(
        content=audio_data,
        media_type="audio/mpeg",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(audio_data)),
        }
    )


@router.get(
    "/download",
    response_model=VideoInfoResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid URL"},
        500: {"model": ErrorResponse, "description": "Metadata fetch failure"}
    },
    summary="Preview video metadata",
)
async def get_video_info(
    url: Optional[str] = Query(None, description="YouTube video URL"),
    video_info: VideoInfoService = Depends(get_video_info_service),
):
    """Return title, duration, thumbnail, author and videoId for a YouTube URL."""
    url = (url or "").strip()

    try:
        if not is_valid_youtube_url(url):
            raise DownloadError(ErrorCode.INVALID_URL, "Invalid YouTube URL", {"url": url[:100]})
        metadata = await video_info.fetch(url)
    except DownloadError as e:
        return _error_response(e)
    except Exception as e:
        return _unexpected_error(url, e)

    return metadata.to_dict()
