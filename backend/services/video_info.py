"""
Video Info Service

Fetches YouTube video metadata and the list of audio-only formats.
Uses yt-dlp for extraction; nothing is downloaded here.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
import yt_dlp

from config import settings
from pipeline.error_handler import (
    DownloadError,
    ErrorCode,
    is_bot_detection_error,
    is_unavailable_error,
)
from services.youtube_utils import format_duration, is_valid_youtube_url

logger = structlog.get_logger()


@dataclass(frozen=True)
class VideoMetadata:
    """Preview information for a single video"""
    title: str
    duration_seconds: int
    thumbnail_url: str
    author: str
    video_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "duration": self.duration_seconds,
            "thumbnail": self.thumbnail_url,
            "author": self.author,
            "videoId": self.video_id,
        }


@dataclass(frozen=True)
class AudioFormat:
    """One audio-only stream variant of a video"""
    format_id: str
    codec: str
    url: str
    bitrate_kbps: float = 0.0
    extension: Optional[str] = None
    http_headers: Dict[str, str] = field(default_factory=dict, hash=False, compare=False)


@dataclass(frozen=True)
class VideoDetails:
    """Result of a single extractor call: metadata plus candidate audio formats"""
    metadata: VideoMetadata
    formats: List[AudioFormat]


def parse_duration(value: Any) -> int:
    """
    Parse the extractor's duration field into whole seconds.

    Accepts ints, integral floats and digit strings. Anything else raises
    ValueError instead of silently becoming zero.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, int):
        seconds = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"Invalid duration: {value!r}")
        seconds = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        seconds = int(value.strip())
    else:
        raise ValueError(f"Invalid duration: {value!r}")

    if seconds < 0:
        raise ValueError(f"Invalid duration: {value!r}")
    return seconds


def pick_thumbnail(info: Dict[str, Any]) -> str:
    """Return the highest-resolution thumbnail (the last entry of the list)."""
    thumbnails = [t for t in info.get("thumbnails") or [] if t.get("url")]
    if thumbnails:
        return thumbnails[-1]["url"]
    return info.get("thumbnail") or ""


def extract_audio_formats(info: Dict[str, Any], quality: str = "highestaudio") -> List[AudioFormat]:
    """
    Build AudioFormat entries for every audio-only format in the extractor output.

    Ordering follows the quality tag: "highestaudio" sorts by descending
    bitrate, "lowestaudio" by ascending bitrate. The sort is stable so
    platform order breaks ties; unknown tags keep platform order.
    """
    formats = []
    for entry in info.get("formats") or []:
        acodec = entry.get("acodec")
        if not acodec or acodec == "none":
            continue
        if entry.get("vcodec") not in (None, "none"):
            continue
        if not entry.get("url"):
            continue

        formats.append(AudioFormat(
            format_id=str(entry.get("format_id", "")),
            codec=acodec,
            url=entry["url"],
            bitrate_kbps=float(entry.get("abr") or entry.get("tbr") or 0),
            extension=entry.get("ext"),
            http_headers=dict(entry.get("http_headers") or {}),
        ))

    if quality == "highestaudio":
        formats.sort(key=lambda f: f.bitrate_kbps, reverse=True)
    elif quality == "lowestaudio":
        formats.sort(key=lambda f: f.bitrate_kbps)

    return formats


def build_metadata(info: Dict[str, Any]) -> VideoMetadata:
    """
    Map a yt-dlp info dict onto VideoMetadata.

    Raises:
        ValueError: If the duration field is missing or not numeric
    """
    return VideoMetadata(
        title=info.get("title") or "",
        duration_seconds=parse_duration(info.get("duration")),
        thumbnail_url=pick_thumbnail(info),
        author=info.get("uploader") or info.get("channel") or "",
        video_id=str(info.get("id") or ""),
    )


class VideoInfoService:
    """
    Service for reading video metadata and audio formats from YouTube.

    Example:
        >>> service = VideoInfoService()
        >>> metadata = await service.fetch("https://www.youtube.com/watch?v=...")
        >>> print(metadata.title)
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        quality: Optional[str] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.METADATA_FETCH_TIMEOUT
        self.quality = quality or settings.ALLOWED_AUDIO_QUALITY

    def _build_ydl_opts(self) -> Dict[str, Any]:
        ydl_opts: Dict[str, Any] = {
            'quiet': True,
            'no_warnings': True,
            'noplaylist': True,
            'skip_download': True,
        }

        # Cookies are the usual workaround for YouTube bot detection
        if settings.YTDLP_COOKIES_FROM_BROWSER:
            ydl_opts['cookiesfrombrowser'] = (settings.YTDLP_COOKIES_FROM_BROWSER.lower(),)
        elif settings.YTDLP_COOKIES_FILE:
            if Path(settings.YTDLP_COOKIES_FILE).exists():
                ydl_opts['cookiefile'] = settings.YTDLP_COOKIES_FILE
            else:
                logger.warning("cookies_file_not_found", path=settings.YTDLP_COOKIES_FILE)

        return ydl_opts

    def _extract_info(self, url: str) -> Dict[str, Any]:
        """Run yt-dlp extraction (blocking, runs in thread pool)."""
        with yt_dlp.YoutubeDL(self._build_ydl_opts()) as ydl:
            return ydl.extract_info(url, download=False)

    async def _get_info(self, url: str) -> Dict[str, Any]:
        if not is_valid_youtube_url(url):
            raise DownloadError(ErrorCode.INVALID_URL, "Invalid YouTube URL", {"url": url})

        try:
            info = await asyncio.wait_for(
                asyncio.to_thread(self._extract_info, url),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.error("video_info_timeout", url=url[:100], timeout=self.timeout)
            raise DownloadError(
                ErrorCode.UPSTREAM_TIMEOUT,
                f"Metadata fetch timed out after {self.timeout:g}s",
                {"url": url[:100]}
            )
        except Exception as e:
            raise self._classify(url, e) from e

        if not info:
            raise DownloadError(
                ErrorCode.METADATA_FETCH_FAILED,
                "Extractor returned no information",
                {"url": url[:100]}
            )
        return info

    def _classify(self, url: str, error: Exception) -> DownloadError:
        logger.error("video_info_failed", url=url[:100], error=str(error))

        if is_bot_detection_error(error):
            code = ErrorCode.BOT_DETECTED
        elif is_unavailable_error(error):
            code = ErrorCode.VIDEO_NOT_AVAILABLE
        else:
            code = ErrorCode.METADATA_FETCH_FAILED

        return DownloadError(code, str(error), {"url": url[:100]})

    def _build_metadata(self, url: str, info: Dict[str, Any]) -> VideoMetadata:
        try:
            metadata = build_metadata(info)
        except ValueError as e:
            logger.error("video_info_invalid_duration", url=url[:100], error=str(e))
            raise DownloadError(ErrorCode.METADATA_FETCH_FAILED, str(e), {"url": url[:100]}) from e

        logger.info(
            "video_info_fetched",
            video_id=metadata.video_id,
            title=metadata.title,
            duration=format_duration(metadata.duration_seconds)
        )
        return metadata

    async def fetch(self, url: str) -> VideoMetadata:
        """
        Get video metadata without downloading.

        Raises:
            DownloadError: INVALID_URL, VIDEO_NOT_AVAILABLE, BOT_DETECTED,
                METADATA_FETCH_FAILED or UPSTREAM_TIMEOUT
        """
        info = await self._get_info(url)
        return self._build_metadata(url, info)

    async def fetch_details(self, url: str) -> VideoDetails:
        """Get video metadata together with the audio-only formats, in one extractor call."""
        info = await self._get_info(url)
        metadata = self._build_metadata(url, info)
        formats = extract_audio_formats(info, self.quality)
        logger.info("audio_formats_listed", video_id=metadata.video_id, count=len(formats))
        return VideoDetails(metadata=metadata, formats=formats)
