"""
YouTube URL and filename helpers
"""

import re
from typing import Optional

YOUTUBE_URL_PATTERN = re.compile(
    r"^(https?://)?(www\.)?(youtube\.com/(watch\?v=|embed/|v/)|youtu\.be/)[\w-]+"
)

# ASCII-only so the result is always safe for a latin-1 HTTP header
_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w\s-]", re.ASCII)

DEFAULT_FILENAME = "audio"


def is_valid_youtube_url(url: Optional[str]) -> bool:
    """
    Check whether a string looks like a YouTube video URL.

    Accepts watch, embed, legacy /v/ and youtu.be short links, with or
    without scheme and www prefix. No network access.

    Example:
        >>> is_valid_youtube_url("https://youtu.be/dQw4w9WgXcQ")
        True
        >>> is_valid_youtube_url("https://example.com/video")
        False
    """
    if not url or not isinstance(url, str):
        return False
    return YOUTUBE_URL_PATTERN.match(url) is not None


def sanitize_filename(filename: str) -> str:
    """
    Strip everything except word characters, whitespace and hyphens.

    Whitespace runs (including CR/LF) collapse to single spaces so the value
    can go straight into a Content-Disposition header.
    """
    cleaned = _UNSAFE_FILENAME_CHARS.sub("", filename or "")
    cleaned = " ".join(cleaned.split())
    return cleaned or DEFAULT_FILENAME


def format_duration(seconds: int) -> str:
    """
    Format seconds as M:SS, or H:MM:SS for an hour or more.

    Example:
        >>> format_duration(212)
        '3:32'
        >>> format_duration(3725)
        '1:02:05'
    """
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
