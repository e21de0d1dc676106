"""
Audio conversion pipeline package.

- Error handling shared by every stage of a download
- MP3 transcoding through an ffmpeg subprocess
"""

__version__ = "1.0.0"

from .error_handler import DownloadError, ErrorCode
from .transcoder import Mp3Transcoder

__all__ = [
    "DownloadError",
    "ErrorCode",
    "Mp3Transcoder",
]
