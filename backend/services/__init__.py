"""
Services module: YouTube metadata, audio streaming and request limits
"""

from .video_info import VideoInfoService, VideoMetadata, AudioFormat, VideoDetails
from .audio_stream import AudioStreamer
from .format_selector import select_audio_format
from .rate_limiter import RateLimiter

__all__ = [
    "VideoInfoService",
    "VideoMetadata",
    "AudioFormat",
    "VideoDetails",
    "AudioStreamer",
    "select_audio_format",
    "RateLimiter",
]
