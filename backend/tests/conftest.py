"""
Pytest configuration for backend tests.

Adds the backend directory to the Python path and provides shared fixtures:
a realistic yt-dlp info dict and fake collaborators for the download router.
"""

import sys
from pathlib import Path
from typing import AsyncIterator, List

import pytest

# Add backend directory to Python path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from services.video_info import AudioFormat, VideoDetails, VideoMetadata  # noqa: E402


@pytest.fixture
def ytdlp_info():
    """Trimmed-down yt-dlp extract_info() result for a short video"""
    return {
        "id": "dQw4w9WgXcQ",
        "title": "Rick Astley - Never Gonna Give You Up (Official Music Video)",
        "duration": 212,
        "uploader": "Rick Astley",
        "channel": "Rick Astley",
        "thumbnail": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
        "thumbnails": [
            {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/default.jpg", "width": 120},
            {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg", "width": 480},
            {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg", "width": 1280},
        ],
        "formats": [
            {
                "format_id": "249", "ext": "webm", "acodec": "opus", "vcodec": "none",
                "abr": 50.0, "url": "https://rr1.googlevideo.com/249",
                "http_headers": {"User-Agent": "Mozilla/5.0"},
            },
            {
                "format_id": "139", "ext": "m4a", "acodec": "mp4a.40.5", "vcodec": "none",
                "abr": 48.0, "url": "https://rr1.googlevideo.com/139",
            },
            {
                "format_id": "140", "ext": "m4a", "acodec": "mp4a.40.2", "vcodec": "none",
                "abr": 129.5, "url": "https://rr1.googlevideo.com/140",
            },
            {
                "format_id": "251", "ext": "webm", "acodec": "opus", "vcodec": "none",
                "abr": 135.0, "url": "https://rr1.googlevideo.com/251",
            },
            {
                "format_id": "18", "ext": "mp4", "acodec": "mp4a.40.2", "vcodec": "avc1.42001E",
                "tbr": 500.0, "url": "https://rr1.googlevideo.com/18",
            },
            {
                "format_id": "sb0", "ext": "mhtml", "acodec": "none", "vcodec": "none",
                "url": "https://i.ytimg.com/sb/dQw4w9WgXcQ/storyboard",
            },
        ],
    }


@pytest.fixture
def sample_metadata():
    return VideoMetadata(
        title="Rick Astley - Never Gonna Give You Up",
        duration_seconds=212,
        thumbnail_url="https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
        author="Rick Astley",
        video_id="dQw4w9WgXcQ",
    )


@pytest.fixture
def aac_format():
    return AudioFormat(format_id="140", codec="mp4a.40.2", url="https://rr1.googlevideo.com/140", bitrate_kbps=129.5)


@pytest.fixture
def opus_format():
    return AudioFormat(format_id="251", codec="opus", url="https://rr1.googlevideo.com/251", bitrate_kbps=135.0)


class FakeVideoInfoService:
    """Stands in for VideoInfoService; records calls and can raise on demand"""

    def __init__(self, metadata: VideoMetadata, formats: List[AudioFormat], error: Exception = None):
        self.metadata = metadata
        self.formats = formats
        self.error = error
        self.calls: List[str] = []

    async def fetch(self, url: str) -> VideoMetadata:
        self.calls.append(url)
        if self.error:
            raise self.error
        return self.metadata

    async def fetch_details(self, url: str) -> VideoDetails:
        self.calls.append(url)
        if self.error:
            raise self.error
        return VideoDetails(metadata=self.metadata, formats=self.formats)


class FakeAudioStreamer:
    """Yields fixed chunks and remembers which formats were opened"""

    def __init__(self, chunks: List[bytes] = None):
        self.chunks = chunks if chunks is not None else [b"source-", b"audio"]
        self.opened: List[AudioFormat] = []
        self.closed = False

    async def open(self, fmt: AudioFormat) -> AsyncIterator[bytes]:
        self.opened.append(fmt)
        try:
            for chunk in self.chunks:
                yield chunk
        finally:
            self.closed = True


class FakeTranscoder:
    """Consumes the source and returns a canned MP3 payload, or raises"""

    def __init__(self, output: bytes = b"ID3\x03\x00fake-mp3-frames", error: Exception = None):
        self.output = output
        self.error = error
        self.received = b""

    async def transcode(self, source) -> bytes:
        async for chunk in source:
            self.received += chunk
        if self.error:
            raise self.error
        return self.output


@pytest.fixture
def fake_video_info(sample_metadata, aac_format, opus_format):
    return FakeVideoInfoService(sample_metadata, [opus_format, aac_format])


@pytest.fixture
def fake_streamer():
    return FakeAudioStreamer()


@pytest.fixture
def fake_transcoder():
    return FakeTranscoder()
