"""
Tests for AudioStreamer using httpx.MockTransport (no network).
"""

import httpx
import pytest

from pipeline.error_handler import DownloadError, ErrorCode
from services.audio_stream import AudioStreamer
from services.video_info import AudioFormat


@pytest.fixture
def audio_format():
    return AudioFormat(
        format_id="140",
        codec="mp4a.40.2",
        url="https://rr1.googlevideo.com/videoplayback?itag=140",
        http_headers={"User-Agent": "test-agent"},
    )


async def collect(iterator):
    return [chunk async for chunk in iterator]


class TestAudioStreamer:

    @pytest.mark.asyncio
    async def test_streams_body_in_chunks(self, audio_format):
        body = bytes(range(256)) * 40
        seen_headers = {}

        def handler(request):
            seen_headers.update(request.headers)
            return httpx.Response(200, content=body)

        streamer = AudioStreamer(chunk_size=1024, transport=httpx.MockTransport(handler))
        chunks = await collect(streamer.open(audio_format))

        assert b"".join(chunks) == body
        assert len(chunks) > 1
        assert seen_headers["user-agent"] == "test-agent"

    @pytest.mark.asyncio
    async def test_http_error_status(self, audio_format):
        streamer = AudioStreamer(transport=httpx.MockTransport(lambda request: httpx.Response(403)))

        with pytest.raises(DownloadError) as exc_info:
            await collect(streamer.open(audio_format))

        assert exc_info.value.code is ErrorCode.AUDIO_DOWNLOAD_FAILED
        assert exc_info.value.details["status_code"] == 403

    @pytest.mark.asyncio
    async def test_transport_error(self, audio_format):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        streamer = AudioStreamer(transport=httpx.MockTransport(handler))

        with pytest.raises(DownloadError) as exc_info:
            await collect(streamer.open(audio_format))

        assert exc_info.value.code is ErrorCode.AUDIO_DOWNLOAD_FAILED

    @pytest.mark.asyncio
    async def test_timeout(self, audio_format):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        streamer = AudioStreamer(transport=httpx.MockTransport(handler))

        with pytest.raises(DownloadError) as exc_info:
            await collect(streamer.open(audio_format))

        assert exc_info.value.code is ErrorCode.UPSTREAM_TIMEOUT

    @pytest.mark.asyncio
    async def test_early_close_releases_stream(self, audio_format):
        streamer = AudioStreamer(
            chunk_size=4,
            transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b"0123456789")),
        )

        iterator = streamer.open(audio_format)
        first = await iterator.__anext__()
        await iterator.aclose()

        assert first == b"0123"
