"""
Audio source streaming

Reads the selected YouTube audio format over HTTP, chunk by chunk, so the
encoder can start working before the whole source has arrived.
"""

from typing import AsyncIterator, Optional

import httpx
import structlog

from config import settings
from pipeline.error_handler import DownloadError, ErrorCode
from services.video_info import AudioFormat

logger = structlog.get_logger()


class AudioStreamer:
    """Opens byte streams for AudioFormat entries"""

    def __init__(
        self,
        chunk_size: Optional[int] = None,
        timeout: Optional[httpx.Timeout] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.chunk_size = chunk_size or settings.STREAM_CHUNK_SIZE
        self.timeout = timeout or httpx.Timeout(
            settings.STREAM_READ_TIMEOUT,
            connect=settings.STREAM_CONNECT_TIMEOUT
        )
        self._transport = transport

    async def open(self, fmt: AudioFormat) -> AsyncIterator[bytes]:
        """
        Stream the raw bytes of an audio format.

        The HTTP client and response are closed when the iterator finishes,
        fails or is closed early by the consumer.

        Raises:
            DownloadError: AUDIO_DOWNLOAD_FAILED on HTTP/transport errors,
                UPSTREAM_TIMEOUT on connect/read timeouts
        """
        logger.info("audio_stream_opening", format_id=fmt.format_id, codec=fmt.codec)
        total = 0

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                async with client.stream("GET", fmt.url, headers=fmt.http_headers) as response:
                    response.raise_for_status()
                    async for chunk in response.aiter_bytes(self.chunk_size):
                        total += len(chunk)
                        yield chunk
        except httpx.TimeoutException as e:
            logger.error("audio_stream_timeout", format_id=fmt.format_id, bytes_read=total)
            raise DownloadError(
                ErrorCode.UPSTREAM_TIMEOUT,
                f"Audio stream timed out: {e}",
                {"format_id": fmt.format_id}
            ) from e
        except httpx.HTTPStatusError as e:
            logger.error(
                "audio_stream_http_error",
                format_id=fmt.format_id,
                status_code=e.response.status_code
            )
            raise DownloadError(
                ErrorCode.AUDIO_DOWNLOAD_FAILED,
                f"Audio stream returned HTTP {e.response.status_code}",
                {"format_id": fmt.format_id, "status_code": e.response.status_code}
            ) from e
        except httpx.HTTPError as e:
            logger.error("audio_stream_failed", format_id=fmt.format_id, error=str(e))
            raise DownloadError(
                ErrorCode.AUDIO_DOWNLOAD_FAILED,
                f"Audio stream failed: {e}",
                {"format_id": fmt.format_id}
            ) from e

        logger.info("audio_stream_completed", format_id=fmt.format_id, bytes_read=total)
