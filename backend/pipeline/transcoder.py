"""
MP3 transcoding via an ffmpeg subprocess.

Source bytes are piped into ffmpeg's stdin while its stdout is collected
concurrently. The caller gets either the complete MP3 buffer or an
exception, never a partial result.
"""

import asyncio
import shutil
from typing import AsyncIterable, List, Optional

import structlog

from config import settings
from pipeline.error_handler import DownloadError, ErrorCode

logger = structlog.get_logger()

READ_CHUNK_SIZE = 64 * 1024


class Mp3Transcoder:
    """
    Encodes an audio byte stream to MP3 with libmp3lame.

    Example:
        >>> transcoder = Mp3Transcoder(bitrate_kbps=128)
        >>> mp3_bytes = await transcoder.transcode(source_chunks)
    """

    def __init__(
        self,
        ffmpeg_path: Optional[str] = None,
        bitrate_kbps: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.ffmpeg_path = ffmpeg_path or settings.FFMPEG_PATH or shutil.which("ffmpeg") or "ffmpeg"
        self.bitrate_kbps = bitrate_kbps or settings.AUDIO_BITRATE
        self.timeout = timeout if timeout is not None else settings.TRANSCODE_TIMEOUT

    def _build_command(self) -> List[str]:
        return [
            self.ffmpeg_path,
            "-hide_banner",
            "-loglevel", "error",
            "-i", "pipe:0",
            "-vn",
            "-acodec", "libmp3lame",
            "-b:a", f"{self.bitrate_kbps}k",
            "-f", "mp3",
            "pipe:1",
        ]

    async def transcode(self, source: AsyncIterable[bytes]) -> bytes:
        """
        Pipe source through the encoder and return the encoded bytes.

        Raises:
            DownloadError: CONVERSION_FAILED if the encoder cannot start, exits
                non-zero or produces nothing; UPSTREAM_TIMEOUT if the session
                exceeds the timeout. Errors raised by source propagate as is.
        """
        command = self._build_command()
        logger.info("transcode_started", encoder=command[0], bitrate_kbps=self.bitrate_kbps)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error("encoder_start_failed", encoder=command[0], error=str(e))
            raise DownloadError(
                ErrorCode.CONVERSION_FAILED,
                f"Could not start encoder: {e}",
                {"encoder": command[0]}
            ) from e

        chunks: List[bytes] = []
        tasks: List[asyncio.Task] = []

        try:
            tasks = [
                asyncio.create_task(self._feed(process.stdin, source)),
                asyncio.create_task(self._collect(process.stdout, chunks)),
                asyncio.create_task(process.stderr.read()),
            ]

            try:
                return_code, stderr = await asyncio.wait_for(
                    self._session(process, tasks), timeout=self.timeout
                )
            except asyncio.TimeoutError:
                logger.error("transcode_timeout", timeout=self.timeout)
                raise DownloadError(
                    ErrorCode.UPSTREAM_TIMEOUT,
                    f"Transcoding timed out after {self.timeout:g}s"
                )

            error_text = stderr.decode("utf-8", errors="ignore").strip()
            if return_code != 0:
                logger.error("transcode_failed", return_code=return_code, error=error_text[:500])
                raise DownloadError(
                    ErrorCode.CONVERSION_FAILED,
                    error_text or f"Encoder exited with code {return_code}",
                    {"return_code": return_code}
                )

            output = b"".join(chunks)
            if not output:
                logger.error("transcode_empty_output", error=error_text[:500])
                raise DownloadError(
                    ErrorCode.CONVERSION_FAILED,
                    error_text or "Encoder produced no output"
                )

            logger.info("transcode_completed", output_bytes=len(output))
            return output

        finally:
            chunks.clear()
            for task in tasks:
                if not task.done():
                    task.cancel()
            if tasks:
                await asyncio.gather(*tasks, return_exceptions=True)
            await self._terminate(process)

    async def _session(self, process: asyncio.subprocess.Process, tasks: List[asyncio.Task]):
        """Wait for feed, collect and stderr, then for the exit code, under one deadline."""
        _, _, stderr = await asyncio.gather(*tasks)
        return_code = await process.wait()
        return return_code, stderr

    async def _feed(self, stdin: asyncio.StreamWriter, source: AsyncIterable[bytes]) -> None:
        """Write source chunks into the encoder; stop quietly if it closed its input."""
        try:
            async for chunk in source:
                if not chunk:
                    continue
                stdin.write(chunk)
                await stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            # Encoder exited early; its return code decides the outcome
            logger.warning("encoder_input_closed")
        finally:
            if not stdin.is_closing():
                stdin.close()
            try:
                await stdin.wait_closed()
            except (BrokenPipeError, ConnectionResetError):
                pass

    async def _collect(self, stdout: asyncio.StreamReader, chunks: List[bytes]) -> None:
        while True:
            chunk = await stdout.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            logger.warning("encoder_killed", pid=process.pid)
        await process.wait()
