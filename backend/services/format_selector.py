"""
Audio format selection
"""

from typing import Sequence

from pipeline.error_handler import DownloadError, ErrorCode
from services.video_info import AudioFormat

AAC_CODEC = "mp4a.40.2"
OPUS_CODEC = "opus"


def select_audio_format(formats: Sequence[AudioFormat]) -> AudioFormat:
    """
    Pick the audio stream to transcode.

    Preference: AAC (mp4a.40.2), then Opus, then the first format in the
    given order.

    Raises:
        DownloadError: NO_AUDIO_AVAILABLE if formats is empty
    """
    if not formats:
        raise DownloadError(ErrorCode.NO_AUDIO_AVAILABLE, "No audio format available")

    for codec in (AAC_CODEC, OPUS_CODEC):
        for fmt in formats:
            if fmt.codec == codec:
                return fmt

    return formats[0]
