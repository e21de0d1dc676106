"""
Error handling for the download and conversion pipeline.

Provides structured error handling with:
- Categorized error codes for all failure scenarios
- User-friendly error messages
- HTTP status mapping for API responses
- Classification helpers for extractor failures
"""

from enum import Enum
from typing import Optional, Dict, Any
import logging
import re

from config import settings

logger = logging.getLogger(__name__)


BOT_DETECTION_MESSAGE = (
    "YouTube has detected this as an automated request. This typically happens "
    "on cloud hosting platforms. Please try running this application locally or use a VPN."
)

# "bot" as a whole word; yt-dlp messages embed video ids like xRoBoT12345
BOT_WORD_PATTERN = re.compile(r"\bbot\b")


class ErrorCode(Enum):
    """
    Enumeration of all possible error codes in the pipeline.

    Organized by category:
    - Client Errors: rejected before any upstream work
    - Upstream Errors: YouTube or network failures
    - Processing Errors: format selection and encoding failures
    """

    # Client Errors (4xx)
    INVALID_URL = "INVALID_URL"
    VIDEO_TOO_LONG = "VIDEO_TOO_LONG"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Upstream Errors
    VIDEO_NOT_AVAILABLE = "VIDEO_NOT_AVAILABLE"
    BOT_DETECTED = "BOT_DETECTED"
    METADATA_FETCH_FAILED = "METADATA_FETCH_FAILED"
    AUDIO_DOWNLOAD_FAILED = "AUDIO_DOWNLOAD_FAILED"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"

    # Processing Errors
    NO_AUDIO_AVAILABLE = "NO_AUDIO_AVAILABLE"
    CONVERSION_FAILED = "CONVERSION_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


CLIENT_ERROR_CODES = {
    ErrorCode.INVALID_URL: 400,
    ErrorCode.VIDEO_TOO_LONG: 400,
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
}


class DownloadError(Exception):
    """
    Base exception for download pipeline errors.

    Provides structured error information including:
    - Error code for categorization
    - Detailed message for logging
    - Context dictionary for debugging
    - User-friendly message for API responses

    Example:
        >>> raise DownloadError(
        ...     ErrorCode.INVALID_URL,
        ...     "URL did not match any YouTube pattern",
        ...     {"url": "not a url"}
        ... )
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None
    ):
        """
        Initialize download error.

        Args:
            code: Error code from ErrorCode enum
            message: Detailed error message for logging
            details: Additional context (url, stderr, return code, etc.)
            user_message: Optional override for user-friendly message
        """
        self.code = code
        self.message = message
        self.details = details or {}
        self._user_message = user_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        """HTTP status code for this error (400/429 for client errors, 500 otherwise)"""
        return CLIENT_ERROR_CODES.get(self.code, 500)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to the API response body.

        Example:
            >>> DownloadError(ErrorCode.INVALID_URL, "bad").to_dict()
            {'error': 'Please enter a valid YouTube URL'}
        """
        return {"error": self.get_user_friendly_message()}

    def get_user_friendly_message(self) -> str:
        """
        Returns user-friendly error message.

        If a custom user message was provided, returns that.
        Otherwise, returns a predefined friendly message based on error code.
        """
        if self._user_message:
            return self._user_message

        friendly_messages = {
            ErrorCode.INVALID_URL: "Please enter a valid YouTube URL",
            ErrorCode.VIDEO_TOO_LONG: (
                f"Video duration exceeds maximum allowed "
                f"({settings.max_duration_minutes} minutes)"
            ),
            ErrorCode.RATE_LIMIT_EXCEEDED: "Too many requests. Please wait a moment",
            ErrorCode.VIDEO_NOT_AVAILABLE: "This video is not available or is private",
            ErrorCode.BOT_DETECTED: BOT_DETECTION_MESSAGE,
            ErrorCode.METADATA_FETCH_FAILED: "Failed to fetch video information. Please check the URL and try again.",
            ErrorCode.AUDIO_DOWNLOAD_FAILED: "Failed to download the video. Please try again",
            ErrorCode.UPSTREAM_TIMEOUT: "The request timed out. Please try again with a shorter video.",
            ErrorCode.NO_AUDIO_AVAILABLE: "No audio format available for this video",
            ErrorCode.CONVERSION_FAILED: "Failed to process audio. Please ensure ffmpeg is installed.",
            ErrorCode.INTERNAL_ERROR: "An unexpected error occurred",
        }

        return friendly_messages.get(self.code, "An unexpected error occurred")

    def log_error(self) -> None:
        """
        Log error with appropriate level and context.

        Client errors (4xx) are logged as WARNING, everything else as ERROR.
        """
        log_data = {
            "error_code": self.code.value,
            "message": self.message,
            "details": self.details
        }

        if self.code in CLIENT_ERROR_CODES:
            logger.warning(f"Client error: {log_data}")
        else:
            logger.error(f"Download error: {log_data}")

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


def extract_status_code(error: BaseException) -> Optional[int]:
    """
    Find an HTTP status code attached to an exception or anything in its cause chain.

    yt-dlp wraps network failures, so the status usually lives on an inner
    exception (``exc_info`` tuple, ``__cause__`` or ``__context__``).
    """
    seen = set()
    current: Optional[BaseException] = error

    while current is not None and id(current) not in seen:
        seen.add(id(current))

        for attr in ("status_code", "status", "code"):
            value = getattr(current, attr, None)
            if isinstance(value, int) and not isinstance(value, bool):
                return value

        response = getattr(current, "response", None)
        value = getattr(response, "status_code", None) or getattr(response, "status", None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value

        exc_info = getattr(current, "exc_info", None)
        if isinstance(exc_info, tuple) and len(exc_info) > 1 and isinstance(exc_info[1], BaseException):
            current = exc_info[1]
        else:
            current = current.__cause__ or current.__context__

    return None


def is_bot_detection_error(error: BaseException) -> bool:
    """
    Determine whether YouTube's anti-automation defenses rejected the request.

    Example:
        >>> is_bot_detection_error(Exception("Sign in to confirm you're not a bot"))
        True
        >>> is_bot_detection_error(Exception("Video unavailable"))
        False
    """
    text = str(error).lower()
    if "sign in to confirm" in text or BOT_WORD_PATTERN.search(text):
        return True
    return extract_status_code(error) == 429


def is_unavailable_error(error: BaseException) -> bool:
    """Determine whether YouTube reported the video as private, removed or missing."""
    text = str(error).lower()
    return any(
        phrase in text
        for phrase in (
            "private video",
            "video unavailable",
            "video is unavailable",
            "not available",
            "has been removed",
            "does not exist",
        )
    )
