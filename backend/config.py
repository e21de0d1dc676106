"""
Configuration management for the FastAPI backend
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Settings:
    """Application settings"""

    # CORS
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    # Application
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))

    # Download limits
    MAX_VIDEO_DURATION: int = int(os.getenv("MAX_VIDEO_DURATION", "1800"))  # 30 minutes in seconds

    # MP3 output
    AUDIO_BITRATE: int = int(os.getenv("AUDIO_BITRATE", "128"))  # kbps
    # Ordering of candidate audio formats: "highestaudio" or "lowestaudio"
    ALLOWED_AUDIO_QUALITY: str = os.getenv("ALLOWED_AUDIO_QUALITY", "highestaudio")

    # FFmpeg Configuration (for audio transcoding)
    FFMPEG_PATH: Optional[str] = os.getenv("FFMPEG_PATH", None)  # Optional path to ffmpeg executable

    # YouTube Download Configuration (for yt-dlp)
    # Use cookies to bypass YouTube bot detection
    # Options for YTDLP_COOKIES_FROM_BROWSER: "chrome", "firefox", "edge", "safari", "opera", "brave"
    YTDLP_COOKIES_FROM_BROWSER: Optional[str] = os.getenv("YTDLP_COOKIES_FROM_BROWSER", None)
    # Alternative: Path to a cookies file (Netscape format)
    # Can be exported using: yt-dlp --cookies-from-browser chrome --cookies cookies.txt
    YTDLP_COOKIES_FILE: Optional[str] = os.getenv("YTDLP_COOKIES_FILE", None)

    # Upstream timeouts (in seconds)
    METADATA_FETCH_TIMEOUT: float = float(os.getenv("METADATA_FETCH_TIMEOUT", "30"))
    STREAM_CONNECT_TIMEOUT: float = float(os.getenv("STREAM_CONNECT_TIMEOUT", "10"))
    STREAM_READ_TIMEOUT: float = float(os.getenv("STREAM_READ_TIMEOUT", "60"))
    TRANSCODE_TIMEOUT: float = float(os.getenv("TRANSCODE_TIMEOUT", "300"))

    STREAM_CHUNK_SIZE: int = int(os.getenv("STREAM_CHUNK_SIZE", "65536"))

    # Rate limiting (off by default)
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "false").lower() == "true"
    RATE_LIMIT_REQUESTS: int = int(os.getenv("RATE_LIMIT_REQUESTS", "10"))
    RATE_LIMIT_WINDOW_SECONDS: float = float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

    @property
    def cors_origins_list(self) -> list:
        """Parse CORS origins into a list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def max_duration_minutes(self) -> str:
        """Maximum video duration rendered in minutes (e.g. "30", "7.5")"""
        return f"{self.MAX_VIDEO_DURATION / 60:g}"


# Global settings instance
settings = Settings()
