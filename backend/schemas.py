"""
Pydantic schemas for request/response validation
"""

from pydantic import BaseModel, Field
from typing import Optional


class DownloadRequest(BaseModel):
    """Request model for MP3 download"""
    url: Optional[str] = Field(None, description="YouTube video URL")

    class Config:
        json_schema_extra = {
            "example": {
                "url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
            }
        }


class VideoInfoResponse(BaseModel):
    """Video metadata returned for previews"""
    title: str = Field(..., description="Video title")
    duration: int = Field(..., ge=0, description="Duration in seconds")
    thumbnail: str = Field(..., description="Highest-resolution thumbnail URL")
    author: str = Field(..., description="Channel or uploader name")
    videoId: str = Field(..., description="YouTube video ID")

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Rick Astley - Never Gonna Give You Up",
                "duration": 212,
                "thumbnail": "https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
                "author": "Rick Astley",
                "videoId": "dQw4w9WgXcQ"
            }
        }


class ErrorResponse(BaseModel):
    """Error body returned for every failed request"""
    error: str = Field(..., description="User-facing error message")
