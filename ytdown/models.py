"""
Pydantic models for request/response schemas
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List
from enum import Enum


class ErrorCode(str, Enum):
    """Error code classifications"""
    INVALID_URL = "INVALID_URL"
    UPSTREAM_FAILURE = "UPSTREAM_FAILURE"
    PARSE_FAILURE = "PARSE_FAILURE"
    SERVER_ERROR = "SERVER_ERROR"


class ErrorDetail(BaseModel):
    """Error details"""
    code: ErrorCode
    message: str
    details: Optional[Dict[str, Any]] = None


class FormatDescriptor(BaseModel):
    """One candidate rendition of a video"""
    quality: str
    url: str = Field(..., min_length=1)
    type: str = "video/mp4"
    size: Optional[str] = Field(None, description="'<n> MB' or 'Unknown'")
    note: Optional[str] = None


class VideoResult(BaseModel):
    """Success response for /YTdown"""
    status: str = "success"
    video_id: str = Field(..., alias="videoId")
    title: str = "YouTube Video"
    thumbnail: str
    thumbnail_small: Optional[str] = None
    duration: int = 0
    author: Optional[str] = None
    view_count: Optional[int] = Field(None, alias="viewCount")
    formats: List[FormatDescriptor] = Field(default_factory=list)
    note: Optional[str] = None
    alternative_methods: Optional[List[str]] = None
    source: Optional[str] = Field(None, description="Name of the strategy that produced this result")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "status": "success",
                "videoId": "dQw4w9WgXcQ",
                "title": "YouTube Video",
                "thumbnail": "https://img.youtube.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
                "duration": 0,
                "formats": [
                    {
                        "quality": "360p",
                        "url": "https://youtube.com/watch?v=dQw4w9WgXcQ",
                        "type": "video/mp4",
                        "note": "Use yt-dlp or similar tool to download",
                    }
                ],
                "source": "fallback",
            }
        }

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ErrorResponse(BaseModel):
    """Error response for /YTdown"""
    status: str = "error"
    message: str
    code: Optional[ErrorCode] = None


class StrategyInfo(BaseModel):
    num: int
    name: str
    kind: str


class StrategyListResponse(BaseModel):
    """Response schema for /api/v1/strategies"""
    total: int
    strategies: List[StrategyInfo]


class HealthStats(BaseModel):
    """Statistics for health check"""
    total_requests: int
    fallback_responses: int
    failed_requests: int


class HealthResponse(BaseModel):
    """Response schema for /api/v1/health"""
    status: str
    version: str
    uptime_seconds: float
    stats: HealthStats
