"""
YouTube video ID extraction from free-form URLs
"""

import re
from typing import Optional

# First match wins; the patterns overlap on purpose.
VIDEO_ID_PATTERNS = (
    re.compile(
        r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/v/|youtube\.com/shorts/)"
        r"([A-Za-z0-9_-]{11})"
    ),
    re.compile(r"youtube\.com/watch\?.*v=([A-Za-z0-9_-]{11})"),
    re.compile(r"youtu\.be/([A-Za-z0-9_-]{11})"),
)


def extract_video_id(text: Optional[str]) -> Optional[str]:
    """Return the 11-character video ID embedded in text, or None if no known URL shape matches."""
    if not text:
        return None
    for pattern in VIDEO_ID_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def thumbnail_url(video_id: str, variant: str = "maxresdefault") -> str:
    return f"https://img.youtube.com/vi/{video_id}/{variant}.jpg"
