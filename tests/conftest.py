"""
Shared fixtures and helpers for YTdown tests.

No test touches the network: upstreams are replaced with httpx.MockTransport
handlers that route on the request URL.
"""

import pathlib
import sys
from typing import Dict

import httpx
import pytest

# ─── Path setup (must happen before any ytdown import) ───────────────────────

_ROOT = pathlib.Path(__file__).parent.parent
sys.path.insert(0, str(_ROOT))

from ytdown.config import Settings  # noqa: E402

# ─── Constants ───────────────────────────────────────────────────────────────

TEST_VIDEO_ID = "dQw4w9WgXcQ"
TEST_VIDEO_URL = f"https://www.youtube.com/watch?v={TEST_VIDEO_ID}"
MIRROR_A = "https://mirror-a.test"
MIRROR_B = "https://mirror-b.test"
EMBED_BASE = "https://embed.test/embed"


# ─── Fixtures ────────────────────────────────────────────────────────────────

@pytest.fixture
def video_id():
    return TEST_VIDEO_ID


@pytest.fixture
def settings():
    """Settings pointing at fake hosts only."""
    return Settings(
        invidious_instances=(MIRROR_A, MIRROR_B),
        embed_base_url=EMBED_BASE,
        http_timeout_seconds=5,
    )


@pytest.fixture
def make_transport():
    """
    Build a MockTransport from a {url_prefix: handler} map.

    A handler is either an httpx.Response, an exception instance (raised), or a
    callable taking the request. Unmatched URLs get a 404. Every request URL
    is recorded in transport.calls.
    """
    def _make(routes: Dict[str, object]) -> httpx.MockTransport:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            calls.append(url)
            for prefix, reply in routes.items():
                if url.startswith(prefix):
                    if isinstance(reply, Exception):
                        raise reply
                    if callable(reply):
                        return reply(request)
                    return reply
            return httpx.Response(404, text="not found")

        transport = httpx.MockTransport(handler)
        transport.calls = calls
        return transport

    return _make


# ─── Helpers ─────────────────────────────────────────────────────────────────

def invidious_payload(format_count: int = 2, adaptive_count: int = 0, **overrides) -> dict:
    """A minimal Invidious /api/v1/videos response."""
    payload = {
        "title": "Never Gonna Give You Up",
        "author": "Rick Astley",
        "lengthSeconds": 213,
        "viewCount": 1_500_000_000,
        "thumbnails": [
            {"quality": "maxres", "url": "https://i.test/maxres.jpg"},
            {"quality": "sddefault", "url": "https://i.test/sd.jpg"},
            {"quality": "high", "url": "https://i.test/hq.jpg"},
            {"quality": "medium", "url": "https://i.test/mq.jpg"},
        ],
        "formatStreams": [
            {
                "url": f"https://cdn.test/stream/{i}",
                "qualityLabel": f"{360 * (i + 1)}p",
                "type": "video/mp4; codecs=\"avc1.42001E, mp4a.40.2\"",
                "contentLength": str(5 * 1024 * 1024 * (i + 1)),
            }
            for i in range(format_count)
        ],
        "adaptiveFormats": [
            {
                "url": f"https://cdn.test/adaptive/{i}",
                "type": "audio/webm; codecs=\"opus\"",
                "bitrate": "128000",
            }
            for i in range(adaptive_count)
        ],
    }
    payload.update(overrides)
    return payload


def embed_page(script: str) -> str:
    return f"<html><head><script>{script}</script></head><body></body></html>"
