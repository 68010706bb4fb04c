"""
Extraction strategies, one per upstream source.

Each strategy exposes ``attempt(video_id)`` and returns ``(result, error)``:
exactly one of the two is set. Transport and parse problems are caught here
and reported as an ErrorDetail; nothing raises past ``attempt``.

  1. invidious   — Invidious mirror API (/api/v1/videos/<id>), instances tried in order
  2. embed       — youtube.com/embed/<id> page scrape for the embedded player config
  3. fallback    — static templates built from the video ID; never fails

The fallback links are placeholders. They point at the watch page, not at a
media file, and callers should treat them as hints only.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import httpx

from .config import Settings
from .models import ErrorCode, ErrorDetail, FormatDescriptor, VideoResult
from .video_id import thumbnail_url, watch_url

logger = logging.getLogger(__name__)

AttemptResult = Tuple[Optional[VideoResult], Optional[ErrorDetail]]

_MEBIBYTE = 1024 * 1024
DEFAULT_TITLE = "YouTube Video"


def _as_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def size_label(content_length: Any) -> str:
    """Render a byte count as whole megabytes, rounding half up, or 'Unknown'."""
    size = _as_int(content_length)
    if size <= 0:
        return "Unknown"
    return f"{int(size / _MEBIBYTE + 0.5)} MB"


class ExtractionStrategy(ABC):
    """Base class for a single upstream source."""

    name: str = "strategy"
    kind: str = "strategy"

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        """New client with the service timeout and browser-like headers."""
        return httpx.AsyncClient(
            timeout=self.settings.http_timeout_seconds,
            headers={"User-Agent": self.settings.user_agent},
            follow_redirects=True,
            transport=self._transport,
        )

    @abstractmethod
    async def attempt(self, video_id: str) -> AttemptResult:
        raise NotImplementedError


# =========================================================================
# INVIDIOUS MIRROR API
# =========================================================================


class InvidiousStrategy(ExtractionStrategy):
    """Query Invidious instances in order; the first 2xx JSON response is used."""

    kind = "invidious"

    def __init__(
        self,
        settings: Settings,
        instances: Optional[Tuple[str, ...]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(settings, transport)
        self.instances = tuple(instances if instances is not None else settings.invidious_instances)
        self.name = "invidious (" + ", ".join(i.replace("https://", "") for i in self.instances) + ")"

    def _parse_formats(self, data: Dict[str, Any]) -> List[FormatDescriptor]:
        """Merge formatStreams and adaptiveFormats, dropping entries without a URL."""
        formats: List[FormatDescriptor] = []

        for stream in data.get("formatStreams") or []:
            if not isinstance(stream, dict) or not stream.get("url"):
                continue
            height = stream.get("height")
            quality = stream.get("qualityLabel") or stream.get("resolution") or (f"{height}p" if height else "unknown")
            formats.append(FormatDescriptor(
                quality=quality,
                url=stream["url"],
                type=stream.get("type") or "video/mp4",
                size=size_label(stream.get("contentLength")),
            ))

        for fmt in data.get("adaptiveFormats") or []:
            if not isinstance(fmt, dict) or not fmt.get("url"):
                continue
            mime = fmt.get("type") or ""
            if "video" not in mime and "audio" not in mime:
                continue
            bitrate = _as_int(fmt.get("bitrate"))
            quality = fmt.get("qualityLabel") or (f"{int(bitrate / 1000 + 0.5)}kbps" if bitrate else "audio")
            formats.append(FormatDescriptor(
                quality=quality,
                url=fmt["url"],
                type=mime,
                size=size_label(fmt.get("contentLength")),
            ))

        return formats[: self.settings.max_formats]

    def _pick_thumbnail(self, data: Dict[str, Any], instance: str, video_id: str) -> str:
        thumbnails = data.get("thumbnails")
        if isinstance(thumbnails, list) and len(thumbnails) > 3 and isinstance(thumbnails[3], dict):
            url = thumbnails[3].get("url")
            if isinstance(url, str) and url:
                # some instances return paths relative to themselves
                return f"{instance}{url}" if url.startswith("/") else url
        return thumbnail_url(video_id)

    def _build_result(self, data: Dict[str, Any], instance: str, video_id: str) -> VideoResult:
        formats = self._parse_formats(data)
        return VideoResult(
            video_id=video_id,
            title=data.get("title") or DEFAULT_TITLE,
            thumbnail=self._pick_thumbnail(data, instance, video_id),
            duration=_as_int(data.get("lengthSeconds")),
            author=data.get("author") or "Unknown",
            view_count=_as_int(data.get("viewCount")),
            formats=formats,
            note="Direct download available" if formats else "No direct URLs found",
            source=self.kind,
        )

    async def attempt(self, video_id: str) -> AttemptResult:
        errors: List[str] = []

        async with self._client() as client:
            for instance in self.instances:
                api_url = f"{instance}/api/v1/videos/{video_id}"
                logger.info(f"🔎 Trying Invidious: {api_url}")

                try:
                    resp = await client.get(api_url)
                except httpx.HTTPError as e:
                    logger.warning(f"⚠️ Invidious instance failed ({instance}): {e}")
                    errors.append(f"[{instance}]: {type(e).__name__}: {e}")
                    continue

                if not resp.is_success:
                    logger.warning(f"⚠️ Invidious instance failed ({instance}): HTTP {resp.status_code}")
                    errors.append(f"[{instance}]: HTTP {resp.status_code}")
                    continue

                try:
                    data = resp.json()
                except ValueError:
                    logger.warning(f"⚠️ Invidious instance returned invalid JSON ({instance})")
                    errors.append(f"[{instance}]: invalid JSON")
                    continue

                if not isinstance(data, dict):
                    errors.append(f"[{instance}]: unexpected JSON payload")
                    continue

                try:
                    result = self._build_result(data, instance, video_id)
                except (ValueError, TypeError, AttributeError) as e:
                    logger.warning(f"⚠️ Invidious instance returned an unexpected payload ({instance}): {e}")
                    errors.append(f"[{instance}]: unexpected payload: {e}")
                    continue

                logger.info(f"✅ Invidious ({instance}) returned {len(result.formats)} formats")
                return result, None

        return None, ErrorDetail(
            code=ErrorCode.UPSTREAM_FAILURE,
            message="All Invidious instances failed",
            details={"instance_errors": errors},
        )


# =========================================================================
# EMBED PAGE SCRAPE
# =========================================================================

# Marker regexes for the player config objects found in embed pages, newest last.
PLAYER_CONFIG_MARKERS = (
    ("ytplayer.config", re.compile(r"ytplayer\.config\s*=\s*(?=\{)")),
    ("ytInitialPlayerResponse", re.compile(r"ytInitialPlayerResponse\s*=\s*(?=\{)")),
)


def find_player_config(html: str) -> Optional[Tuple[str, Dict[str, Any]]]:
    """
    Locate and decode the first embedded player config object in an embed page.

    Returns (marker_name, config) or None. Decoding starts at the opening brace
    and stops at the end of the JSON value, so braces inside strings are safe.
    """
    decoder = json.JSONDecoder()
    for marker, pattern in PLAYER_CONFIG_MARKERS:
        for match in pattern.finditer(html):
            try:
                config, _ = decoder.raw_decode(html, match.end())
            except ValueError as e:
                logger.debug(f"Failed to parse {marker}: {e}")
                continue
            if isinstance(config, dict):
                return marker, config
    return None


class EmbedPageStrategy(ExtractionStrategy):
    """Scrape title/thumbnail/duration from the embeddable player page."""

    name = "youtube embed page"
    kind = "embed"

    def _from_player_config(self, config: Dict[str, Any], video_id: str) -> Optional[Dict[str, Any]]:
        args = config.get("args")
        if args is None:
            args = {}
        if not isinstance(args, dict):
            return None
        return {
            "title": args.get("title") or DEFAULT_TITLE,
            "thumbnail": args.get("thumbnail_url") or thumbnail_url(video_id),
            "duration": _as_int(args.get("length_seconds")),
        }

    def _from_player_response(self, config: Dict[str, Any], video_id: str) -> Optional[Dict[str, Any]]:
        details = config.get("videoDetails")
        if not isinstance(details, dict):
            return None
        thumbnail = details.get("thumbnail")
        thumbs = thumbnail.get("thumbnails") if isinstance(thumbnail, dict) else None
        thumb = None
        if isinstance(thumbs, list) and thumbs and isinstance(thumbs[-1], dict):
            thumb = thumbs[-1].get("url")
        return {
            "title": details.get("title") or DEFAULT_TITLE,
            "thumbnail": thumb or thumbnail_url(video_id),
            "duration": _as_int(details.get("lengthSeconds")),
            "author": details.get("author"),
            "view_count": _as_int(details.get("viewCount"), default=None),
        }

    async def attempt(self, video_id: str) -> AttemptResult:
        embed_url = f"{self.settings.embed_base_url}/{video_id}"
        logger.info(f"🔎 Trying embed page: {embed_url}")

        try:
            async with self._client() as client:
                resp = await client.get(embed_url)
        except httpx.HTTPError as e:
            return None, ErrorDetail(
                code=ErrorCode.UPSTREAM_FAILURE,
                message=f"Embed fetch failed: {e}",
                details={"error": type(e).__name__},
            )

        if not resp.is_success:
            return None, ErrorDetail(
                code=ErrorCode.UPSTREAM_FAILURE,
                message=f"Embed fetch failed: {resp.status_code}",
            )

        found = find_player_config(resp.text)
        fields = None
        if found:
            marker, config = found
            if marker == "ytplayer.config":
                fields = self._from_player_config(config, video_id)
            else:
                fields = self._from_player_response(config, video_id)

        if fields is None:
            return None, ErrorDetail(
                code=ErrorCode.PARSE_FAILURE,
                message="Could not extract from embed page",
            )

        try:
            result = VideoResult(
                video_id=video_id,
                formats=[FormatDescriptor(
                    quality="Various",
                    url=watch_url(video_id),
                    type="video/mp4",
                    note="Use third-party tools for direct download",
                )],
                source=self.kind,
                **fields,
            )
        except ValueError as e:
            return None, ErrorDetail(
                code=ErrorCode.PARSE_FAILURE,
                message="Embed player config has unexpected field types",
                details={"error": str(e)},
            )
        return result, None


# =========================================================================
# STATIC FALLBACK
# =========================================================================


class StaticFallbackStrategy(ExtractionStrategy):
    """Deterministic placeholder result; the formats are not guaranteed to be retrievable."""

    name = "static fallback"
    kind = "fallback"

    def build(self, video_id: str) -> VideoResult:
        canonical = f"https://youtube.com/watch?v={video_id}"
        return VideoResult(
            video_id=video_id,
            title=DEFAULT_TITLE,
            thumbnail=thumbnail_url(video_id),
            thumbnail_small=thumbnail_url(video_id, "hqdefault"),
            duration=0,
            formats=[FormatDescriptor(
                quality="360p",
                url=canonical,
                type="video/mp4",
                note="Use yt-dlp or similar tool to download",
            )],
            note="Placeholder links only; no upstream source resolved this video",
            alternative_methods=[
                f"yt-dlp {canonical}",
                "Use online YouTube downloader websites",
            ],
            source=self.kind,
        )

    async def attempt(self, video_id: str) -> AttemptResult:
        return self.build(video_id), None
