"""
Video info extraction using multiple strategies with automatic fallback.

Strategy order (tried until one returns at least one format):
  1. invidious   — Invidious mirror API instances
  2. embed       — youtube.com/embed page scrape
  Fallback: static templates built from the video ID (cannot fail)

Results are never merged across strategies; the first usable one wins.
"""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

import httpx

from .config import Settings, settings as default_settings
from .models import ErrorCode, ErrorDetail, VideoResult
from .strategies import (
    AttemptResult,
    EmbedPageStrategy,
    ExtractionStrategy,
    InvidiousStrategy,
    StaticFallbackStrategy,
)
from .video_id import extract_video_id

logger = logging.getLogger(__name__)

INVALID_URL_MESSAGE = "Invalid YouTube URL. Provide a valid YouTube video URL."


class InvalidVideoURL(ValueError):
    """Raised when no video ID can be found in the supplied URL."""

    code = ErrorCode.INVALID_URL

    def __init__(self, url: str, message: str = INVALID_URL_MESSAGE):
        super().__init__(message)
        self.url = url
        self.message = message


def _is_usable(result: Optional[VideoResult]) -> bool:
    return result is not None and len(result.formats) > 0


class VideoExtractor:
    """Ordered strategy chain with a static fallback."""

    def __init__(
        self,
        strategies: Sequence[ExtractionStrategy],
        fallback: StaticFallbackStrategy,
        concurrent: bool = False,
    ):
        self.strategies = list(strategies)
        self.fallback = fallback
        self.concurrent = concurrent

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "VideoExtractor":
        """Default chain: Invidious, then embed page, then static fallback."""
        return cls(
            strategies=[
                InvidiousStrategy(settings, transport=transport),
                EmbedPageStrategy(settings, transport=transport),
            ],
            fallback=StaticFallbackStrategy(settings),
            concurrent=settings.concurrent_strategies,
        )

    def strategy_names(self) -> List[Tuple[str, str]]:
        """(name, kind) for each strategy in priority order, fallback last."""
        return [(s.name, s.kind) for s in self.strategies] + [(self.fallback.name, self.fallback.kind)]

    async def _safe_attempt(self, strategy: ExtractionStrategy, video_id: str) -> AttemptResult:
        try:
            return await strategy.attempt(video_id)
        except Exception as e:
            logger.exception(f"💥 Unexpected exception in strategy {strategy.name}")
            return None, ErrorDetail(
                code=ErrorCode.UPSTREAM_FAILURE,
                message=f"Unexpected exception in strategy: {e}",
            )

    def _log_rejection(self, idx: int, strategy: ExtractionStrategy, result, error: Optional[ErrorDetail]) -> None:
        total = len(self.strategies)
        if error:
            logger.warning(f"⚠️ Strategy {idx}/{total} ({strategy.name}) failed [{error.code.value}]: {error.message[:120]}")
        elif result is not None:
            logger.warning(f"⚠️ Strategy {idx}/{total} ({strategy.name}) returned no usable formats")

    async def _run_sequential(self, video_id: str) -> Optional[VideoResult]:
        total = len(self.strategies)
        for idx, strategy in enumerate(self.strategies, 1):
            logger.info(f"🎯 Strategy {idx}/{total}: {strategy.name}")
            result, error = await self._safe_attempt(strategy, video_id)
            if _is_usable(result):
                logger.info(f"✅ Strategy {idx}/{total} ({strategy.name}) succeeded with {len(result.formats)} formats")
                return result
            self._log_rejection(idx, strategy, result, error)
        return None

    async def _run_concurrent(self, video_id: str) -> Optional[VideoResult]:
        """Start every strategy at once but accept results in priority order."""
        tasks = [asyncio.create_task(self._safe_attempt(s, video_id)) for s in self.strategies]
        try:
            for idx, (strategy, task) in enumerate(zip(self.strategies, tasks), 1):
                result, error = await task
                if _is_usable(result):
                    logger.info(f"✅ Strategy {idx}/{len(tasks)} ({strategy.name}) succeeded with {len(result.formats)} formats")
                    return result
                self._log_rejection(idx, strategy, result, error)
            return None
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    async def extract(self, url: str) -> VideoResult:
        """
        Resolve a YouTube URL to a VideoResult.

        Raises InvalidVideoURL if no video ID is found. Every other failure is
        absorbed and ends in the static fallback result.
        """
        video_id = extract_video_id(url)
        if not video_id:
            raise InvalidVideoURL(url)

        logger.info(f"🚀 Processing YouTube video ID: {video_id} ({len(self.strategies)} strategies)")

        if self.concurrent:
            result = await self._run_concurrent(video_id)
        else:
            result = await self._run_sequential(video_id)

        if result is not None:
            return result

        logger.warning(f"❌ All strategies failed for {video_id}; returning static fallback")
        return self.fallback.build(video_id)


# Global singleton
extractor = VideoExtractor.from_settings(default_settings)
