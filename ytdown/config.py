"""
Service configuration loaded from environment variables
"""

import os
from typing import Optional, Tuple

from pydantic import BaseModel, Field

# Upstream defaults
DEFAULT_INVIDIOUS_INSTANCES = (
    "https://inv.riverside.rocks",
    "https://invidious.private.coffee",
    "https://vid.puffyan.us",
    "https://yt.artemislena.eu",
)
DEFAULT_EMBED_BASE_URL = "https://www.youtube.com/embed"
DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) '
    'AppleWebKit/537.36 (KHTML, like Gecko) '
    'Chrome/120.0.0.0 Safari/537.36'
)
DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_FORMATS = 10

_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Immutable runtime settings shared by every request"""
    invidious_instances: Tuple[str, ...] = Field(
        DEFAULT_INVIDIOUS_INSTANCES, description="Mirror API base URLs, tried in order"
    )
    embed_base_url: str = Field(DEFAULT_EMBED_BASE_URL, description="Embeddable player page base URL")
    http_timeout_seconds: float = Field(DEFAULT_HTTP_TIMEOUT_SECONDS, gt=0, description="Timeout per outbound call")
    user_agent: str = DEFAULT_USER_AGENT
    max_formats: int = Field(DEFAULT_MAX_FORMATS, ge=1, description="Cap on mirror formats per response")
    concurrent_strategies: bool = Field(False, description="Run strategies concurrently, priority still wins")
    allowed_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    class Config:
        frozen = True


def _split_csv(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip().rstrip("/") for part in value.split(",") if part.strip())


def load_settings() -> Settings:
    """Build Settings from YTDOWN_* environment variables, falling back to defaults."""
    instances = _split_csv(os.getenv("YTDOWN_INVIDIOUS_INSTANCES")) or DEFAULT_INVIDIOUS_INSTANCES
    origins = tuple(o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()) or ("*",)

    return Settings(
        invidious_instances=instances,
        embed_base_url=os.getenv("YTDOWN_EMBED_BASE_URL", DEFAULT_EMBED_BASE_URL).rstrip("/"),
        http_timeout_seconds=float(os.getenv("YTDOWN_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT_SECONDS))),
        user_agent=os.getenv("YTDOWN_USER_AGENT", DEFAULT_USER_AGENT),
        max_formats=int(os.getenv("YTDOWN_MAX_FORMATS", str(DEFAULT_MAX_FORMATS))),
        concurrent_strategies=os.getenv("YTDOWN_CONCURRENT_STRATEGIES", "false").strip().lower() in _TRUTHY,
        allowed_origins=origins,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


settings = load_settings()
