"""YTdown: YouTube metadata and candidate download links with multi-source fallback."""

__version__ = "1.0.0"
