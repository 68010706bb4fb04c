"""
Tests for the embed-page strategy.

Run:
    pytest tests/test_strategy_embed.py -v
"""

import json

import httpx
import pytest

from ytdown.models import ErrorCode
from ytdown.strategies import EmbedPageStrategy, find_player_config

from .conftest import EMBED_BASE, embed_page


PLAYER_CONFIG = {
    "args": {
        "title": "Embedded {title} with braces",
        "thumbnail_url": "https://i.test/embed.jpg",
        "length_seconds": "213",
    }
}

PLAYER_RESPONSE = {
    "playabilityStatus": {"status": "OK"},
    "videoDetails": {
        "videoId": "dQw4w9WgXcQ",
        "title": "Never Gonna Give You Up",
        "lengthSeconds": "212",
        "author": "Rick Astley",
        "viewCount": "1600000000",
        "thumbnail": {"thumbnails": [
            {"url": "https://i.test/small.jpg", "width": 120},
            {"url": "https://i.test/large.jpg", "width": 1280},
        ]},
    },
}


@pytest.mark.asyncio
async def test_embed_parses_ytplayer_config(settings, make_transport, video_id):
    html = embed_page(f"var ytplayer = ytplayer || {{}};ytplayer.config = {json.dumps(PLAYER_CONFIG)};ytplayer.load();")
    transport = make_transport({EMBED_BASE: httpx.Response(200, text=html)})
    result, err = await EmbedPageStrategy(settings, transport=transport).attempt(video_id)

    assert err is None
    assert result.title == "Embedded {title} with braces"
    assert result.thumbnail == "https://i.test/embed.jpg"
    assert result.duration == 213
    assert result.source == "embed"
    assert len(result.formats) == 1
    fmt = result.formats[0]
    assert fmt.quality == "Various"
    assert fmt.url == f"https://www.youtube.com/watch?v={video_id}"
    assert fmt.note == "Use third-party tools for direct download"
    assert transport.calls == [f"{EMBED_BASE}/{video_id}"]


@pytest.mark.asyncio
async def test_embed_parses_initial_player_response(settings, make_transport, video_id):
    html = embed_page(f"var ytInitialPlayerResponse = {json.dumps(PLAYER_RESPONSE)};var meta = {{}};")
    transport = make_transport({EMBED_BASE: httpx.Response(200, text=html)})
    result, err = await EmbedPageStrategy(settings, transport=transport).attempt(video_id)

    assert err is None
    assert result.title == "Never Gonna Give You Up"
    assert result.duration == 212
    assert result.thumbnail == "https://i.test/large.jpg"
    assert result.author == "Rick Astley"
    assert result.view_count == 1_600_000_000


@pytest.mark.asyncio
async def test_embed_config_without_args_uses_defaults(settings, make_transport, video_id):
    html = embed_page('ytplayer.config = {"assets": {}};')
    transport = make_transport({EMBED_BASE: httpx.Response(200, text=html)})
    result, err = await EmbedPageStrategy(settings, transport=transport).attempt(video_id)

    assert err is None
    assert result.title == "YouTube Video"
    assert result.thumbnail == f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"
    assert result.duration == 0


@pytest.mark.asyncio
async def test_embed_without_config_is_parse_failure(settings, make_transport, video_id):
    transport = make_transport({EMBED_BASE: httpx.Response(200, text=embed_page("console.log('hi');"))})
    result, err = await EmbedPageStrategy(settings, transport=transport).attempt(video_id)

    assert result is None
    assert err.code == ErrorCode.PARSE_FAILURE
    assert err.message == "Could not extract from embed page"


@pytest.mark.asyncio
async def test_embed_malformed_config_is_parse_failure(settings, make_transport, video_id):
    transport = make_transport({EMBED_BASE: httpx.Response(200, text=embed_page("ytplayer.config = {'args': broken};"))})
    result, err = await EmbedPageStrategy(settings, transport=transport).attempt(video_id)

    assert result is None
    assert err.code == ErrorCode.PARSE_FAILURE


@pytest.mark.asyncio
async def test_embed_player_response_without_details_is_parse_failure(settings, make_transport, video_id):
    html = embed_page('var ytInitialPlayerResponse = {"playabilityStatus": {"status": "ERROR"}};')
    transport = make_transport({EMBED_BASE: httpx.Response(200, text=html)})
    result, err = await EmbedPageStrategy(settings, transport=transport).attempt(video_id)

    assert result is None
    assert err.code == ErrorCode.PARSE_FAILURE


@pytest.mark.asyncio
async def test_embed_http_error_is_upstream_failure(settings, make_transport, video_id):
    transport = make_transport({EMBED_BASE: httpx.Response(429, text="slow down")})
    result, err = await EmbedPageStrategy(settings, transport=transport).attempt(video_id)

    assert result is None
    assert err.code == ErrorCode.UPSTREAM_FAILURE
    assert err.message == "Embed fetch failed: 429"


@pytest.mark.asyncio
async def test_embed_timeout_is_upstream_failure(settings, make_transport, video_id):
    transport = make_transport({EMBED_BASE: httpx.ReadTimeout("timed out")})
    result, err = await EmbedPageStrategy(settings, transport=transport).attempt(video_id)

    assert result is None
    assert err.code == ErrorCode.UPSTREAM_FAILURE
    assert err.details == {"error": "ReadTimeout"}


def test_find_player_config_skips_undecodable_marker():
    html = 'ytplayer.config = {oops};\nytplayer.config = {"args": {"title": "second"}};'
    marker, config = find_player_config(html)
    assert marker == "ytplayer.config"
    assert config["args"]["title"] == "second"


def test_find_player_config_returns_none_without_marker():
    assert find_player_config("<html></html>") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("script", [
    'ytplayer.config = {"args": []};',
    'ytplayer.config = {"args": {"title": 5}};',
    'var ytInitialPlayerResponse = {"videoDetails": {"title": {"runs": []}}};',
], ids=["list-args", "int-title", "object-title"])
async def test_embed_wrongly_typed_config_is_parse_failure(settings, make_transport, video_id, script):
    transport = make_transport({EMBED_BASE: httpx.Response(200, text=embed_page(script))})
    result, err = await EmbedPageStrategy(settings, transport=transport).attempt(video_id)

    assert result is None
    assert err.code == ErrorCode.PARSE_FAILURE


@pytest.mark.asyncio
async def test_embed_non_dict_thumbnail_uses_default(settings, make_transport, video_id):
    html = embed_page('var ytInitialPlayerResponse = {"videoDetails": {"title": "T", "thumbnail": []}};')
    transport = make_transport({EMBED_BASE: httpx.Response(200, text=html)})
    result, err = await EmbedPageStrategy(settings, transport=transport).attempt(video_id)

    assert err is None
    assert result.thumbnail == f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"
