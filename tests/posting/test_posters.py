"""Tests for posting collaborators."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from cronpost.config import PosterConfig
from cronpost.errors import ConfigError, DispatchError
from cronpost.posting import LogPoster, WebhookPoster, build_poster


def _mock_session(
    *, status: int = 200, body: str = "", error: Exception | None = None
) -> tuple[MagicMock, list[dict[str, Any]]]:
    """Build a mock aiohttp.ClientSession recording each ``post`` call."""
    calls: list[dict[str, Any]] = []
    resp = MagicMock()
    resp.status = status
    resp.text = AsyncMock(return_value=body)

    @asynccontextmanager
    async def mock_post(url: str, **kwargs: Any) -> AsyncGenerator[MagicMock, None]:
        calls.append({"url": url, **kwargs})
        if error:
            raise error
        yield resp

    session = MagicMock()
    session.post = mock_post

    @asynccontextmanager
    async def mock_session_cm(**_kwargs: object) -> AsyncGenerator[MagicMock, None]:
        yield session

    return mock_session_cm, calls


class TestLogPoster:
    async def test_records_payload(self) -> None:
        poster = LogPoster()
        await poster.post("alice", "hello")
        assert poster.sent == [("alice", "hello")]


class TestWebhookPoster:
    async def test_posts_json_with_token(self) -> None:
        mock, calls = _mock_session(status=204)
        with patch("cronpost.posting.posters.aiohttp.ClientSession", mock):
            await WebhookPoster("https://example.test/hook", token="s3cret").post("alice", "hi")

        assert calls == [
            {
                "url": "https://example.test/hook",
                "json": {"account": "alice", "text": "hi"},
                "headers": {"Authorization": "Bearer s3cret"},
            }
        ]

    async def test_no_token_no_auth_header(self) -> None:
        mock, calls = _mock_session()
        with patch("cronpost.posting.posters.aiohttp.ClientSession", mock):
            await WebhookPoster("https://example.test/hook").post("alice", "hi")
        assert calls[0]["headers"] == {}

    async def test_http_error_raises(self) -> None:
        mock, _ = _mock_session(status=500, body="boom")
        with (
            patch("cronpost.posting.posters.aiohttp.ClientSession", mock),
            pytest.raises(DispatchError, match="HTTP 500: boom"),
        ):
            await WebhookPoster("https://example.test/hook").post("alice", "hi")

    async def test_network_error_raises(self) -> None:
        mock, _ = _mock_session(error=aiohttp.ClientError("refused"))
        with (
            patch("cronpost.posting.posters.aiohttp.ClientSession", mock),
            pytest.raises(DispatchError, match="refused"),
        ):
            await WebhookPoster("https://example.test/hook").post("alice", "hi")


class TestBuildPoster:
    def test_default_is_log(self) -> None:
        assert isinstance(build_poster(PosterConfig()), LogPoster)

    def test_webhook(self) -> None:
        poster = build_poster(PosterConfig(kind="webhook", url="https://example.test/hook"))
        assert isinstance(poster, WebhookPoster)

    def test_webhook_requires_url(self) -> None:
        with pytest.raises(ConfigError, match="poster.url"):
            build_poster(PosterConfig(kind="webhook"))
