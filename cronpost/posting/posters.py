"""Posting collaborators: one attempt per call, failures raised to the caller."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import aiohttp

from cronpost.errors import ConfigError, DispatchError

if TYPE_CHECKING:
    from cronpost.config import PosterConfig

logger = logging.getLogger(__name__)


class Poster(Protocol):
    """Accepts free-form text for an account. Raises on delivery failure."""

    async def post(self, account: str, text: str) -> None: ...


class LogPoster:
    """Writes payloads to the log and keeps them in ``sent``."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def post(self, account: str, text: str) -> None:
        self.sent.append((account, text))
        logger.info("Posted for %s: %s", account, text)


class WebhookPoster:
    """POSTs ``{"account": ..., "text": ...}`` as JSON to a fixed URL."""

    def __init__(self, url: str, *, token: str = "", timeout: float = 10.0) -> None:
        self._url = url
        self._token = token
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def post(self, account: str, text: str) -> None:
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        payload = {"account": account, "text": text}
        try:
            async with (
                aiohttp.ClientSession(timeout=self._timeout) as session,
                session.post(self._url, json=payload, headers=headers) as resp,
            ):
                if resp.status >= 300:
                    body = await resp.text()
                    msg = f"Webhook returned HTTP {resp.status}: {body[:200]}"
                    raise DispatchError(msg)
        except (aiohttp.ClientError, TimeoutError) as exc:
            msg = f"Webhook request to {self._url} failed: {exc}"
            raise DispatchError(msg) from exc


def build_poster(config: PosterConfig) -> Poster:
    """Create the poster described by *config*."""
    if config.kind == "webhook":
        if not config.url:
            msg = "poster.url is required for the webhook poster"
            raise ConfigError(msg)
        return WebhookPoster(config.url, token=config.token, timeout=config.timeout_seconds)
    return LogPoster()
