"""HTTP feed source.

Fetches the NUDLS feed once per call. Retrying is the caller's business;
the poller simply tries again on its next tick.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

import aiohttp

from dinopark._constants import USER_AGENT
from dinopark.config import DinoparkConfig
from dinopark.exceptions import FeedTransportError

_logger = logging.getLogger(__name__)


class FeedSource(Protocol):
    """Structural feed interface used by the poller.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpFeedSource`) concrete.
    """

    async def fetch(self) -> list[Any]:
        ...


class HttpFeedSource:
    """GET the feed URL and return its JSON array of raw events."""

    def __init__(self, config: DinoparkConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    async def fetch(self) -> list[Any]:
        url = self._config.feed_url
        headers = {"accept": "application/json", "user-agent": USER_AGENT}
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)

        _logger.debug("GET %s", url)

        try:
            async with self._http.get(url, headers=headers, timeout=timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise FeedTransportError(
                        f"HTTP {resp.status} from feed: {text[:200]}",
                        status_code=resp.status,
                        url=url,
                    )
        except FeedTransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise FeedTransportError(f"Feed request failed: {exc!r}", url=url) from exc

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise FeedTransportError(f"Invalid JSON from feed: {text[:200]}", url=url) from exc

        if not isinstance(body, list):
            raise FeedTransportError("Invalid feed response: expected a JSON array", url=url)

        _logger.debug("Fetched %d events from feed", len(body))
        return body
