"""Fetch an import source over HTTP.

WHY: Auto-transcript XML and exported documents often live at a URL rather
than on disk. The CLI accepts either, so it needs a small async fetcher.

HOW: One httpx.AsyncClient request per call, following redirects, with the
configured timeout. Any transport failure or non-2xx status is reported as a
FormatError so the caller handles it like any other unreadable source.

RULES:
- Only http:// and https:// URLs are fetched
- The response body is decoded using the charset httpx detects
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from subtitle_editor.config import FETCH_TIMEOUT_S
from subtitle_editor.errors import FormatError

logger = logging.getLogger(__name__)


def is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


async def fetch_source(
    url: str,
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Download an import source and return its text.

    Args:
        url: http(s) URL of the source.
        timeout: Seconds before giving up; defaults to FETCH_TIMEOUT_S.
        transport: Optional httpx transport (tests pass a MockTransport).

    Raises:
        FormatError: If the URL is not http(s), the request fails, or the
            server answers with a non-2xx status.
    """
    if not is_remote(url):
        raise FormatError("Not an http(s) URL: {!r}".format(url))

    async with httpx.AsyncClient(
        timeout=timeout if timeout is not None else FETCH_TIMEOUT_S,
        follow_redirects=True,
        transport=transport,
    ) as client:
        try:
            response = await client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("Fetching %s failed: %s", url, exc)
            raise FormatError("Could not fetch {}: {}".format(url, exc))

    if not response.is_success:
        raise FormatError("Could not fetch {}: HTTP {}".format(url, response.status_code))

    logger.info("Fetched %d characters from %s", len(response.text), url)
    return response.text
