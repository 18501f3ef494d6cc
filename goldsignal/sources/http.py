"""Single-attempt async HTTP helpers shared by every provider adapter.

Each call opens its own ``httpx.AsyncClient`` and is bounded by the caller's
timeout.  There is no retry: a failed call is absorbed by the next adapter in
the chain or by the next scheduled cycle.
"""

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger("goldsignal.sources.http")

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
    ),
}


class FetchError(Exception):
    """A provider answered, but not with something usable."""


async def get(
    url: str,
    *,
    timeout: float,
    headers: Optional[dict] = None,
    params: Optional[dict] = None,
) -> httpx.Response:
    """GET *url* once.  Raises ``FetchError`` on a non-2xx status."""
    async with httpx.AsyncClient() as client:
        resp = await client.get(
            url,
            headers=headers,
            params=params,
            timeout=timeout,
        )
    if not resp.is_success:
        raise FetchError(f"HTTP {resp.status_code}")
    logger.debug("GET %s → %d", url, resp.status_code)
    return resp


async def get_json(
    url: str,
    *,
    timeout: float,
    headers: Optional[dict] = None,
    params: Optional[dict] = None,
) -> Any:
    """GET *url* and decode the JSON body."""
    resp = await get(url, timeout=timeout, headers=headers, params=params)
    try:
        return resp.json()
    except ValueError as exc:
        raise FetchError(f"invalid JSON from {url}: {exc}") from exc


async def get_text(
    url: str,
    *,
    timeout: float,
    headers: Optional[dict] = None,
    params: Optional[dict] = None,
) -> str:
    """GET *url* and return the decoded body text."""
    resp = await get(url, timeout=timeout, headers=headers, params=params)
    return resp.text
