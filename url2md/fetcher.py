"""Fetch strategy: direct HTTP first, rendered browser as the fallback."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import requests

from .browser import RenderSession
from .config import ConvertConfig
from .models import FetchResult
from .sites import SiteAdapter, select_adapter

logger = logging.getLogger("url2md")


def direct_fetch(
    url: str,
    config: ConvertConfig,
    http: Optional[requests.Session] = None,
) -> Optional[str]:
    """Plain GET without JavaScript; ``None`` when the result is unusable."""
    http = http or requests.Session()
    try:
        resp = http.get(
            url,
            headers={"User-Agent": config.user_agent},
            allow_redirects=True,
            timeout=config.request_timeout,
        )
        resp.raise_for_status()
    except (requests.RequestException, ValueError) as exc:
        logger.debug("Direct fetch of %s failed: %s", url, exc)
        return None

    # requests falls back to ISO-8859-1 when the header names no charset.
    if "charset" not in resp.headers.get("Content-Type", "").lower():
        resp.encoding = "utf-8"
    html = resp.text
    # Short bodies are usually bot walls or JS-only shells.
    if len(html) < config.min_content_length:
        logger.debug(
            "Direct fetch of %s returned %d characters (< %d)",
            url,
            len(html),
            config.min_content_length,
        )
        return None
    return html


async def fetch_page(
    url: str,
    session: RenderSession,
    config: ConvertConfig,
    force_browser: bool = False,
    adapter: Optional[SiteAdapter] = None,
    http: Optional[requests.Session] = None,
) -> FetchResult:
    """Return the page HTML and whether the browser had to be used."""
    adapter = adapter or select_adapter(url)

    if adapter.needs_browser or force_browser:
        html = await session.load(url, adapter)
        return FetchResult(html=html, used_browser=True)

    html = await asyncio.to_thread(direct_fetch, url, config, http)
    if html is not None:
        return FetchResult(html=html, used_browser=False)

    logger.info("Direct fetch failed, falling back to browser...")
    html = await session.load(url, adapter)
    return FetchResult(html=html, used_browser=True)
