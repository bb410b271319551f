"""Image downloading and Markdown link rewriting."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar
from urllib.parse import urlparse

import requests

from .config import ConvertConfig
from .models import ImageDownloadResult
from .sites import image_referer

logger = logging.getLogger("url2md")

T = TypeVar("T")

ALLOWED_IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg"}
CONTENT_TYPE_EXTENSIONS = (
    ("png", ".png"),
    ("gif", ".gif"),
    ("webp", ".webp"),
    ("svg", ".svg"),
)
DEFAULT_EXTENSION = ".jpg"


def guess_extension(url: str, content_type: Optional[str] = None) -> str:
    """Pick a file extension from the Content-Type, then the URL path."""
    if content_type:
        lowered = content_type.lower()
        for token, extension in CONTENT_TYPE_EXTENSIONS:
            if token in lowered:
                return extension
    path_ext = os.path.splitext(urlparse(url).path)[1].lower()
    if path_ext in ALLOWED_IMAGE_EXTENSIONS:
        return path_ext
    return DEFAULT_EXTENSION


async def run_pooled(tasks: Sequence[Callable[[], Awaitable[T]]], limit: int) -> List[T]:
    """Run task factories with at most ``limit`` in flight, keeping input order."""
    results: List[Optional[T]] = [None] * len(tasks)
    cursor = 0

    async def worker() -> None:
        nonlocal cursor
        while cursor < len(tasks):
            index = cursor
            cursor += 1
            results[index] = await tasks[index]()

    workers = max(1, min(limit, len(tasks)))
    await asyncio.gather(*(worker() for _ in range(workers)))
    return results  # type: ignore[return-value]


def rewrite_image_links(markdown: str, mapping: Dict[str, str]) -> str:
    """Swap remote image URLs with their local paths (literal replacement)."""
    updated = markdown
    # Longest first so a URL that prefixes another cannot clobber it.
    for remote in sorted(mapping, key=len, reverse=True):
        local = mapping[remote]
        updated = updated.replace(remote, local)
    return updated


def fetch_image(
    url: str,
    config: ConvertConfig,
    http: requests.Session,
) -> Optional[Tuple[bytes, str]]:
    """Download one image; ``None`` when the response is unusable."""
    headers = {
        "User-Agent": config.user_agent,
        "Referer": image_referer(url),
    }
    try:
        resp = http.get(
            url,
            headers=headers,
            allow_redirects=True,
            timeout=config.request_timeout,
        )
        resp.raise_for_status()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Failed to fetch image %s: %s", url, exc)
        return None

    data = resp.content
    if len(data) < config.min_image_bytes:
        logger.warning("Skipping %s: response too small (%d bytes)", url, len(data))
        return None
    return data, resp.headers.get("Content-Type", "")


async def download_images(
    markdown: str,
    image_urls: Sequence[str],
    slug: str,
    output_root: Path,
    config: ConvertConfig,
    http: Optional[requests.Session] = None,
) -> ImageDownloadResult:
    """Download images referenced by the article and point the Markdown at them."""
    if not image_urls:
        return ImageDownloadResult(markdown=markdown)

    urls = list(dict.fromkeys(image_urls))
    dir_name = f"{slug}-images"
    image_dir = Path(output_root) / dir_name
    image_dir.mkdir(parents=True, exist_ok=True)
    http = http or requests.Session()

    async def download(index: int, url: str) -> Optional[str]:
        fetched = await asyncio.to_thread(fetch_image, url, config, http)
        if fetched is None:
            return None
        data, content_type = fetched
        filename = f"{slug}-{index:02d}{guess_extension(url, content_type)}"
        destination = image_dir / filename
        try:
            destination.write_bytes(data)
        except OSError as exc:
            logger.warning("Failed to write image %s: %s", destination, exc)
            return None
        logger.debug("Saved %s -> %s", url, destination)
        return f"./{dir_name}/{filename}"

    tasks = [
        (lambda index=index, url=url: download(index, url))
        for index, url in enumerate(urls, start=1)
    ]
    local_paths = await run_pooled(tasks, config.max_concurrent_images)

    mapping = {url: local for url, local in zip(urls, local_paths) if local is not None}
    return ImageDownloadResult(
        markdown=rewrite_image_links(markdown, mapping),
        downloaded=len(mapping),
        failed=len(urls) - len(mapping),
    )
