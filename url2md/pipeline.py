"""High-level orchestration: fetch, convert, localize images and save Markdown."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

import requests

from .browser import RenderSession
from .config import ConvertConfig
from .content import extract_content
from .fetcher import fetch_page
from .images import download_images
from .models import ProcessResult
from .sites import select_adapter
from .utils import slugify

logger = logging.getLogger("url2md")


@dataclass
class RunSummary:
    """Per-run tally of processed URLs."""

    results: List[ProcessResult] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.failures)


async def process_url(
    url: str,
    session: RenderSession,
    config: ConvertConfig,
    http: Optional[requests.Session] = None,
) -> ProcessResult:
    """Convert a single URL into ``<output_root>/<slug>.md``."""
    start = time.perf_counter()
    adapter = select_adapter(url)

    logger.info("Fetching %s", url)
    fetched = await fetch_page(
        url,
        session,
        config,
        force_browser=config.force_browser,
        adapter=adapter,
        http=http,
    )
    logger.info(
        "Fetched (%s, %.0fKB)",
        "browser" if fetched.used_browser else "direct",
        len(fetched.html) / 1024,
    )

    parsed = extract_content(fetched.html, url, adapter)
    logger.info("Title: %s", parsed.title)
    logger.info("Found %d images", len(parsed.images))

    slug = slugify(parsed.title)
    output_root = Path(config.output_root)
    images = await download_images(
        parsed.markdown, parsed.images, slug, output_root, config, http=http
    )
    if parsed.images:
        logger.info(
            "Images: %d downloaded, %d failed", images.downloaded, images.failed
        )

    output_root.mkdir(parents=True, exist_ok=True)
    output_path = output_root / f"{slug}.md"
    output_path.write_text(images.markdown, encoding="utf-8")

    elapsed = time.perf_counter() - start
    logger.info("Saved Markdown to %s (%.1fs)", output_path, elapsed)
    return ProcessResult(
        url=url,
        output_path=output_path,
        title=parsed.title,
        used_browser=fetched.used_browser,
        images_found=len(parsed.images),
        images_downloaded=images.downloaded,
        images_failed=images.failed,
        elapsed_seconds=elapsed,
    )


async def run_pipeline(
    urls: Iterable[str],
    config: ConvertConfig,
    session: Optional[RenderSession] = None,
    http: Optional[requests.Session] = None,
) -> RunSummary:
    """Process URLs one at a time; a failing URL never aborts the batch."""
    summary = RunSummary()
    session = session or RenderSession(config)
    http = http or requests.Session()
    try:
        for url in urls:
            try:
                summary.results.append(await process_url(url, session, config, http))
            except Exception as exc:  # pylint: disable=broad-except
                logger.error("Failed to convert %s: %s", url, exc)
                logger.debug("Traceback for %s", url, exc_info=True)
                summary.failures.append(url)
    finally:
        await session.shutdown()
    return summary
