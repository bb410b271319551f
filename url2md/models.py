"""Data models passed between the pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass
class FetchResult:
    """Raw HTML for a URL and whether the browser produced it."""

    html: str
    used_browser: bool


@dataclass
class SiteMeta:
    """Metadata scraped from platform-specific script variables."""

    title: str = ""
    author: str = ""
    publish_date: str = ""


@dataclass
class ParseResult:
    """Converted Markdown plus the images referenced by the content region."""

    markdown: str
    title: str
    images: List[str] = field(default_factory=list)
    author: str = ""
    publish_date: str = ""


@dataclass
class ImageDownloadResult:
    """Markdown with local image paths and download counters."""

    markdown: str
    downloaded: int = 0
    failed: int = 0


@dataclass
class ProcessResult:
    """Outcome of a successfully processed URL."""

    url: str
    output_path: Path
    title: str
    used_browser: bool
    images_found: int
    images_downloaded: int
    images_failed: int
    elapsed_seconds: float
