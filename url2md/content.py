"""HTML extraction: noise removal, content region lookup and image discovery."""

from __future__ import annotations

import re
from typing import List, Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from .markdown import html_to_markdown
from .models import ParseResult
from .sites import SiteAdapter, select_adapter

NOISE_SELECTORS = (
    "script",
    "style",
    "noscript",
    "iframe",
    "nav",
    "footer",
    "header",
    ".ad",
    ".ads",
    ".advertisement",
    ".social-share",
    ".comment",
    ".comments",
    "#comments",
    ".sidebar",
    ".related",
    ".recommend",
)
PRIMARY_CONTENT_SELECTORS = ("article", "main", "body")
LAZY_SRC_ATTRIBUTE = "data-src"
UNTITLED = "Untitled"

_LEADING_H1 = re.compile(r"^#\s+(.+)")


def _clean_content(scope: Tag, extra_selectors: Sequence[str] = ()) -> None:
    """Remove chrome, ads and scripts from a document or content region."""
    selector = ", ".join((*NOISE_SELECTORS, *extra_selectors))
    for tag in scope.select(selector):
        if not tag.decomposed:
            tag.decompose()


def _text_of(tag: Optional[Tag]) -> str:
    return tag.get_text().strip() if tag is not None else ""


def _is_tracking_pixel(img: Tag) -> bool:
    return img.get("width") == "1" or img.get("height") == "1"


def extract_images(region: Tag, base_url: str) -> List[str]:
    """Collect absolute image URLs from a region in first-seen order.

    Each kept ``<img>`` has its ``src`` pointed at the resolved URL so that the
    converted Markdown references exactly the URLs returned here.
    """
    urls: List[str] = []
    seen = set()
    for img in region.find_all("img"):
        raw = (img.get(LAZY_SRC_ATTRIBUTE) or img.get("src") or "").strip()
        if not raw or raw.startswith("data:"):
            continue
        if _is_tracking_pixel(img):
            continue
        try:
            absolute = urljoin(base_url, raw)
        except ValueError:
            continue
        img["src"] = absolute
        if absolute not in seen:
            seen.add(absolute)
            urls.append(absolute)
    return urls


def _primary_region(soup: BeautifulSoup) -> Tag:
    for selector in PRIMARY_CONTENT_SELECTORS:
        candidate = soup.select_one(selector)
        if candidate is not None and (candidate.get_text(strip=True) or candidate.find("img")):
            return candidate
    return soup


def _byline(author: str, publish_date: str) -> str:
    if publish_date:
        return f"> {author} | {publish_date}"
    if author:
        return f"> {author}"
    return ""


def _extract_site(html: str, url: str, soup: BeautifulSoup, adapter: SiteAdapter) -> ParseResult:
    meta = adapter.extract_meta(html)
    title = (
        meta.title
        or (_text_of(soup.select_one(adapter.title_selector)) if adapter.title_selector else "")
        or _text_of(soup.title)
    )

    region = soup.select_one(adapter.content_selector)
    if region is None:
        images: List[str] = []
        body = ""
    else:
        _clean_content(region, adapter.noise_selectors)
        images = extract_images(region, url)
        body = html_to_markdown(region.decode_contents())

    header = [f"# {title}"]
    byline = _byline(meta.author, meta.publish_date)
    if byline:
        header.append(byline)
    markdown = "\n\n".join([*header, body]) if body else "\n\n".join(header)

    return ParseResult(
        markdown=markdown,
        title=title,
        images=images,
        author=meta.author,
        publish_date=meta.publish_date,
    )


def _extract_generic(url: str, soup: BeautifulSoup, adapter: SiteAdapter) -> ParseResult:
    title = _text_of(soup.title) or _text_of(soup.find("h1")) or UNTITLED

    _clean_content(soup, adapter.noise_selectors)
    region = _primary_region(soup)
    images = extract_images(region, url)
    body = html_to_markdown(region.decode_contents())

    leading = _LEADING_H1.match(body)
    if leading and leading.group(1).strip() == title:
        markdown = body
    elif body:
        markdown = f"# {title}\n\n{body}"
    else:
        markdown = f"# {title}"

    return ParseResult(markdown=markdown, title=title, images=images)


def extract_content(html: str, url: str, adapter: Optional[SiteAdapter] = None) -> ParseResult:
    """Extract title, Markdown body and image URLs from fetched HTML."""
    adapter = adapter or select_adapter(url)
    soup = BeautifulSoup(html, "html.parser")
    if adapter.content_selector:
        return _extract_site(html, url, soup, adapter)
    return _extract_generic(url, soup, adapter)
