"""Site adapters for publishing platforms that need special handling."""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Any, Optional, Pattern, Sequence, Tuple

from .models import SiteMeta

logger = logging.getLogger("url2md")


def _first_match(html: str, patterns: Sequence[Pattern[str]]) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(html)
        if match:
            return match.group(1)
    return None


class SiteAdapter:
    """Default behaviour shared by every site; also serves as the generic adapter."""

    name = "generic"
    needs_browser = False
    content_selector: Optional[str] = None
    title_selector: Optional[str] = None
    noise_selectors: Tuple[str, ...] = ()

    def detect(self, url: str) -> bool:
        return False

    @property
    def needs_preparation(self) -> bool:
        return False

    async def prepare(self, page: Any) -> None:
        """Mutate the rendered page before its HTML is captured."""

    def extract_meta(self, html: str) -> SiteMeta:
        return SiteMeta()

    def image_referer(self, image_url: str) -> str:
        return ""


class GenericAdapter(SiteAdapter):
    """Fallback adapter with no special behaviour."""


class WeChatAdapter(SiteAdapter):
    """WeChat Official Account articles (mp.weixin.qq.com).

    Images are lazy-loaded through ``data-src`` and served from a CDN that
    requires a WeChat referer. Title, author and publish time are read from
    inline script variables.
    """

    name = "wechat"
    needs_browser = True
    content_selector = "#js_content"
    title_selector = "#activity-name"
    noise_selectors = (".qr_code_pc", ".reward_area")

    URL_PATTERN = re.compile(r"mp\.weixin\.qq\.com")
    IMAGE_HOST = "mmbiz.qpic.cn"
    REFERER = "https://mp.weixin.qq.com/"

    TITLE_PATTERNS = (
        re.compile(r"var\s+msg_title\s*=\s*\"([^\"]*)\""),
        re.compile(r"var\s+msg_title\s*=\s*'([^']*)'"),
    )
    AUTHOR_PATTERNS = (
        re.compile(r"var\s+nickname\s*=\s*\"([^\"]*)\""),
        re.compile(r"var\s+nickname\s*=\s*'([^']*)'"),
    )
    TIME_PATTERNS = (
        re.compile(r"var\s+ct\s*=\s*\"(\d+)\""),
        re.compile(r"var\s+create_time\s*=\s*\"(\d+)\""),
    )

    MATERIALIZE_LAZY_IMAGES = """
        () => {
            document.querySelectorAll("img[data-src]").forEach((img) => {
                const dataSrc = img.getAttribute("data-src");
                if (dataSrc) img.setAttribute("src", dataSrc);
            });
        }
    """

    def detect(self, url: str) -> bool:
        return bool(self.URL_PATTERN.search(url))

    @property
    def needs_preparation(self) -> bool:
        return True

    async def prepare(self, page: Any) -> None:
        await page.evaluate(self.MATERIALIZE_LAZY_IMAGES)

    def extract_meta(self, html: str) -> SiteMeta:
        title = _first_match(html, self.TITLE_PATTERNS) or ""
        author = _first_match(html, self.AUTHOR_PATTERNS) or ""
        timestamp = _first_match(html, self.TIME_PATTERNS)
        return SiteMeta(
            title=title.strip(),
            author=author.strip(),
            publish_date=_epoch_to_date(timestamp),
        )

    def image_referer(self, image_url: str) -> str:
        return self.REFERER if self.IMAGE_HOST in image_url else ""


def _epoch_to_date(timestamp: Optional[str]) -> str:
    if not timestamp:
        return ""
    seconds = int(timestamp)
    if not seconds:
        return ""
    try:
        moment = dt.datetime.fromtimestamp(seconds, tz=dt.timezone.utc)
    except (OverflowError, OSError, ValueError):
        logger.debug("Ignoring out-of-range publish timestamp %s", timestamp)
        return ""
    return moment.date().isoformat()


GENERIC_ADAPTER = GenericAdapter()
SITE_ADAPTERS: Tuple[SiteAdapter, ...] = (WeChatAdapter(),)


def select_adapter(url: str) -> SiteAdapter:
    """Return the first registered adapter that recognises the URL."""
    for adapter in SITE_ADAPTERS:
        if adapter.detect(url):
            return adapter
    return GENERIC_ADAPTER


def image_referer(image_url: str) -> str:
    """Referer header required by a platform's image CDN, or an empty string."""
    for adapter in SITE_ADAPTERS:
        referer = adapter.image_referer(image_url)
        if referer:
            return referer
    return ""
