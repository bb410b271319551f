"""Configuration objects and constants for the converter."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

CHROME_PATHS = {
    "darwin": "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "win32": "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
    "linux": "/usr/bin/google-chrome",
}
CHROME_PATH_ENV = "CHROME_PATH"

DEFAULT_OUTPUT_DIR = "output"
MIN_CONTENT_LENGTH = 500
MIN_IMAGE_BYTES = 100
MAX_CONCURRENT_IMAGES = 5
NAVIGATION_TIMEOUT = 30.0
SETTLE_DELAY = 1.0
REQUEST_TIMEOUT = 30.0


def default_chrome_path() -> str:
    """Return the browser executable, honouring the ``CHROME_PATH`` override."""
    override = os.getenv(CHROME_PATH_ENV)
    if override:
        return override
    return CHROME_PATHS.get(sys.platform, "google-chrome")


@dataclass
class ConvertConfig:
    """Top-level settings that control fetching, rendering and image download."""

    output_root: Path
    force_browser: bool = False
    navigation_timeout: float = NAVIGATION_TIMEOUT
    settle_delay: float = SETTLE_DELAY
    request_timeout: float = REQUEST_TIMEOUT
    min_content_length: int = MIN_CONTENT_LENGTH
    min_image_bytes: int = MIN_IMAGE_BYTES
    max_concurrent_images: int = MAX_CONCURRENT_IMAGES
    user_agent: str = USER_AGENT
    chrome_path: str = field(default_factory=default_chrome_path)
    headless: bool = False
