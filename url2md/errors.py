"""Custom exceptions for url2md."""

from __future__ import annotations

from typing import Optional


class Url2MdError(Exception):
    """Base exception class for url2md."""


class FetchError(Url2MdError):
    """A page could not be obtained."""

    def __init__(self, url: str, message: str, cause: Optional[BaseException] = None) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to fetch {url}: {message}")


class NavigationError(FetchError):
    """The browser failed to load a page (timeout, network error, crash)."""
