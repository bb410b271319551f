"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Dict, List, Optional, Union
from unittest.mock import AsyncMock, Mock

import pytest
import requests

from url2md.config import ConvertConfig

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 200


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(
        self,
        status_code: int = 200,
        text: str = "",
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.status_code = status_code
        self.text = text
        self.content = content if content is not None else text.encode("utf-8")
        self.headers = headers or {}

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeHttp:
    """Routes GET requests to canned responses or exceptions."""

    def __init__(self, routes: Optional[Dict[str, Union[FakeResponse, Exception]]] = None) -> None:
        self.routes = routes or {}
        self.calls: List[Dict] = []

    def get(self, url, headers=None, **kwargs):
        self.calls.append({"url": url, "headers": headers or {}, **kwargs})
        route = self.routes.get(url)
        if route is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(route, Exception):
            raise route
        return route


@pytest.fixture
def config(tmp_path: Path) -> ConvertConfig:
    return ConvertConfig(output_root=tmp_path / "out", chrome_path="/bin/chrome")


@pytest.fixture
def render_session() -> Mock:
    """Stub render session whose ``load`` returns canned browser HTML."""
    session = Mock()
    session.load = AsyncMock(return_value="<html><body>rendered</body></html>")
    session.shutdown = AsyncMock()
    return session


def html_response(body: bytes, content_type: str = "text/html") -> requests.Response:
    """A real ``requests.Response`` decoded the way the HTTP adapter would."""
    resp = requests.Response()
    resp.status_code = 200
    resp._content = body
    resp.headers["Content-Type"] = content_type
    resp.encoding = requests.utils.get_encoding_from_headers(resp.headers)
    return resp
