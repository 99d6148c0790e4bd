import os
import sys
from io import BytesIO
from typing import Any, Dict, List, Optional, Union

import pytest
import requests
from PIL import Image

# Add the parent directory to the path so we can import from ogparser
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ogparser.config import ParserConfig  # noqa: E402
from ogparser.storage import UploadStorage  # noqa: E402

UPLOAD_URL = "https://blog.example/uploads"


class FakeResponse:
    """Just enough of ``requests.Response`` for the pipeline."""

    def __init__(
        self,
        content: Union[bytes, str] = b"",
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        json_data: Any = None,
    ):
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.content = content
        self.status_code = status_code
        self.headers = headers or {}
        self._json = json_data

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


class FakeSession:
    """Routes GET/POST requests to canned responses and records every call."""

    def __init__(self, routes=None, post_routes=None):
        self.routes: Dict[str, Any] = dict(routes or {})
        self.post_routes: Dict[str, Any] = dict(post_routes or {})
        self.calls: List[Dict[str, Any]] = []

    def _respond(self, table, method, url, kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        result = table.get(url)
        if result is None:
            raise requests.ConnectionError(f"No route to {url}")
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, url, **kwargs):
        return self._respond(self.routes, "GET", url, kwargs)

    def post(self, url, **kwargs):
        return self._respond(self.post_routes, "POST", url, kwargs)

    def urls(self, method="GET"):
        return [call["url"] for call in self.calls if call["method"] == method]


def make_image(fmt: str = "PNG", size=(400, 300), mode: str = "RGB", color=(200, 30, 30)) -> bytes:
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, fmt)
    return buffer.getvalue()


@pytest.fixture
def config():
    return ParserConfig()


@pytest.fixture
def storage(tmp_path):
    return UploadStorage(tmp_path / "uploads", UPLOAD_URL)


@pytest.fixture
def png_bytes():
    return make_image("PNG")
