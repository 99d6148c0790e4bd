"""Optional thumbnail compression through the Tinify web service."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from .exceptions import OptimizationError

logger = logging.getLogger("ogparser")

TINIFY_SHRINK_URL = "https://api.tinify.com/shrink"
TINIFY_TIMEOUT = 30.0


class TinifyOptimizer:
    """Upload image bytes to Tinify and download the compressed result."""

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        timeout: float = TINIFY_TIMEOUT,
    ) -> None:
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    def _output_url(self, resp: requests.Response) -> Optional[str]:
        location = resp.headers.get("Location")
        if location:
            return location
        try:
            return resp.json()["output"]["url"]
        except (ValueError, KeyError, TypeError):
            return None

    def compress(self, data: bytes) -> bytes:
        auth = ("api", self.api_key)
        try:
            resp = self.session.post(
                TINIFY_SHRINK_URL, data=data, auth=auth, timeout=self.timeout
            )
            resp.raise_for_status()
            output_url = self._output_url(resp)
            if not output_url:
                raise OptimizationError("Tinify response did not include an output URL")
            result = self.session.get(output_url, auth=auth, timeout=self.timeout)
            result.raise_for_status()
        except requests.RequestException as exc:
            raise OptimizationError(f"Tinify request failed: {exc}") from exc

        if not result.content:
            raise OptimizationError("Tinify returned an empty image")
        logger.debug("Tinify compressed %d bytes to %d", len(data), len(result.content))
        return result.content
