"""Outbound HTTP helpers shared by the page and image downloaders."""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional

import requests

from .exceptions import TransportError

logger = logging.getLogger("ogparser")

CHARSET_PATTERN = re.compile(r"charset\s*=\s*[\"']?([\w.:-]+)", re.IGNORECASE)


def fetch(
    session: requests.Session,
    url: str,
    user_agent: str,
    timeout: float,
    cookies: Optional[Dict[str, str]] = None,
) -> requests.Response:
    """GET ``url`` and return the response, raising TransportError on failure.

    Connection errors, timeouts, non-2xx statuses and empty bodies all count
    as transport failures.
    """
    try:
        resp = session.get(
            url,
            headers={"User-Agent": user_agent},
            cookies=cookies or None,
            timeout=timeout,
        )
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise TransportError(f"Failed to fetch {url}: {exc}") from exc

    if not resp.content:
        raise TransportError(f"Empty response body from {url}")
    logger.debug("Fetched %s (%d bytes)", url, len(resp.content))
    return resp


def declared_charset(resp: requests.Response) -> Optional[str]:
    """Return the charset named in the Content-Type header, if any."""
    content_type = resp.headers.get("Content-Type", "")
    match = CHARSET_PATTERN.search(content_type)
    if match:
        return match.group(1)
    return None
