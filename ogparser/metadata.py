"""Open Graph and Twitter Card parsing for linked pages."""

from __future__ import annotations

import logging
from typing import Optional, Union

import requests
from bs4 import BeautifulSoup

from .config import ParserConfig
from .exceptions import TransportError
from .http import declared_charset, fetch
from .models import TagMap
from .utils import clean_text

logger = logging.getLogger("ogparser")

OPEN_GRAPH_PREFIX = "og:"
TWITTER_PREFIX = "twitter:"


def normalize_property(name: str) -> str:
    """Map ``og:title``/``twitter:title`` style names onto bare keys."""
    if name.startswith(OPEN_GRAPH_PREFIX):
        return name[len(OPEN_GRAPH_PREFIX):]
    if name.startswith(TWITTER_PREFIX):
        name = name[len(TWITTER_PREFIX):]
        if name == "image:src":
            return "image"
    return name


def parse_tags(markup: Union[str, bytes], encoding: Optional[str] = None) -> TagMap:
    """Collect meta tags into a TagMap, falling back to ``<title>`` for the title.

    Later tags overwrite earlier ones with the same normalized key, whether
    they come from the Open Graph or the Twitter namespace.
    """
    if isinstance(markup, bytes):
        soup = BeautifulSoup(markup, "html.parser", from_encoding=encoding)
    else:
        soup = BeautifulSoup(markup, "html.parser")
    tags: TagMap = {}

    for node in soup.find_all("meta"):
        name = node.get("property")
        if name is None:
            name = node.get("name")
        content = node.get("content")
        if not name or content is None:
            continue
        tags[normalize_property(name)] = clean_text(content)

    if not tags.get("title"):
        title_node = soup.find("title")
        if title_node is not None:
            tags["title"] = clean_text(title_node.get_text())
    return tags


class MetadataFetcher:
    """Downloads a page and extracts its preview metadata."""

    def __init__(
        self,
        config: ParserConfig,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()

    def fetch(self, url: str) -> TagMap:
        """Return the page's TagMap, or an empty map if anything goes wrong."""
        try:
            resp = fetch(
                self.session,
                url,
                user_agent=self.config.user_agent_for(url),
                timeout=self.config.timeout,
                cookies=self.config.cookies_for(url),
            )
        except TransportError as exc:
            logger.warning("%s", exc)
            return {}

        try:
            tags = parse_tags(resp.content, encoding=declared_charset(resp))
        except Exception:  # pylint: disable=broad-except
            logger.exception("Unexpected error parsing %s", url)
            return {}
        logger.debug("Parsed %d tags from %s", len(tags), url)
        return tags
