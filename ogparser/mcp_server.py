"""MCP server exposing the link preview tools."""

from __future__ import annotations

import logging
from typing import Dict

from mcp.server.fastmcp import FastMCP

from .config import ParserConfig
from .links import extract_first_href, make_clickable
from .metadata import MetadataFetcher

logger = logging.getLogger("ogparser.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="ogparser")


@mcp.tool()
def first_link(content: str) -> str:
    """Return the first valid http(s) link in a post's HTML, or an empty string."""
    return extract_first_href(make_clickable(content)) or ""


@mcp.tool()
def fetch_tags(url: str) -> Dict[str, str]:
    """Fetch a page and return its Open Graph / Twitter Card tags."""
    fetcher = MetadataFetcher(ParserConfig.from_env())
    tags = fetcher.fetch(url)
    if not tags:
        raise RuntimeError(f"No metadata found for {url}")
    return tags


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
