"""Locate the first hyperlink in rendered post content."""

from __future__ import annotations

import re
from typing import Optional

from bs4 import BeautifulSoup, Comment, NavigableString

from .utils import is_valid_url

PLAIN_URL_PATTERN = re.compile(r"https?://[^\s<>\"']+", re.IGNORECASE)
TRAILING_PUNCTUATION = ".,;:!?)]}'\""
SKIP_PARENTS = {"a", "code", "pre", "script", "style", "textarea"}


def _trim_url(url: str) -> str:
    """Drop sentence punctuation that regex matching swallows at the end."""
    while url and url[-1] in TRAILING_PUNCTUATION:
        if url[-1] == ")" and url.count("(") >= url.count(")"):
            break
        url = url[:-1]
    return url


def make_clickable(content: str) -> str:
    """Wrap bare http(s) URLs found in text nodes in anchor elements."""
    if not content or "http" not in content.lower():
        return content
    soup = BeautifulSoup(content, "html.parser")

    for text_node in list(soup.find_all(string=PLAIN_URL_PATTERN)):
        if isinstance(text_node, Comment) or any(
            parent.name in SKIP_PARENTS for parent in text_node.parents
        ):
            continue
        text = str(text_node)
        pieces = []
        cursor = 0
        for match in PLAIN_URL_PATTERN.finditer(text):
            url = _trim_url(match.group(0))
            if not url:
                continue
            start = match.start()
            if start > cursor:
                pieces.append(NavigableString(text[cursor:start]))
            anchor = soup.new_tag("a", href=url)
            anchor.string = url
            pieces.append(anchor)
            cursor = start + len(url)
        if not pieces:
            continue
        if cursor < len(text):
            pieces.append(NavigableString(text[cursor:]))
        for piece in reversed(pieces):
            text_node.insert_after(piece)
        text_node.extract()
    return str(soup)


def extract_first_href(content: str, resolve_hosts: bool = False) -> Optional[str]:
    """Return the first anchor's href if it is a valid public http(s) URL.

    Only the first anchor in document order is considered; a bad first link
    means no link at all.
    """
    if not content:
        return None
    soup = BeautifulSoup(content, "html.parser")
    anchor = soup.find("a")
    if anchor is None:
        return None
    href = anchor.get("href")
    if not href:
        return None
    href = href.strip()
    if is_valid_url(href, resolve_hosts=resolve_hosts):
        return href
    return None
