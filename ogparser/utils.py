"""Utility helpers for URL validation, text cleanup and path handling."""

from __future__ import annotations

import html
import ipaddress
import re
import socket
from typing import Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
WHITESPACE_PATTERN = re.compile(r"[\s\x00-\x1f\x7f]+")
FORBIDDEN_HOST_CHARS = set(":#?[]@/\\ ")
ALLOWED_SCHEMES = {"http", "https"}
ALLOWED_PORTS = {80, 443, 8080}


def slugify(value: str, fallback: str = "post") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def _is_public_address(value: str) -> Optional[bool]:
    """Return whether ``value`` is a global IP, or None if it is not an IP at all."""
    try:
        address = ipaddress.ip_address(value)
    except ValueError:
        return None
    return address.is_global and not address.is_multicast


def is_valid_url(url: Optional[str], resolve_hosts: bool = False) -> bool:
    """Check that ``url`` is an absolute http(s) URL pointing at a public host.

    Credentials in the authority, odd ports, non-global IP literals and
    single-label hosts such as ``localhost`` are rejected. With
    ``resolve_hosts`` the hostname is looked up and the resolved address must
    be public too.
    """
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
        port = parsed.port
    except ValueError:
        return False

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        return False
    if parsed.username is not None or parsed.password is not None:
        return False
    host = parsed.hostname
    if not host or FORBIDDEN_HOST_CHARS.intersection(host):
        return False
    if port is not None and port not in ALLOWED_PORTS:
        return False

    public = _is_public_address(host)
    if public is not None:
        return public

    labels = host.rstrip(".").split(".")
    if len(labels) < 2 or not all(labels) or labels[-1] == "localhost":
        return False

    if resolve_hosts:
        try:
            resolved = socket.gethostbyname(host)
        except (OSError, UnicodeError):
            return False
        return bool(_is_public_address(resolved))
    return True


def sanitize_text(value: str) -> str:
    """Strip markup and collapse control characters and whitespace runs."""
    if "<" in value:
        value = BeautifulSoup(value, "html.parser").get_text()
    return WHITESPACE_PATTERN.sub(" ", value).strip()


def clean_text(value: str) -> str:
    """Sanitize ``value`` and decode any HTML entities left in it."""
    return html.unescape(sanitize_text(value))
