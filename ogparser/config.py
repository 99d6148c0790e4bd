"""Configuration objects and constants for the metadata pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:67.0) Gecko/20100101 Firefox/67.0"
)
DEFAULT_TIMEOUT = 11.0
DEFAULT_THUMBNAIL_SIZE = 200
DEFAULT_JPEG_QUALITY = 90
DEFAULT_THUMBNAIL_SUFFIX = "-min"
DEFAULT_SCHEDULE_JITTER = 300.0
DEFAULT_ELIGIBLE_KINDS = ("like", "note")

UserAgentFilter = Callable[[str, str], str]
CookiesFilter = Callable[[str], Dict[str, str]]


@dataclass
class ParserConfig:
    """Settings that control fetching, thumbnailing and scheduling."""

    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    thumbnail_size: int = DEFAULT_THUMBNAIL_SIZE
    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    thumbnail_suffix: str = DEFAULT_THUMBNAIL_SUFFIX
    schedule_jitter: float = DEFAULT_SCHEDULE_JITTER
    eligible_kinds: Tuple[str, ...] = DEFAULT_ELIGIBLE_KINDS
    linkify_plain_urls: bool = True
    resolve_hosts: bool = False
    tinify_api_key: Optional[str] = None
    user_agent_filter: Optional[UserAgentFilter] = field(default=None, repr=False)
    cookies_filter: Optional[CookiesFilter] = field(default=None, repr=False)

    @classmethod
    def from_env(cls, **overrides) -> "ParserConfig":
        """Build a config, picking up the Tinify credential from the environment."""
        overrides.setdefault("tinify_api_key", os.getenv("TINY_API_KEY") or None)
        return cls(**overrides)

    def user_agent_for(self, url: str) -> str:
        if self.user_agent_filter is None:
            return self.user_agent
        return self.user_agent_filter(self.user_agent, url)

    def cookies_for(self, url: str) -> Dict[str, str]:
        if self.cookies_filter is None:
            return {}
        return dict(self.cookies_filter(url) or {})
