"""High-level orchestration: from a published post to stored preview metadata."""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

import requests

from .config import ParserConfig
from .images import ThumbnailGenerator
from .links import extract_first_href, make_clickable
from .metadata import MetadataFetcher
from .models import META_IMAGE, META_TITLE, META_URL, PostIdentity, TagMap
from .utils import is_valid_url

logger = logging.getLogger("ogparser")

AfterParseListener = Callable[[int, str, TagMap], None]


class PostStore(Protocol):
    """Access to the host's posts and their metadata."""

    def get_post_identity(self, post_id: int) -> Optional[PostIdentity]: ...

    def get_rendered_content(self, post_id: int) -> str: ...

    def get_meta(self, post_id: int, key: str) -> Optional[str]: ...

    def set_meta(self, post_id: int, key: str, value: str) -> None: ...


class Scheduler(Protocol):
    """Runs a callback at some later point."""

    def schedule(self, delay: float, callback: Callable[..., Any], *args: Any) -> None: ...


@dataclass
class StoredPost:
    """A post held by MemoryPostStore."""

    identity: PostIdentity
    content: str
    meta: Dict[str, str] = field(default_factory=dict)


class MemoryPostStore:
    """In-process PostStore used by the CLI and tests."""

    def __init__(self, posts: Iterable[StoredPost] = ()) -> None:
        self.posts: Dict[int, StoredPost] = {}
        for post in posts:
            self.add(post)

    def add(self, post: StoredPost) -> None:
        self.posts[post.identity.id] = post

    def get_post_identity(self, post_id: int) -> Optional[PostIdentity]:
        post = self.posts.get(post_id)
        return post.identity if post else None

    def get_rendered_content(self, post_id: int) -> str:
        post = self.posts.get(post_id)
        return post.content if post else ""

    def get_meta(self, post_id: int, key: str) -> Optional[str]:
        post = self.posts.get(post_id)
        return post.meta.get(key) if post else None

    def set_meta(self, post_id: int, key: str, value: str) -> None:
        self.posts[post_id].meta[key] = value


class ImmediateScheduler:
    """Runs callbacks inline, ignoring the delay."""

    def schedule(self, delay: float, callback: Callable[..., Any], *args: Any) -> None:
        callback(*args)


class TimerScheduler:
    """Runs callbacks on daemon ``threading.Timer`` threads."""

    def __init__(self) -> None:
        self.timers: List[threading.Timer] = []

    def schedule(self, delay: float, callback: Callable[..., Any], *args: Any) -> None:
        timer = threading.Timer(delay, callback, args=args)
        timer.daemon = True
        timer.start()
        self.timers = [t for t in self.timers if t.is_alive()] + [timer]

    def cancel_all(self) -> None:
        for timer in self.timers:
            timer.cancel()
        self.timers = []


class OpenGraphParser:
    """Finds a post's first link and stores the linked page's title and thumbnail.

    ``thumbnails`` may be None, in which case preview images are ignored.
    ``after_parse`` listeners receive ``(post_id, url, tags)`` once a title
    has been stored, so callers can persist further tags.
    """

    def __init__(
        self,
        store: PostStore,
        config: Optional[ParserConfig] = None,
        session: Optional[requests.Session] = None,
        thumbnails: Optional[ThumbnailGenerator] = None,
        scheduler: Optional[Scheduler] = None,
        after_parse: Iterable[AfterParseListener] = (),
        rng: Optional[random.Random] = None,
    ) -> None:
        self.store = store
        self.config = config or ParserConfig()
        self.session = session or requests.Session()
        self.fetcher = MetadataFetcher(self.config, self.session)
        self.thumbnails = thumbnails
        self.scheduler = scheduler or TimerScheduler()
        self.after_parse: List[AfterParseListener] = list(after_parse)
        self.rng = rng or random.Random()

    def is_eligible(self, identity: Optional[PostIdentity]) -> bool:
        if identity is None:
            return False
        if identity.is_revision or identity.is_autosave:
            return False
        return identity.kind in self.config.eligible_kinds

    def on_trigger(self, post_id: int) -> None:
        """Defer parsing of a freshly published post by a random delay."""
        identity = self.store.get_post_identity(post_id)
        if not self.is_eligible(identity):
            logger.debug("Post %s is not eligible for link previews", post_id)
            return
        delay = self.rng.uniform(0, self.config.schedule_jitter)
        logger.debug("Scheduling post %s in %.0fs", post_id, delay)
        self.scheduler.schedule(delay, self.on_deferred, post_id)

    def on_deferred(self, post_id: int) -> None:
        self.parse_post(post_id)

    def extract_link(self, content: str) -> Optional[str]:
        if self.config.linkify_plain_urls:
            content = make_clickable(content)
        return extract_first_href(content, resolve_hosts=self.config.resolve_hosts)

    def parse_post(self, post_id: int) -> Optional[TagMap]:
        """Run the pipeline for one post and return the tags that were used.

        Returns None when nothing was stored: no post, no valid link, the
        link was already processed, or the page had no title.
        """
        identity = self.store.get_post_identity(post_id)
        if identity is None:
            return None

        url = self.extract_link(self.store.get_rendered_content(post_id))
        if not url:
            logger.debug("No valid link in post %s", post_id)
            return None
        if self.store.get_meta(post_id, META_URL) == url:
            logger.debug("Post %s already parsed for %s", post_id, url)
            return None

        tags = self.fetcher.fetch(url)
        if not tags.get("title"):
            logger.info("No title found for %s", url)
            return None

        self.store.set_meta(post_id, META_URL, url)
        self.store.set_meta(post_id, META_TITLE, tags["title"])
        logger.info("Stored preview title for post %s: %s", post_id, tags["title"])

        image_url = tags.get("image")
        if self.thumbnails is not None and is_valid_url(
            image_url, resolve_hosts=self.config.resolve_hosts
        ):
            thumbnail_url = self.thumbnails.generate(image_url, identity.slug)
            if thumbnail_url:
                self.store.set_meta(post_id, META_IMAGE, thumbnail_url)

        self._notify(post_id, url, tags)
        return tags

    def _notify(self, post_id: int, url: str, tags: TagMap) -> None:
        for listener in self.after_parse:
            try:
                listener(post_id, url, dict(tags))
            except Exception:  # pylint: disable=broad-except
                logger.exception("after_parse listener %r failed", listener)
