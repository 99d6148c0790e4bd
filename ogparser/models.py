"""Data models used throughout the metadata pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict

TagMap = Dict[str, str]

META_URL = "_og_url"
META_TITLE = "_og_title"
META_IMAGE = "_og_image"


@dataclass
class PostIdentity:
    """The parts of a host post the pipeline needs to know about."""

    id: int
    slug: str
    kind: str = "note"
    is_revision: bool = False
    is_autosave: bool = False


@dataclass
class ThumbnailArtifact:
    """Compressed preview image stored on disk.

    ``created`` is False when an earlier run already wrote the file, in which
    case ``data`` is empty.
    """

    path: Path
    url: str
    data: bytes = b""
    created: bool = True
