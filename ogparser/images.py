"""Preview image downloading, validation and thumbnailing."""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Optional

import requests
from filetype import guess
from PIL import Image, ImageOps

from .config import ParserConfig
from .exceptions import (
    ImageDecodeError,
    OpenGraphParserError,
    OptimizationError,
    UnsupportedFormatError,
)
from .http import fetch
from .models import ThumbnailArtifact
from .optimizer import TinifyOptimizer
from .storage import UploadStorage
from .utils import slugify

logger = logging.getLogger("ogparser")

MAX_IMAGE_BYTES = 10 * 1024 * 1024
THUMBNAIL_EXTENSIONS = ("gif", "jpg", "png")
OPTIMIZABLE_EXTENSIONS = {"jpg", "png"}
FILE_MODE = 0o644

# Pillow reports some camera JPEGs as MPO.
PIL_FORMAT_EXTENSIONS = {"GIF": "gif", "JPEG": "jpg", "JPG": "jpg", "MPO": "jpg", "PNG": "png"}
SAVE_FORMATS = {"gif": "GIF", "jpg": "JPEG", "png": "PNG"}


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


def decode_image(data: bytes) -> Image.Image:
    """Open ``data`` as a raster image, raising ImageDecodeError if it is not one."""
    if len(data) > MAX_IMAGE_BYTES:
        raise ImageDecodeError(f"Image larger than {MAX_IMAGE_BYTES} bytes")
    if detect_image_format(data) is None:
        raise ImageDecodeError("Downloaded content is not an image")
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(f"Could not decode image: {exc}") from exc
    return image


def image_extension(image: Image.Image) -> str:
    """Map a decoded image's format onto one of gif, jpg or png."""
    extension = PIL_FORMAT_EXTENSIONS.get((image.format or "").upper())
    if extension is None:
        raise UnsupportedFormatError(f"Unsupported image format: {image.format}")
    return extension


def render_thumbnail(
    image: Image.Image,
    extension: str,
    size: int,
    quality: int,
) -> bytes:
    """Centre-crop ``image`` to a ``size`` square and encode it as ``extension``.

    Alpha is kept for GIF and PNG. Only the first frame of an animation is used,
    and ancillary data such as canvas offsets and EXIF is dropped.
    """
    image.seek(0)
    frame = image
    if extension == "jpg":
        frame = frame.convert("RGB")
    elif frame.mode == "P" or "transparency" in frame.info:
        frame = frame.convert("RGBA")
    elif frame.mode not in ("RGB", "RGBA", "L", "LA"):
        frame = frame.convert("RGBA")

    thumb = ImageOps.fit(frame, (size, size), method=Image.Resampling.LANCZOS)
    thumb.info = {}

    buffer = BytesIO()
    try:
        if extension == "jpg":
            thumb.save(buffer, SAVE_FORMATS[extension], quality=quality, optimize=True)
        elif extension == "png":
            thumb.save(buffer, SAVE_FORMATS[extension], optimize=True)
        else:
            thumb.save(buffer, SAVE_FORMATS[extension])
    except (OSError, ValueError) as exc:
        raise ImageDecodeError(f"Could not encode thumbnail: {exc}") from exc
    return buffer.getvalue()


class ThumbnailGenerator:
    """Turns a page's preview image into a small local thumbnail, once per post."""

    def __init__(
        self,
        config: ParserConfig,
        storage: UploadStorage,
        session: Optional[requests.Session] = None,
        optimizer: Optional[TinifyOptimizer] = None,
    ) -> None:
        self.config = config
        self.storage = storage
        self.session = session or requests.Session()
        if optimizer is None and config.tinify_api_key:
            optimizer = TinifyOptimizer(config.tinify_api_key, self.session)
        self.optimizer = optimizer

    def filename_for(self, slug: str, extension: str) -> str:
        return f"{slugify(slug)}{self.config.thumbnail_suffix}.{extension}"

    def generate(self, image_url: str, slug: str) -> Optional[str]:
        """Return the public URL of the post's thumbnail, creating it if needed."""
        existing = self.storage.find_existing(
            *(self.filename_for(slug, ext) for ext in THUMBNAIL_EXTENSIONS)
        )
        if existing is not None:
            logger.debug("Thumbnail %s already exists, skipping download", existing)
            return self.storage.url_for(existing)

        try:
            artifact = self.create_thumbnail(image_url, slug)
        except UnsupportedFormatError as exc:
            logger.info("Skipping %s: %s", image_url, exc)
            return None
        except OpenGraphParserError as exc:
            logger.warning("Thumbnail for %s failed: %s", image_url, exc)
            return None
        return artifact.url

    def create_thumbnail(self, image_url: str, slug: str) -> ThumbnailArtifact:
        """Download, decode, crop, compress and store the image.

        Raises an OpenGraphParserError subclass on any failure; nothing is
        written in that case.
        """
        resp = fetch(
            self.session,
            image_url,
            user_agent=self.config.user_agent_for(image_url),
            timeout=self.config.timeout,
        )

        with decode_image(resp.content) as image:
            extension = image_extension(image)
            name = self.filename_for(slug, extension)
            if self.storage.exists(name):
                path = self.storage.path_for(name)
                return ThumbnailArtifact(
                    path=path, url=self.storage.url_for(path), created=False
                )
            data = render_thumbnail(
                image,
                extension,
                size=self.config.thumbnail_size,
                quality=self.config.jpeg_quality,
            )

        if self.optimizer is not None and extension in OPTIMIZABLE_EXTENSIONS:
            try:
                data = self.optimizer.compress(data)
            except OptimizationError as exc:
                logger.warning("Keeping uncompressed thumbnail for %s: %s", image_url, exc)

        path = self.storage.write(name, data, mode=FILE_MODE)
        logger.info("Saved thumbnail to %s", path)
        return ThumbnailArtifact(path=path, url=self.storage.url_for(path), data=data)
