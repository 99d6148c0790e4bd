"""Exceptions raised inside the pipeline components.

None of these escape the public entry points; each component catches them at
its boundary, logs, and degrades to an empty result.
"""


class OpenGraphParserError(Exception):
    """Base exception for all pipeline errors."""


class TransportError(OpenGraphParserError):
    """Raised when a download fails, times out, or returns a non-2xx status."""


class InvalidURLError(OpenGraphParserError):
    """Raised when a URL is not a public http(s) address."""


class ImageDecodeError(OpenGraphParserError):
    """Raised when downloaded bytes are not a decodable raster image."""


class UnsupportedFormatError(OpenGraphParserError):
    """Raised when an image decodes but is not GIF, JPEG or PNG."""


class StorageWriteError(OpenGraphParserError):
    """Raised when a thumbnail cannot be written to the upload directory."""


class OptimizationError(OpenGraphParserError):
    """Raised when the external image compression service fails."""
