"""
Content type resolution and optional gzip encoding of payloads.
"""
import gzip
import mimetypes
import zlib
from dataclasses import dataclass
from typing import Optional

from .errors import EncodingError

# Built-in table only; the host's mime.types files are not consulted.
_MIME_TYPES = mimetypes.MimeTypes()

# Web types missing from the built-in table, or resolved differently by
# older interpreters.
WEB_TYPES = {
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".map": "application/json",
    ".yaml": "text/yaml",
    ".yml": "text/yaml",
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".webmanifest": "application/manifest+json",
    ".wasm": "application/wasm",
    ".avif": "image/avif",
    ".webp": "image/webp",
}
for _extension, _type in WEB_TYPES.items():
    _MIME_TYPES.add_type(_type, _extension)

# Already compressed media and fonts, gzip would only cost CPU.
PLAIN_EXTENSIONS = frozenset({
    ".png", ".jpg", ".jpeg", ".gif", ".ico", ".webp", ".avif",
    ".mp3", ".mp4", ".m4a", ".ogg", ".webm", ".mov",
    ".woff", ".woff2",
})

CHARSET_TYPES = frozenset({
    "application/javascript",
    "application/json",
    "application/xml",
})

GZIP_ENCODING = "gzip"


@dataclass(frozen=True)
class ContentClass:
    """Resolved content type of a file extension."""
    content_type: str
    compressible: bool


def _lookup(extension: str) -> Optional[str]:
    loose, strict = _MIME_TYPES.types_map
    return strict.get(extension) or loose.get(extension)


def classify(extension: str) -> Optional[ContentClass]:
    """Map a file extension to its content type.

    Args:
        extension: Extension including the leading dot, e.g. ``.html``

    Returns:
        ContentClass, or None when the extension has no known type
    """
    extension = extension.lower()
    if not extension:
        return None

    mime_type = _lookup(extension)
    if mime_type is None:
        return None

    if mime_type.startswith("text/") or mime_type in CHARSET_TYPES:
        mime_type = f"{mime_type}; charset=utf-8"

    return ContentClass(
        content_type=mime_type,
        compressible=extension not in PLAIN_EXTENSIONS,
    )


def encode(payload: bytes, should_compress: bool) -> bytes:
    """Gzip a payload when requested.

    Args:
        payload: Raw file contents
        should_compress: Whether to compress

    Returns:
        The payload itself, or its gzip encoding

    Raises:
        EncodingError: If compression fails
    """
    if not should_compress:
        return payload

    try:
        # mtime=0 keeps the output identical for identical input
        return gzip.compress(payload, mtime=0)
    except (zlib.error, TypeError) as e:
        raise EncodingError(str(e)) from e
