# restclient/core/mime.py
from __future__ import annotations

from typing import Callable, Optional

# MIME types whose bodies are text-like (mime-db "compressible": true).
# Anything not listed and not matched by the suffix/prefix rules below is
# treated as an opaque binary payload.
COMPRESSIBLE = frozenset({
    "application/json",
    "application/ld+json",
    "application/problem+json",
    "application/vnd.api+json",
    "application/hal+json",
    "application/geo+json",
    "application/manifest+json",
    "application/x-ndjson",
    "application/javascript",
    "application/ecmascript",
    "application/xml",
    "application/xhtml+xml",
    "application/atom+xml",
    "application/rss+xml",
    "application/soap+xml",
    "application/problem+xml",
    "application/graphql",
    "application/x-www-form-urlencoded",
    "application/x-javascript",
    "application/x-sh",
    "application/x-tex",
    "application/x-yaml",
    "application/yaml",
    "application/toml",
    "application/rtf",
    "application/postscript",
    "application/wasm",
    "application/vnd.ms-fontobject",
    "font/ttf",
    "font/otf",
    "image/svg+xml",
    "image/bmp",
    "image/x-icon",
    "image/vnd.microsoft.icon",
})

# Listed explicitly because the prefix rule would otherwise claim them.
NOT_COMPRESSIBLE = frozenset({
    "text/event-stream",
})

MimeClassifier = Callable[[Optional[str]], bool]


def content_type_of(header: Optional[str]) -> Optional[str]:
    """Strip parameters (``; charset=utf-8``) and normalise case."""
    if not header:
        return None
    return header.split(";", 1)[0].strip().lower() or None


def is_compressible(content_type: Optional[str]) -> bool:
    """
    True when a body of this type should be read as text.

    A missing content type counts as text: the decoder treats it as a JSON
    candidate.
    """
    if content_type is None:
        return True
    if content_type in NOT_COMPRESSIBLE:
        return False
    if content_type in COMPRESSIBLE:
        return True
    if content_type.startswith("text/"):
        return True
    return content_type.endswith(("+json", "+xml", "+text"))
