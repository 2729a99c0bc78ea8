"""URL helpers for link discovery and media naming."""
from __future__ import annotations

import logging
import posixpath
import re
from typing import Optional
from urllib.parse import urlparse

LOGGER = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".jpg"

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")
_PARENT_PREFIX_RE = re.compile(r"^(?:\.\./)+")


def resolve_url(path: Optional[str], base_url: str) -> Optional[str]:
    """Turn an href into an absolute URL against base_url.

    Returns None for an empty path.

    >>> resolve_url("/a/b", "http://x.com")
    'http://x.com/a/b'
    >>> resolve_url("../c", "http://x.com")
    'http://x.com/c'
    """
    if not path:
        return None
    path = path.strip()
    if not path:
        return None

    if _SCHEME_RE.match(path):
        return path

    base = (base_url or "").rstrip("/")
    if path.startswith("/"):
        return f"{base}{path}"
    if path.startswith("../"):
        return f"{base}/{_PARENT_PREFIX_RE.sub('', path)}"
    return f"{base}/{path}"


def file_extension(url: str) -> str:
    """Lower-cased extension of the URL path, '.jpg' when there is none."""
    try:
        path = urlparse(url).path
    except ValueError as exc:
        LOGGER.error("Cannot parse extension from %s: %s", url, exc)
        return DEFAULT_EXTENSION
    ext = posixpath.splitext(path)[1]
    return ext.lower() if ext else DEFAULT_EXTENSION
