"""Utilities: logging, URL parsing, validation helpers.

parse_rtsp_url returns a 5-tuple:
    (host, username_or_None, password_or_None, port, path)
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Tuple
from urllib.parse import urlparse

from .exceptions import RTSPValidationError

logger = logging.getLogger("rtspnego")
logger.addHandler(logging.NullHandler())

_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

def validate_token(name: str, value: str) -> None:
    """Validate small token-like strings (header names or methods)."""
    if not isinstance(value, str):
        raise RTSPValidationError(f"{name} must be str")
    if not _TOKEN_RE.match(value):
        raise RTSPValidationError(f"Invalid {name}: {value!r}")

def parse_rtsp_url(url: str) -> Tuple[str, Optional[str], Optional[str], int, str]:
    """Parse RTSP/RTSPS URL.

    Returns:
        (host, username, password, port, path)
    Raises:
        RTSPValidationError on a non-RTSP scheme or a missing host.
    """
    if not isinstance(url, str):
        raise RTSPValidationError("url must be a string")
    parsed = urlparse(url)
    scheme = (parsed.scheme or "").lower()
    if scheme not in ("rtsp", "rtsps"):
        raise RTSPValidationError(f"Invalid RTSP scheme: {parsed.scheme!r}")

    # parsed.hostname strips port & IPv6 brackets
    host = parsed.hostname
    if not host:
        raise RTSPValidationError(f"Missing host in URL: {url!r}")

    default_port = 322 if scheme == "rtsps" else 554
    try:
        port = parsed.port or default_port
    except ValueError as exc:
        raise RTSPValidationError(f"Invalid port in URL: {url!r}") from exc

    path = parsed.path or "/"

    return host, parsed.username, parsed.password, int(port), path

def strip_last_segment(url: str) -> str:
    """Drop the final path segment: ``rtsp://h/a/b.sdp`` -> ``rtsp://h/a``.

    A URL without a path is returned unchanged.
    """
    if not urlparse(url).path:
        return url
    return url[:url.rfind("/")]

def truncate(text: str, limit: int = 2000) -> str:
    return text if len(text) < limit else text[:limit] + '...(truncated)'
