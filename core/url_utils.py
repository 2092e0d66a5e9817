"""URL resolution helpers for script sources, resource hints and links."""
import logging
import re
from typing import Optional
from urllib.parse import urldefrag, urljoin, urlsplit, urlunsplit

from models.record import ScriptRef

logger = logging.getLogger(__name__)

# Whitespace or control characters make a src unparseable
_INVALID_CHARS = re.compile(r'[\s\x00-\x1f\x7f]')


class UrlResolutionError(ValueError):
    pass


def host_of(url: str) -> str:
    """Lower-cased hostname, with ``:port`` when the port is explicit."""
    parts = urlsplit(url)
    hostname = parts.hostname or ""
    port = parts.port  # raises ValueError on a bad port
    if hostname and port is not None:
        return f"{hostname}:{port}"
    return hostname


def absolutize(src: str, base: str) -> str:
    """Resolve ``src`` against ``base``; raises ``UrlResolutionError`` when malformed."""
    candidate = (src or "").strip()
    if not candidate or _INVALID_CHARS.search(candidate):
        raise UrlResolutionError(f"malformed URL: {src!r}")
    try:
        absolute = urljoin(base, candidate)
        host_of(absolute)
    except ValueError as e:
        raise UrlResolutionError(f"malformed URL: {src!r} ({e})") from e
    return absolute


def resolve_url(src: str, base: str) -> ScriptRef:
    """Resolve a raw attribute value to ``ScriptRef``; malformed values keep
    the original string with an empty host."""
    try:
        absolute = absolutize(src, base)
    except UrlResolutionError as e:
        logger.debug(f"Keeping unresolved URL: {e}")
        return ScriptRef(absolute_url=src, host="")
    return ScriptRef(absolute_url=absolute, host=host_of(absolute))


def normalize_link(href: str, base: str) -> Optional[str]:
    """Absolute http(s) URL without fragment, or None if the link is unusable."""
    try:
        absolute = absolutize(href, base)
    except UrlResolutionError:
        return None
    absolute, _ = urldefrag(absolute)
    parts = urlsplit(absolute)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return None
    return urlunsplit(parts._replace(path=parts.path or "/"))


def is_same_host(url: str, other: str) -> bool:
    try:
        return host_of(url) == host_of(other) != ""
    except ValueError:
        return False
