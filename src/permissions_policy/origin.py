"""
Origin canonicalization.

Every origin comparison in the library happens on the serialized
``scheme://host[:port]`` form produced here. Default ports are dropped,
scheme and host are lowercased and non-ASCII hosts are IDNA-encoded, so
``https://WWW.Example.com:443/path`` and ``https://www.example.com`` compare
equal.
"""

import logging
import re
from urllib.parse import urlsplit

from permissions_policy.errors import InvalidURLError

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {
    "http": 80,
    "https": 443,
    "ws": 80,
    "wss": 443,
    "ftp": 21,
}

# Forbidden host code points (WHATWG URL), brackets handled separately for IPv6
_FORBIDDEN_HOST_CHARS = re.compile(r"[\x00-\x20#%/:<>?@\[\\\]^|\x7f]")


def canonicalize_origin(url: str) -> str:
    """
    Serialize the origin of a URL.

    Args:
        url: An absolute URL (path, query and fragment are ignored)

    Returns:
        The origin as ``scheme://host`` or ``scheme://host:port``

    Raises:
        InvalidURLError: If the value has no scheme or host, or an invalid port
    """
    if not isinstance(url, str):
        raise InvalidURLError(url=repr(url), reason="not a string")

    value = url.strip()
    if not value:
        raise InvalidURLError(url=url, reason="empty")

    try:
        parts = urlsplit(value)
        port = parts.port
    except ValueError as e:
        raise InvalidURLError(url=url, reason=str(e)) from e

    scheme = parts.scheme.lower()
    if not scheme:
        raise InvalidURLError(url=url, reason="missing scheme")

    host = parts.hostname
    if not host:
        raise InvalidURLError(url=url, reason="missing host")

    if ":" in host:
        # IPv6 literal, urlsplit already validated the brackets
        host = f"[{host}]"
    else:
        if _FORBIDDEN_HOST_CHARS.search(host):
            raise InvalidURLError(url=url, reason="forbidden character in host")
        if not host.isascii():
            try:
                host = host.encode("idna").decode("ascii")
            except UnicodeError as e:
                raise InvalidURLError(url=url, reason=f"invalid host: {e}") from e

    if port is None or DEFAULT_PORTS.get(scheme) == port:
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def origin_or_none(value: str) -> str | None:
    """Return the origin of value, or None if it is not a usable URL."""
    try:
        return canonicalize_origin(value)
    except InvalidURLError as e:
        logger.debug("Dropping allowlist target %r: %s", value, e.reason)
        return None
