"""
Fetch a page's Permissions-Policy header over HTTP.

Used by the ``permissions-policy fetch`` command. The library core never
performs I/O; this module is the only place that talks to the network.
"""

import logging
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel, ConfigDict, Field

from permissions_policy.errors import FetchError

logger = logging.getLogger(__name__)

HEADER_NAME = "permissions-policy"
DEFAULT_TIMEOUT_SECONDS = 10.0
USER_AGENT = "permissions-policy/0.1"


class FetchedPolicy(BaseModel):
    """
    Outcome of fetching a page.

    Attributes:
        url: Final URL after redirects (its origin is the page origin)
        status_code: HTTP status of the final response
        header: Permissions-Policy value, "" if the response had none.
            Multiple header lines are joined with ", " as RFC 8941 requires.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = Field(..., description="Final URL after redirects")
    status_code: int = Field(..., description="HTTP status code")
    header: str = Field(default="", description="Permissions-Policy header value")


def fetch_policy_header(
    url: str,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    transport: httpx.BaseTransport | None = None,
) -> FetchedPolicy:
    """
    GET url and return its Permissions-Policy header.

    Args:
        url: http(s) URL of the page
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests pass a MockTransport)

    Returns:
        FetchedPolicy with the final URL and header value

    Raises:
        FetchError: If the URL is not http(s) or the request fails
    """
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https"):
        raise FetchError(url=url, underlying_error="URL scheme must be http or https")
    if not parts.hostname:
        raise FetchError(url=url, underlying_error="URL must have a host")

    try:
        with httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
            headers={"User-Agent": USER_AGENT},
        ) as client:
            response = client.get(url)
    except httpx.HTTPError as e:
        raise FetchError(url=url, underlying_error=str(e) or e.__class__.__name__) from e

    header = ", ".join(response.headers.get_list(HEADER_NAME))
    logger.debug("Fetched %s (%d): Permissions-Policy=%r", response.url, response.status_code, header)

    return FetchedPolicy(
        url=str(response.url),
        status_code=response.status_code,
        header=header,
    )
