"""
SSRF-safe JRD fetcher.

Redirects are never followed by aiohttp itself. Each Location is resolved,
its host sanitized and classified, and only then requested, up to
MAX_REDIRECTS hops.
"""

import asyncio
import json
import logging
from typing import Callable, Final, Optional, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

from aiohttp import ClientError, ClientResponse, ClientSession

from social.graze.webfinger.config import Settings
from social.graze.webfinger.dns import DnsResolutionGuard
from social.graze.webfinger.errors import (
    ProtocolException,
    SecurityException,
    UnknownException,
)
from social.graze.webfinger.host import is_private_address, sanitize_host


logger = logging.getLogger(__name__)

MAX_REDIRECTS: Final = 3

JRD_MEDIA_TYPE: Final = "application/jrd+json"
JSON_MEDIA_TYPE: Final = "application/json"

REQUEST_HEADERS: Final = {"Accept": f"{JRD_MEDIA_TYPE}, {JSON_MEDIA_TYPE}"}


def url_authority(url: str) -> Optional[str]:
    """
    The ``host[:port]`` authority of an absolute http(s) URL, userinfo removed.

    Returns None if the URL is not absolute, not http(s), or has a malformed
    port.
    """
    try:
        parts = urlsplit(url)
        # Raises ValueError for a non-numeric or out of range port.
        parts.port
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return None
    return parts.netloc.rpartition("@")[2]


def with_ascii_authority(url: str, authority: str) -> Tuple[str, str]:
    """
    Rebuild an absolute URL around the sanitized form of its authority.

    The URL that is requested then names exactly the host that was
    classified, with userinfo dropped and internationalized names in IDNA form.

    Raises:
        ValidationException: If the authority is malformed
    """
    host = sanitize_host(authority)
    return urlunsplit(urlsplit(url)._replace(netloc=host)), host


def resolve_redirect(current_url: str, location: str) -> Tuple[str, str]:
    """
    Resolve a Location header against the URL that returned it.

    Returns:
        The absolute redirect URL, rebuilt by with_ascii_authority, and its
        authority

    Raises:
        SecurityException: If the result is not an absolute http(s) URL
        ValidationException: If its host is malformed
    """
    try:
        target = urljoin(current_url, location)
    except ValueError:
        raise SecurityException.invalid_redirect_url()
    authority = url_authority(target)
    if authority is None:
        raise SecurityException.invalid_redirect_url()
    return with_ascii_authority(target, authority)


def check_content_type(content_type: str) -> None:
    """Log, without enforcing, when a response is not served as application/jrd+json."""
    media_type = content_type.split(";")[0].strip().lower()
    if media_type == JRD_MEDIA_TYPE:
        return
    if media_type == JSON_MEDIA_TYPE:
        logger.info(
            'Server uses "%s" instead of RFC 7033 recommended "%s"',
            JSON_MEDIA_TYPE,
            JRD_MEDIA_TYPE,
        )
        return
    logger.warning(
        'Server returned unexpected content-type "%s", expected "%s" per RFC 7033',
        content_type,
        JRD_MEDIA_TYPE,
    )


class RedirectSafeFetcher:
    """
    Fetches JRD text over HTTP, re-validating every redirect hop.

    Args:
        session: aiohttp session used for all requests
        settings: Client settings, for the request timeout and private
            address policy
        dns_guard: Optional guard applied to redirect hostnames
    """

    def __init__(
        self,
        session: ClientSession,
        settings: Settings,
        dns_guard: Optional[DnsResolutionGuard] = None,
    ):
        self.session = session
        self.settings = settings
        self.dns_guard = dns_guard

    async def fetch(self, url: str, redirect_count: int = 0) -> str:
        """
        Fetch a URL and return its body, which is guaranteed to be valid JSON.

        Args:
            url: URL to request
            redirect_count: Redirects already followed to reach this URL

        Raises:
            SecurityException: On a redirect that is missing, malformed, points
                at a private address, or exceeds MAX_REDIRECTS
            ProtocolException: On a non-success status or a non-JSON body
            UnknownException: If the request could not be completed
        """
        if redirect_count > MAX_REDIRECTS:
            raise SecurityException.too_many_redirects()

        logger.debug("GET %s (redirects followed: %d)", url, redirect_count)
        try:
            async with self.session.get(
                url,
                headers=REQUEST_HEADERS,
                allow_redirects=False,
                timeout=self.settings.client_timeout(),
            ) as resp:
                if 300 <= resp.status < 400:
                    location = resp.headers.get("Location")
                    if not location:
                        raise SecurityException.redirect_without_location()
                    redirect_url, redirect_host = resolve_redirect(url, location)
                else:
                    return await self.read_jrd(resp)
        except (ClientError, asyncio.TimeoutError, ValueError) as e:
            raise UnknownException.unable_to_connect(
                str(e) or type(e).__name__
            ) from e

        await self.validate_target(redirect_host, SecurityException.private_redirect)
        logger.debug("Following redirect from %s to %s", url, redirect_url)
        return await self.fetch(redirect_url, redirect_count + 1)

    async def validate_target(
        self, raw_host: str, blocked: Callable[[], SecurityException]
    ) -> None:
        """
        Check a host that is about to be requested.

        Args:
            raw_host: Authority of the URL about to be requested
            blocked: Factory for the exception raised if the host is private

        Raises:
            ValidationException: If the host is malformed
            SecurityException: If the host is, or resolves to, a private address
        """
        host = sanitize_host(raw_host)
        if self.settings.allow_private_addresses:
            return
        if is_private_address(host):
            raise blocked()
        if self.dns_guard is not None:
            await self.dns_guard.validate(host)

    async def read_jrd(self, resp: ClientResponse) -> str:
        if resp.status == 404:
            raise ProtocolException.not_found()
        if not 200 <= resp.status < 300:
            raise ProtocolException.request_error(resp.status)

        check_content_type(resp.headers.get("Content-Type", ""))

        body = await resp.text(errors="replace")
        try:
            json.loads(body)
        except ValueError:
            raise ProtocolException.invalid_json()
        return body
