"""
WebFinger client.

Resolves a user address (``alice@example.com``) or URI to its JRD, guarding
every hop against server-side request forgery:

1. Parse the address into a host and resource
2. Sanitize the host and refuse private or internal targets
3. Refuse hostnames that resolve to private addresses (DnsResolutionGuard)
4. Walk the endpoint cascade, re-validating every redirect
5. Index the JRD links and properties
"""

import logging
from typing import Optional

from aiohttp import ClientSession

from social.graze.webfinger.address import parse_address
from social.graze.webfinger.cascade import EndpointCascade
from social.graze.webfinger.config import Settings
from social.graze.webfinger.dns import DnsResolutionGuard
from social.graze.webfinger.errors import (
    ProtocolException,
    SecurityException,
    ValidationException,
)
from social.graze.webfinger.fetch import RedirectSafeFetcher
from social.graze.webfinger.host import is_private_address, sanitize_host
from social.graze.webfinger.model import LinkObject, WebFingerResult
from social.graze.webfinger.normalize import LINK_CATEGORIES


logger = logging.getLogger(__name__)


class WebFinger:
    """
    WebFinger lookup client.

    A client holds only immutable settings and injected collaborators, so one
    instance can serve concurrent lookups.

    Args:
        settings: Client settings. Defaults to Settings(), which reads
            WEBFINGER_* environment variables.
        session: aiohttp session to issue requests with. When omitted, each
            lookup opens and closes its own session.
        dns_guard: Guard used to reject hostnames that resolve to private
            addresses. Defaults to an aiodns backed DnsResolutionGuard.
        resolve_dns: Set to False where no DNS resolver is available; no
            default guard is created then.

    Example:
        async with aiohttp.ClientSession() as session:
            webfinger = WebFinger(Settings(uri_fallback=True), session=session)
            result = await webfinger.lookup("alice@example.com")
            print(result.index.properties.name)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[ClientSession] = None,
        dns_guard: Optional[DnsResolutionGuard] = None,
        resolve_dns: bool = True,
    ):
        if dns_guard is None and resolve_dns:
            dns_guard = DnsResolutionGuard()
        self.settings = settings if settings is not None else Settings()
        self.session = session
        self.dns_guard = dns_guard

    async def lookup(self, address: str) -> WebFingerResult:
        """
        Look up the JRD for an address.

        Args:
            address: User address (``alice@example.com``) or URI

        Returns:
            WebFingerResult with the raw JRD and its index

        Raises:
            ValidationException: If the address or host is malformed
            SecurityException: If the host, a resolved address, or a redirect
                target is private or internal
            ProtocolException: If every cascade stage failed; the last
                failure is raised
            UnknownException: If the last cascade stage could not connect
        """
        parsed = parse_address(address)
        host = sanitize_host(parsed.host)

        # Malformed IP literals are rejected even when private addresses are allowed.
        private = is_private_address(host)
        if not self.settings.allow_private_addresses:
            if private:
                raise SecurityException.private_address()
            if self.dns_guard is not None:
                await self.dns_guard.validate(host)

        logger.debug("Looking up %s at %s", parsed.resource, host)

        if self.session is not None:
            return await self._run(self.session, host, parsed.resource)
        async with ClientSession() as session:
            return await self._run(session, host, parsed.resource)

    async def _run(
        self, session: ClientSession, host: str, resource: str
    ) -> WebFingerResult:
        fetcher = RedirectSafeFetcher(session, self.settings, self.dns_guard)
        return await EndpointCascade(self.settings, fetcher).run(host, resource)

    async def lookup_link(self, address: str, rel: str) -> LinkObject:
        """
        Look up an address and return its first link in a relation category.

        Args:
            address: User address or URI
            rel: Relation category, e.g. ``avatar``, ``blog`` or ``remotestorage``

        Raises:
            ValidationException: If rel is not a known relation category
            ProtocolException: If the JRD has no link in that category
        """
        if rel not in LINK_CATEGORIES:
            raise ValidationException.unsupported_rel(rel)
        result = await self.lookup(address)
        links = result.index.links[rel]
        if not links:
            raise ProtocolException.no_links(rel)
        return links[0]
