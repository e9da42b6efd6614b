"""
DNS based SSRF protection.

A public looking hostname can still resolve to a private address. The guard
resolves A and AAAA records and refuses the lookup if any resolved address is
private. Resolver failures are not security findings: they are reported and
otherwise ignored so that a flaky resolver does not block legitimate lookups.
"""

import ipaddress
import logging
from typing import Callable, List

from aiodns import DNSResolver
from aiodns.error import DNSError
import sentry_sdk

from social.graze.webfinger.errors import SecurityException
from social.graze.webfinger.host import (
    LOCALHOST_NAMES,
    is_private_ip,
    parse_ip_literal,
    split_host,
)


logger = logging.getLogger(__name__)

RECORD_TYPES = ("A", "AAAA")


class DnsResolutionGuard:
    """
    Rejects hostnames that resolve to private or internal addresses.

    A guard is created once per client. Environments without a usable resolver
    simply run without one (pass ``dns_guard=None`` to the client).

    Args:
        resolver_factory: Callable returning an aiodns DNSResolver. The
            resolver is created for each resolution because it binds to the running
            event loop.
    """

    def __init__(self, resolver_factory: Callable[[], DNSResolver] = DNSResolver):
        self._resolver_factory = resolver_factory

    async def resolve(self, hostname: str) -> List[str]:
        """
        Resolve A and AAAA records for a hostname.

        Failed queries, e.g. NXDOMAIN or a timeout, contribute no addresses.
        """
        resolver = self._resolver_factory()
        addresses: List[str] = []
        for record_type in RECORD_TYPES:
            try:
                results = await resolver.query(hostname, record_type)
            except DNSError as e:
                sentry_sdk.capture_exception(e)
                logger.debug(
                    "%s lookup for %s failed: %s", record_type, hostname, e
                )
                continue
            addresses.extend(result.host for result in results or [])
        return addresses

    async def validate(self, host: str) -> None:
        """
        Check that a sanitized host does not resolve to a private address.

        IP literals and localhost are skipped, since is_private_address already
        classifies them without DNS.

        Raises:
            SecurityException: If any resolved address is private
        """
        if parse_ip_literal(host) is not None:
            return
        hostname = split_host(host).name
        if hostname.lower().rstrip(".") in LOCALHOST_NAMES:
            return

        for address in await self.resolve(hostname):
            try:
                ip = ipaddress.ip_address(address)
            except ValueError:
                logger.debug("Ignoring unparsable address %r for %s", address, hostname)
                continue
            if is_private_ip(ip):
                raise SecurityException.resolves_to_private(hostname, address)
