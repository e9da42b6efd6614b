"""
Host sanitization and private address classification.

The WebFinger target host comes from user input, so it is attacker influenced.
Before anything is requested from it, the host is reduced to a bare authority
(``sanitize_host``) and classified (``is_private_address``) so that lookups and
redirects can be refused when they would reach loopback, RFC 1918, link-local,
multicast or reserved addresses.
"""

import ipaddress
import re
from typing import Final, NamedTuple, Optional, Tuple, Union

from social.graze.webfinger.errors import ValidationException


IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

LOCALHOST_PATTERN: Final = re.compile(r"^localhost(\.localdomain)?(:[0-9]+)?$")
HOSTNAME_PATTERN: Final = re.compile(
    r"^[A-Za-z0-9_]([A-Za-z0-9_\-]*[A-Za-z0-9_])?"
    r"(\.[A-Za-z0-9_]([A-Za-z0-9_\-]*[A-Za-z0-9_])?)*\.?$"
)
NUMERIC_HOST_PATTERN: Final = re.compile(r"^[0-9.]+$")
PORT_PATTERN: Final = re.compile(r"^[0-9]{1,5}$")

INVALID_HOST_CHARACTERS: Final = frozenset("?#@\\")

LOCALHOST_NAMES: Final = frozenset(["localhost", "localhost.localdomain"])

PRIVATE_IPV4_NETWORKS: Final[Tuple[ipaddress.IPv4Network, ...]] = tuple(
    ipaddress.IPv4Network(network)
    for network in (
        "0.0.0.0/8",  # "this" network
        "10.0.0.0/8",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "224.0.0.0/4",  # multicast
        "240.0.0.0/4",  # reserved, including broadcast
    )
)

PRIVATE_IPV6_NETWORKS: Final[Tuple[ipaddress.IPv6Network, ...]] = tuple(
    ipaddress.IPv6Network(network)
    for network in (
        "::/128",
        "::1/128",
        "fc00::/7",  # unique local
        "fe80::/10",  # link-local
        "ff00::/8",  # multicast
    )
)


class HostParts(NamedTuple):
    """A sanitized host split into name and optional port."""

    name: str
    port: Optional[int]
    ipv6: bool


def to_ascii_host(name: str) -> str:
    """
    The ASCII (IDNA) form of a host name, which is what aiohttp connects to.

    Internationalized names are converted label by label. Ideographic and
    fullwidth dots become ``.`` and compatibility characters are folded, so a
    name written with U+3002 full stops can still be the literal 127.0.0.1.

    Raises:
        ValidationException: If the name has no IDNA form
    """
    if name.isascii():
        return name
    try:
        return name.encode("idna").decode("ascii")
    except UnicodeError:
        raise ValidationException.invalid_host_format()


def sanitize_host(raw: str) -> str:
    """
    Reduce a raw host string to a bare ASCII ``host[:port]`` authority.

    Anything from the first ``/`` onwards is discarded. What remains must not be
    empty, must not contain query, fragment, userinfo or whitespace characters
    and must match the grammar accepted by split_host. Internationalized names
    are converted to their IDNA form, so the result is the host that will
    actually be requested.

    Raises:
        ValidationException: If no host remains, it contains invalid characters,
            or it is malformed
    """
    host = raw.split("/")[0]
    if not host:
        raise ValidationException.invalid_host_format()
    if any(c in INVALID_HOST_CHARACTERS or c.isspace() for c in host):
        raise ValidationException.invalid_host_characters()
    if not host.isascii():
        if host.startswith("[") or host.count(":") > 1:
            raise ValidationException.invalid_host_format()
        name, colon, port = host.partition(":")
        host = to_ascii_host(name) + colon + port
    split_host(host)
    return host


def is_localhost(host: str) -> bool:
    """True for ``localhost`` and ``localhost.localdomain``, with or without a port."""
    return LOCALHOST_PATTERN.match(host) is not None


def _parse_port(port: str) -> int:
    if not PORT_PATTERN.match(port):
        raise ValidationException.invalid_host_format()
    value = int(port)
    if not 0 < value < 65536:
        raise ValidationException.invalid_host_format()
    return value


def split_host(host: str) -> HostParts:
    """
    Split a sanitized host into its name and port.

    The grammar accepted is ``[ipv6]``, ``[ipv6]:port``, ``name:port`` where
    ``name`` is a hostname or IPv4 literal, a bare IPv6 literal (two or more
    colons), or a bare name.

    Raises:
        ValidationException: If the host matches none of these forms or the
            port is not a number between 1 and 65535
    """
    if host.startswith("["):
        literal, bracket, rest = host[1:].partition("]")
        if not bracket or not literal:
            raise ValidationException.invalid_host_format()
        if not rest:
            return HostParts(literal, None, True)
        if not rest.startswith(":"):
            raise ValidationException.invalid_host_format()
        return HostParts(literal, _parse_port(rest[1:]), True)

    colons = host.count(":")
    if colons >= 2:
        return HostParts(host, None, True)
    name, colon, port = host.partition(":")
    if not HOSTNAME_PATTERN.match(name):
        raise ValidationException.invalid_host_format()
    return HostParts(name, _parse_port(port) if colon else None, False)


def parse_ip_literal(host: str) -> Optional[IPAddress]:
    """
    Parse the name part of a sanitized host as an IP literal.

    Returns None for hostnames. Numeric dotted names must be a strict
    four-octet IPv4 literal; shorthand forms such as ``127.1`` are rejected
    instead of being passed on to a resolver that might expand them.

    Raises:
        ValidationException: If the host looks like an IP literal but is not one
    """
    parts = split_host(host)
    if parts.ipv6:
        try:
            return ipaddress.IPv6Address(parts.name)
        except ValueError:
            raise ValidationException.invalid_host_format()
    if NUMERIC_HOST_PATTERN.match(parts.name):
        try:
            return ipaddress.IPv4Address(parts.name)
        except ValueError:
            raise ValidationException.invalid_host_format()
    return None


def is_private_ip(ip: IPAddress) -> bool:
    """True if the address is in a private, loopback, link-local, multicast or reserved range."""
    if isinstance(ip, ipaddress.IPv6Address):
        if ip.ipv4_mapped is not None:
            return is_private_ip(ip.ipv4_mapped)
        return any(ip in network for network in PRIVATE_IPV6_NETWORKS)
    return any(ip in network for network in PRIVATE_IPV4_NETWORKS)


def is_private_address(host: str) -> bool:
    """
    Classify a sanitized host, optionally carrying a port, as private or public.

    Args:
        host: Host as returned by sanitize_host, e.g. ``example.com:8080``,
            ``10.0.0.1``, ``[fe80::1]:443`` or ``fc00::1``

    Returns:
        True for localhost names and for IP literals in private, loopback,
        link-local, multicast or reserved ranges. False for anything else,
        including hostnames that might still resolve to private addresses;
        see DnsResolutionGuard for those.

    Raises:
        ValidationException: If the host or its port is malformed
    """
    ip = parse_ip_literal(host)
    if ip is None:
        return split_host(host).name.lower().rstrip(".") in LOCALHOST_NAMES
    return is_private_ip(ip)
