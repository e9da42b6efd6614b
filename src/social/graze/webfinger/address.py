"""Parsing of WebFinger addresses into a target host and a query resource."""

from pydantic import BaseModel

from social.graze.webfinger.errors import ValidationException


class ParsedAddress(BaseModel):
    """
    A WebFinger address split into its parts.

    ``host`` is the raw host as it appeared in the address and still has to be
    sanitized. ``resource`` is the value for the ``resource`` query parameter.
    """

    address: str
    host: str
    resource: str


def has_explicit_scheme(address: str) -> bool:
    """True if the address already names its URI scheme."""
    return "://" in address or address.startswith("acct:")


def parse_address(address: str) -> ParsedAddress:
    """
    Split an address into a target host and a normalized resource identifier.

    Two forms are accepted: a full URI such as ``https://example.com/alice``,
    whose host is the authority component, and a user address such as
    ``alice@example.com``, whose host is everything after the ``@``. User
    addresses are given the ``acct:`` scheme.

    Args:
        address: The address to parse

    Returns:
        ParsedAddress with the raw host and the resource to query

    Raises:
        ValidationException: If the address is empty or malformed
    """
    if not address:
        raise ValidationException.address_required()

    address = address.replace(" ", "")

    if "://" in address:
        parts = address.split("/")
        if len(parts) < 3:
            raise ValidationException.invalid_uri_format()
        host = parts[2]
    else:
        parts = address.split("@")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ValidationException.invalid_useraddress_format()
        host = parts[1]

    if not host:
        raise ValidationException.host_undetermined()

    resource = address if has_explicit_scheme(address) else f"acct:{address}"
    return ParsedAddress(address=address, host=host, resource=resource)
