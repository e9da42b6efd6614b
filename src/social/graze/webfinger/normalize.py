"""
JRD normalization.

Turns the text of a JSON Resource Descriptor into a WebFingerResult whose index
groups links by relation category and extracts the display name property.
"""

import json
from types import MappingProxyType
from typing import Any, Dict, Final, List, Mapping

from social.graze.webfinger.errors import ProtocolException
from social.graze.webfinger.model import (
    IndexProperties,
    LinkObject,
    ResultIndex,
    WebFingerResult,
)


LINK_RELATIONS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "http://webfist.org/spec/rel": "webfist",
        "http://webfinger.net/rel/avatar": "avatar",
        "remotestorage": "remotestorage",
        "http://tools.ietf.org/id/draft-dejong-remotestorage": "remotestorage",
        "remoteStorage": "remotestorage",
        "http://www.packetizer.com/rel/share": "share",
        "http://webfinger.net/rel/profile-page": "profile",
        "me": "profile",
        "vcard": "vcard",
        "blog": "blog",
        "http://packetizer.com/rel/blog": "blog",
        "http://schemas.google.com/g/2010#updates-from": "updates",
        "https://camlistore.org/rel/server": "camlistore",
    }
)
"""Raw JRD ``rel`` values mapped onto their relation category."""

LINK_CATEGORIES: Final = (
    "avatar",
    "remotestorage",
    "blog",
    "vcard",
    "updates",
    "share",
    "profile",
    "webfist",
    "camlistore",
)

LEGACY_RELAY_CATEGORY: Final = "webfist"

DISPLAY_NAME_PROPERTY: Final = "http://packetizer.com/ns/name"


def coerce_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


def build_link(link: Dict[str, Any]) -> LinkObject:
    """Copy a JRD link entry with every value coerced to a string."""
    entry = {"href": "", "rel": ""}
    entry.update((key, coerce_str(value)) for key, value in link.items())
    return LinkObject.model_validate(entry)


def process_jrd(jrd_text: str) -> WebFingerResult:
    """
    Parse a JRD document and index its links and properties.

    Links whose ``rel`` is not a known relation are left out of the index but
    kept in the raw document, as are all properties other than the display
    name.

    Args:
        jrd_text: The response body

    Returns:
        WebFingerResult with the raw JRD and its index

    Raises:
        ProtocolException: If the body is not JSON, or not a JRD. A JRD
            error field, when present, becomes the exception message.
    """
    try:
        jrd = json.loads(jrd_text)
    except ValueError:
        raise ProtocolException.invalid_json()

    if not isinstance(jrd, dict) or not isinstance(jrd.get("links"), list):
        if isinstance(jrd, dict) and jrd.get("error") is not None:
            raise ProtocolException.server_error(coerce_str(jrd["error"]))
        raise ProtocolException.unknown_response()

    links: Dict[str, List[LinkObject]] = {
        category: [] for category in LINK_CATEGORIES
    }
    for link in jrd["links"]:
        if not isinstance(link, dict):
            continue
        category = LINK_RELATIONS.get(coerce_str(link.get("rel")))
        if category is None:
            continue
        links[category].append(build_link(link))

    properties = IndexProperties()
    jrd_properties = jrd.get("properties")
    if isinstance(jrd_properties, dict):
        name = jrd_properties.get(DISPLAY_NAME_PROPERTY)
        if name is not None:
            properties.name = coerce_str(name)

    return WebFingerResult(
        raw=jrd, index=ResultIndex(links=links, properties=properties)
    )
