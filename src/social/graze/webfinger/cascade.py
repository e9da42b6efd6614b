"""
Endpoint cascade.

A lookup starts at the ``webfinger`` well-known endpoint and, depending on the
client settings, falls back through the host-meta endpoints, a plain HTTP retry
and finally the deprecated webfist.org relay. The cascade is an explicit state
machine: ``next_stage`` decides where to go after a failed attempt and
``CascadeState.advance`` moves there. A fresh CascadeState is created for every
lookup, so concurrent lookups on one client never share cascade progress.
"""

from dataclasses import dataclass
from enum import IntEnum
import logging
from typing import Final
from urllib.parse import quote
import warnings

from social.graze.webfinger.config import Settings
from social.graze.webfinger.errors import (
    ProtocolException,
    SecurityException,
    UnknownException,
    WebFingerException,
)
from social.graze.webfinger.fetch import (
    RedirectSafeFetcher,
    url_authority,
    with_ascii_authority,
)
from social.graze.webfinger.host import is_localhost
from social.graze.webfinger.model import WebFingerResult
from social.graze.webfinger.normalize import LEGACY_RELAY_CATEGORY, process_jrd


logger = logging.getLogger(__name__)

ENDPOINTS: Final = ("webfinger", "host-meta", "host-meta.json")

LEGACY_RELAY_HOST: Final = "webfist.org"

RESOURCE_SAFE_CHARACTERS: Final = "@:/"


class CascadeStage(IntEnum):
    """Where the cascade goes after a failed attempt."""

    next_endpoint = 1
    http_downgrade = 2
    legacy_relay = 3
    fail = 4


@dataclass
class CascadeState:
    """Mutable progress of a single lookup through the cascade."""

    host: str
    protocol: str
    endpoint_index: int = 0

    @classmethod
    def initial(cls, host: str) -> "CascadeState":
        """Start at the first endpoint, over HTTPS unless the host is localhost."""
        return cls(host=host, protocol="http" if is_localhost(host) else "https")

    @property
    def endpoint(self) -> str:
        return ENDPOINTS[self.endpoint_index]

    def build_url(self, resource: str) -> str:
        return "{protocol}://{host}/.well-known/{endpoint}?resource={resource}".format(
            protocol=self.protocol,
            host=self.host,
            endpoint=self.endpoint,
            resource=quote(resource, safe=RESOURCE_SAFE_CHARACTERS),
        )

    def advance(self, stage: CascadeStage) -> None:
        if stage == CascadeStage.next_endpoint:
            self.endpoint_index += 1
        elif stage == CascadeStage.http_downgrade:
            self.endpoint_index = 0
            self.protocol = "http"
        elif stage == CascadeStage.legacy_relay:
            self.endpoint_index = 0
            self.protocol = "http"
            self.host = LEGACY_RELAY_HOST
        else:
            raise ValueError(f"cannot advance to {stage.name}")


def next_stage(settings: Settings, state: CascadeState) -> CascadeStage:
    """Decide the next cascade stage after the attempt described by state failed."""
    if (
        settings.uri_fallback
        and state.host != LEGACY_RELAY_HOST
        and state.endpoint_index < len(ENDPOINTS) - 1
    ):
        return CascadeStage.next_endpoint
    if not settings.tls_only and state.protocol == "https":
        return CascadeStage.http_downgrade
    if settings.webfist_fallback and state.host != LEGACY_RELAY_HOST:
        return CascadeStage.legacy_relay
    return CascadeStage.fail


class EndpointCascade:
    """
    Drives a lookup through the endpoint cascade.

    Only fetch failures that are ProtocolException or UnknownException move the
    cascade on. Validation and security failures end the lookup immediately, as
    does a fetched document that cannot be normalized.
    """

    def __init__(self, settings: Settings, fetcher: RedirectSafeFetcher):
        self.settings = settings
        self.fetcher = fetcher

    async def run(self, host: str, resource: str) -> WebFingerResult:
        state = CascadeState.initial(host)
        while True:
            url = state.build_url(resource)
            try:
                jrd_text = await self.fetcher.fetch(url)
            except (ProtocolException, UnknownException) as e:
                stage = next_stage(self.settings, state)
                logger.debug(
                    "Request to %s failed (%s), next stage: %s", url, e, stage.name
                )
                if stage == CascadeStage.fail:
                    raise
                state.advance(stage)
                if stage == CascadeStage.legacy_relay:
                    return await self.run_legacy_relay(state, resource, e)
                continue
            return process_jrd(jrd_text)

    async def run_legacy_relay(
        self, state: CascadeState, resource: str, cause: WebFingerException
    ) -> WebFingerResult:
        """
        Look the resource up through the webfist.org relay.

        The relay answers with a JRD whose relay link points at the real JRD,
        which is then fetched as a second, independent request. If the relay
        has no such link, the failure that led here is raised again.
        """
        warnings.warn(
            "webfist_fallback is deprecated and will be removed in a future release",
            DeprecationWarning,
            stacklevel=2,
        )
        logger.warning("Falling back to the deprecated %s relay", LEGACY_RELAY_HOST)

        relay_url = state.build_url(resource)
        relay_result = process_jrd(await self.fetcher.fetch(relay_url))
        relay_links = relay_result.index.links[LEGACY_RELAY_CATEGORY]
        if not relay_links:
            raise cause

        link_url = await self.validate_relay_link(relay_links[0].href)
        return process_jrd(await self.fetcher.fetch(link_url))

    async def validate_relay_link(self, url: str) -> str:
        """
        Apply the same checks to the relay-supplied URL as to a lookup target.

        Returns:
            The URL to request, rebuilt around its sanitized host

        Raises:
            SecurityException: If the URL is not an absolute http(s) URL or
                points at a private address
            ValidationException: If its host is malformed
        """
        authority = url_authority(url)
        if authority is None:
            raise SecurityException.invalid_relay_link()
        link_url, host = with_ascii_authority(url, authority)
        await self.fetcher.validate_target(host, SecurityException.private_address)
        return link_url
