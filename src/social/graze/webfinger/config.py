"""
Configuration for the WebFinger client.

Settings are loaded from environment variables prefixed with ``WEBFINGER_`` and
can also be passed explicitly. A Settings instance is frozen: one client holds
one configuration for its whole lifetime, which is what makes a client safe to
share between concurrent lookups.
"""

from typing import Optional

from aiohttp import ClientTimeout
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    WebFinger client settings.

    Every field is optional. The defaults are the safe ones: HTTPS only, no
    fallbacks, and private or internal addresses refused.
    """

    model_config = SettingsConfigDict(env_prefix="webfinger_", frozen=True)

    tls_only: bool = True
    """
    Only use HTTPS. When false, a failed HTTPS cascade is retried over HTTP.
    Set with WEBFINGER_TLS_ONLY environment variable.
    """

    uri_fallback: bool = False
    """
    Try the host-meta and host-meta.json endpoints after webfinger fails.
    Set with WEBFINGER_URI_FALLBACK environment variable.
    """

    webfist_fallback: bool = False
    """
    Deprecated. Fall back to the webfist.org discovery relay when direct
    discovery fails.
    Set with WEBFINGER_WEBFIST_FALLBACK environment variable.
    """

    request_timeout: int = Field(default=10000, gt=0)
    """
    Timeout in milliseconds for each individual HTTP request.
    Set with WEBFINGER_REQUEST_TIMEOUT environment variable.
    Default: 10000 (10 seconds)
    """

    allow_private_addresses: bool = False
    """
    Permit lookups and redirects that target private, loopback, link-local,
    multicast or reserved addresses. Only enable for local development.
    Set with WEBFINGER_ALLOW_PRIVATE_ADDRESSES environment variable.
    """

    sentry_dsn: Optional[str] = None
    """
    Sentry DSN used by the command line for error reporting.
    Set with WEBFINGER_SENTRY_DSN environment variable.
    """

    def client_timeout(self) -> ClientTimeout:
        """Per-request aiohttp timeout derived from request_timeout."""
        return ClientTimeout(total=self.request_timeout / 1000)
