"""
WebFinger error taxonomy.

Every failure raised by a lookup is a WebFingerException. The subclass tells the
caller what kind of failure it was:

- ValidationException: the address or host was malformed
- SecurityException: the request would reach a private or internal target
- ProtocolException: the server answered, but not with a usable JRD
- UnknownException: the request could not be completed at all

Validation and security failures are final. Protocol and unknown failures at one
endpoint allow the endpoint cascade to move on to its next stage.
"""

from typing import Optional


class WebFingerException(Exception):
    """
    Base class for all WebFinger lookup failures.

    Attributes:
        message: Human readable description of the failure
        status: HTTP status code when the failure came from a response
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class ValidationException(WebFingerException):
    """Raised for a missing or malformed address, host, or link relation."""

    @staticmethod
    def address_required() -> "ValidationException":
        return ValidationException("address is required")

    @staticmethod
    def invalid_uri_format() -> "ValidationException":
        return ValidationException("invalid URI format")

    @staticmethod
    def invalid_useraddress_format() -> "ValidationException":
        return ValidationException("invalid useraddress format")

    @staticmethod
    def host_undetermined() -> "ValidationException":
        return ValidationException("could not determine host from address")

    @staticmethod
    def invalid_host_format() -> "ValidationException":
        return ValidationException("invalid host format")

    @staticmethod
    def invalid_host_characters() -> "ValidationException":
        return ValidationException("invalid characters in host")

    @staticmethod
    def unsupported_rel(rel: str) -> "ValidationException":
        return ValidationException(f"unsupported rel {rel}")


class SecurityException(WebFingerException):
    """Raised when a request would reach a private or internal network target."""

    @staticmethod
    def private_address() -> "SecurityException":
        return SecurityException("private or internal addresses are not allowed")

    @staticmethod
    def resolves_to_private(hostname: str, address: str) -> "SecurityException":
        return SecurityException(
            f"hostname resolves to private address: {hostname} -> {address}"
        )

    @staticmethod
    def private_redirect() -> "SecurityException":
        return SecurityException("redirect to private or internal address blocked")

    @staticmethod
    def too_many_redirects() -> "SecurityException":
        return SecurityException("too many redirects")

    @staticmethod
    def redirect_without_location() -> "SecurityException":
        return SecurityException("redirect without location header")

    @staticmethod
    def invalid_redirect_url() -> "SecurityException":
        return SecurityException("invalid redirect URL")

    @staticmethod
    def invalid_relay_link() -> "SecurityException":
        return SecurityException("invalid relay link")


class ProtocolException(WebFingerException):
    """Raised when a server response cannot be used as a WebFinger document."""

    @staticmethod
    def not_found() -> "ProtocolException":
        return ProtocolException("resource not found", 404)

    @staticmethod
    def request_error(status: int) -> "ProtocolException":
        return ProtocolException("error during request", status)

    @staticmethod
    def invalid_json() -> "ProtocolException":
        return ProtocolException("invalid json")

    @staticmethod
    def unknown_response() -> "ProtocolException":
        return ProtocolException("unknown response from server")

    @staticmethod
    def server_error(message: str) -> "ProtocolException":
        """The JRD carried its own error field."""
        return ProtocolException(message)

    @staticmethod
    def no_links(rel: str) -> "ProtocolException":
        return ProtocolException(f'no links found with rel="{rel}"')


class UnknownException(WebFingerException):
    """Raised when a request fails below the HTTP layer."""

    @staticmethod
    def unable_to_connect(reason: str) -> "UnknownException":
        return UnknownException(f"unable to connect: {reason}")
