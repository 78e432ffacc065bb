"""Exceptions raised by the IP filter."""

from __future__ import annotations

DENIED_MESSAGE = "Access denied to IP address: "


class IPFilterError(Exception):
    """Base class for all IP filter errors."""


class ConfigurationError(IPFilterError, ValueError):
    """A rule token, mode or option could not be understood."""


class IPDeniedError(IPFilterError):
    """Raised when a request is rejected.

    ``addresses`` lists every candidate address that was evaluated, not only
    the ones that failed.
    """

    status_code = 403

    def __init__(self, addresses) -> None:
        self.addresses = list(addresses)
        self.message = DENIED_MESSAGE + ",".join(self.addresses)
        super().__init__(self.message)
