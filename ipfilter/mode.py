from __future__ import annotations

from enum import Enum

from .errors import ConfigurationError


class Mode(str, Enum):
    """Policy direction of a filter.

    ``ALLOW`` lets only listed addresses through; ``DENY`` rejects only listed
    addresses.
    """

    ALLOW = "allow"
    DENY = "deny"

    @classmethod
    def parse(cls, value) -> Mode:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ConfigurationError(f"Invalid mode {value!r}, expected 'allow' or 'deny'")
