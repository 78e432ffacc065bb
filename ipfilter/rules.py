"""Rule tokens: classification into exact / CIDR / range rules and matching."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from ipaddress import IPv4Network, IPv6Network, ip_address, ip_network
from typing import Union

from .errors import ConfigurationError
from .mode import Mode

logger = logging.getLogger(__name__)


def _to_int(ip: str) -> tuple[int, int] | None:
    """Return ``(version, integer)`` for *ip*, or None if it does not parse."""
    try:
        addr = ip_address(ip)
    except ValueError:
        return None
    return addr.version, int(addr)


@dataclass(frozen=True)
class ExactRule:
    address: str

    def matches(self, ip: str) -> bool:
        return ip == self.address

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True)
class CidrRule:
    network: Union[IPv4Network, IPv6Network]

    def matches(self, ip: str) -> bool:
        try:
            addr = ip_address(ip)
        except ValueError:
            return False
        if addr.version != self.network.version:
            return False
        return addr in self.network

    def __str__(self) -> str:
        return str(self.network)


@dataclass(frozen=True)
class RangeRule:
    """Inclusive address range.  With no *end* it matches *start* only."""

    start: str
    end: str | None = None

    def matches(self, ip: str) -> bool:
        if self.end is None:
            return ip == self.start

        value = _to_int(ip)
        if value is None:
            return False
        version, number = value
        start_version, start = _to_int(self.start)
        _, end = _to_int(self.end)
        return version == start_version and start <= number <= end

    def __str__(self) -> str:
        if self.end is None:
            return self.start
        return f"{self.start}-{self.end}"


Rule = Union[ExactRule, CidrRule, RangeRule]


def _parse_range(token) -> RangeRule:
    if len(token) not in (1, 2):
        raise ConfigurationError(f"Range rule must have one or two bounds, got {token!r}")

    bounds = []
    for bound in token:
        if not isinstance(bound, str):
            raise ConfigurationError(f"Range bound must be a string, got {bound!r}")
        try:
            bounds.append(ip_address(bound))
        except ValueError:
            raise ConfigurationError(f"Invalid address {bound!r} in range rule {token!r}") from None

    if len(bounds) == 1:
        return RangeRule(token[0])

    start, end = bounds
    if start.version != end.version:
        raise ConfigurationError(f"Range rule mixes address families: {token!r}")
    if start > end:
        raise ConfigurationError(f"Range rule start is after its end: {token!r}")
    return RangeRule(token[0], token[1])


def parse_rule(token) -> Rule:
    """Classify one configured rule token.

    Strings are CIDR blocks when they carry a prefix length and exact addresses
    otherwise.  One or two element lists/tuples are ranges.  Anything else
    raises ``ConfigurationError``.
    """
    if isinstance(token, (ExactRule, CidrRule, RangeRule)):
        return token

    if isinstance(token, str):
        if "/" in token:
            try:
                return CidrRule(ip_network(token, strict=False))
            except ValueError:
                raise ConfigurationError(f"Invalid CIDR rule: {token!r}") from None
        try:
            ip_address(token)
        except ValueError:
            raise ConfigurationError(f"Invalid address rule: {token!r}") from None
        return ExactRule(token)

    if isinstance(token, (list, tuple)):
        return _parse_range(token)

    raise ConfigurationError(f"Unrecognized rule token: {token!r}")


def parse_rules(tokens) -> list[Rule]:
    """Classify a whole rule set, preserving order."""
    if tokens is None:
        return []
    if isinstance(tokens, (str, bytes)) or not hasattr(tokens, "__iter__"):
        raise ConfigurationError(f"Rule set must be a list of rules, got {tokens!r}")
    rules = [parse_rule(token) for token in tokens]
    logger.debug("Parsed %d rule(s)", len(rules))
    return rules


def evaluate(ip: str, rule: Rule, mode: Mode) -> bool:
    """Return whether *ip* passes *rule* under *mode*.

    Under ``ALLOW`` a rule passes when the address matches it; under ``DENY``
    it passes when the address does not match.
    """
    return rule.matches(ip) == (mode is Mode.ALLOW)
