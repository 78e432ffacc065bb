"""IP filter decision engine."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from starlette.requests import HTTPConnection

from .addresses import get_client_ips
from .errors import DENIED_MESSAGE, ConfigurationError, IPDeniedError
from .mode import Mode
from .policy import is_address_accepted
from .rules import Rule, parse_rules

if TYPE_CHECKING:
    from .config import IPFilterConfig

logger = logging.getLogger(__name__)

# Reported when an allow-list is empty and therefore nobody is allowed
ALL_ADDRESSES = "0.0.0.0/0"

LOG_LEVELS = ("all", "allow", "deny")


@dataclass(frozen=True)
class Verdict:
    """Outcome of one filtering pass."""

    allowed: bool
    addresses: tuple[str, ...] = ()

    @classmethod
    def proceed(cls) -> Verdict:
        return cls(allowed=True)

    @classmethod
    def denied(cls, addresses: Iterable[str]) -> Verdict:
        return cls(allowed=False, addresses=tuple(addresses))

    @property
    def message(self) -> str:
        return DENIED_MESSAGE + ",".join(self.addresses)


class StaticRuleSource:
    """Fixed rule set, classified once."""

    def __init__(self, tokens) -> None:
        self._rules = parse_rules(tokens)

    def fetch(self) -> list[Rule]:
        return self._rules


class CallableRuleSource:
    """Rule set recomputed by calling *provider* on every decision."""

    def __init__(self, provider: Callable[[], Sequence]) -> None:
        self._provider = provider

    def fetch(self) -> list[Rule]:
        return parse_rules(self._provider())


def _compile_exclusions(patterns: Iterable[str]) -> list[re.Pattern]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            raise ConfigurationError(f"Invalid exclusion pattern {pattern!r}: {exc}") from None
    return compiled


class IPFilter:
    """Decide whether a request may proceed based on its client addresses.

    *ips* is a list of rule tokens or a zero-argument callable returning one;
    a callable is invoked on every decision.  See ``ipfilter.rules`` for the
    accepted token shapes.
    """

    def __init__(
        self,
        ips=None,
        *,
        mode: Mode | str = Mode.DENY,
        log: bool = True,
        log_sink: Callable[[str], None] | None = None,
        log_level: str = "all",
        allowed_headers: Iterable[str] = (),
        excluding: Iterable[str] = (),
        detect_ip: Callable[[HTTPConnection], list[str]] | None = None,
    ) -> None:
        if callable(ips):
            self._source = CallableRuleSource(ips)
        else:
            self._source = StaticRuleSource(ips)

        self.mode = Mode.parse(mode)
        if log_level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level {log_level!r}, expected one of {LOG_LEVELS}")
        self.log = log
        self.log_level = log_level
        self._log_sink = log_sink
        self.allowed_headers = list(allowed_headers)
        self._exclusions = _compile_exclusions(excluding)
        self._detect_ip = detect_ip

    @classmethod
    def from_config(cls, config: IPFilterConfig, **kwargs) -> IPFilter:
        """Build a filter from settings; *kwargs* override or extend them."""
        options = dict(
            mode=config.mode,
            log=config.log,
            log_level=config.log_level,
            allowed_headers=config.allowed_headers,
            excluding=config.excluding,
        )
        options.update(kwargs)
        return cls(config.ips, **options)

    def _emit(self, message: str, granted: bool) -> None:
        if not self.log:
            return
        if granted and self.log_level == "deny":
            return
        if not granted and self.log_level == "allow":
            return

        if self._log_sink is not None:
            self._log_sink(message)
        elif granted:
            logger.info(message)
        else:
            logger.warning(message)

    def _excluded_by(self, path: str) -> str | None:
        for regex in self._exclusions:
            if regex.search(path):
                return regex.pattern
        return None

    def client_ips(self, conn: HTTPConnection) -> list[str]:
        if self._detect_ip is not None:
            return list(self._detect_ip(conn))
        return get_client_ips(conn, self.allowed_headers)

    def decide(self, conn: HTTPConnection) -> Verdict:
        """Evaluate *conn* against the current rule set."""
        excluded = self._excluded_by(conn.url.path)
        if excluded is not None:
            self._emit(f"Access granted for excluded path: {excluded}", granted=True)
            return Verdict.proceed()

        rules = self._source.fetch()
        if not rules:
            if self.mode is Mode.ALLOW:
                # Empty allow-list: nobody is allowed. Logged as a denial too.
                verdict = Verdict.denied([ALL_ADDRESSES])
                self._emit(verdict.message, granted=False)
                return verdict
            return Verdict.proceed()

        ips = self.client_ips(conn)
        if not ips and self.mode is Mode.ALLOW:
            # No address to match against an allow-list
            verdict = Verdict.denied([])
            self._emit(verdict.message, granted=False)
            return verdict

        if all(is_address_accepted(ip, rules, self.mode) for ip in ips):
            self._emit("Access granted to IP address: " + ",".join(ips), granted=True)
            return Verdict.proceed()

        verdict = Verdict.denied(ips)
        self._emit(verdict.message, granted=False)
        return verdict

    def check(self, conn: HTTPConnection) -> None:
        """Like ``decide`` but raise ``IPDeniedError`` on rejection."""
        verdict = self.decide(conn)
        if not verdict.allowed:
            raise IPDeniedError(verdict.addresses)
