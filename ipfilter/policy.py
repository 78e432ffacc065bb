"""Combine per-rule results into a single verdict for one address."""

from __future__ import annotations

from collections.abc import Sequence

from .mode import Mode
from .rules import RangeRule, Rule, evaluate


def in_any_range(ip: str, rules: Sequence[Rule]) -> bool:
    """Check if *ip* falls inside any range rule of *rules*."""
    return any(rule.matches(ip) for rule in rules if isinstance(rule, RangeRule))


def is_address_accepted(ip: str, rules: Sequence[Rule], mode: Mode) -> bool:
    """Decide whether one candidate address clears *rules*.

    Range rules count as a single unit (membership in any of them), every
    exact or CIDR rule is its own unit.  ``ALLOW`` needs any unit to pass,
    ``DENY`` needs all of them to.
    """
    results = [evaluate(ip, rule, mode) for rule in rules if not isinstance(rule, RangeRule)]
    if any(isinstance(rule, RangeRule) for rule in rules):
        results.append(in_any_range(ip, rules) == (mode is Mode.ALLOW))

    if mode is Mode.ALLOW:
        return any(results)
    return all(results)
