"""IP filtering for Starlette and FastAPI applications."""

from .addresses import get_client_ips, normalize_ip, resolve_client_ips
from .engine import IPFilter, Verdict
from .errors import ConfigurationError, IPDeniedError, IPFilterError
from .mode import Mode
from .rules import CidrRule, ExactRule, RangeRule, parse_rule, parse_rules

__all__ = [
    "CidrRule",
    "ConfigurationError",
    "ExactRule",
    "IPDeniedError",
    "IPFilter",
    "IPFilterError",
    "Mode",
    "RangeRule",
    "Verdict",
    "get_client_ips",
    "normalize_ip",
    "parse_rule",
    "parse_rules",
    "resolve_client_ips",
]
