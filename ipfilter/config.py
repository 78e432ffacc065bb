from __future__ import annotations

from typing import Union

from pydantic import field_validator
from pydantic_settings import BaseSettings

from .mode import Mode


class IPFilterConfig(BaseSettings):
    enabled: bool = True

    # Exact addresses, CIDR blocks, or [start, end] ranges.  From the
    # environment this is JSON, e.g. IPFILTER_IPS='["127.0.0.1", ["10.0.0.1", "10.0.0.9"]]'
    ips: list[Union[str, list[str]]] = []
    mode: Mode = Mode.DENY

    log: bool = True
    log_level: str = "all"  # all | allow | deny

    # Forwarded-IP headers, checked in order (e.g. ["x-forwarded-for"])
    allowed_headers: list[str] = []
    # Path regexes that bypass filtering
    excluding: list[str] = []

    model_config = {"env_prefix": "IPFILTER_", "env_file": ".env", "extra": "ignore"}

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_mode(cls, value):
        return Mode.parse(value)

    @field_validator("log_level", mode="before")
    @classmethod
    def _lower_log_level(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


config = IPFilterConfig()
