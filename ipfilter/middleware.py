"""Starlette middleware that rejects requests the IP filter denies."""

from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from .config import config
from .engine import IPFilter
from .errors import IPDeniedError

logger = logging.getLogger(__name__)


class IPFilterMiddleware(BaseHTTPMiddleware):
    """Reject requests whose client addresses do not clear the filter.

    Without an explicit *ip_filter* the filter is built from the module-level
    ``config`` and the middleware is a no-op when ``config.enabled`` is off.
    """

    def __init__(self, app, ip_filter: IPFilter | None = None, **kwargs):
        super().__init__(app, **kwargs)
        if ip_filter is None and config.enabled:
            ip_filter = IPFilter.from_config(config)
            logger.info(
                "IP filter enabled in %s mode with %d rule(s)",
                ip_filter.mode.value,
                len(config.ips),
            )
        self._filter = ip_filter

    async def dispatch(self, request: Request, call_next):
        if self._filter is None:
            return await call_next(request)

        try:
            self._filter.check(request)
        except IPDeniedError as err:
            return JSONResponse({"detail": err.message}, status_code=err.status_code)

        return await call_next(request)
