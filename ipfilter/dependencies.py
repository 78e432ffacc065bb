"""FastAPI dependency for guarding individual routes."""

from __future__ import annotations

from fastapi import HTTPException, Request

from .engine import IPFilter
from .errors import IPDeniedError


def require_allowed_ip(ip_filter: IPFilter):
    """Return a dependency that raises 403 when *ip_filter* denies the request.

    Usage::

        guard = require_allowed_ip(IPFilter(["10.0.0.0/8"], mode="allow"))

        @router.get("/admin", dependencies=[Depends(guard)])
        async def admin(): ...
    """

    async def _dependency(request: Request) -> None:
        try:
            ip_filter.check(request)
        except IPDeniedError as err:
            raise HTTPException(status_code=err.status_code, detail=err.message) from err

    return _dependency
