from __future__ import annotations

import re
import time
import uuid
import logging
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.request_context import request_id_var


logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def resolve_request_id(incoming: str | None) -> str:
    """Reuse a well-formed incoming request id, otherwise generate one."""
    if incoming and _VALID_REQUEST_ID.match(incoming):
        return incoming
    return uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):  # type: ignore[no-untyped-def]
        req_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = request_id_var.set(req_id)
        start = time.perf_counter()
        try:
            logger.debug("request_start", extra={"method": request.method, "path": request.url.path})
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = req_id
            logger.debug(
                "request_end",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
            return response
        finally:
            request_id_var.reset(token)
