from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from app.schemas.common import STATUS_FAILURE

logger = logging.getLogger(__name__)


def _envelope(message: str, data: Any = None) -> dict[str, Any]:
    return {"status": STATUS_FAILURE, "message": message, "data": data}


def register_exception_handlers(app: FastAPI) -> None:
    """注册异常处理器以产生统一的信封响应。"""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        logger.warning("HTTP异常", extra={"path": str(request.url), "detail": exc.detail})
        return JSONResponse(
            status_code=exc.status_code,
            content=_envelope(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning("验证错误", extra={"path": str(request.url), "errors": exc.errors()})
        return JSONResponse(
            status_code=422,
            content=_envelope("validation_error", jsonable_encoder(exc.errors())),
        )

    @app.middleware("http")
    async def catch_unhandled_exceptions(request: Request, call_next):  # type: ignore[no-untyped-def]
        try:
            response = await call_next(request)
            return response
        except Exception:
            logger.exception("未处理的异常", extra={"path": str(request.url)})
            return JSONResponse(status_code=500, content=_envelope("internal_error"))
