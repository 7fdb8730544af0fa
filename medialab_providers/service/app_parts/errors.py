"""Exception handlers translating domain errors into JSON responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ...base.errors import ErrorCode, MediaLabError
from ...base.logging import get_logger, log_event

_logger = get_logger("service")


async def _medialab_error(request: Request, exc: MediaLabError) -> JSONResponse:
    level = logging.ERROR if exc.http_status >= 500 else logging.INFO
    log_event(
        _logger,
        "service.error",
        level=level,
        path=request.url.path,
        error_code=exc.code.value,
        status=exc.http_status,
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={
            "ok": False,
            "error": ErrorCode.VALIDATION.value,
            "message": "Invalid request data",
            "context": {"fields": fields},
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MediaLabError, _medialab_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)


__all__ = ["register_error_handlers"]
