"""Gateway exceptions and their HTTP rendering.

Callers only ever see a status code and a short `{"error": ...}` body.
Tracebacks and upstream messages stay in the server log.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from common.logging_utils import get_logger
from common.metrics import incr


logger = get_logger(__name__)


class GatewayError(Exception):
    status_code: int = 500
    error: str = "internal_error"

    def __init__(self, error: str | None = None) -> None:
        if error is not None:
            self.error = error
        super().__init__(self.error)


class InvalidBatch(GatewayError):
    status_code = 400
    error = "invalid_batch"


class Unauthorized(GatewayError):
    status_code = 401
    error = "unauthorized"


class PayloadTooLarge(GatewayError):
    status_code = 413
    error = "payload_too_large"


class PublishFailed(GatewayError):
    status_code = 500
    error = "publish_failed"


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    if exc.status_code < 500:
        incr("ingest.rejected")
        logger.info("%s %s rejected status=%s error=%s", request.method, request.url.path, exc.status_code, exc.error)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.error})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "internal_error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatewayError, gateway_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
