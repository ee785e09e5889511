"""
RiskGate ingestion gateway (FastAPI).

Run with:
    uvicorn gateway.app:create_app --factory --host 0.0.0.0 --port 8080
or via `python scripts/run_gateway.py`.
"""

from __future__ import annotations

import time

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import RequestResponseEndpoint

from common.logging_utils import get_logger
from gateway.config import GatewayConfig, load_gateway_config
from gateway.errors import register_exception_handlers
from gateway.publisher import KinesisPublisher, QueuePublisher
from gateway.routes import router


logger = get_logger(__name__)


async def access_log(request: Request, call_next: RequestResponseEndpoint) -> Response:
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info("%s %s %s - %.1f ms", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


def create_app(
    config: GatewayConfig | None = None,
    *,
    publisher: QueuePublisher | None = None,
) -> FastAPI:
    """Build the gateway.

    A publisher is only created (or used) when a stream is configured;
    without one, /api/store logs envelopes locally instead.
    """

    config = config if config is not None else load_gateway_config()

    if config.queue_enabled:
        if publisher is None:
            publisher = KinesisPublisher(region=config.region, aws_profile=config.aws_profile)
        logger.info("[boot] publishing to kinesis stream %s (%s)", config.stream_name, config.region)
    else:
        logger.warning("[boot] RISKGATE_KINESIS_STREAM not set. /api/store will log instead of publishing.")

    if not config.auth_enabled:
        logger.warning("[boot] no ingest token configured. /api/store accepts unauthenticated requests.")

    app = FastAPI(title="riskgate-ingest", docs_url=None, redoc_url=None)
    app.state.config = config
    app.state.publisher = publisher if config.queue_enabled else None

    register_exception_handlers(app)
    app.middleware("http")(access_log)
    app.include_router(router)
    return app
