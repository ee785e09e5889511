from __future__ import annotations

import json

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from common.logging_utils import get_logger
from common.metrics import incr
from gateway.auth import check_token
from gateway.config import GatewayConfig
from gateway.errors import PublishFailed
from gateway.ingest import (
    build_envelope,
    check_body_length,
    check_declared_length,
    parse_body,
    resolve_client_ip,
    validate_batch_shape,
)
from gateway.publisher import PublishError, QueuePublisher


logger = get_logger(__name__)

router = APIRouter()

DATA_HINT = "Query BigQuery table fed by Pub/Sub subscription."


@router.get("/healthz", response_class=PlainTextResponse)
async def healthz() -> str:
    return "ok"


@router.post("/api/store")
async def store(request: Request) -> JSONResponse:
    config: GatewayConfig = request.app.state.config

    # Auth comes first: nothing is read or parsed for a bad token.
    check_token(config, request.headers)

    check_declared_length(request.headers.get("content-length"), max_bytes=config.max_body_bytes)
    raw = await request.body()
    check_body_length(raw, max_bytes=config.max_body_bytes)
    body = validate_batch_shape(parse_body(raw))

    envelope = build_envelope(
        body,
        user_agent=request.headers.get("user-agent"),
        client_ip=resolve_client_ip(
            request.headers.get("x-forwarded-for"),
            request.client.host if request.client else None,
        ),
        max_depth=config.max_depth,
    )

    publisher: QueuePublisher | None = request.app.state.publisher
    if not config.queue_enabled or publisher is None:
        logger.info("[store] queue disabled. Would publish: %s", json.dumps(envelope, separators=(",", ":"), allow_nan=False))
        incr("ingest.received_local")
        return JSONResponse(status_code=202, content={"status": "received"})

    try:
        ack = await run_in_threadpool(publisher.publish, config.stream_name, envelope)
    except PublishError as exc:
        logger.error("publish error batch=%s: %s", envelope.get("batchId"), exc)
        incr("ingest.publish_failed")
        raise PublishFailed() from exc

    logger.info("[store] queued batch=%s entries=%s ack=%s", envelope.get("batchId"), len(envelope["entries"]), ack)
    incr("ingest.queued")
    return JSONResponse(status_code=202, content={"status": "queued"})


@router.get("/api/data")
async def data() -> JSONResponse:
    return JSONResponse(status_code=501, content={"error": "not_available", "hint": DATA_HINT})
