"""Request body handling for POST /api/store.

Only the `entries[]` batch shape is accepted. The older flat single-event
shape (`{event, label, risk_score, ...}` at the top level) is rejected.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from gateway.errors import InvalidBatch, PayloadTooLarge
from gateway.sanitize import DEFAULT_MAX_DEPTH, NestingTooDeep, strip_sensitive


def check_declared_length(content_length: str | None, *, max_bytes: int) -> None:
    if content_length and content_length.strip().isdigit() and int(content_length) > max_bytes:
        raise PayloadTooLarge()


def check_body_length(body: bytes, *, max_bytes: int) -> None:
    if len(body) > max_bytes:
        raise PayloadTooLarge()


def _reject_constant(token: str) -> Any:
    raise ValueError(f"non-standard JSON constant {token}")


def parse_body(raw: bytes) -> Any:
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except RecursionError as exc:
        raise InvalidBatch("Body nesting too deep") from exc
    except ValueError as exc:
        raise InvalidBatch("Body must be valid JSON") from exc


def validate_batch_shape(body: Any) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise InvalidBatch("Body must be a JSON object")
    entries = body.get("entries")
    if not isinstance(entries, list) or not entries:
        raise InvalidBatch("entries must be a non-empty array")
    return body


def resolve_client_ip(forwarded_for: str | None, peer: str | None) -> str | None:
    """First X-Forwarded-For hop when present, else the socket peer."""

    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return peer or None


def build_envelope(
    body: dict[str, Any],
    *,
    user_agent: str | None,
    client_ip: str | None,
    received_at: datetime | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> dict[str, Any]:
    """Sanitize the batch, then attach what the server observed.

    Server fields are added after sanitization and overwrite any
    client-supplied keys with the same names.
    """

    try:
        envelope = strip_sensitive(body, max_depth=max_depth)
    except NestingTooDeep as exc:
        raise InvalidBatch("Body nesting too deep") from exc

    envelope["_receivedAt"] = (received_at or datetime.now(timezone.utc)).isoformat()
    envelope["_ua"] = user_agent or None
    envelope["_ip"] = client_ip
    return envelope
