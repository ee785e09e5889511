from __future__ import annotations

import hmac
from collections.abc import Mapping

from gateway.config import GatewayConfig
from gateway.errors import Unauthorized


# Older clients send the token under the env var's name.
LEGACY_TOKEN_HEADER = "INGEST_TOKEN"


def presented_token(headers: Mapping[str, str], header_name: str) -> str | None:
    return headers.get(header_name) or headers.get(LEGACY_TOKEN_HEADER)


def check_token(config: GatewayConfig, headers: Mapping[str, str]) -> None:
    """Raise Unauthorized unless the shared secret matches (or none is set)."""

    if not config.ingest_token:
        return

    token = presented_token(headers, config.token_header)
    expected = config.ingest_token.encode("utf-8")
    if token is None or not hmac.compare_digest(token.encode("utf-8"), expected):
        raise Unauthorized()
