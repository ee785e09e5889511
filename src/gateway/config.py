"""
RiskGate - Ingestion gateway configuration.

Values come from environment variables with defaults suited to a container
(bind all interfaces, honour $PORT). An optional YAML file can override them.
An unset stream puts /api/store in local-log mode; an unset token leaves it
open. Both are deliberate for local development and should be reviewed
before deploying.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from common.config_loader import load_yaml, section


def _env(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def _env_optional(*names: str) -> str | None:
    for name in names:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return None


def _env_int(name: str, default: int) -> int:
    text = _env(name)
    return int(text) if text else default


@dataclass(frozen=True)
class GatewayConfig:
    stream_name: str | None = field(default_factory=lambda: _env_optional("RISKGATE_KINESIS_STREAM"))
    region: str = field(default_factory=lambda: _env("AWS_REGION", "us-east-1"))
    aws_profile: str | None = field(default_factory=lambda: _env_optional("AWS_PROFILE"))

    ingest_token: str | None = field(
        default_factory=lambda: _env_optional("RISKGATE_INGEST_TOKEN", "INGEST_TOKEN")
    )
    token_header: str = field(default_factory=lambda: _env("RISKGATE_TOKEN_HEADER", "x-ingest-token"))

    host: str = field(default_factory=lambda: _env("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("PORT", 8080))

    max_body_bytes: int = field(default_factory=lambda: _env_int("RISKGATE_MAX_BODY_BYTES", 1024 * 1024))
    max_depth: int = field(default_factory=lambda: _env_int("RISKGATE_MAX_DEPTH", 64))

    @property
    def queue_enabled(self) -> bool:
        return bool(self.stream_name)

    @property
    def auth_enabled(self) -> bool:
        return bool(self.ingest_token)


_YAML_KEYS: dict[str, tuple[str, str]] = {
    "stream_name": ("kinesis", "stream_name"),
    "region": ("aws", "region"),
    "aws_profile": ("aws", "profile"),
    "ingest_token": ("gateway", "ingest_token"),
    "token_header": ("gateway", "token_header"),
    "host": ("gateway", "host"),
    "port": ("gateway", "port"),
    "max_body_bytes": ("gateway", "max_body_bytes"),
    "max_depth": ("gateway", "max_depth"),
}

_INT_FIELDS = {"port", "max_body_bytes", "max_depth"}


def load_gateway_config(path: str | Path | None = None, **overrides: Any) -> GatewayConfig:
    """Environment defaults, then YAML values, then explicit keyword overrides."""

    base = GatewayConfig()
    changes: dict[str, Any] = {}

    if path is not None:
        cfg = load_yaml(path)
        for attr, (section_name, key) in _YAML_KEYS.items():
            value = section(cfg, section_name).get(key)
            if value is None or value == "":
                continue
            changes[attr] = int(value) if attr in _INT_FIELDS else str(value).strip()

    changes.update({k: v for k, v in overrides.items() if v is not None})
    return replace(base, **changes) if changes else base

