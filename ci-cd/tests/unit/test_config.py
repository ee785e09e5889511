from __future__ import annotations

import logging
from pathlib import Path

import pytest

from common.logging_utils import parse_level
from gateway.config import GatewayConfig, load_gateway_config


ENV_VARS = [
    "RISKGATE_KINESIS_STREAM",
    "RISKGATE_INGEST_TOKEN",
    "INGEST_TOKEN",
    "RISKGATE_TOKEN_HEADER",
    "AWS_REGION",
    "AWS_PROFILE",
    "HOST",
    "PORT",
    "RISKGATE_MAX_BODY_BYTES",
    "RISKGATE_MAX_DEPTH",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_are_open_and_local(clean_env: pytest.MonkeyPatch) -> None:
    cfg = GatewayConfig()

    assert cfg.stream_name is None
    assert cfg.queue_enabled is False
    assert cfg.ingest_token is None
    assert cfg.auth_enabled is False
    assert cfg.host == "0.0.0.0"
    assert cfg.port == 8080
    assert cfg.token_header == "x-ingest-token"
    assert cfg.max_body_bytes == 1024 * 1024


def test_environment_overrides(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("RISKGATE_KINESIS_STREAM", "logins")
    clean_env.setenv("INGEST_TOKEN", "legacy")
    clean_env.setenv("PORT", "9090")
    clean_env.setenv("AWS_REGION", "eu-west-1")

    cfg = GatewayConfig()

    assert cfg.queue_enabled is True
    assert cfg.stream_name == "logins"
    assert cfg.ingest_token == "legacy"
    assert cfg.port == 9090
    assert cfg.region == "eu-west-1"


def test_blank_environment_values_count_as_unset(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("RISKGATE_KINESIS_STREAM", "   ")
    clean_env.setenv("RISKGATE_INGEST_TOKEN", "")

    cfg = GatewayConfig()

    assert cfg.queue_enabled is False
    assert cfg.auth_enabled is False


def test_yaml_then_keyword_overrides(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    clean_env.setenv("PORT", "9000")
    cfg_path = tmp_path / "gateway.yaml"
    cfg_path.write_text(
        "\n".join(
            [
                "aws:",
                "  region: ap-south-1",
                "kinesis:",
                "  stream_name: yaml-stream",
                "gateway:",
                "  port: 7070",
                "  max_depth: 12",
                "  ingest_token: ''",
                "",
            ]
        ),
        encoding="utf-8",
    )

    cfg = load_gateway_config(cfg_path, host="127.0.0.1", port=None)

    assert cfg.region == "ap-south-1"
    assert cfg.stream_name == "yaml-stream"
    assert cfg.port == 7070
    assert cfg.max_depth == 12
    assert cfg.host == "127.0.0.1"
    assert cfg.auth_enabled is False


def test_yaml_must_be_a_mapping(tmp_path: Path) -> None:
    cfg_path = tmp_path / "bad.yaml"
    cfg_path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="must be a mapping"):
        load_gateway_config(cfg_path)


def test_parse_level() -> None:
    assert parse_level(None) == logging.INFO
    assert parse_level(" debug ") == logging.DEBUG
    assert parse_level("10") == 10
    assert parse_level("nonsense") == logging.INFO
