from __future__ import annotations

import os
from typing import Any

import pytest

# Keep test runs from writing logs/riskgate.log.
os.environ.setdefault("RISKGATE_LOG_FILE", "0")

from common import metrics  # noqa: E402
from gateway.publisher import PublishError  # noqa: E402


class RecordingPublisher:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def publish(self, topic: str, message: dict[str, Any]) -> str:
        self.calls.append((topic, message))
        if self.fail:
            raise PublishError("stream unavailable")
        return f"seq-{len(self.calls)}"


class RecordingBeacon:
    def __init__(self, *, accept: bool = True) -> None:
        self.accept = accept
        self.sent: list[tuple[str, bytes, str]] = []

    def send_beacon(self, url: str, data: bytes, content_type: str) -> bool:
        self.sent.append((url, data, content_type))
        return self.accept


@pytest.fixture(autouse=True)
def _reset_metrics() -> None:
    metrics.reset()


@pytest.fixture
def recording_publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def recording_beacon() -> RecordingBeacon:
    return RecordingBeacon()
