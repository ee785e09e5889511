from __future__ import annotations

import asyncio
import json
from pathlib import Path

import httpx

from producer.replay_logins import iter_risk_rows, replay_logins


def test_iter_risk_rows_csv_skips_header_and_garbage(tmp_path: Path) -> None:
    sample = tmp_path / "readings.csv"
    sample.write_text(
        "score,confidence,label\n0.1,0.9,a\nnot,a,row\n0.8,0.85\n\n# comment\n0.2,0.3,b\n",
        encoding="utf-8",
    )

    rows = list(iter_risk_rows(sample))

    assert rows == [(0.1, 0.9, "a"), (0.8, 0.85, "login_flow_test"), (0.2, 0.3, "b")]
    assert list(iter_risk_rows(sample, max_events=1)) == [(0.1, 0.9, "a")]


def test_iter_risk_rows_jsonl_accepts_logged_events(tmp_path: Path) -> None:
    sample = tmp_path / "readings.jsonl"
    sample.write_text(
        "\n".join(
            [
                json.dumps({"score": 0.5, "confidence": 0.7}),
                json.dumps({"event": "login_attempt", "label": "x", "risk": {"score": 0.9, "confidence": 0.95}}),
                json.dumps({"score": "?"}),
            ]
        ),
        encoding="utf-8",
    )

    assert list(iter_risk_rows(sample)) == [(0.5, 0.7, "login_flow_test"), (0.9, 0.95, "x")]


def test_dry_run_decides_without_sending() -> None:
    sample = Path(__file__).resolve().parents[3] / "data" / "sample" / "login_readings.csv"

    metrics = asyncio.run(
        replay_logins(input_path=sample, gateway_url="http://unused.invalid/api/store", dry_run=True)
    )

    assert metrics["sent"] == 6
    assert metrics["not_delivered"] == 0
    assert metrics["decisions"] == {
        "ALLOW": 2,
        "WARN_ELEVATED": 1,
        "WARN_LOW_CONFIDENCE": 2,
        "BLOCK": 1,
    }


def test_replay_posts_each_batch_once(tmp_path: Path) -> None:
    sample = tmp_path / "readings.csv"
    sample.write_text("0.1,0.9\n0.9,0.95\n", encoding="utf-8")
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(202, json={"status": "queued"})

    async def run() -> dict:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        try:
            return await replay_logins(
                input_path=sample,
                gateway_url="http://gateway.test/api/store",
                token="abc",
                client=client,
            )
        finally:
            await client.aclose()

    metrics = asyncio.run(run())

    assert metrics["sent"] == 2
    assert len(bodies) == 2
    assert [b["entries"][0]["risk"]["score"] for b in bodies] == [0.1, 0.9]
    assert bodies[0]["batchId"] != bodies[1]["batchId"]


def test_start_line_skips_leading_rows(tmp_path: Path) -> None:
    sample = tmp_path / "readings.csv"
    sample.write_text("score,confidence\n0.1,0.9\n0.2,0.9\n0.3,0.9\n", encoding="utf-8")

    assert list(iter_risk_rows(sample, start_line=2)) == [(0.2, 0.9, "login_flow_test"), (0.3, 0.9, "login_flow_test")]

    metrics = asyncio.run(
        replay_logins(
            input_path=sample,
            gateway_url="http://unused.invalid/api/store",
            start_line=3,
            dry_run=True,
        )
    )
    assert metrics["sent"] == 1
