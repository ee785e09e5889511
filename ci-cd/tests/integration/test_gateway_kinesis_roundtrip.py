from __future__ import annotations

import json
import os
import time
import uuid

import boto3
import pytest
from fastapi.testclient import TestClient

from gateway.app import create_app
from gateway.config import GatewayConfig


def _find_record(*, client: object, stream_name: str, batch_id: str, timeout_sec: int = 15) -> dict | None:
    kinesis = client  # boto3 client
    stream = kinesis.describe_stream(StreamName=stream_name)["StreamDescription"]

    iterators = [
        kinesis.get_shard_iterator(
            StreamName=stream_name,
            ShardId=shard["ShardId"],
            ShardIteratorType="TRIM_HORIZON",
        )["ShardIterator"]
        for shard in stream["Shards"]
    ]

    deadline = time.time() + timeout_sec
    while time.time() < deadline:
        next_iterators = []
        for it in iterators:
            out = kinesis.get_records(ShardIterator=it, Limit=100)
            for rec in out.get("Records") or []:
                payload = json.loads(rec["Data"].decode("utf-8"))
                if payload.get("batchId") == batch_id:
                    return payload
            if out.get("NextShardIterator"):
                next_iterators.append(out["NextShardIterator"])
        iterators = next_iterators
        time.sleep(1)
    return None


def test_gateway_kinesis_roundtrip() -> None:
    if os.getenv("RISKGATE_INTEGRATION") != "1":
        pytest.skip("Set RISKGATE_INTEGRATION=1 to run integration tests")

    profile = os.getenv("AWS_PROFILE")
    region = os.getenv("AWS_REGION") or "us-east-1"
    stream_name = os.getenv("RISKGATE_KINESIS_STREAM") or "riskgate-dev-logins"

    config = GatewayConfig(stream_name=stream_name, region=region, aws_profile=profile, ingest_token=None)
    http = TestClient(create_app(config))

    batch_id = f"it-{uuid.uuid4()}"
    resp = http.post(
        "/api/store",
        json={
            "batchId": batch_id,
            "source": "ci-cd/integration",
            "entries": [{"event": "login_attempt", "risk": {"score": 0.1, "confidence": 0.9}, "pwd": "x"}],
        },
    )
    assert resp.status_code == 202
    assert resp.json() == {"status": "queued"}

    session = boto3.Session(profile_name=profile) if profile else boto3.Session()
    client = session.client("kinesis", region_name=region)
    payload = _find_record(client=client, stream_name=stream_name, batch_id=batch_id)
    assert payload is not None
    assert "pwd" not in payload["entries"][0]
    assert "_receivedAt" in payload
