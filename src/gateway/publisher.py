from __future__ import annotations

import json
import uuid
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from common.logging_utils import get_logger


logger = get_logger(__name__)


class PublishError(RuntimeError):
    pass


class QueuePublisher(Protocol):
    def publish(self, topic: str, message: dict[str, Any]) -> str:
        """Publish one message and return its acknowledgement id.

        Raises PublishError when the queue did not accept it.
        """
        ...


def partition_key_for(message: dict[str, Any]) -> str:
    batch_id = message.get("batchId")
    if isinstance(batch_id, str) and batch_id.strip():
        return batch_id.strip()[:256]
    return uuid.uuid4().hex


class KinesisPublisher:
    """Publishes each envelope as a single Kinesis record. One attempt only."""

    def __init__(
        self,
        *,
        region: str,
        aws_profile: str | None = None,
        client: Any | None = None,
    ) -> None:
        if client is None:
            session = boto3.Session(profile_name=aws_profile) if aws_profile else boto3.Session()
            client = session.client("kinesis", region_name=region)
        self._client = client

    def publish(self, topic: str, message: dict[str, Any]) -> str:
        data = json.dumps(message, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode("utf-8")
        try:
            resp = self._client.put_record(
                StreamName=topic,
                Data=data,
                PartitionKey=partition_key_for(message),
            )
        except (BotoCoreError, ClientError) as exc:
            raise PublishError(f"kinesis put_record to {topic} failed: {exc}") from exc

        seq = str(resp.get("SequenceNumber") or "")
        logger.debug("kinesis ack stream=%s shard=%s seq=%s", topic, resp.get("ShardId"), seq)
        return seq
