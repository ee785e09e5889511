"""Best-effort delivery of event batches to the ingestion gateway.

Each batch gets exactly one network attempt. Strategies are tried in order
until one reports acceptance; a strategy that declines (or raises) has not
sent anything, so falling through to the next one is still a single attempt.
Nothing is queued, retried or persisted, and delivery failures are only
logged: telemetry must never block or break the login flow.
"""

from __future__ import annotations

import asyncio
from typing import Protocol, Sequence

import httpx

from common.logging_utils import get_logger
from common.models import EventBatch


logger = get_logger(__name__)

JSON_CONTENT_TYPE = "application/json"
DEFAULT_STORE_PATH = "/api/store"
DEFAULT_TOKEN_HEADER = "x-ingest-token"


class Beacon(Protocol):
    """Fire-and-forget sender that reports synchronous acceptance."""

    def send_beacon(self, url: str, data: bytes, content_type: str) -> bool: ...


class DeliveryStrategy(Protocol):
    name: str

    def deliver(self, url: str, payload: bytes) -> bool: ...


class BeaconDelivery:
    name = "beacon"

    def __init__(self, beacon: Beacon) -> None:
        self._beacon = beacon

    def deliver(self, url: str, payload: bytes) -> bool:
        return bool(self._beacon.send_beacon(url, payload, JSON_CONTENT_TYPE))


class KeepaliveRequestDelivery:
    """POST in a background task so the caller never waits on the network."""

    name = "request"

    def __init__(self, client: httpx.AsyncClient, *, headers: dict[str, str] | None = None) -> None:
        self._client = client
        self._headers = {"Content-Type": JSON_CONTENT_TYPE, **(headers or {})}
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._pending)

    def deliver(self, url: str, payload: bytes) -> bool:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("request delivery needs a running event loop; batch not sent")
            return False

        task = loop.create_task(self._post(url, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return True

    async def _post(self, url: str, payload: bytes) -> None:
        try:
            resp = await self._client.post(url, content=payload, headers=self._headers)
        except httpx.HTTPError as exc:
            logger.error("store failed: %s", exc)
            return
        if resp.is_error:
            logger.warning("store rejected batch status=%s body=%s", resp.status_code, resp.text[:200])

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


class BatchDispatcher:
    def __init__(
        self,
        url: str,
        strategies: Sequence[DeliveryStrategy],
        *,
        owned_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not strategies:
            raise ValueError("at least one delivery strategy is required")
        self.url = url
        self.strategies = tuple(strategies)
        self._owned_client = owned_client

    def send_batch(self, batch: EventBatch) -> str | None:
        """Hand the batch to the first accepting strategy.

        Returns the strategy name, or None when every strategy declined.
        """

        payload = batch.to_json_bytes()
        for strategy in self.strategies:
            try:
                accepted = strategy.deliver(self.url, payload)
            except Exception as exc:  # noqa: BLE001
                logger.error("%s delivery raised for batch %s: %s", strategy.name, batch.batch_id, exc)
                continue
            if accepted:
                logger.debug("batch %s handed to %s", batch.batch_id, strategy.name)
                return strategy.name

        logger.error("batch %s was not delivered", batch.batch_id)
        return None

    async def aclose(self) -> None:
        for strategy in self.strategies:
            if isinstance(strategy, KeepaliveRequestDelivery):
                await strategy.drain()
        if self._owned_client is not None:
            await self._owned_client.aclose()
            self._owned_client = None


def build_dispatcher(
    url: str = DEFAULT_STORE_PATH,
    *,
    beacon: Beacon | None = None,
    client: httpx.AsyncClient | None = None,
    token: str | None = None,
    token_header: str = DEFAULT_TOKEN_HEADER,
    timeout: float = 5.0,
) -> BatchDispatcher:
    """Pick delivery strategies from the capabilities that are present.

    A beacon, when given, is preferred; the keepalive request is always the
    fallback. A client is created (and later closed) when none is passed in.
    """

    strategies: list[DeliveryStrategy] = []
    if beacon is not None:
        strategies.append(BeaconDelivery(beacon))

    owned = None
    if client is None:
        client = owned = httpx.AsyncClient(timeout=timeout)

    headers = {token_header: token} if token else None
    strategies.append(KeepaliveRequestDelivery(client, headers=headers))
    return BatchDispatcher(url, strategies, owned_client=owned)
