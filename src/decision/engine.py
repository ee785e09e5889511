from __future__ import annotations

import asyncio
from typing import Any

from common.logging_utils import get_logger
from common.models import DEFAULT_LABEL, DEFAULT_SOURCE, Decision, RiskReading, new_login_batch
from decision.dispatch import BatchDispatcher
from decision.panel import CAPTURING_STATUS, INITIAL_STATUS, SUBMIT_FAILED_STATUS, PanelState, Tone
from decision.signals import NullSignalSource, SignalSource
from decision.thresholds import DEFAULT_THRESHOLDS, Thresholds, classify


logger = get_logger(__name__)


class DecisionEngine:
    """Client-side risk gate for one login form.

    Lifecycle: construct, feed `on_signal_update` as readings arrive, call
    `submit()` on form submission, `teardown()` when the page goes away.
    Capture is sticky: once started it never stops.

    All callbacks run on one event loop, so `last_risk` needs no locking.
    Overlapping submits are not guarded; each one dispatches its own batch.
    """

    def __init__(
        self,
        dispatcher: BatchDispatcher,
        source: SignalSource | None = None,
        *,
        thresholds: Thresholds = DEFAULT_THRESHOLDS,
        label: str = DEFAULT_LABEL,
        source_name: str = DEFAULT_SOURCE,
        flush_timeout: float = 2.0,
    ) -> None:
        self.dispatcher = dispatcher
        self.source = source if source is not None else NullSignalSource()
        self.thresholds = thresholds
        self.label = label
        self.source_name = source_name
        self.flush_timeout = flush_timeout

        self.last_risk = RiskReading()
        self.capture_started = False
        self.last_delivery: str | None = None
        self.panel = PanelState()
        self._background: set[asyncio.Task[None]] = set()

        self.source.subscribe(self.on_signal_update)
        self.panel.set_status(INITIAL_STATUS, Tone.MUTED)

    def on_signal_update(self, reading: Any) -> None:
        self.last_risk = RiskReading.coerce(reading)
        self.panel.show_reading(self.last_risk, self.thresholds)

    def ensure_capture_started(self) -> None:
        if self.capture_started:
            return
        self.capture_started = True
        try:
            self.source.start()
        except Exception:  # noqa: BLE001
            logger.exception("signal source start failed")
        self.panel.set_status(CAPTURING_STATUS, Tone.MUTED)

    async def _final_flush(self) -> None:
        try:
            await asyncio.wait_for(self.source.flush(), timeout=self.flush_timeout)
        except asyncio.TimeoutError:
            logger.warning("flush did not finish within %.1fs; using last reading", self.flush_timeout)
        except Exception:  # noqa: BLE001
            logger.exception("flush failed")

    def _current_reading(self) -> RiskReading:
        try:
            fresh = self.source.get_risk()
        except Exception:  # noqa: BLE001
            logger.exception("get_risk failed; using last pushed reading")
            fresh = None
        return self.last_risk if fresh is None else RiskReading.coerce(fresh)

    async def handle_submit(self) -> Decision:
        self.ensure_capture_started()
        await self._final_flush()

        self.on_signal_update(self._current_reading())
        decision = classify(self.last_risk, thresholds=self.thresholds)
        self.panel.show_decision(decision)

        # Every attempt is reported, blocked ones included.
        batch = new_login_batch(self.last_risk, label=self.label, source=self.source_name)
        self.last_delivery = self.dispatcher.send_batch(batch)
        return decision

    async def submit(self) -> Decision | None:
        """UI-facing entry point; never raises."""

        try:
            return await self.handle_submit()
        except Exception:  # noqa: BLE001
            logger.exception("submit failed")
            self.panel.set_status(SUBMIT_FAILED_STATUS, Tone.WARN)
            return None

    async def _flush_quietly(self) -> None:
        try:
            await self.source.flush()
        except Exception:  # noqa: BLE001
            logger.exception("flush before unload failed")

    def flush_on_unload(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._flush_quietly())
            return
        task = loop.create_task(self._flush_quietly())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def teardown(self) -> None:
        self.flush_on_unload()
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
        await self.dispatcher.aclose()
