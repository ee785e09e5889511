from __future__ import annotations

from typing import Any, Callable

from common.models import RiskReading


RiskCallback = Callable[[Any], None]


class SignalSource:
    """Opaque producer of risk readings.

    All three capabilities have no-op defaults, so a source that cannot start,
    flush or be polled simply inherits them and callers never probe for
    presence. `get_risk()` returning None means "no fresh reading, use the last
    pushed one".
    """

    def __init__(self) -> None:
        self._subscriber: RiskCallback | None = None

    def subscribe(self, callback: RiskCallback) -> None:
        self._subscriber = callback

    def emit(self, reading: Any) -> None:
        if self._subscriber is not None:
            self._subscriber(reading)

    def start(self) -> None:
        return None

    async def flush(self) -> None:
        return None

    def get_risk(self) -> RiskReading | Any | None:
        return None


class NullSignalSource(SignalSource):
    pass


class StaticSignalSource(SignalSource):
    """Source that always reports one fixed reading (replays and tests)."""

    def __init__(self, reading: RiskReading | Any) -> None:
        super().__init__()
        self.reading = RiskReading.coerce(reading)
        self.started = False

    def start(self) -> None:
        self.started = True
        self.emit(self.reading)

    def update(self, reading: RiskReading | Any) -> None:
        self.reading = RiskReading.coerce(reading)
        self.emit(self.reading)

    def get_risk(self) -> RiskReading:
        return self.reading
