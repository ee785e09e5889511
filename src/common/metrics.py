from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from threading import Lock

from common.logging_utils import get_logger


logger = get_logger(__name__)

_COUNTS: Counter[str] = Counter()
_COUNTS_LOCK = Lock()


@dataclass(frozen=True)
class Metric:
    name: str
    value: float = 1
    unit: str = "Count"


def emit_metric(metric: Metric) -> None:
    with _COUNTS_LOCK:
        _COUNTS[metric.name] += metric.value
    logger.info("metric %s=%s %s", metric.name, metric.value, metric.unit)


def incr(name: str) -> None:
    emit_metric(Metric(name))


def snapshot() -> dict[str, float]:
    """Totals emitted so far in this process, keyed by metric name."""

    with _COUNTS_LOCK:
        return dict(_COUNTS)


def reset() -> None:
    with _COUNTS_LOCK:
        _COUNTS.clear()
