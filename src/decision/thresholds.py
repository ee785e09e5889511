from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable

from common.models import Decision, RiskReading


@dataclass(frozen=True)
class Thresholds:
    """Fixed cut-offs for the four-way decision.

    Comparisons use raw reading values; nothing is clamped here.
    """

    conf_min: float = 0.6
    score_block: float = 0.75
    conf_block: float = 0.8
    score_warn: float = 0.55
    conf_warn: float = 0.6

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


DEFAULT_THRESHOLDS = Thresholds()


def rule_low_confidence(reading: RiskReading, t: Thresholds) -> bool:
    """Not enough signal yet: overrides any score, high or low."""

    return reading.confidence < t.conf_min


def rule_block(reading: RiskReading, t: Thresholds) -> bool:
    return reading.score >= t.score_block and reading.confidence >= t.conf_block


def rule_elevated(reading: RiskReading, t: Thresholds) -> bool:
    return reading.score >= t.score_warn and reading.confidence >= t.conf_warn


# Evaluated in order, first match wins.
RULES: tuple[tuple[Decision, Callable[[RiskReading, Thresholds], bool]], ...] = (
    (Decision.WARN_LOW_CONFIDENCE, rule_low_confidence),
    (Decision.BLOCK, rule_block),
    (Decision.WARN_ELEVATED, rule_elevated),
)


def classify(reading: RiskReading, *, thresholds: Thresholds | None = None) -> Decision:
    t = DEFAULT_THRESHOLDS if thresholds is None else thresholds
    for decision, rule_fn in RULES:
        if rule_fn(reading, t):
            return decision
    return Decision.ALLOW


def classify_values(score: float, confidence: float, *, thresholds: Thresholds | None = None) -> Decision:
    """Convenience wrapper for callers holding bare floats."""

    return classify(RiskReading(score=score, confidence=confidence), thresholds=thresholds)
