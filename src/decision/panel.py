"""View model for the login panel.

The engine never touches markup; it writes into a `PanelState` which the host
UI (or a test) reads back. Two surfaces show the same classification at
different granularity: the status line after a submit, and the badge that
follows every signal update.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

from common.models import Decision, RiskReading
from decision.thresholds import Thresholds, classify


class Tone(str, Enum):
    MUTED = "muted"
    OK = "ok"
    WARN = "warn"
    BLOCK = "block"


INITIAL_STATUS = "Move the cursor and focus the form to begin."
CAPTURING_STATUS = "Capturing mouse dynamics..."
SUBMIT_FAILED_STATUS = "Submit failed, check console for details."
LOW_CONFIDENCE_HINT = "Move your mouse a bit more..."
NO_SIGNAL_BADGE = "No signal yet"

STATUS_MESSAGES: dict[Decision, tuple[str, Tone]] = {
    Decision.WARN_LOW_CONFIDENCE: ("Need more pointer signal before deciding.", Tone.WARN),
    Decision.BLOCK: ("Access blocked: anomalous mouse dynamics.", Tone.BLOCK),
    Decision.WARN_ELEVATED: ("Warning: elevated risk detected, step-up verification advised.", Tone.WARN),
    Decision.ALLOW: ("Access granted: mouse dynamics look good.", Tone.OK),
}

BADGES: dict[Decision, tuple[str, Tone]] = {
    Decision.WARN_LOW_CONFIDENCE: ("Low confidence", Tone.WARN),
    Decision.BLOCK: ("High risk", Tone.BLOCK),
    Decision.WARN_ELEVATED: ("Elevated risk", Tone.WARN),
    Decision.ALLOW: ("Low risk", Tone.OK),
}


def meter_width(value: float) -> int:
    """Bar width in percent, clamped to [0, 100]. Rounds half up."""

    clamped = min(1.0, max(0.0, value))
    return int(math.floor(clamped * 100 + 0.5))


def format_value(value: float) -> str:
    return f"{value:.3f}"


@dataclass
class Meter:
    width_pct: int = 0
    text: str = format_value(0.0)

    def show(self, value: float) -> None:
        self.width_pct = meter_width(value)
        self.text = format_value(value)


@dataclass
class PanelState:
    status: str = ""
    status_tone: Tone = Tone.MUTED
    badge: str = NO_SIGNAL_BADGE
    badge_tone: Tone | None = None
    hint: str = ""
    hint_tone: Tone = Tone.MUTED
    score_meter: Meter = field(default_factory=Meter)
    confidence_meter: Meter = field(default_factory=Meter)

    def set_status(self, message: str, tone: Tone = Tone.MUTED) -> None:
        self.status = message
        self.status_tone = tone

    def show_reading(self, reading: RiskReading, thresholds: Thresholds) -> None:
        self.score_meter.show(reading.score)
        self.confidence_meter.show(reading.confidence)

        self.badge, self.badge_tone = BADGES[classify(reading, thresholds=thresholds)]

        if reading.confidence < thresholds.conf_min:
            self.hint, self.hint_tone = LOW_CONFIDENCE_HINT, Tone.WARN
        else:
            self.hint, self.hint_tone = "", Tone.MUTED

    def show_decision(self, decision: Decision) -> None:
        self.set_status(*STATUS_MESSAGES[decision])
