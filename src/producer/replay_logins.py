from __future__ import annotations

import argparse
import asyncio
import json
import time
from collections import Counter
from pathlib import Path
from typing import Any, Iterable

import httpx

from common.config_loader import load_yaml, section
from common.io_utils import iter_lines
from common.logging_utils import get_logger
from common.models import DEFAULT_LABEL
from decision.dispatch import build_dispatcher
from decision.engine import DecisionEngine
from decision.signals import StaticSignalSource


logger = get_logger(__name__)


def _parse_csv_row(line: str) -> tuple[float, float, str] | None:
    parts = [x.strip() for x in line.split(",")]
    if len(parts) not in (2, 3):
        return None
    try:
        score, confidence = float(parts[0]), float(parts[1])
    except ValueError:
        # Header row or garbage.
        return None
    label = parts[2] if len(parts) == 3 and parts[2] else DEFAULT_LABEL
    return score, confidence, label


def _parse_json_row(line: str) -> tuple[float, float, str] | None:
    try:
        obj = json.loads(line)
    except ValueError:
        return None
    if not isinstance(obj, dict):
        return None
    risk = obj.get("risk") if isinstance(obj.get("risk"), dict) else obj
    try:
        score, confidence = float(risk["score"]), float(risk["confidence"])
    except (KeyError, TypeError, ValueError):
        return None
    return score, confidence, str(obj.get("label") or DEFAULT_LABEL)


def iter_risk_rows(
    input_path: str | Path,
    *,
    start_line: int = 0,
    max_events: int | None = None,
) -> Iterable[tuple[float, float, str]]:
    """Yield (score, confidence, label) rows.

    Supports:
    - CSV `score,confidence[,label]` with or without a header row
    - JSON lines, either flat `{"score", "confidence"}` or a logged
      login_attempt event with a nested `risk` object
    - `.gz` / `.bz2` compressed input
    """
    p = Path(input_path)
    is_json = ".jsonl" in p.suffixes or ".json" in p.suffixes
    parse = _parse_json_row if is_json else _parse_csv_row

    yielded = 0
    for idx, line in enumerate(iter_lines(p)):
        if idx < start_line:
            continue
        row = parse(line)
        if row is None:
            continue
        yield row
        yielded += 1
        if max_events is not None and yielded >= max_events:
            return


class _DryRunBeacon:
    """Accepts every batch without sending it anywhere."""

    def __init__(self) -> None:
        self.accepted = 0

    def send_beacon(self, url: str, data: bytes, content_type: str) -> bool:
        self.accepted += 1
        return True


async def _sleep_for_rate(*, sent_events: int, start_time: float, rate_events_per_sec: int) -> None:
    if rate_events_per_sec <= 0:
        return
    elapsed = time.time() - start_time
    expected = sent_events / rate_events_per_sec
    if elapsed < expected:
        await asyncio.sleep(expected - elapsed)


async def replay_logins(
    *,
    input_path: str | Path,
    gateway_url: str,
    rate_events_per_sec: int = 0,
    token: str | None = None,
    start_line: int = 0,
    max_events: int | None = None,
    dry_run: bool = False,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Run every recorded reading through a fresh engine and submit it."""

    beacon = _DryRunBeacon() if dry_run else None
    dispatcher = build_dispatcher(gateway_url, beacon=beacon, client=client, token=token)

    decisions: Counter[str] = Counter()
    sent = 0
    not_delivered = 0
    start = time.time()

    try:
        for score, confidence, label in iter_risk_rows(input_path, start_line=start_line, max_events=max_events):
            source = StaticSignalSource({"score": score, "confidence": confidence})
            engine = DecisionEngine(dispatcher, source, label=label)
            decision = await engine.submit()
            decisions[decision.name if decision is not None else "FAILED"] += 1

            if engine.last_delivery is None:
                not_delivered += 1
            else:
                sent += 1
            await _sleep_for_rate(sent_events=sent, start_time=start, rate_events_per_sec=rate_events_per_sec)
    finally:
        await dispatcher.aclose()

    elapsed = max(time.time() - start, 1e-6)
    return {
        "input": str(input_path),
        "gateway_url": gateway_url,
        "sent": sent,
        "not_delivered": not_delivered,
        "decisions": dict(decisions),
        "elapsed_sec": elapsed,
        "throughput_events_per_sec": sent / elapsed,
        "dry_run": dry_run,
    }


def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="Replay recorded risk readings through the login decision flow")
    ap.add_argument("--config", default=None, help="Optional YAML config with a `replay:` section")
    ap.add_argument("--input", required=True, help="CSV or JSON-lines file of score/confidence readings")
    ap.add_argument("--gateway-url", help="Full URL of POST /api/store (overrides config)")
    ap.add_argument("--token", help="Ingest token (overrides config)")
    ap.add_argument("--rate", type=int, help="Submits per second, 0 for unthrottled (overrides config)")
    ap.add_argument("--start-line", type=int, default=0, help="Skip this many non-blank input lines first")
    ap.add_argument("--max-events", type=int, default=None)
    ap.add_argument("--dry-run", action="store_true", help="Decide but do not send")
    args = ap.parse_args(argv)

    replay_cfg = section(load_yaml(args.config), "replay") if args.config else {}

    gateway_url = args.gateway_url or str(replay_cfg.get("gateway_url") or "http://127.0.0.1:8080/api/store")
    token = args.token or (str(replay_cfg["token"]) if replay_cfg.get("token") else None)
    rate = args.rate if args.rate is not None else int(replay_cfg.get("rate_events_per_sec") or 0)

    metrics = asyncio.run(
        replay_logins(
            input_path=args.input,
            gateway_url=gateway_url,
            rate_events_per_sec=rate,
            token=token,
            start_line=args.start_line,
            max_events=args.max_events,
            dry_run=args.dry_run,
        )
    )
    logger.info("metrics %s", json.dumps(metrics, separators=(",", ":"), sort_keys=True))


if __name__ == "__main__":
    main()
