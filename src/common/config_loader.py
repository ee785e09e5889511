from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config at {p} must be a mapping")
    return data


def section(cfg: dict[str, Any], name: str) -> dict[str, Any]:
    """Return `cfg[name]` when it is a mapping, else an empty dict."""

    value = cfg.get(name)
    return value if isinstance(value, dict) else {}
