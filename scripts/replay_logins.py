"""Replay recorded risk readings against a running gateway.

    python scripts/replay_logins.py --input data/sample/login_readings.csv --rate 5
"""

from __future__ import annotations

import sys
from pathlib import Path


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from producer.replay_logins import main  # noqa: E402


if __name__ == "__main__":
    main()
