from __future__ import annotations

import bz2
import gzip
from pathlib import Path
from typing import IO, Iterable


def open_text(path: str | Path) -> IO[str]:
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix == ".bz2":
        return bz2.open(p, mode="rt", encoding="utf-8", errors="replace")
    if suffix == ".gz":
        return gzip.open(p, mode="rt", encoding="utf-8", errors="replace")
    return p.open("r", encoding="utf-8", errors="replace")


def iter_lines(path: str | Path) -> Iterable[str]:
    """Yield stripped, non-blank lines, skipping `#` comments."""

    with open_text(path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                yield line
