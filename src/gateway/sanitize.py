from __future__ import annotations

from typing import Any, Callable


SENSITIVE_KEYS: frozenset[str] = frozenset({"password", "pass", "passwd", "pwd", "secret", "token"})

DEFAULT_MAX_DEPTH = 64

KeyPredicate = Callable[[str], bool]


class NestingTooDeep(ValueError):
    pass


def is_sensitive_key(key: Any) -> bool:
    return str(key).lower() in SENSITIVE_KEYS


def strip_sensitive(
    value: Any,
    *,
    drop: KeyPredicate = is_sensitive_key,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Any:
    """Return a copy of a JSON tree without the keys `drop` matches.

    Objects and arrays are walked at every depth; scalars pass through.
    Trees nested deeper than `max_depth` raise NestingTooDeep.
    """

    def walk(node: Any, depth: int) -> Any:
        if depth > max_depth:
            raise NestingTooDeep(f"nesting deeper than {max_depth}")
        if isinstance(node, list):
            return [walk(item, depth + 1) for item in node]
        if isinstance(node, dict):
            return {k: walk(v, depth + 1) for k, v in node.items() if not drop(k)}
        return node

    return walk(value, 0)
