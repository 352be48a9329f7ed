from __future__ import annotations

import re
from typing import Callable, Iterable, Optional, TypeVar

T = TypeVar("T")

Strategy = Callable[[T], Optional[str]]


def first_success(strategies: Iterable[Strategy], value: T) -> str:
    """Apply strategies in order; the first non-empty result wins."""
    for strategy in strategies:
        result = strategy(value)
        if result:
            return result
    return ""


def regex_strategy(pattern: str, group: int = 1, flags: int = 0) -> Strategy[str]:
    rx = re.compile(pattern, flags)

    def _match(text: str) -> Optional[str]:
        m = rx.search(text or "")
        if m and m.group(group):
            return m.group(group)
        return None

    _match.__name__ = f"regex_{pattern}"
    return _match
