"""
Progress arithmetic shared by assignments and schedules.

Both ledgers express completion as a whole percentage, rounded half up
(0.5 -> 1) and clamped to 0..100. An empty denominator is 0%.
"""
import math
from typing import Iterable


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def completion_percentage(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    pct = round_half_up(100 * completed / total)
    return max(0, min(100, pct))


def merge_completed(existing: Iterable[str] | None, *activity_ids: str) -> list[str]:
    """Ordered set-union: keeps first occurrence, drops duplicates and blanks."""
    out: list[str] = []
    seen: set[str] = set()
    for aid in list(existing or []) + list(activity_ids):
        if not aid or aid in seen:
            continue
        seen.add(aid)
        out.append(aid)
    return out
