from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime, timedelta

from better_contacts.services.scoring.priority_score import as_utc


def week_start_utc(now: datetime) -> datetime:
    """Midnight UTC on the Monday of the week containing ``now``."""
    current = as_utc(now)
    monday = current - timedelta(days=current.weekday())
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)


def rank_for_score(other_scores: Iterable[int], score: int) -> int:
    # 1-based position a score would take among the other contacts.
    return sum(1 for other in other_scores if other > score) + 1


def percentile_of_rank(rank: int, total: int) -> int:
    if total <= 0:
        return 0
    return math.floor((1 - rank / total) * 100 + 0.5)
