from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

PriorityTier = Literal["high", "medium", "low"]
PRIORITY_TIERS: tuple[PriorityTier, ...] = ("high", "medium", "low")

HIGH_PRIORITY_THRESHOLD = 60
MEDIUM_PRIORITY_THRESHOLD = 30

NEVER_ENRICHED_STALENESS = 30
_MS_PER_DAY = 86_400_000


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def whole_days_between(earlier: datetime, now: datetime) -> int:
    """Floor of elapsed wall-clock milliseconds over one day, no calendar logic."""
    delta = as_utc(now) - as_utc(earlier)
    elapsed_ms = (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000
    return elapsed_ms // _MS_PER_DAY


def score_deficit_component(score: int) -> int:
    # Half-up rounding of (100 - score) / 2.
    return (100 - score + 1) // 2


def staleness_component(days_since_enriched: int | None) -> int:
    if days_since_enriched is None:
        return NEVER_ENRICHED_STALENESS
    if days_since_enriched > 90:
        return 25
    if days_since_enriched > 30:
        return 15
    if days_since_enriched > 7:
        return 5
    return 0


def recency_component(days_since_created: int) -> int:
    if days_since_created <= 1:
        return 20
    if days_since_created <= 7:
        return 10
    return 0


def enrichment_priority_components(
    score: int,
    last_enriched_at: datetime | None,
    created_at: datetime,
    now: datetime,
) -> dict:
    days_since_enriched = whole_days_between(last_enriched_at, now) if last_enriched_at is not None else None
    days_since_created = whole_days_between(created_at, now)
    return {
        "score_deficit": score_deficit_component(score),
        "staleness": staleness_component(days_since_enriched),
        "recency": recency_component(days_since_created),
        "days_since_enriched": days_since_enriched,
        "days_since_created": days_since_created,
    }


def compute_enrichment_priority(
    score: int,
    last_enriched_at: datetime | None,
    created_at: datetime,
    now: datetime,
) -> int:
    return priority_from_components(enrichment_priority_components(score, last_enriched_at, created_at, now))


def priority_from_components(components: dict) -> int:
    total = components["score_deficit"] + components["staleness"] + components["recency"]
    return max(0, min(100, total))


def priority_tier(priority: int) -> PriorityTier:
    if priority >= HIGH_PRIORITY_THRESHOLD:
        return "high"
    if priority >= MEDIUM_PRIORITY_THRESHOLD:
        return "medium"
    return "low"
