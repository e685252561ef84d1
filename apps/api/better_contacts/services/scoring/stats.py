from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Iterable

from better_contacts.services.scoring.enrichment_score import MAX_ENRICHMENT_SCORE, field_value
from better_contacts.services.scoring.priority_score import as_utc

# Score bands for the dashboard summary; these bucket persisted scores, not
# computed priorities.
HIGH_NEED_BELOW = 30
MEDIUM_NEED_BELOW = 70


def summarize_enrichment(contacts: Iterable[Any], now: datetime, window_days: int = 7) -> dict:
    scores: list[int] = []
    enriched_recently = 0
    window_start = as_utc(now) - timedelta(days=window_days)
    for contact in contacts:
        scores.append(int(field_value(contact, "enrichment_score") or 0))
        last_enriched_at = field_value(contact, "last_enriched_at")
        if last_enriched_at is not None and as_utc(last_enriched_at) > window_start:
            enriched_recently += 1

    total = len(scores)
    fully_enriched = sum(1 for score in scores if score >= MAX_ENRICHMENT_SCORE)
    # int(x + 0.5) matches half-up rounding for non-negative averages.
    average = int(sum(scores) / total + 0.5) if total else 0
    return {
        "total_contacts": total,
        "fully_enriched": fully_enriched,
        "needs_enrichment": total - fully_enriched,
        "average_score": average,
        "by_priority": {
            "high": sum(1 for score in scores if score < HIGH_NEED_BELOW),
            "medium": sum(1 for score in scores if HIGH_NEED_BELOW <= score < MEDIUM_NEED_BELOW),
            "low": sum(1 for score in scores if MEDIUM_NEED_BELOW <= score < MAX_ENRICHMENT_SCORE),
        },
        "enriched_this_week": enriched_recently,
    }
