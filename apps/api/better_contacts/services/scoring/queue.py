from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from better_contacts.services.scoring.enrichment_score import MAX_ENRICHMENT_SCORE, field_value
from better_contacts.services.scoring.priority_score import (
    PriorityTier,
    enrichment_priority_components,
    priority_from_components,
    priority_tier,
)
from better_contacts.services.scoring.reasons import explain_enrichment_reason

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_LIMIT = 20


@dataclass
class QueueEntry:
    contact: Any
    score: int
    priority: int
    tier: PriorityTier
    reason: str
    components: dict = field(default_factory=dict)


@dataclass
class EnrichmentQueue:
    entries: list[QueueEntry]
    total: int


def rank_contact(contact: Any, now: datetime) -> QueueEntry:
    score = int(field_value(contact, "enrichment_score") or 0)
    components = enrichment_priority_components(
        score,
        field_value(contact, "last_enriched_at"),
        field_value(contact, "created_at"),
        now,
    )
    priority = priority_from_components(components)
    return QueueEntry(
        contact=contact,
        score=score,
        priority=priority,
        tier=priority_tier(priority),
        reason=explain_enrichment_reason(contact, now),
        components=components,
    )


def build_enrichment_queue(
    contacts: Iterable[Any],
    now: datetime,
    priority_filter: PriorityTier | None = None,
    source_filter: str | None = None,
    limit: int = DEFAULT_QUEUE_LIMIT,
) -> EnrichmentQueue:
    """Order contacts that still need enrichment by descending priority.

    The sort is stable, so contacts with equal priority keep their input order.
    ``total`` counts entries after the tier filter and before truncation.
    """
    candidates = [
        contact
        for contact in contacts
        if int(field_value(contact, "enrichment_score") or 0) < MAX_ENRICHMENT_SCORE
        and (source_filter is None or field_value(contact, "source") == source_filter)
    ]
    ranked = sorted((rank_contact(contact, now) for contact in candidates), key=lambda entry: entry.priority, reverse=True)
    if priority_filter is not None:
        ranked = [entry for entry in ranked if entry.tier == priority_filter]

    logger.debug(
        "enrichment_queue_built",
        extra={"candidate_count": len(candidates), "filtered_count": len(ranked), "limit": limit},
    )
    return EnrichmentQueue(entries=ranked[: max(limit, 0)], total=len(ranked))
