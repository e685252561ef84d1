from __future__ import annotations

from datetime import datetime
from typing import Any

from better_contacts.services.scoring.enrichment_score import field_value, has_field
from better_contacts.services.scoring.priority_score import whole_days_between

REFRESH_AFTER_DAYS = 30

REASON_FIELDS: tuple[tuple[str, str], ...] = (
    ("why_now", "Why Now"),
    ("how_we_met", "How We Met"),
    ("notes", "Notes"),
    ("expertise", "Expertise"),
)


def missing_context_fields(contact: Any) -> list[str]:
    return [label for field, label in REASON_FIELDS if not has_field(contact, field)]


def explain_enrichment_reason(contact: Any, now: datetime) -> str:
    missing = missing_context_fields(contact)
    last_enriched_at = field_value(contact, "last_enriched_at")

    if last_enriched_at is None:
        if missing:
            return f"Never enriched — missing {', '.join(missing[:2])}"
        return "Never enriched — add context"

    days_since_enrichment = whole_days_between(last_enriched_at, now)
    if days_since_enrichment > REFRESH_AFTER_DAYS:
        return f"Last enriched {days_since_enrichment} days ago — refresh context"

    if missing:
        return f"Missing {' and '.join(missing[:2])}"

    return "Could use more context"
