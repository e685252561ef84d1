from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from better_contacts.services.scoring.enrichment_score import has_field

MAX_SUGGESTIONS = 3

# Kept separately from FIELD_POINTS: this list drives the "what to add next"
# prompt and omits the secondary email and phone.
SUGGESTION_CANDIDATES: tuple[tuple[str, str, int], ...] = (
    ("why_now", "Why Now", 20),
    ("how_we_met", "How We Met", 15),
    ("title", "Job Title", 10),
    ("company", "Company", 10),
    ("primary_email", "Email", 8),
    ("first_name", "First Name", 7),
    ("location", "Location", 5),
    ("linkedin_url", "LinkedIn", 5),
    ("notes", "Notes", 5),
    ("primary_phone", "Phone", 4),
    ("last_name", "Last Name", 3),
)


@dataclass(frozen=True)
class MissingFieldSuggestion:
    field: str
    label: str
    points: int


def suggest_missing_fields(contact: Any, limit: int = MAX_SUGGESTIONS) -> list[MissingFieldSuggestion]:
    missing = [
        MissingFieldSuggestion(field=field, label=label, points=points)
        for field, label, points in SUGGESTION_CANDIDATES
        if not has_field(contact, field)
    ]
    # sorted() is stable, so equal points keep candidate order.
    missing = sorted(missing, key=lambda item: item.points, reverse=True)
    return missing[: min(limit, MAX_SUGGESTIONS)]
