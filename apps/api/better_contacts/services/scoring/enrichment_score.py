from __future__ import annotations

from collections.abc import Mapping
from typing import Any

MAX_ENRICHMENT_SCORE = 100
TAG_POINTS = 5

# why_now > how_we_met > title/company > email > location/link/notes > phone > name
FIELD_POINTS: dict[str, int] = {
    "first_name": 7,
    "last_name": 3,
    "primary_email": 8,
    "secondary_email": 2,
    "primary_phone": 4,
    "secondary_phone": 1,
    "title": 10,
    "company": 10,
    "location": 5,
    "linkedin_url": 5,
    "how_we_met": 15,
    "why_now": 20,
    "notes": 5,
}


def field_value(contact: Any, field: str) -> Any:
    if isinstance(contact, Mapping):
        return contact.get(field)
    return getattr(contact, field, None)


def has_field(contact: Any, field: str) -> bool:
    return bool(field_value(contact, field))


def clamp_score(value: float) -> int:
    return int(max(0, min(MAX_ENRICHMENT_SCORE, value)))


def compute_enrichment_score(contact: Any, tag_count: int = 0) -> int:
    """Completeness of a contact on a 0-100 scale.

    ``contact`` may be an ORM row, a pydantic model or a plain mapping; absent
    and empty values contribute nothing.
    """
    score = sum(points for field, points in FIELD_POINTS.items() if has_field(contact, field))
    if tag_count > 0:
        score += TAG_POINTS
    return clamp_score(score)


def score_breakdown(contact: Any, tag_count: int = 0) -> dict[str, int]:
    components = {field: (points if has_field(contact, field) else 0) for field, points in FIELD_POINTS.items()}
    components["tags"] = TAG_POINTS if tag_count > 0 else 0
    return components
