from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from datetime import datetime

from better_contacts.db.pg.models import Contact

RELATIONSHIP_LABELS = {1: "Weak", 2: "Casual", 3: "Good", 4: "Strong"}

# (header, attribute) pairs in export column order.
EXPORT_COLUMNS: tuple[tuple[str, str], ...] = (
    ("First Name", "first_name"),
    ("Last Name", "last_name"),
    ("Primary Email", "primary_email"),
    ("Secondary Email", "secondary_email"),
    ("Primary Phone", "primary_phone"),
    ("Secondary Phone", "secondary_phone"),
    ("Title", "title"),
    ("Company", "company"),
    ("Location", "location"),
    ("LinkedIn URL", "linkedin_url"),
    ("How We Met", "how_we_met"),
    ("Relationship Strength", "relationship_strength"),
    ("Last Contact Date", "last_contact_date"),
    ("Relationship History", "relationship_history"),
    ("Why Now", "why_now"),
    ("Expertise", "expertise"),
    ("Interests", "interests"),
    ("Notes", "notes"),
    ("Tags", "tags"),
    ("Enrichment Score", "enrichment_score"),
    ("Source", "source"),
    ("Created At", "created_at"),
    ("Updated At", "updated_at"),
)


def _cell(contact: Contact, attribute: str) -> str:
    if attribute == "relationship_strength":
        return RELATIONSHIP_LABELS.get(contact.relationship_strength, "")
    if attribute == "tags":
        return "; ".join(f"{tag.text} ({tag.category})" for tag in contact.tags)
    value = getattr(contact, attribute)
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    return str(value)


def render_contacts_csv(contacts: Iterable[Contact]) -> str:
    """Render contacts as CSV text with one header row; dates are ``YYYY-MM-DD``."""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow([header for header, _ in EXPORT_COLUMNS])
    for contact in contacts:
        writer.writerow([_cell(contact, attribute) for _, attribute in EXPORT_COLUMNS])
    return output.getvalue()
