from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from better_contacts.api.v1.schemas import ContactImportRow
from better_contacts.db.pg.models import Contact, Tag
from better_contacts.services.contacts_registry.records import (
    apply_contact_fields,
    refresh_enrichment_score,
    replace_tags,
    same_tag,
)

logger = logging.getLogger(__name__)

NOTES_SEPARATOR = "\n\n---\n\n"

# Single-value fields where the existing contact wins and only blanks are filled.
_FILL_BLANK_FIELDS: tuple[str, ...] = (
    "last_name",
    "title",
    "company",
    "location",
    "linkedin_url",
    "how_we_met",
    "last_contact_date",
    "relationship_history",
    "why_now",
    "expertise",
    "interests",
)


def _normalized_email(value: str | None) -> str:
    return (value or "").strip().lower()


def _row_completeness(row: ContactImportRow) -> int:
    return sum(1 for value in row.model_dump(exclude={"tags"}).values() if value)


def _dedupe_source_rows(rows: list[ContactImportRow]) -> tuple[list[ContactImportRow], int]:
    if not rows:
        return [], 0
    winners: dict[str, tuple[int, ContactImportRow]] = {}
    passthrough: list[tuple[int, ContactImportRow]] = []
    duplicates = 0
    for idx, row in enumerate(rows):
        email = _normalized_email(row.primary_email)
        if not email:
            passthrough.append((idx, row))
            continue
        if email not in winners:
            winners[email] = (idx, row)
            continue
        duplicates += 1
        _, existing_row = winners[email]
        # Prefer later rows when otherwise equivalent.
        if _row_completeness(row) >= _row_completeness(existing_row):
            winners[email] = (idx, row)
    if duplicates:
        logger.warning(
            "contacts_import_duplicate_emails_deduped",
            extra={"input_rows": len(rows), "duplicate_rows": duplicates},
        )
    ordered = sorted(list(winners.values()) + passthrough, key=lambda item: item[0])
    return [row for _, row in ordered], duplicates


def _merge_unique(values: list[str | None], normalize=lambda value: value) -> list[str]:
    seen: set[str] = set()
    merged: list[str] = []
    for value in values:
        if not value:
            continue
        key = normalize(value)
        if key in seen:
            continue
        seen.add(key)
        merged.append(value)
    return merged


def _note_segments(notes: str | None) -> list[str]:
    if not notes:
        return []
    return [segment for segment in notes.split(NOTES_SEPARATOR) if segment.strip()]


def merge_row_into_contact(contact: Contact, row: ContactImportRow) -> None:
    emails = _merge_unique(
        [contact.primary_email, contact.secondary_email, row.primary_email, row.secondary_email],
        normalize=_normalized_email,
    )
    contact.primary_email = emails[0] if emails else None
    contact.secondary_email = emails[1] if len(emails) > 1 else None

    phones = _merge_unique([contact.primary_phone, contact.secondary_phone, row.primary_phone, row.secondary_phone])
    contact.primary_phone = phones[0] if phones else None
    contact.secondary_phone = phones[1] if len(phones) > 1 else None

    for name in _FILL_BLANK_FIELDS:
        incoming = getattr(row, name)
        if incoming and not getattr(contact, name):
            setattr(contact, name, incoming)

    notes = _merge_unique([*_note_segments(contact.notes), *_note_segments(row.notes)], normalize=str.strip)
    contact.notes = NOTES_SEPARATOR.join(notes) if notes else None

    for incoming in row.tags:
        if not any(same_tag(existing, incoming) for existing in contact.tags):
            contact.tags.append(Tag(text=incoming.text, category=incoming.category))


def _find_existing(db: Session, user_id: str, email: str) -> Contact | None:
    if not email:
        return None
    return db.scalar(
        select(Contact)
        .where(Contact.user_id == user_id, func.lower(Contact.primary_email) == email)
        .order_by(Contact.created_at.asc())
        .limit(1)
    )


def import_contacts(db: Session, user_id: str, rows: list[ContactImportRow], source: str = "CSV") -> dict:
    """Create or merge imported rows and recompute each touched contact's score."""
    source_rows, deduplicated = _dedupe_source_rows(rows)
    created = 0
    merged = 0
    contact_ids: list[str] = []
    for row in source_rows:
        existing = _find_existing(db, user_id, _normalized_email(row.primary_email))
        if existing is not None:
            merge_row_into_contact(existing, row)
            contact = existing
            merged += 1
        else:
            contact = Contact(user_id=user_id, source=source, tags=[])
            apply_contact_fields(contact, row.model_dump(exclude={"tags"}))
            replace_tags(contact, row.tags)
            db.add(contact)
            created += 1
        refresh_enrichment_score(contact)
        db.flush()
        contact_ids.append(contact.id)

    db.commit()
    logger.info(
        "contacts_imported",
        extra={
            "user_id": user_id,
            "created_count": created,
            "merged_count": merged,
            "deduplicated_count": deduplicated,
        },
    )
    return {
        "created": created,
        "merged": merged,
        "deduplicated": deduplicated,
        "contact_ids": contact_ids,
    }
