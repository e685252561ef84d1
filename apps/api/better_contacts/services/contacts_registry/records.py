from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from better_contacts.api.v1.schemas import ContactCreate, ContactUpdate, TagIn
from better_contacts.db.pg.models import Contact, EnrichmentStreak, Tag
from better_contacts.services.scoring.enrichment_score import compute_enrichment_score

logger = logging.getLogger(__name__)

# Columns that may be written from request payloads; tags are handled separately.
CONTACT_FIELDS: tuple[str, ...] = (
    "first_name",
    "last_name",
    "primary_email",
    "secondary_email",
    "primary_phone",
    "secondary_phone",
    "title",
    "company",
    "location",
    "linkedin_url",
    "how_we_met",
    "relationship_strength",
    "last_contact_date",
    "relationship_history",
    "why_now",
    "expertise",
    "interests",
    "notes",
    "source",
    "last_enriched_at",
)
_NON_NULLABLE_FIELDS = frozenset({"first_name", "relationship_strength", "source"})


class DuplicateTagError(ValueError):
    pass


def get_owned_contact(db: Session, user_id: str, contact_id: str) -> Contact | None:
    return db.scalar(select(Contact).where(Contact.id == contact_id, Contact.user_id == user_id))


def refresh_enrichment_score(contact: Contact) -> int:
    previous = contact.enrichment_score
    contact.enrichment_score = compute_enrichment_score(contact, len(contact.tags))
    if previous != contact.enrichment_score:
        logger.info(
            "enrichment_score_recomputed",
            extra={"contact_id": contact.id, "previous_score": previous, "enrichment_score": contact.enrichment_score},
        )
    return contact.enrichment_score


def apply_contact_fields(contact: Contact, values: dict) -> None:
    for name, value in values.items():
        if name not in CONTACT_FIELDS:
            continue
        if value is None and name in _NON_NULLABLE_FIELDS:
            continue
        setattr(contact, name, value)


def same_tag(tag: Tag, incoming: TagIn) -> bool:
    return tag.text.lower() == incoming.text.lower() and tag.category == incoming.category


def replace_tags(contact: Contact, tags: list[TagIn]) -> None:
    kept: list[Tag] = []
    for incoming in tags:
        if any(same_tag(existing, incoming) for existing in kept):
            continue
        kept.append(Tag(text=incoming.text, category=incoming.category))
    contact.tags = kept


def create_contact(db: Session, user_id: str, payload: ContactCreate) -> Contact:
    contact = Contact(user_id=user_id, tags=[])
    apply_contact_fields(contact, payload.model_dump(exclude={"tags"}))
    replace_tags(contact, payload.tags)
    refresh_enrichment_score(contact)
    db.add(contact)
    db.commit()
    db.refresh(contact)
    logger.info("contact_created", extra={"contact_id": contact.id, "user_id": user_id})
    return contact


def update_contact(db: Session, contact: Contact, payload: ContactUpdate) -> Contact:
    values = payload.model_dump(exclude_unset=True)
    tags = values.pop("tags", None)
    apply_contact_fields(contact, values)
    if tags is not None:
        replace_tags(contact, payload.tags or [])
    refresh_enrichment_score(contact)
    db.commit()
    db.refresh(contact)
    return contact


def delete_contact(db: Session, contact: Contact) -> None:
    contact_id = contact.id
    db.delete(contact)
    db.commit()
    logger.info("contact_deleted", extra={"contact_id": contact_id})


def add_tag(db: Session, contact: Contact, incoming: TagIn) -> Tag:
    if any(same_tag(existing, incoming) for existing in contact.tags):
        raise DuplicateTagError(f"Tag already exists: {incoming.text}")
    tag = Tag(text=incoming.text, category=incoming.category)
    contact.tags.append(tag)
    refresh_enrichment_score(contact)
    db.commit()
    db.refresh(tag)
    return tag


def remove_tag(db: Session, contact: Contact, tag_id: str) -> bool:
    tag = next((existing for existing in contact.tags if existing.id == tag_id), None)
    if tag is None:
        return False
    contact.tags.remove(tag)
    refresh_enrichment_score(contact)
    db.commit()
    return True


def mark_enrichment_skipped(db: Session, contact: Contact, now: datetime) -> Contact:
    # Touching last_enriched_at pushes the contact down the queue without changing its score.
    contact.last_enriched_at = now
    db.commit()
    db.refresh(contact)
    logger.info("enrichment_skipped", extra={"contact_id": contact.id})
    return contact


def contact_ranking(db: Session, user_id: str, contact_id: str) -> tuple[int, int] | None:
    ordered_ids = db.scalars(
        select(Contact.id)
        .where(Contact.user_id == user_id)
        .order_by(Contact.enrichment_score.desc(), Contact.created_at.asc(), Contact.id.asc())
    ).all()
    try:
        rank = ordered_ids.index(contact_id) + 1
    except ValueError:
        return None
    return rank, len(ordered_ids)


def delete_contacts(db: Session, user_id: str, contact_ids: list[str] | None = None) -> int:
    """Delete the caller's contacts, all of them when ``contact_ids`` is None; ids owned by others are ignored."""
    query = select(Contact).where(Contact.user_id == user_id)
    if contact_ids is not None:
        query = query.where(Contact.id.in_(contact_ids))
    contacts = db.scalars(query).all()
    for contact in contacts:
        db.delete(contact)
    db.commit()
    logger.info("contacts_deleted", extra={"user_id": user_id, "deleted_count": len(contacts)})
    return len(contacts)


def other_contact_scores(db: Session, user_id: str, contact_id: str) -> list[int]:
    return list(
        db.scalars(
            select(Contact.enrichment_score).where(Contact.user_id == user_id, Contact.id != contact_id)
        ).all()
    )


def record_weekly_enrichment(db: Session, user_id: str, week_start: datetime) -> EnrichmentStreak:
    streak = db.scalar(
        select(EnrichmentStreak).where(EnrichmentStreak.user_id == user_id, EnrichmentStreak.week_start == week_start)
    )
    if streak is None:
        streak = EnrichmentStreak(user_id=user_id, week_start=week_start, contacts_enriched=0)
        db.add(streak)
    streak.contacts_enriched += 1
    db.commit()
    db.refresh(streak)
    logger.info(
        "enrichment_streak_recorded",
        extra={"user_id": user_id, "contacts_enriched": streak.contacts_enriched},
    )
    return streak
