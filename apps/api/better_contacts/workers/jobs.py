from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from better_contacts.db.pg.models import Contact
from better_contacts.db.pg.session import SessionLocal
from better_contacts.services.contacts_registry.records import refresh_enrichment_score

logger = logging.getLogger(__name__)


def recompute_scores(user_id: str | None = None) -> dict:
    """Recompute and persist the enrichment score of every contact (or one user's)."""
    db = SessionLocal()
    try:
        query = select(Contact).options(selectinload(Contact.tags))
        if user_id is not None:
            query = query.where(Contact.user_id == user_id)
        contacts = db.scalars(query).all()

        changed = 0
        for contact in contacts:
            previous = contact.enrichment_score
            if refresh_enrichment_score(contact) != previous:
                changed += 1
        db.commit()
    finally:
        db.close()

    logger.info(
        "enrichment_scores_recomputed",
        extra={"user_id": user_id, "contact_count": len(contacts), "changed_count": changed},
    )
    return {"user_id": user_id, "contact_count": len(contacts), "changed_count": changed}
