from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from better_contacts.api.v1.deps import get_db, get_now, get_settings_dep, get_user_id
from better_contacts.api.v1.schemas import (
    CONTACT_SOURCES,
    CompletionContact,
    CompletionRanking,
    CompletionStreak,
    ContactOut,
    EnrichmentCompletionResponse,
    EnrichmentQueueItem,
    EnrichmentQueueResponse,
    EnrichmentStatsResponse,
    PriorityLevel,
    SkipContactResponse,
)
from better_contacts.db.pg.models import Contact
from better_contacts.services.contacts_registry import records
from better_contacts.services.scoring.completion import percentile_of_rank, rank_for_score, week_start_utc
from better_contacts.services.scoring.enrichment_score import MAX_ENRICHMENT_SCORE
from better_contacts.services.scoring.queue import build_enrichment_queue
from better_contacts.services.scoring.stats import summarize_enrichment

router = APIRouter(prefix="/enrichment", tags=["enrichment"])
logger = logging.getLogger(__name__)


@router.get("/queue", response_model=EnrichmentQueueResponse)
def enrichment_queue(
    priority: PriorityLevel | None = None,
    source: str | None = None,
    limit: int | None = Query(default=None, ge=1, le=500),
    db: Session = Depends(get_db),
    settings=Depends(get_settings_dep),
    user_id: str = Depends(get_user_id),
    now: datetime = Depends(get_now),
) -> EnrichmentQueueResponse:
    # Unknown sources are ignored rather than rejected.
    source_filter = source if source in CONTACT_SOURCES else None
    page_size = min(limit or settings.enrichment_queue_default_limit, settings.enrichment_queue_max_limit)

    conditions = [Contact.user_id == user_id, Contact.enrichment_score < MAX_ENRICHMENT_SCORE]
    if source_filter:
        conditions.append(Contact.source == source_filter)
    # Persistence order is a stable starting point; the queue re-sorts by priority.
    contacts = db.scalars(
        select(Contact)
        .options(selectinload(Contact.tags))
        .where(*conditions)
        .order_by(Contact.enrichment_score.asc(), Contact.last_enriched_at.asc(), Contact.created_at.desc())
    ).all()

    queue = build_enrichment_queue(
        contacts,
        now=now,
        priority_filter=priority,
        source_filter=source_filter,
        limit=page_size,
    )
    return EnrichmentQueueResponse(
        contacts=[
            EnrichmentQueueItem(
                contact=ContactOut.model_validate(entry.contact),
                priority=entry.priority,
                priority_level=entry.tier,
                enrichment_reason=entry.reason,
                components=entry.components,
            )
            for entry in queue.entries
        ],
        total=queue.total,
    )


@router.get("/stats", response_model=EnrichmentStatsResponse)
def enrichment_stats(
    db: Session = Depends(get_db),
    settings=Depends(get_settings_dep),
    user_id: str = Depends(get_user_id),
    now: datetime = Depends(get_now),
) -> EnrichmentStatsResponse:
    rows = db.execute(
        select(Contact.enrichment_score, Contact.last_enriched_at).where(Contact.user_id == user_id)
    ).all()
    summary = summarize_enrichment(rows, now=now, window_days=settings.recently_enriched_window_days)
    return EnrichmentStatsResponse.model_validate(summary)


@router.post("/{contact_id}/skip", response_model=SkipContactResponse)
def skip_contact(
    contact_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    now: datetime = Depends(get_now),
) -> SkipContactResponse:
    contact = records.get_owned_contact(db, user_id, contact_id)
    if contact is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    contact = records.mark_enrichment_skipped(db, contact, now)
    return SkipContactResponse(success=True, contact=ContactOut.model_validate(contact))


@router.post("/{contact_id}/completion", response_model=EnrichmentCompletionResponse)
def record_completion(
    contact_id: str,
    previous_score: int = Query(default=0, ge=0, le=100),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    now: datetime = Depends(get_now),
) -> EnrichmentCompletionResponse:
    contact = records.get_owned_contact(db, user_id, contact_id)
    if contact is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    current_rank, total_contacts = records.contact_ranking(db, user_id, contact_id)
    previous_rank = rank_for_score(records.other_contact_scores(db, user_id, contact_id), previous_score)
    streak = records.record_weekly_enrichment(db, user_id, week_start_utc(now))
    db.refresh(contact)

    return EnrichmentCompletionResponse(
        contact=CompletionContact.model_validate(contact),
        ranking=CompletionRanking(
            current_rank=current_rank,
            previous_rank=previous_rank,
            total_contacts=total_contacts,
            percentile=percentile_of_rank(current_rank, total_contacts),
        ),
        streak=CompletionStreak(count=streak.contacts_enriched, week_start=streak.week_start),
        score_delta=contact.enrichment_score - previous_score,
    )
