from __future__ import annotations

import logging
import math
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from better_contacts.api.v1.deps import get_db, get_now, get_settings_dep, get_user_id
from better_contacts.api.v1.schemas import (
    BulkDeleteRequest,
    ContactCreate,
    ContactListResponse,
    ContactOut,
    ContactRankingResponse,
    ContactSortField,
    ContactSource,
    ContactsImportRequest,
    ContactsImportResponse,
    ContactSuggestionsResponse,
    ContactUpdate,
    DeleteContactsResponse,
    MissingFieldSuggestionOut,
    Pagination,
    SortOrder,
    TagCategory,
    TagIn,
    TagOut,
)
from better_contacts.db.pg.models import Contact, Tag
from better_contacts.services.contacts_registry import records
from better_contacts.services.contacts_registry.export import render_contacts_csv
from better_contacts.services.contacts_registry.sync import import_contacts
from better_contacts.services.scoring.enrichment_score import score_breakdown
from better_contacts.services.scoring.suggestions import suggest_missing_fields

router = APIRouter(prefix="/contacts", tags=["contacts"])
logger = logging.getLogger(__name__)

_SEARCH_COLUMNS = (
    Contact.first_name,
    Contact.last_name,
    Contact.primary_email,
    Contact.secondary_email,
    Contact.company,
    Contact.title,
    Contact.notes,
)


def _require_contact(db: Session, user_id: str, contact_id: str) -> Contact:
    contact = records.get_owned_contact(db, user_id, contact_id)
    if contact is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return contact


def _like_pattern(term: str) -> str:
    escaped = term.strip().lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ContactFilters:
    """Query parameters shared by the list and export endpoints."""

    def __init__(
        self,
        search: str | None = None,
        category: TagCategory | None = None,
        source: ContactSource | None = None,
        relationship: int | None = Query(default=None, ge=1, le=4),
        min_score: int | None = Query(default=None, ge=0, le=100),
        max_score: int | None = Query(default=None, ge=0, le=100),
    ) -> None:
        self.search = search
        self.category = category
        self.source = source
        self.relationship = relationship
        self.min_score = min_score
        self.max_score = max_score

    def conditions(self, user_id: str) -> list:
        conditions = [Contact.user_id == user_id]
        if self.search and self.search.strip():
            pattern = _like_pattern(self.search)
            conditions.append(
                or_(*(func.lower(column).like(pattern, escape="\\") for column in _SEARCH_COLUMNS))
            )
        if self.category:
            conditions.append(Contact.tags.any(Tag.category == self.category))
        if self.source:
            conditions.append(Contact.source == self.source)
        if self.relationship is not None:
            conditions.append(Contact.relationship_strength == self.relationship)
        if self.min_score is not None:
            conditions.append(Contact.enrichment_score >= self.min_score)
        if self.max_score is not None:
            conditions.append(Contact.enrichment_score <= self.max_score)
        return conditions


@router.get("", response_model=ContactListResponse)
def list_contacts(
    filters: ContactFilters = Depends(),
    sort: ContactSortField = "last_name",
    order: SortOrder = "asc",
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=500),
    db: Session = Depends(get_db),
    settings=Depends(get_settings_dep),
    user_id: str = Depends(get_user_id),
) -> ContactListResponse:
    page_size = min(limit or settings.contacts_page_default_limit, settings.contacts_page_max_limit)
    conditions = filters.conditions(user_id)

    total = db.scalar(select(func.count()).select_from(Contact).where(*conditions)) or 0
    sort_column = getattr(Contact, sort)
    ordering = sort_column.desc() if order == "desc" else sort_column.asc()
    contacts = db.scalars(
        select(Contact)
        .where(*conditions)
        .order_by(ordering, Contact.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    ).all()

    return ContactListResponse(
        contacts=[ContactOut.model_validate(contact) for contact in contacts],
        pagination=Pagination(
            page=page,
            limit=page_size,
            total=total,
            total_pages=math.ceil(total / page_size),
        ),
    )


@router.post("", response_model=ContactOut, status_code=status.HTTP_201_CREATED)
def create_contact(
    payload: ContactCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> ContactOut:
    contact = records.create_contact(db, user_id, payload)
    return ContactOut.model_validate(contact)


@router.post("/import", response_model=ContactsImportResponse)
def import_contact_rows(
    payload: ContactsImportRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> ContactsImportResponse:
    return ContactsImportResponse(**import_contacts(db, user_id, payload.rows, source=payload.source))


@router.get("/export")
def export_contacts(
    filters: ContactFilters = Depends(),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    now: datetime = Depends(get_now),
) -> Response:
    contacts = db.scalars(
        select(Contact)
        .options(selectinload(Contact.tags))
        .where(*filters.conditions(user_id))
        .order_by(Contact.last_name.asc(), Contact.id.asc())
    ).all()
    filename = f"contacts-{now.date().isoformat()}.csv"
    logger.info("contacts_exported", extra={"user_id": user_id, "contact_count": len(contacts)})
    return Response(
        content=render_contacts_csv(contacts),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete("/bulk", response_model=DeleteContactsResponse)
def bulk_delete_contacts(
    payload: BulkDeleteRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> DeleteContactsResponse:
    deleted = records.delete_contacts(db, user_id, payload.ids)
    return DeleteContactsResponse(success=True, deleted=deleted)


@router.delete("/delete-all", response_model=DeleteContactsResponse)
def delete_all_contacts(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> DeleteContactsResponse:
    deleted = records.delete_contacts(db, user_id)
    return DeleteContactsResponse(success=True, deleted=deleted)


@router.get("/{contact_id}", response_model=ContactOut)
def get_contact(
    contact_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> ContactOut:
    return ContactOut.model_validate(_require_contact(db, user_id, contact_id))


@router.patch("/{contact_id}", response_model=ContactOut)
def update_contact(
    contact_id: str,
    payload: ContactUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> ContactOut:
    contact = _require_contact(db, user_id, contact_id)
    return ContactOut.model_validate(records.update_contact(db, contact, payload))


@router.delete("/{contact_id}")
def delete_contact(
    contact_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> dict:
    contact = _require_contact(db, user_id, contact_id)
    records.delete_contact(db, contact)
    return {"contact_id": contact_id, "deleted": True}


@router.get("/{contact_id}/ranking", response_model=ContactRankingResponse)
def contact_ranking(
    contact_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> ContactRankingResponse:
    ranking = records.contact_ranking(db, user_id, contact_id)
    if ranking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    current_rank, total_contacts = ranking
    return ContactRankingResponse(contact_id=contact_id, current_rank=current_rank, total_contacts=total_contacts)


@router.get("/{contact_id}/suggestions", response_model=ContactSuggestionsResponse)
def contact_suggestions(
    contact_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> ContactSuggestionsResponse:
    contact = _require_contact(db, user_id, contact_id)
    return ContactSuggestionsResponse(
        contact_id=contact.id,
        enrichment_score=contact.enrichment_score,
        score_breakdown=score_breakdown(contact, len(contact.tags)),
        suggestions=[MissingFieldSuggestionOut.model_validate(item) for item in suggest_missing_fields(contact)],
    )


@router.post("/{contact_id}/tags", response_model=TagOut, status_code=status.HTTP_201_CREATED)
def add_tag(
    contact_id: str,
    payload: TagIn,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> TagOut:
    contact = _require_contact(db, user_id, contact_id)
    try:
        tag = records.add_tag(db, contact, payload)
    except records.DuplicateTagError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Tag already exists") from exc
    return TagOut.model_validate(tag)


@router.delete("/{contact_id}/tags/{tag_id}")
def remove_tag(
    contact_id: str,
    tag_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> dict:
    contact = _require_contact(db, user_id, contact_id)
    if not records.remove_tag(db, contact, tag_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tag not found")
    return {"contact_id": contact_id, "tag_id": tag_id, "deleted": True, "enrichment_score": contact.enrichment_score}
