from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


ContactSource = Literal["MANUAL", "CSV", "GOOGLE", "LINKEDIN", "ICLOUD", "OUTLOOK"]
TagCategory = Literal["RELATIONSHIP", "OPPORTUNITY", "EXPERTISE", "INTEREST"]
PriorityLevel = Literal["high", "medium", "low"]
ContactSortField = Literal[
    "first_name",
    "last_name",
    "primary_email",
    "company",
    "last_contact_date",
    "enrichment_score",
    "created_at",
]
SortOrder = Literal["asc", "desc"]

CONTACT_SOURCES: tuple[str, ...] = ("MANUAL", "CSV", "GOOGLE", "LINKEDIN", "ICLOUD", "OUTLOOK")

_OPTIONAL_TEXT_FIELDS = (
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
    "relationship_history",
    "why_now",
    "expertise",
    "interests",
    "notes",
)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc)
    return value


class TagIn(BaseModel):
    text: str = Field(min_length=1, max_length=100)
    category: TagCategory


class TagOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    text: str
    category: str


class ContactFieldsIn(BaseModel):
    last_name: str | None = Field(default=None, max_length=255)
    primary_email: str | None = Field(default=None, max_length=320)
    secondary_email: str | None = Field(default=None, max_length=320)
    primary_phone: str | None = Field(default=None, max_length=50)
    secondary_phone: str | None = Field(default=None, max_length=50)
    title: str | None = Field(default=None, max_length=255)
    company: str | None = Field(default=None, max_length=255)
    location: str | None = Field(default=None, max_length=255)
    linkedin_url: str | None = Field(default=None, max_length=500)
    how_we_met: str | None = None
    last_contact_date: datetime | None = None
    relationship_history: str | None = None
    why_now: str | None = None
    expertise: str | None = None
    interests: str | None = None
    notes: str | None = None

    @field_validator(*_OPTIONAL_TEXT_FIELDS, mode="before")
    @classmethod
    def empty_strings_are_absent(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("primary_email", "secondary_email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if "@" not in normalized:
            raise ValueError("Invalid email")
        return normalized

    @field_validator("last_contact_date")
    @classmethod
    def last_contact_date_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class ContactCreate(ContactFieldsIn):
    first_name: str = Field(min_length=1, max_length=255)
    relationship_strength: int = Field(default=1, ge=1, le=4)
    source: ContactSource = "MANUAL"
    tags: list[TagIn] = Field(default_factory=list)


class ContactUpdate(ContactFieldsIn):
    first_name: str | None = Field(default=None, min_length=1, max_length=255)
    relationship_strength: int | None = Field(default=None, ge=1, le=4)
    source: ContactSource | None = None
    tags: list[TagIn] | None = None
    last_enriched_at: datetime | None = None

    @field_validator("last_enriched_at")
    @classmethod
    def last_enriched_at_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class ContactOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    first_name: str
    last_name: str | None = None
    primary_email: str | None = None
    secondary_email: str | None = None
    primary_phone: str | None = None
    secondary_phone: str | None = None
    title: str | None = None
    company: str | None = None
    location: str | None = None
    linkedin_url: str | None = None
    how_we_met: str | None = None
    relationship_strength: int
    last_contact_date: datetime | None = None
    relationship_history: str | None = None
    why_now: str | None = None
    expertise: str | None = None
    interests: str | None = None
    notes: str | None = None
    enrichment_score: int
    source: str
    created_at: datetime
    updated_at: datetime
    last_enriched_at: datetime | None = None
    tags: list[TagOut] = Field(default_factory=list)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ContactListResponse(BaseModel):
    contacts: list[ContactOut]
    pagination: Pagination


class ContactRankingResponse(BaseModel):
    contact_id: str
    current_rank: int
    total_contacts: int


class MissingFieldSuggestionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    field: str
    label: str
    points: int


class ContactSuggestionsResponse(BaseModel):
    contact_id: str
    enrichment_score: int
    score_breakdown: dict[str, int] = Field(default_factory=dict)
    suggestions: list[MissingFieldSuggestionOut] = Field(default_factory=list)


class ContactImportRow(ContactFieldsIn):
    first_name: str = Field(min_length=1, max_length=255)
    tags: list[TagIn] = Field(default_factory=list)


class ContactsImportRequest(BaseModel):
    source: ContactSource = "CSV"
    rows: list[ContactImportRow] = Field(default_factory=list)


class ContactsImportResponse(BaseModel):
    created: int
    merged: int
    deduplicated: int
    contact_ids: list[str] = Field(default_factory=list)


class EnrichmentQueueItem(BaseModel):
    contact: ContactOut
    priority: int
    priority_level: PriorityLevel
    enrichment_reason: str
    components: dict[str, Any] = Field(default_factory=dict)


class EnrichmentQueueResponse(BaseModel):
    contacts: list[EnrichmentQueueItem]
    total: int


class PriorityCounts(BaseModel):
    high: int
    medium: int
    low: int


class EnrichmentStatsResponse(BaseModel):
    total_contacts: int
    fully_enriched: int
    needs_enrichment: int
    average_score: int
    by_priority: PriorityCounts
    enriched_this_week: int


class SkipContactResponse(BaseModel):
    success: bool
    contact: ContactOut


class RecomputeScoresResponse(BaseModel):
    job_id: str
    status: str


class BulkDeleteRequest(BaseModel):
    ids: list[str] = Field(min_length=1, max_length=100)


class DeleteContactsResponse(BaseModel):
    success: bool
    deleted: int


class CompletionContact(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str | None = None
    enrichment_score: int


class CompletionRanking(BaseModel):
    current_rank: int
    previous_rank: int
    total_contacts: int
    percentile: int


class CompletionStreak(BaseModel):
    count: int
    week_start: datetime


class EnrichmentCompletionResponse(BaseModel):
    contact: CompletionContact
    ranking: CompletionRanking
    streak: CompletionStreak
    score_delta: int
