from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from better_contacts.services.scoring.reasons import explain_enrichment_reason
from better_contacts.services.scoring.suggestions import suggest_missing_fields

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _contact(**fields) -> SimpleNamespace:
    fields.setdefault("last_enriched_at", None)
    return SimpleNamespace(**fields)


def test_never_enriched_reason_lists_first_two_missing_fields() -> None:
    contact = _contact(how_we_met="Conference")
    assert explain_enrichment_reason(contact, NOW) == "Never enriched — missing Why Now, Notes"


def test_never_enriched_with_full_context_asks_for_more() -> None:
    contact = _contact(why_now="Hiring", how_we_met="Intro", notes="Met twice", expertise="Climate")
    assert explain_enrichment_reason(contact, NOW) == "Never enriched — add context"


def test_stale_enrichment_asks_for_refresh() -> None:
    contact = _contact(last_enriched_at=NOW - timedelta(days=45))
    assert explain_enrichment_reason(contact, NOW) == "Last enriched 45 days ago — refresh context"


def test_recent_enrichment_reports_missing_fields_with_and() -> None:
    contact = _contact(last_enriched_at=NOW - timedelta(days=2), why_now="Hiring", notes="Met twice")
    assert explain_enrichment_reason(contact, NOW) == "Missing How We Met and Expertise"


def test_single_missing_field_is_reported_alone() -> None:
    contact = _contact(last_enriched_at=NOW - timedelta(days=30), why_now="Hiring", how_we_met="Intro", notes="Met")
    assert explain_enrichment_reason(contact, NOW) == "Missing Expertise"


def test_complete_recent_contact_could_use_more_context() -> None:
    contact = _contact(
        last_enriched_at=NOW - timedelta(days=1),
        why_now="Hiring",
        how_we_met="Intro",
        notes="Met twice",
        expertise="Climate",
    )
    assert explain_enrichment_reason(contact, NOW) == "Could use more context"


def test_suggestions_for_empty_contact_are_top_three_by_points() -> None:
    suggestions = suggest_missing_fields(SimpleNamespace())

    assert [item.field for item in suggestions] == ["why_now", "how_we_met", "title"]
    assert [item.points for item in suggestions] == [20, 15, 10]
    assert suggestions[0].label == "Why Now"


def test_suggestions_skip_present_fields_and_keep_candidate_order_on_ties() -> None:
    contact = {"why_now": "Hiring", "how_we_met": "Intro", "title": "CTO", "company": "Acme", "primary_email": "a@x.com"}
    suggestions = suggest_missing_fields(contact)

    assert [item.field for item in suggestions] == ["first_name", "location", "linkedin_url"]
    assert all(not contact.get(item.field) for item in suggestions)


def test_suggestions_never_exceed_three_and_can_be_empty() -> None:
    assert len(suggest_missing_fields({}, limit=10)) == 3
    full = {
        field: "x"
        for field in (
            "why_now",
            "how_we_met",
            "title",
            "company",
            "primary_email",
            "first_name",
            "location",
            "linkedin_url",
            "notes",
            "primary_phone",
            "last_name",
        )
    }
    assert suggest_missing_fields(full) == []
