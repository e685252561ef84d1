from __future__ import annotations

import csv
import io

from fastapi.testclient import TestClient

from better_contacts.core.config import get_settings
from better_contacts.db.pg.base import Base
from better_contacts.db.pg.session import engine
from better_contacts.main import app


client = TestClient(app)


def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def auth_headers(user_id: str = "user-1") -> dict[str, str]:
    headers = {"X-User-Id": user_id}
    if get_settings().api_shared_secret:
        headers["X-Api-Secret"] = get_settings().api_shared_secret
    return headers


def create_contact(payload: dict, user_id: str = "user-1") -> dict:
    response = client.post("/v1/contacts", json=payload, headers=auth_headers(user_id))
    assert response.status_code == 201, response.text
    return response.json()


def test_create_contact_computes_enrichment_score() -> None:
    reset_db()
    contact = create_contact(
        {
            "first_name": "Ana",
            "primary_email": "A@X.com",
            "title": "VC",
            "company": "Acme",
            "why_now": "raising soon",
            "linkedin_url": "",
        }
    )

    assert contact["enrichment_score"] == 55
    assert contact["primary_email"] == "a@x.com"
    assert contact["linkedin_url"] is None
    assert contact["source"] == "MANUAL"
    assert contact["last_enriched_at"] is None


def test_create_contact_with_tags_adds_tag_points() -> None:
    reset_db()
    contact = create_contact(
        {
            "first_name": "Ana",
            "tags": [
                {"text": "Investor", "category": "OPPORTUNITY"},
                {"text": "investor", "category": "OPPORTUNITY"},
            ],
        }
    )

    assert contact["enrichment_score"] == 12
    assert len(contact["tags"]) == 1


def test_contacts_require_a_user() -> None:
    reset_db()
    response = client.get("/v1/contacts")
    assert response.status_code == 401


def test_create_contact_rejects_missing_first_name() -> None:
    reset_db()
    response = client.post("/v1/contacts", json={"last_name": "Silva"}, headers=auth_headers())
    assert response.status_code == 422


def test_contacts_are_scoped_to_their_owner() -> None:
    reset_db()
    contact = create_contact({"first_name": "Private"}, user_id="owner")

    assert client.get(f"/v1/contacts/{contact['id']}", headers=auth_headers("owner")).status_code == 200
    assert client.get(f"/v1/contacts/{contact['id']}", headers=auth_headers("intruder")).status_code == 404
    assert client.delete(f"/v1/contacts/{contact['id']}", headers=auth_headers("intruder")).status_code == 404


def test_update_contact_recomputes_score_and_replaces_tags() -> None:
    reset_db()
    contact = create_contact({"first_name": "Ana", "tags": [{"text": "Friend", "category": "RELATIONSHIP"}]})
    assert contact["enrichment_score"] == 12

    response = client.patch(
        f"/v1/contacts/{contact['id']}",
        json={"how_we_met": "Climate summit", "tags": []},
        headers=auth_headers(),
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["enrichment_score"] == 22
    assert updated["tags"] == []
    assert updated["first_name"] == "Ana"

    response = client.patch(
        f"/v1/contacts/{contact['id']}",
        json={"last_enriched_at": "2026-02-01T10:00:00+02:00"},
        headers=auth_headers(),
    )
    assert response.status_code == 200
    assert response.json()["last_enriched_at"].startswith("2026-02-01T08:00:00")
    assert response.json()["enrichment_score"] == 22


def test_update_contact_ignores_null_first_name() -> None:
    reset_db()
    contact = create_contact({"first_name": "Ana"})
    response = client.patch(f"/v1/contacts/{contact['id']}", json={"first_name": None}, headers=auth_headers())
    assert response.status_code == 200
    assert response.json()["first_name"] == "Ana"


def test_tag_add_duplicate_and_remove_keep_score_in_sync() -> None:
    reset_db()
    contact = create_contact({"first_name": "Ana"})
    assert contact["enrichment_score"] == 7

    response = client.post(
        f"/v1/contacts/{contact['id']}/tags",
        json={"text": "Climate", "category": "EXPERTISE"},
        headers=auth_headers(),
    )
    assert response.status_code == 201
    tag = response.json()
    assert client.get(f"/v1/contacts/{contact['id']}", headers=auth_headers()).json()["enrichment_score"] == 12

    duplicate = client.post(
        f"/v1/contacts/{contact['id']}/tags",
        json={"text": "CLIMATE", "category": "EXPERTISE"},
        headers=auth_headers(),
    )
    assert duplicate.status_code == 409

    removed = client.delete(f"/v1/contacts/{contact['id']}/tags/{tag['id']}", headers=auth_headers())
    assert removed.status_code == 200
    assert removed.json()["enrichment_score"] == 7

    missing = client.delete(f"/v1/contacts/{contact['id']}/tags/{tag['id']}", headers=auth_headers())
    assert missing.status_code == 404


def test_delete_contact_removes_it() -> None:
    reset_db()
    contact = create_contact({"first_name": "Gone", "tags": [{"text": "Old", "category": "INTEREST"}]})

    response = client.delete(f"/v1/contacts/{contact['id']}", headers=auth_headers())
    assert response.status_code == 200
    assert response.json()["deleted"] is True
    assert client.get(f"/v1/contacts/{contact['id']}", headers=auth_headers()).status_code == 404


def test_list_contacts_filters_and_paginates() -> None:
    reset_db()
    create_contact({"first_name": "Ana", "last_name": "Alpha", "company": "Acme", "source": "CSV"})
    create_contact({"first_name": "Bo", "last_name": "Beta", "company": "Other", "why_now": "Hiring"})
    create_contact(
        {"first_name": "Cy", "last_name": "Gamma", "tags": [{"text": "Climate", "category": "EXPERTISE"}]}
    )
    create_contact({"first_name": "Other user"}, user_id="user-2")

    response = client.get("/v1/contacts", params={"limit": 2}, headers=auth_headers())
    assert response.status_code == 200
    payload = response.json()
    assert payload["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}
    assert [c["last_name"] for c in payload["contacts"]] == ["Alpha", "Beta"]

    search = client.get("/v1/contacts", params={"search": "acme"}, headers=auth_headers()).json()
    assert [c["first_name"] for c in search["contacts"]] == ["Ana"]

    by_source = client.get("/v1/contacts", params={"source": "CSV"}, headers=auth_headers()).json()
    assert [c["first_name"] for c in by_source["contacts"]] == ["Ana"]

    by_category = client.get("/v1/contacts", params={"category": "EXPERTISE"}, headers=auth_headers()).json()
    assert [c["first_name"] for c in by_category["contacts"]] == ["Cy"]

    by_score = client.get(
        "/v1/contacts",
        params={"min_score": 20, "sort": "enrichment_score", "order": "desc"},
        headers=auth_headers(),
    ).json()
    assert [c["first_name"] for c in by_score["contacts"]] == ["Bo", "Ana"]


def test_ranking_orders_contacts_by_score() -> None:
    reset_db()
    low = create_contact({"first_name": "Low"})
    high = create_contact({"first_name": "High", "why_now": "Hiring", "how_we_met": "Intro"})

    response = client.get(f"/v1/contacts/{low['id']}/ranking", headers=auth_headers())
    assert response.status_code == 200
    assert response.json() == {"contact_id": low["id"], "current_rank": 2, "total_contacts": 2}

    assert client.get(f"/v1/contacts/{high['id']}/ranking", headers=auth_headers()).json()["current_rank"] == 1
    assert client.get("/v1/contacts/unknown/ranking", headers=auth_headers()).status_code == 404


def test_suggestions_endpoint_lists_top_missing_fields() -> None:
    reset_db()
    contact = create_contact({"first_name": "Ana", "why_now": "Hiring"})

    response = client.get(f"/v1/contacts/{contact['id']}/suggestions", headers=auth_headers())

    assert response.status_code == 200
    payload = response.json()
    assert payload["enrichment_score"] == 27
    assert payload["score_breakdown"]["why_now"] == 20
    assert [item["field"] for item in payload["suggestions"]] == ["how_we_met", "title", "company"]


def test_search_treats_like_wildcards_literally() -> None:
    reset_db()
    create_contact({"first_name": "Ana", "notes": "Owns 50% of the fund"})
    create_contact({"first_name": "Bo", "notes": "Owns 500 shares"})
    create_contact({"first_name": "Cy", "primary_email": "cy_lee@x.com"})
    create_contact({"first_name": "Di", "primary_email": "cyxlee@x.com"})

    percent = client.get("/v1/contacts", params={"search": "50%"}, headers=auth_headers()).json()
    underscore = client.get("/v1/contacts", params={"search": "cy_"}, headers=auth_headers()).json()

    assert [c["first_name"] for c in percent["contacts"]] == ["Ana"]
    assert [c["first_name"] for c in underscore["contacts"]] == ["Cy"]


def test_bulk_delete_removes_only_owned_contacts() -> None:
    reset_db()
    mine = [create_contact({"first_name": name}) for name in ("Ana", "Bo", "Cy")]
    theirs = create_contact({"first_name": "Other"}, user_id="user-2")

    response = client.request(
        "DELETE",
        "/v1/contacts/bulk",
        json={"ids": [mine[0]["id"], mine[1]["id"], theirs["id"]]},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "deleted": 2}
    remaining = client.get("/v1/contacts", headers=auth_headers()).json()
    assert [c["first_name"] for c in remaining["contacts"]] == ["Cy"]
    assert client.get(f"/v1/contacts/{theirs['id']}", headers=auth_headers("user-2")).status_code == 200


def test_bulk_delete_validates_id_count() -> None:
    reset_db()
    empty = client.request("DELETE", "/v1/contacts/bulk", json={"ids": []}, headers=auth_headers())
    too_many = client.request(
        "DELETE", "/v1/contacts/bulk", json={"ids": [f"id-{n}" for n in range(101)]}, headers=auth_headers()
    )
    assert empty.status_code == 422
    assert too_many.status_code == 422


def test_delete_all_clears_only_the_callers_contacts() -> None:
    reset_db()
    create_contact({"first_name": "Ana", "tags": [{"text": "Friend", "category": "RELATIONSHIP"}]})
    create_contact({"first_name": "Bo"})
    create_contact({"first_name": "Other"}, user_id="user-2")

    response = client.delete("/v1/contacts/delete-all", headers=auth_headers())

    assert response.status_code == 200
    assert response.json() == {"success": True, "deleted": 2}
    assert client.get("/v1/contacts", headers=auth_headers()).json()["pagination"]["total"] == 0
    assert client.get("/v1/contacts", headers=auth_headers("user-2")).json()["pagination"]["total"] == 1


def test_export_returns_filtered_csv() -> None:
    reset_db()
    create_contact(
        {
            "first_name": "Ana",
            "last_name": "Silva",
            "company": "Acme, Inc.",
            "relationship_strength": 4,
            "notes": 'Says "hi"',
            "last_contact_date": "2026-02-10T23:30:00-03:00",
            "tags": [{"text": "Investor", "category": "OPPORTUNITY"}],
        }
    )
    create_contact({"first_name": "Bo", "last_name": "Beta", "source": "CSV"})
    create_contact({"first_name": "Other"}, user_id="user-2")

    response = client.get("/v1/contacts/export", params={"source": "MANUAL"}, headers=auth_headers())

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"].startswith('attachment; filename="contacts-')
    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert len(rows) == 1
    row = rows[0]
    assert row["First Name"] == "Ana"
    assert row["Company"] == "Acme, Inc."
    assert row["Notes"] == 'Says "hi"'
    assert row["Relationship Strength"] == "Strong"
    assert row["Last Contact Date"] == "2026-02-11"
    assert row["Tags"] == "Investor (OPPORTUNITY)"
    assert row["Enrichment Score"] == "30"
    assert row["Source"] == "MANUAL"
