import csv
import io
from datetime import timedelta

from openpyxl import load_workbook

from talentgate.core.dates import local_today, shift_years
from talentgate.db.models import Application


def _submit(client, candidate_factory, application_payload, email: str, **overrides) -> int:
    account = candidate_factory(email=email, name=email.split("@")[0].title())
    resp = client.post("/api/applications", json=application_payload(**overrides), headers=account["headers"])
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def _set_status(client, admin, app_id: int, status):
    return client.put(f"/api/admin/applications/{app_id}/status", json={"status": status}, headers=admin["headers"])


def test_status_transition_persists_and_advances_updated_at(
    client, database, admin, candidate_factory, application_payload
) -> None:
    app_id = _submit(client, candidate_factory, application_payload, "a@example.com")
    with database.session() as session:
        before = session.get(Application, app_id).updated_at

    resp = _set_status(client, admin, app_id, "REVIEWING")
    assert resp.status_code == 200
    assert resp.json()["application"]["status"] == "REVIEWING"

    with database.session() as session:
        row = session.get(Application, app_id)
        assert row.status == "REVIEWING"
        assert row.updated_at > before


def test_unknown_application_is_not_found_and_nothing_changes(
    client, database, admin, candidate_factory, application_payload
) -> None:
    app_id = _submit(client, candidate_factory, application_payload, "a@example.com")

    resp = _set_status(client, admin, 9999, "ACCEPTED")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Application not found"}
    with database.session() as session:
        assert session.get(Application, app_id).status == "PENDING"


def test_missing_or_invalid_status_is_bad_request(client, admin, candidate_factory, application_payload) -> None:
    app_id = _submit(client, candidate_factory, application_payload, "a@example.com")

    missing = client.put(f"/api/admin/applications/{app_id}/status", json={}, headers=admin["headers"])
    assert missing.status_code == 400
    assert _set_status(client, admin, app_id, "ARCHIVED").status_code == 400


def test_permissive_policy_allows_reopening(client, admin, candidate_factory, application_payload) -> None:
    app_id = _submit(client, candidate_factory, application_payload, "a@example.com")
    assert _set_status(client, admin, app_id, "ACCEPTED").status_code == 200
    assert _set_status(client, admin, app_id, "PENDING").status_code == 200


def test_strict_policy_refuses_leaving_a_decision(
    client, settings, admin, candidate_factory, application_payload
) -> None:
    settings.status_transition_policy = "strict"
    app_id = _submit(client, candidate_factory, application_payload, "a@example.com")

    assert _set_status(client, admin, app_id, "ACCEPTED").status_code == 409
    assert _set_status(client, admin, app_id, "REVIEWING").status_code == 200
    assert _set_status(client, admin, app_id, "ACCEPTED").status_code == 200
    assert _set_status(client, admin, app_id, "REJECTED").status_code == 409


def test_candidates_cannot_use_admin_endpoints(client, candidate) -> None:
    assert client.get("/api/admin/applications", headers=candidate["headers"]).status_code == 403
    assert client.put("/api/admin/applications/1/status", json={"status": "ACCEPTED"}, headers=candidate["headers"]).status_code == 403
    assert client.get("/api/admin/dashboard").status_code == 401


def test_filters_combine(client, admin, candidate_factory, application_payload, job_position_id) -> None:
    today = local_today("Africa/Algiers")
    young = shift_years(today, 20) - timedelta(days=10)
    middle = shift_years(today, 35) - timedelta(days=10)
    senior = shift_years(today, 50) - timedelta(days=10)

    young_id = _submit(client, candidate_factory, application_payload, "young@example.com", birth_date=young.isoformat())
    middle_id = _submit(
        client, candidate_factory, application_payload, "middle@example.com",
        birth_date=middle.isoformat(), wilaya_id=31, commune_id=31,
    )
    senior_id = _submit(client, candidate_factory, application_payload, "senior@example.com", birth_date=senior.isoformat())
    _set_status(client, admin, senior_id, "REVIEWING")

    def ids(**params) -> list[int]:
        resp = client.get("/api/admin/applications", params=params, headers=admin["headers"])
        assert resp.status_code == 200, resp.text
        return [item["id"] for item in resp.json()["items"]]

    assert ids(age_range="18-25") == [young_id]
    assert ids(age_range="41+") == [senior_id]
    assert ids(wilaya_id=31) == [middle_id]
    assert ids(status="REVIEWING") == [senior_id]
    assert ids(status="PENDING", age_range="18-40") == [middle_id, young_id]
    assert set(ids(date_range="today", job_position_id=job_position_id)) == {young_id, middle_id, senior_id}
    assert ids(date_range="last_month") == []


def test_listing_sorts_by_last_update(client, admin, candidate_factory, application_payload) -> None:
    first = _submit(client, candidate_factory, application_payload, "first@example.com")
    second = _submit(client, candidate_factory, application_payload, "second@example.com")
    _set_status(client, admin, first, "REVIEWING")

    items = client.get("/api/admin/applications", headers=admin["headers"]).json()["items"]
    assert [item["id"] for item in items] == [first, second]


def test_pagination(client, settings, admin, candidate_factory, application_payload) -> None:
    settings.page_size = 2
    for index in range(5):
        _submit(client, candidate_factory, application_payload, f"c{index}@example.com")

    page_one = client.get("/api/admin/applications", headers=admin["headers"]).json()
    page_three = client.get("/api/admin/applications", params={"page": 3}, headers=admin["headers"]).json()

    assert page_one["total"] == 5
    assert page_one["total_pages"] == 3
    assert page_one["page_size"] == 2
    assert len(page_one["items"]) == 2
    assert len(page_three["items"]) == 1
    assert client.get("/api/admin/applications", params={"page": 0}, headers=admin["headers"]).status_code == 400


def test_bad_filter_values_are_rejected(client, admin) -> None:
    assert client.get("/api/admin/applications", params={"age_range": "old"}, headers=admin["headers"]).status_code == 400
    assert client.get("/api/admin/applications", params={"date_range": "ever"}, headers=admin["headers"]).status_code == 400


def test_counts_and_dashboard(client, admin, candidate_factory, application_payload) -> None:
    ids = [_submit(client, candidate_factory, application_payload, f"c{index}@example.com") for index in range(4)]
    _set_status(client, admin, ids[0], "REVIEWING")
    _set_status(client, admin, ids[1], "ACCEPTED")
    _set_status(client, admin, ids[2], "REJECTED")

    counts = client.get("/api/admin/applications/counts", headers=admin["headers"]).json()
    assert counts == {"pending": 1, "reviewing": 1, "accepted": 1, "rejected": 1}

    dashboard = client.get("/api/admin/dashboard", headers=admin["headers"]).json()
    assert dashboard["total_applications"] == 4
    assert dashboard["pending_applications"] == 1
    assert dashboard["total_admins"] == 1
    recent = dashboard["recent_applications"]
    assert [item["id"] for item in recent] == list(reversed(ids))
    assert recent[0]["candidate_name"] == "C3"
    assert recent[0]["email"] == "c3@example.com"


def test_csv_export_aligns_ragged_records(client, admin, candidate_factory, application_payload) -> None:
    educations = [
        {"type": "formation", "institution": "CFPA", "field_of_study": "Welding", "start_date": "2012-01-01"},
        {"type": "formation", "institution": "INFEP", "field_of_study": "Safety", "start_date": "2013-01-01"},
    ]
    _submit(client, candidate_factory, application_payload, "two@example.com", educations=educations)
    _submit(client, candidate_factory, application_payload, "none@example.com", educations=[], experience=[])

    resp = client.get("/api/admin/applications/export", params={"format": "csv"}, headers=admin["headers"])
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert 'filename="applications-' in resp.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(resp.text)))
    header, body = rows[0], rows[1:]
    assert len(body) == 2
    assert all(len(row) == len(header) for row in body)
    assert "Education 2 Institution" in header
    assert header[-3:] == ["Soft Skills", "Languages", "Certifications"]
    by_email = {row[header.index("Email")]: row for row in body}
    assert by_email["none@example.com"][header.index("Education 1 Institution")] == ""
    assert by_email["two@example.com"][header.index("Education 2 Institution")] == "INFEP"
    assert by_email["two@example.com"][header.index("Languages")] == "Arabic (Native); French (Fluent)"


def test_xlsx_export_respects_filters(client, admin, candidate_factory, application_payload) -> None:
    kept = _submit(client, candidate_factory, application_payload, "kept@example.com")
    dropped = _submit(client, candidate_factory, application_payload, "dropped@example.com")
    _set_status(client, admin, dropped, "REJECTED")

    resp = client.get(
        "/api/admin/applications/export",
        params={"format": "xlsx", "status": "PENDING"},
        headers=admin["headers"],
    )
    assert resp.status_code == 200
    workbook = load_workbook(io.BytesIO(resp.content))
    sheet = workbook.active
    assert sheet.title == "Applications"
    assert sheet.max_row == 2
    assert sheet.cell(row=1, column=1).value == "ID"
    assert sheet.cell(row=1, column=1).font.bold
    assert sheet.cell(row=2, column=1).value == kept


def test_unknown_export_format(client, admin) -> None:
    resp = client.get("/api/admin/applications/export", params={"format": "pdf"}, headers=admin["headers"])
    assert resp.status_code == 400
