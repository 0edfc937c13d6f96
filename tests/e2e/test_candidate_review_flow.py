import csv
import io

from talentgate.core.uploads import find_orphaned_uploads, prune_orphaned_uploads
from talentgate.db.repositories import Repository


def test_candidate_submits_and_admin_decides(client, database, settings, candidate, admin, application_payload) -> None:
    photo = client.post(
        "/api/uploads",
        files={"file": ("me.png", b"\x89PNG\r\n\x1a\nfake", "image/png")},
        data={"type": "image", "application_ref": "amina"},
        headers=candidate["headers"],
    )
    assert photo.status_code == 201, photo.text
    cv = client.post(
        "/api/uploads",
        files={"file": ("cv.pdf", b"%PDF-1.4 fake", "application/pdf")},
        data={"type": "document", "application_ref": "amina"},
        headers=candidate["headers"],
    )
    abandoned = client.post(
        "/api/uploads",
        files={"file": ("old.pdf", b"%PDF-1.4 old", "application/pdf")},
        data={"type": "document", "application_ref": "draft"},
        headers=candidate["headers"],
    )
    assert client.get(photo.json()["url"]).content == b"\x89PNG\r\n\x1a\nfake"

    submitted = client.post(
        "/api/applications",
        json=application_payload(photo=photo.json()["url"], cv=cv.json()["url"]),
        headers=candidate["headers"],
    )
    assert submitted.status_code == 201
    app_id = submitted.json()["id"]

    queue = client.get("/api/admin/applications", params={"status": "PENDING"}, headers=admin["headers"]).json()
    assert [item["id"] for item in queue["items"]] == [app_id]
    assert queue["items"][0]["candidate_name"] == "Amina Benali"

    for status in ("REVIEWING", "ACCEPTED"):
        resp = client.put(f"/api/admin/applications/{app_id}/status", json={"status": status}, headers=admin["headers"])
        assert resp.status_code == 200

    mine = client.get(f"/api/applications/{app_id}", headers=candidate["headers"]).json()
    assert mine["status"] == "ACCEPTED"
    locked = client.put(f"/api/applications/{app_id}", json=application_payload(), headers=candidate["headers"])
    assert locked.status_code == 409

    exported = client.get("/api/admin/applications/export", params={"status": "ACCEPTED"}, headers=admin["headers"])
    rows = list(csv.reader(io.StringIO(exported.text)))
    assert len(rows) == 2
    assert rows[1][rows[0].index("Status")] == "ACCEPTED"

    dashboard = client.get("/api/admin/dashboard", headers=admin["headers"]).json()
    assert dashboard["accepted_applications"] == 1
    assert dashboard["pending_applications"] == 0

    with database.session() as session:
        references = Repository(session).list_upload_references()
    assert references == {photo.json()["url"], cv.json()["url"]}
    orphans = find_orphaned_uploads(references, settings)
    assert [path.name for path in orphans] == [abandoned.json()["filename"]]
    prune_orphaned_uploads(references, settings)
    assert client.get(photo.json()["url"]).status_code == 200
    assert client.get(abandoned.json()["url"]).status_code == 404
