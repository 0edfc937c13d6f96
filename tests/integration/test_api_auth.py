from datetime import timedelta

from sqlalchemy import update

from talentgate.db.base import utcnow
from talentgate.db.models import AuthSession, Candidate
from talentgate.db.repositories import hash_text


def _signup(client, role: str, **overrides):
    body = {"name": "Karim Haddad", "email": "karim@example.com", "password": "secret123", "confirm_password": "secret123"}
    body.update(overrides)
    return client.post(f"/api/auth/{role}/signup", json=body)


def test_candidate_signup_login_and_me(client) -> None:
    created = _signup(client, "candidate")
    assert created.status_code == 201
    assert created.json()["status"] == "ACTIVE"

    login = client.post("/api/auth/candidate/login", json={"email": "KARIM@example.com", "password": "secret123"})
    assert login.status_code == 200
    token = login.json()["token"]
    assert "session" in login.cookies

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["kind"] == "candidate"
    assert me.json()["email"] == "karim@example.com"


def test_session_cookie_authenticates(client) -> None:
    _signup(client, "candidate")
    client.post("/api/auth/candidate/login", json={"email": "karim@example.com", "password": "secret123"})
    assert client.get("/api/auth/me").status_code == 200


def test_only_token_hash_is_stored(client, database) -> None:
    _signup(client, "candidate")
    token = client.post("/api/auth/candidate/login", json={"email": "karim@example.com", "password": "secret123"}).json()["token"]
    with database.session() as session:
        stored = session.query(AuthSession).one()
        assert stored.token_hash == hash_text(token)
        assert stored.token_hash != token


def test_signup_errors(client) -> None:
    assert _signup(client, "candidate", confirm_password="different").json() == {"error": "Passwords do not match"}
    assert _signup(client, "candidate", password="abc", confirm_password="abc").status_code == 400
    assert _signup(client, "candidate", email="not-an-email").status_code == 400
    assert _signup(client, "candidate").status_code == 201

    duplicate = _signup(client, "candidate")
    assert duplicate.status_code == 409
    assert duplicate.json() == {"error": "Email already registered"}
    assert _signup(client, "owner").status_code == 404


def test_invalid_credentials(client) -> None:
    _signup(client, "candidate")
    wrong = client.post("/api/auth/candidate/login", json={"email": "karim@example.com", "password": "nope123"})
    unknown = client.post("/api/auth/candidate/login", json={"email": "ghost@example.com", "password": "secret123"})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"error": "Invalid credentials"}


def test_inactive_candidate_cannot_log_in(client, database) -> None:
    _signup(client, "candidate")
    with database.session() as session:
        session.execute(update(Candidate).values(status="INACTIVE"))
        session.commit()
    resp = client.post("/api/auth/candidate/login", json={"email": "karim@example.com", "password": "secret123"})
    assert resp.status_code == 403
    assert resp.json() == {"error": "Account is inactive"}


def test_admin_signup_waits_for_approval(client, admin) -> None:
    created = _signup(client, "admin", email="rh@example.com")
    assert created.status_code == 201
    assert created.json()["status"] == "PENDING"

    pending = client.post("/api/auth/admin/login", json={"email": "rh@example.com", "password": "secret123"})
    assert pending.status_code == 403
    assert pending.json() == {"error": "Your account is pending approval"}

    approved = client.put(
        f"/api/admin/users/{created.json()['id']}/status", json={"status": "ACTIVE"}, headers=admin["headers"]
    )
    assert approved.status_code == 200
    assert client.post("/api/auth/admin/login", json={"email": "rh@example.com", "password": "secret123"}).status_code == 200

    client.put(f"/api/admin/users/{created.json()['id']}/status", json={"status": "INACTIVE"}, headers=admin["headers"])
    deactivated = client.post("/api/auth/admin/login", json={"email": "rh@example.com", "password": "secret123"})
    assert deactivated.json() == {"error": "Your account has been deactivated"}


def test_deactivation_ends_existing_sessions(client, admin_factory, admin) -> None:
    rh = admin_factory(email="rh@example.com", role="RH")
    assert client.get("/api/admin/dashboard", headers=rh["headers"]).status_code == 200

    client.put(f"/api/admin/users/{rh['id']}/status", json={"status": "INACTIVE"}, headers=admin["headers"])
    assert client.get("/api/admin/dashboard", headers=rh["headers"]).status_code == 401


def test_logout_invalidates_token(client, candidate) -> None:
    assert client.post("/api/auth/logout", headers=candidate["headers"]).json()["session_removed"] is True
    assert client.get("/api/auth/me", headers=candidate["headers"]).status_code == 401


def test_expired_session_is_rejected(client, database, candidate) -> None:
    with database.session() as session:
        session.execute(update(AuthSession).values(expires_at=utcnow() - timedelta(minutes=1)))
        session.commit()
    resp = client.get("/api/auth/me", headers=candidate["headers"])
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid or expired session"}


def test_profile_update_and_completion(client, candidate) -> None:
    profile = client.get("/api/profile", headers=candidate["headers"]).json()
    assert profile["completion_percentage"] == 50

    updated = client.put(
        "/api/profile",
        json={"name": "Amina B.", "phone": "+213 550 12 34 56", "address": "Bab Ezzouar"},
        headers=candidate["headers"],
    )
    assert updated.status_code == 200
    assert updated.json()["completion_percentage"] == 100
    assert updated.json()["name"] == "Amina B."

    assert client.put("/api/profile", json={"name": "A"}, headers=candidate["headers"]).status_code == 400
    bad_phone = client.put("/api/profile", json={"name": "Amina", "phone": "12ab"}, headers=candidate["headers"])
    assert bad_phone.json() == {"error": "Invalid phone number format"}


def test_password_change(client, candidate) -> None:
    wrong = client.put(
        "/api/profile/password",
        json={"current_password": "nope", "new_password": "newsecret"},
        headers=candidate["headers"],
    )
    assert wrong.status_code == 401
    assert wrong.json() == {"error": "Current password is incorrect"}

    short = client.put(
        "/api/profile/password",
        json={"current_password": "secret123", "new_password": "123"},
        headers=candidate["headers"],
    )
    assert short.status_code == 400

    ok = client.put(
        "/api/profile/password",
        json={"current_password": "secret123", "new_password": "newsecret"},
        headers=candidate["headers"],
    )
    assert ok.status_code == 200
    login = client.post("/api/auth/candidate/login", json={"email": "amina@example.com", "password": "newsecret"})
    assert login.status_code == 200


def test_admin_management_requires_drh(client, admin_factory, admin) -> None:
    rh = admin_factory(email="rh@example.com", role="RH")
    assert client.get("/api/admin/users", headers=rh["headers"]).status_code == 403

    created = client.post(
        "/api/admin/users",
        json={"name": "New RH", "email": "new@example.com", "password": "secret123", "role": "RH"},
        headers=admin["headers"],
    )
    assert created.status_code == 201
    assert created.json()["status"] == "ACTIVE"

    listed = client.get("/api/admin/users", headers=admin["headers"]).json()
    assert {row["email"] for row in listed} == {"drh@example.com", "rh@example.com", "new@example.com"}

    bad_role = client.post(
        "/api/admin/users",
        json={"name": "X", "email": "x@example.com", "password": "secret123", "role": "CEO"},
        headers=admin["headers"],
    )
    assert bad_role.status_code == 400
    self_lock = client.put(f"/api/admin/users/{admin['id']}/status", json={"status": "INACTIVE"}, headers=admin["headers"])
    assert self_lock.status_code == 409
