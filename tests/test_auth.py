from smart_er.core.security import create_access_token, decode_token
from smart_er.models import StaffRole
from smart_er.services.auth_service import ensure_user


def _login(client, username, password):
    return client.post("/api/auth/login", data={"username": username, "password": password})


def test_login_and_me(client, db_session):
    user = ensure_user(
        db_session,
        username="triage1",
        password="S3cret!pass",
        full_name="Triage Nurse",
        role=StaffRole.TRIAGE,
    )

    resp = _login(client, "triage1", "S3cret!pass")
    assert resp.status_code == 200
    token = resp.json()["access_token"]
    assert resp.json()["token_type"] == "bearer"

    payload = decode_token(token)
    assert payload["sub"] == str(user.id)
    assert payload["role"] == "triage"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["username"] == "triage1"
    assert me.json()["role"] == "triage"


def test_wrong_password(client, db_session):
    ensure_user(db_session, username="nurse2", password="right", full_name="N", role=StaffRole.NURSE)

    resp = _login(client, "nurse2", "wrong")
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "error": "Invalid username or password"}


def test_inactive_user_cannot_login(client, db_session):
    user = ensure_user(db_session, username="gone", password="pw", full_name="G", role=StaffRole.NURSE)
    user.is_active = False
    db_session.commit()

    assert _login(client, "gone", "pw").status_code == 401


def test_ensure_user_resets_password(client, db_session):
    ensure_user(db_session, username="admin", password="old", full_name="A", role=StaffRole.ADMIN)
    ensure_user(db_session, username="admin", password="new", full_name="Admin", role=StaffRole.ADMIN)

    assert _login(client, "admin", "old").status_code == 401
    assert _login(client, "admin", "new").status_code == 200


def test_expired_token_is_rejected(client, db_session):
    user = ensure_user(db_session, username="n3", password="pw", full_name="N", role=StaffRole.NURSE)
    token = create_access_token(user.id, user.role.value, expires_delta_minutes=-1)

    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Token has expired. Please log in again."


def test_me_without_token(client):
    assert client.get("/api/auth/me").status_code == 401
