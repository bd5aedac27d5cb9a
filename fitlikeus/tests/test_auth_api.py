from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest

from fitlikeus.core.errors import BackendError

STRONG_PASSWORD = "Str0ng!Pass"


def signup(client, email="sam@example.com", password=STRONG_PASSWORD, **extra):
    return client.post("/v1/auth/signup", json={"email": email, "password": password, **extra})


def test_signup_creates_client_profile(client, store):
    resp = signup(client, email="  Sam@Example.com ", display_name="Sam")
    assert resp.status_code == 201
    body = resp.json()
    assert body["token"]
    assert body["landing_path"] == "/dashboard"
    profile = body["profile"]
    assert profile["email"] == "sam@example.com"
    assert profile["role"] == "client"
    assert profile["level"] == "beginner"
    assert profile["plan"] == "free"

    credential = store.get("auth_users", profile["uid"])
    assert credential.get("password_hash").startswith("$2b$")
    assert STRONG_PASSWORD not in str(credential.data)


def test_signup_rejects_weak_password(client, store):
    resp = signup(client, password="weakpass")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "auth/weak-password"


def test_signup_rejects_invalid_email(client, store):
    resp = signup(client, email="not-an-email")
    assert resp.json()["error"]["code"] == "auth/invalid-email"


def test_signup_rejects_duplicate_email(client, store):
    signup(client)
    resp = signup(client, email="SAM@example.com")
    assert resp.status_code == 409
    assert resp.json()["error"]["message"].startswith("An account with this email already exists")


def test_signup_rejects_mismatched_confirmation(client, store):
    resp = signup(client, confirm_password="Other!Pass1")
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Passwords do not match"


def test_login_and_me(client, store):
    signup(client)
    resp = client.post("/v1/auth/login", json={"email": "sam@example.com", "password": STRONG_PASSWORD})
    assert resp.status_code == 200
    token = resp.json()["token"]

    me = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["profile"]["email"] == "sam@example.com"
    assert me.json()["landing_path"] == "/dashboard"
    assert me.json()["is_premium"] is False


def test_login_errors(client, store):
    signup(client)
    unknown = client.post("/v1/auth/login", json={"email": "nobody@example.com", "password": "whatever"})
    assert unknown.status_code == 401
    assert unknown.json()["error"]["code"] == "auth/user-not-found"

    wrong = client.post("/v1/auth/login", json={"email": "sam@example.com", "password": "Wrong!Pass1"})
    assert wrong.status_code == 401
    assert wrong.json()["error"]["message"] == "Incorrect password. Please try again."


def test_login_form_minimum_length(client, store):
    resp = client.post("/v1/auth/login", json={"email": "sam@example.com", "password": "12345"})
    assert resp.status_code == 422


def test_disabled_account_cannot_sign_in(client, store):
    profile = signup(client).json()["profile"]
    store.update("auth_users", profile["uid"], {"disabled": True})
    resp = client.post("/v1/auth/login", json={"email": "sam@example.com", "password": STRONG_PASSWORD})
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "auth/user-disabled"


def test_logout_revokes_token(client, store):
    token = signup(client).json()["token"]
    headers = {"Authorization": f"Bearer {token}"}
    assert client.post("/v1/auth/logout", headers=headers).json() == {"ok": True}

    resp = client.get("/v1/auth/me", headers=headers)
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "auth/session-cookie-expired"


def test_expired_token_rejected(auth_service, store):
    session = auth_service.sign_up("late@example.com", STRONG_PASSWORD)
    auth_service._settings = auth_service._settings.model_copy(update={"AUTH_TOKEN_TTL_MINUTES": -1})
    expired = auth_service.sign_in("late@example.com", STRONG_PASSWORD)
    with pytest.raises(BackendError) as exc:
        auth_service.resolve_token(expired.token)
    assert exc.value.code == "auth/session-cookie-expired"
    assert auth_service.resolve_token(session.token).email == "late@example.com"


def test_password_reset_flow(client, store, mailer):
    signup(client)
    assert client.post("/v1/auth/password-reset", json={"email": "sam@example.com"}).json() == {"sent": True}

    message = mailer.outbox[-1]
    assert message.email == "sam@example.com"
    link = urlparse(message.link)
    assert link.path == "/reset-password"
    code = parse_qs(link.query)["oobCode"][0]
    assert code == message.code

    verify = client.get("/v1/auth/password-reset/verify", params={"code": code})
    assert verify.json() == {"email": "sam@example.com"}

    new_password = "N3w!Password"
    confirm = client.post(
        "/v1/auth/password-reset/confirm",
        json={"code": code, "new_password": new_password, "confirm_password": new_password},
    )
    assert confirm.status_code == 200

    assert client.post("/v1/auth/login", json={"email": "sam@example.com", "password": new_password}).status_code == 200
    assert client.post("/v1/auth/login", json={"email": "sam@example.com", "password": STRONG_PASSWORD}).status_code == 401

    reused = client.post("/v1/auth/password-reset/confirm", json={"code": code, "new_password": "An0ther!Pass"})
    assert reused.json()["error"]["code"] == "auth/invalid-action-code"


def test_password_reset_unknown_email(client, store):
    resp = client.post("/v1/auth/password-reset", json={"email": "ghost@example.com"})
    assert resp.json()["error"]["code"] == "auth/user-not-found"


def test_password_reset_code_expires(auth_service, store, mailer):
    auth_service.sign_up("sam@example.com", STRONG_PASSWORD)
    auth_service.send_password_reset("sam@example.com")
    code = mailer.outbox[-1].code
    store.update("password_resets", code, {"expires_at": store.now() - timedelta(minutes=1)})
    with pytest.raises(BackendError) as exc:
        auth_service.verify_reset_code(code)
    assert exc.value.code == "auth/expired-action-code"


def test_password_strength_endpoint(client):
    body = client.post("/v1/auth/password-strength", json={"password": "Password1"}).json()
    assert body["score"] == 4
    assert body["strength"] == "fair"
    assert body["is_valid"] is False
    unmet = [r["label"] for r in body["requirements"] if not r["met"]]
    assert unmet == ["One special character (!@#$%^&* etc.)"]


def test_update_profile(client, client_user):
    headers, _ = client_user
    resp = client.patch("/v1/auth/me", headers=headers, json={"display_name": "Coach Sam", "level": "advanced"})
    assert resp.status_code == 200
    assert resp.json()["profile"]["display_name"] == "Coach Sam"
    assert resp.json()["profile"]["level"] == "advanced"
    assert resp.json()["profile"]["role"] == "client"


def test_admin_lands_on_admin_dashboard(client, admin_user):
    headers, _ = admin_user
    assert client.get("/v1/auth/me", headers=headers).json()["landing_path"] == "/admin/dashboard"


def test_null_level_is_rejected_and_account_keeps_working(client, client_user, store):
    headers, profile = client_user
    resp = client.patch("/v1/auth/me", headers=headers, json={"level": None})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "validation_error"
    assert store.get("users", profile.uid).get("level") == "beginner"

    assert client.get("/v1/auth/me", headers=headers).status_code == 200
    assert client.get("/v1/workouts", headers=headers).status_code == 200


def test_display_name_can_be_cleared(client, client_user):
    headers, _ = client_user
    client.patch("/v1/auth/me", headers=headers, json={"display_name": "Sam"})
    resp = client.patch("/v1/auth/me", headers=headers, json={"display_name": None})
    assert resp.status_code == 200
    assert resp.json()["profile"]["display_name"] is None


def test_signup_rejects_password_past_bcrypt_limit(client, store):
    resp = signup(client, password="Aa1!" + "x" * 80)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "auth/invalid-password"
