from datetime import datetime, timedelta, timezone

from course_platform.auth.security import create_access_token
from conftest import ADMIN_LOGIN, ADMIN_PASSWORD, sign_in, sign_up, token_header


def test_startup_bootstraps_admin_and_settings(client):
    token = sign_in(client, ADMIN_LOGIN, ADMIN_PASSWORD, admin=True)
    r = client.get("/users/me", headers=token_header(token))
    assert r.status_code == 200
    assert r.json()["data"]["user"]["role"] == 100

    r = client.get("/settings")
    assert r.status_code == 200
    assert r.json()["data"]["setting"]["name"] == "Test Site"


def test_sign_up_returns_user_without_password(client):
    r = client.post(
        "/auth/sign_up",
        json={"email": "a@b.com", "username": "alice", "nickname": "Alice", "password": "abcdef"},
    )

    assert r.status_code == 201
    body = r.json()
    assert body["status"] is True
    user = body["data"]["user"]
    assert user["username"] == "alice"
    assert "password" not in user
    assert "passwordHash" not in user


def test_sign_up_fixes_sex_and_role(client):
    r = client.post(
        "/auth/sign_up",
        json={
            "email": "mallory@example.com",
            "username": "mallory",
            "nickname": "Mallory",
            "password": "abcdef",
            "role": 100,
            "sex": 0,
        },
    )
    assert r.status_code == 201
    user = r.json()["data"]["user"]
    assert user["role"] == 0
    assert user["sex"] == 2


def test_sign_up_duplicate_is_a_validation_error(client):
    sign_up(client, "alice")
    r = client.post(
        "/auth/sign_up",
        json={"email": "alice@example.com", "username": "alice", "nickname": "Alice", "password": "abcdef"},
    )
    assert r.status_code == 400
    body = r.json()
    assert body["message"] == "Validation error"
    assert "Email exists. Please use another one." in body["errors"]
    assert "Username exists. Please use another one." in body["errors"]


def test_sign_up_collects_every_field_error(client):
    r = client.post("/auth/sign_up", json={"email": "nope", "username": "a", "password": "123"})
    assert r.status_code == 400
    errors = r.json()["errors"]
    assert "Email format is wrong." in errors
    assert "Length of username must be between 2 ~ 45 characters." in errors
    assert "Nickname is required." in errors
    assert any(e.startswith("Length of password") for e in errors)


def test_sign_in_with_email_or_username(client):
    sign_up(client, "alice")
    assert sign_in(client, "alice", "abcdef")
    assert sign_in(client, "alice@example.com", "abcdef")


def test_sign_in_wrong_password(client):
    sign_up(client, "alice")
    r = client.post("/auth/sign_in", json={"login": "alice", "password": "wrong"})
    assert r.status_code == 401
    assert r.json() == {"status": False, "message": "Verification failed", "errors": ["Wrong password."]}


def test_sign_in_unknown_user_and_missing_fields(client):
    r = client.post("/auth/sign_in", json={"login": "ghost", "password": "abcdef"})
    assert r.status_code == 404
    assert r.json()["errors"] == ["User not found."]

    r = client.post("/auth/sign_in", json={"password": "abcdef"})
    assert r.status_code == 400
    assert r.json()["errors"] == ["Email/Username is required."]

    r = client.post("/auth/sign_in", json={"login": "alice"})
    assert r.status_code == 400
    assert r.json()["errors"] == ["Password is required."]


def test_user_routes_require_token(client):
    r = client.get("/users/me")
    assert r.status_code == 401
    assert r.json()["errors"] == ["Authorization token is required."]

    r = client.get("/users/me", headers=token_header("garbage"))
    assert r.status_code == 401
    assert r.json()["errors"] == ["Wrong Token"]

    r = client.get("/users/me", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401


def test_expired_token_is_rejected(client, cfg):
    sign_up(client, "alice")
    stale = create_access_token(
        secret=cfg.AUTH_JWT_SECRET,
        user_id=2,
        issued_at=datetime.now(timezone.utc) - timedelta(days=31),
    )
    r = client.get("/users/me", headers=token_header(stale))
    assert r.status_code == 401
    assert r.json()["errors"] == ["Expired Token"]


def test_normal_user_token_on_admin_route_is_unauthorized(client, user_headers):
    r = client.get("/admin/categories", headers=user_headers)
    assert r.status_code == 401
    assert r.json()["errors"] == ["Not authorized as admin."]


def test_admin_route_with_token_for_deleted_subject(client, cfg):
    token = create_access_token(secret=cfg.AUTH_JWT_SECRET, user_id=999)
    r = client.get("/admin/users", headers=token_header(token))
    assert r.status_code == 401
    assert r.json()["errors"] == ["User not exists"]


def test_admin_sign_in_rejects_normal_user(client):
    sign_up(client, "alice")
    r = client.post("/admin/auth/sign_in", json={"login": "alice", "password": "abcdef"})
    assert r.status_code == 401
    assert r.json()["errors"] == ["Not authorized to access."]


def test_update_info(client, user_headers):
    r = client.put(
        "/users/info",
        headers=user_headers,
        json={"nickname": "Ally", "sex": 1, "company": "Acme", "avatar": "https://cdn.example.com/a.png"},
    )
    assert r.status_code == 200
    user = r.json()["data"]["user"]
    assert user["nickname"] == "Ally"
    assert user["sex"] == 1
    assert user["company"] == "Acme"

    r = client.put("/users/info", headers=user_headers, json={"sex": 7, "avatar": "not a url"})
    assert r.status_code == 400
    assert len(r.json()["errors"]) == 2


def test_update_account_requires_current_password(client, user_headers):
    r = client.put("/users/account", headers=user_headers, json={"username": "alice2"})
    assert r.status_code == 400
    assert r.json()["errors"] == ["Current password is required."]

    r = client.put(
        "/users/account",
        headers=user_headers,
        json={"currentPassword": "abcdef", "password": "newpass1", "passwordConfirmation": "newpass2"},
    )
    assert r.status_code == 400
    assert r.json()["errors"] == ["Password and confirmation do not match."]

    r = client.put(
        "/users/account",
        headers=user_headers,
        json={"currentPassword": "wrong!", "password": "newpass1", "passwordConfirmation": "newpass1"},
    )
    assert r.status_code == 400
    assert r.json()["errors"] == ["Current password is incorrect."]


def test_update_account_changes_password(client, user_headers):
    r = client.put(
        "/users/account",
        headers=user_headers,
        json={
            "username": "alice2",
            "currentPassword": "abcdef",
            "password": "newpass1",
            "passwordConfirmation": "newpass1",
        },
    )
    assert r.status_code == 200
    assert r.json()["data"]["user"]["username"] == "alice2"

    assert sign_in(client, "alice2", "newpass1")
    r = client.post("/auth/sign_in", json={"login": "alice2", "password": "abcdef"})
    assert r.status_code == 401
