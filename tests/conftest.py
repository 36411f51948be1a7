import sys
from pathlib import Path
from typing import Dict

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from course_platform.api.server import create_app  # noqa: E402
from course_platform.config import Config  # noqa: E402
from course_platform.db import connect, init_db, seed_settings  # noqa: E402


ADMIN_LOGIN = "admin"
ADMIN_PASSWORD = "admin123"


@pytest.fixture
def cfg(tmp_path: Path) -> Config:
    return Config(
        DB_DSN=str(tmp_path / "course.sqlite3"),
        AUTH_JWT_SECRET="tests-secret-key",
        AUTH_BOOTSTRAP_ADMIN_EMAIL="admin@example.com",
        AUTH_BOOTSTRAP_ADMIN_USERNAME=ADMIN_LOGIN,
        AUTH_BOOTSTRAP_ADMIN_PASSWORD=ADMIN_PASSWORD,
        ENABLE_ADMIN_BOOTSTRAP=True,
        SITE_NAME="Test Site",
        SITE_COPYRIGHT="(c) Test",
        CORS_ALLOW_ORIGINS="",
    )


@pytest.fixture
def conn(cfg: Config):
    init_db(cfg.DB_DSN)
    with connect(cfg.DB_DSN) as c:
        seed_settings(c, name=cfg.SITE_NAME, copyright=cfg.SITE_COPYRIGHT)
        c.commit()
        yield c


@pytest.fixture
def client(cfg: Config):
    app = create_app(cfg)
    with TestClient(app) as c:
        yield c


def token_header(token: str) -> Dict[str, str]:
    return {"token": token}


def sign_in(client: TestClient, login: str, password: str, *, admin: bool = False) -> str:
    path = "/admin/auth/sign_in" if admin else "/auth/sign_in"
    resp = client.post(path, json={"login": login, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["token"]


@pytest.fixture
def admin_headers(client: TestClient) -> Dict[str, str]:
    return token_header(sign_in(client, ADMIN_LOGIN, ADMIN_PASSWORD, admin=True))


def sign_up(client: TestClient, username: str = "alice", password: str = "abcdef") -> dict:
    resp = client.post(
        "/auth/sign_up",
        json={
            "email": f"{username}@example.com",
            "username": username,
            "nickname": username.capitalize(),
            "password": password,
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["user"]


@pytest.fixture
def user_headers(client: TestClient) -> Dict[str, str]:
    sign_up(client)
    return token_header(sign_in(client, "alice", "abcdef"))
