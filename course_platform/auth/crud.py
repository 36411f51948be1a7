from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from course_platform import repo
from course_platform.config import Config
from course_platform.db import connect
from course_platform.errors import BadRequestError, NotFoundError, UnauthorizedError, ValidationError
from course_platform.models import ROLE_ADMIN, ROLE_NORMAL, SEX_UNSPECIFIED
from course_platform.validation import validate_user

from .security import hash_password, verify_password


def public_user(row: Mapping[str, Any]) -> Dict[str, Any]:
    """API shape of a user row; the password digest never leaves the server."""
    d = repo.to_api(row)
    assert d is not None
    return d


def is_admin(row: Mapping[str, Any]) -> bool:
    return int(row.get("role") or 0) == ROLE_ADMIN


def get_user_by_id(conn: Any, user_id: int) -> Optional[Dict[str, Any]]:
    return repo.find_by_pk(conn, "users", user_id)


def get_user_by_login(conn: Any, login: str) -> Optional[Dict[str, Any]]:
    """Look a user up by email or username."""
    s = (login or "").strip()
    if not s:
        return None
    return repo.find_one(conn, "users", "email=? OR username=?", (s, s))


def _with_password_hash(values: Mapping[str, Any]) -> Dict[str, Any]:
    out = dict(values)
    password = out.pop("password", None)
    if password is not None:
        out["password_hash"] = hash_password(password)
    return out


_UNIQUE_MESSAGES = (
    (("users.email", "users_email_key"), "Email exists. Please use another one."),
    (("users.username", "users_username_key"), "Username exists. Please use another one."),
)


def _duplicate_user(exc: Exception) -> ValidationError:
    """Turn a unique-constraint failure that slipped past `validate_user` into a validation error.

    Two concurrent sign-ups can both pass the pre-check; the constraint decides.
    SQLite names the column (`users.email`), Postgres the constraint (`users_email_key`).
    """
    text = str(exc)
    for markers, message in _UNIQUE_MESSAGES:
        if any(m in text for m in markers):
            return ValidationError([message])
    raise exc


def create_user(conn: Any, values: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate and insert a user. `values` carries a plaintext `password`."""
    data = dict(values)
    data.setdefault("sex", SEX_UNSPECIFIED)
    data.setdefault("role", ROLE_NORMAL)
    validate_user(conn, data, creating=True)
    try:
        return repo.insert(conn, "users", _with_password_hash(data))
    except conn.IntegrityError as exc:
        raise _duplicate_user(exc) from exc


def update_user(conn: Any, user_id: int, values: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate and apply only the supplied fields."""
    if get_user_by_id(conn, user_id) is None:
        raise NotFoundError(f"User with ID:{user_id} is not found.")
    validate_user(conn, values, creating=False, user_id=user_id)
    try:
        row = repo.update(conn, "users", user_id, _with_password_hash(values))
    except conn.IntegrityError as exc:
        raise _duplicate_user(exc) from exc
    assert row is not None
    return row


def authenticate(conn: Any, login: str | None, password: str | None, *, admin_only: bool = False) -> Dict[str, Any]:
    """Resolve `login` (email or username) and check the password.

    With `admin_only`, a correct password for a non-administrator is still
    rejected.
    """
    if not login:
        raise BadRequestError("Email/Username is required.")
    if not password:
        raise BadRequestError("Password is required.")

    row = get_user_by_login(conn, login)
    if row is None:
        raise NotFoundError("User not found.")

    if not verify_password(password, str(row["password_hash"])):
        raise UnauthorizedError("Wrong password.", reason="wrong_password")

    if admin_only and not is_admin(row):
        raise UnauthorizedError("Not authorized to access.", reason="not_admin")

    return row


def bootstrap_admin_if_needed(cfg: Config) -> Optional[Dict[str, Any]]:
    """Create the first admin user if the users table is empty.

    Controlled via environment variables so a new clone has a deterministic way to log in.

    - AUTH_BOOTSTRAP_ADMIN_EMAIL (default: admin@example.com)
    - AUTH_BOOTSTRAP_ADMIN_USERNAME (default: admin)
    - AUTH_BOOTSTRAP_ADMIN_PASSWORD (default: admin123)

    This only runs when there are 0 rows in `users`.
    """

    with connect(cfg.DB_DSN) as conn:
        if repo.count(conn, "users") > 0:
            return None

        email = (cfg.AUTH_BOOTSTRAP_ADMIN_EMAIL or "").strip()
        username = (cfg.AUTH_BOOTSTRAP_ADMIN_USERNAME or "").strip()
        password = cfg.AUTH_BOOTSTRAP_ADMIN_PASSWORD or ""

        # If env explicitly clears these, don't create anything.
        if not email or not username or not password:
            return None

        row = create_user(
            conn,
            {
                "email": email,
                "username": username,
                "nickname": "Administrator",
                "password": password,
                "role": ROLE_ADMIN,
            },
        )
        return public_user(row)
