"""Field rules per entity.

Each `validate_*` collects every failing rule and raises a single
ValidationError, so clients see all problems at once. On create, required
fields must be present; on update, only the supplied fields are checked.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlparse

from course_platform import repo
from course_platform.errors import ValidationError
from course_platform.models import PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH, ROLES, SEXES


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _len_between(value: Any, lo: int, hi: int) -> bool:
    return isinstance(value, str) and lo <= len(value) <= hi


def is_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        u = urlparse(value.strip())
    except ValueError:
        return False
    return u.scheme in ("http", "https") and bool(u.netloc)


def _taken(conn: Any, table: str, column: str, value: Any, exclude_id: Optional[int]) -> bool:
    if exclude_id is None:
        return repo.find_one(conn, table, f"{column}=?", (value,), columns="id") is not None
    return repo.find_one(conn, table, f"{column}=? AND id<>?", (value, int(exclude_id)), columns="id") is not None


def _required(values: Mapping[str, Any], key: str, creating: bool) -> bool:
    """Whether `key` must be checked: always on create, on update only if supplied."""
    return creating or key in values


def _raise(errors: List[str]) -> None:
    if errors:
        raise ValidationError(errors)


def validate_user(conn: Any, values: Mapping[str, Any], *, creating: bool, user_id: Optional[int] = None) -> None:
    errors: List[str] = []

    if _required(values, "email", creating):
        email = values.get("email")
        if not email:
            errors.append("Email is required.")
        elif not _EMAIL_RE.match(email):
            errors.append("Email format is wrong.")
        elif _taken(conn, "users", "email", email, user_id):
            errors.append("Email exists. Please use another one.")

    if _required(values, "username", creating):
        username = values.get("username")
        if not username:
            errors.append("Username is required.")
        elif not _len_between(username, 2, 45):
            errors.append("Length of username must be between 2 ~ 45 characters.")
        elif _taken(conn, "users", "username", username, user_id):
            errors.append("Username exists. Please use another one.")

    if _required(values, "nickname", creating):
        nickname = values.get("nickname")
        if not nickname:
            errors.append("Nickname is required.")
        elif not _len_between(nickname, 2, 45):
            errors.append("Nickname must be between 2 ~ 45 characters.")

    if _required(values, "password", creating):
        password = values.get("password")
        if not password:
            errors.append("Password is required.")
        elif not _len_between(password, PASSWORD_MIN_LENGTH, PASSWORD_MAX_LENGTH):
            errors.append(
                f"Length of password must be between {PASSWORD_MIN_LENGTH} ~ {PASSWORD_MAX_LENGTH} characters."
            )

    if _required(values, "sex", creating) and values.get("sex") not in SEXES:
        errors.append("The value of sex must be 0(male) or 1(female) or 2(no selection).")

    if _required(values, "role", creating) and values.get("role") not in ROLES:
        errors.append("The value of role must be 0(normal user) or 100(administrator).")

    if values.get("avatar") is not None and not is_url(values["avatar"]):
        errors.append("Avatar URL is incorrect.")

    _raise(errors)


def validate_category(conn: Any, values: Mapping[str, Any], *, creating: bool, category_id: Optional[int] = None) -> None:
    errors: List[str] = []

    if _required(values, "name", creating):
        name = values.get("name")
        if not name:
            errors.append("Name is required.")
        elif not _len_between(name, 2, 45):
            errors.append("Length of name must be between 2 ~ 45 characters.")
        elif _taken(conn, "categories", "name", name, category_id):
            errors.append("Name exists. Consider another name.")

    if _required(values, "rank", creating):
        errors.extend(_rank_errors(values.get("rank")))

    _raise(errors)


def _rank_errors(rank: Any) -> List[str]:
    if rank is None:
        return ["Rank is required."]
    if not isinstance(rank, int) or isinstance(rank, bool):
        return ["Rank must be an integer."]
    if rank <= 0:
        return ["Rank must be a positive integer."]
    return []


def validate_course(conn: Any, values: Mapping[str, Any], *, creating: bool) -> None:
    errors: List[str] = []

    if _required(values, "category_id", creating):
        category_id = values.get("category_id")
        if category_id is None:
            errors.append("Category ID is required.")
        elif repo.find_by_pk(conn, "categories", category_id, columns="id") is None:
            errors.append(f"Category with ID:{category_id} not exists.")

    if _required(values, "user_id", creating):
        user_id = values.get("user_id")
        if user_id is None:
            errors.append("User ID is required.")
        elif repo.find_by_pk(conn, "users", user_id, columns="id") is None:
            errors.append(f"User with ID:{user_id} not exists.")

    if _required(values, "name", creating):
        name = values.get("name")
        if not name:
            errors.append("Name is required.")
        elif not _len_between(name, 2, 45):
            errors.append("Length of name must be between 2 ~ 45 characters.")

    if values.get("image") is not None and not is_url(values["image"]):
        errors.append("Image URL is incorrect.")

    _raise(errors)


def validate_chapter(conn: Any, values: Mapping[str, Any], *, creating: bool) -> None:
    errors: List[str] = []

    if _required(values, "course_id", creating):
        course_id = values.get("course_id")
        if course_id is None:
            errors.append("Course ID is required.")
        elif repo.find_by_pk(conn, "courses", course_id, columns="id") is None:
            errors.append(f"Course with ID:{course_id} is not found.")

    if _required(values, "title", creating):
        title = values.get("title")
        if not title:
            errors.append("Title is required.")
        elif not _len_between(title, 2, 45):
            errors.append("Length of title must be between 2 ~ 45 characters.")

    if values.get("video") is not None and not is_url(values["video"]):
        errors.append("Video URL is incorrect.")

    if _required(values, "rank", creating):
        errors.extend(_rank_errors(values.get("rank")))

    _raise(errors)


def validate_article(values: Mapping[str, Any], *, creating: bool) -> None:
    errors: List[str] = []
    if _required(values, "title", creating):
        title = values.get("title")
        if not title:
            errors.append("Title is required.")
        elif not _len_between(title, 2, 45):
            errors.append("Length of title must be between 2 ~ 45 characters.")
    _raise(errors)


def course_values(values: Dict[str, Any]) -> Dict[str, Any]:
    """Booleans are stored as 0/1."""
    out = dict(values)
    for key in ("recommended", "introductory"):
        if key in out:
            out[key] = 1 if out[key] else 0
    return out
