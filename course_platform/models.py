"""Request bodies.

Each writable surface declares exactly the fields it accepts; unknown keys in
the JSON body are ignored, so nothing outside these allow-lists can reach the
data layer. Bodies use camelCase keys on the wire and snake_case (= column
names) in Python.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from course_platform.query import SQL_INT_MAX, SQL_INT_MIN


ROLE_NORMAL = 0
ROLE_ADMIN = 100
ROLES = (ROLE_NORMAL, ROLE_ADMIN)

SEX_MALE = 0
SEX_FEMALE = 1
SEX_UNSPECIFIED = 2
SEXES = (SEX_MALE, SEX_FEMALE, SEX_UNSPECIFIED)

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 45

# Integer body fields must fit an INTEGER column.
SqlInt = Annotated[int, Field(ge=SQL_INT_MIN, le=SQL_INT_MAX)]


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def values(self) -> Dict[str, Any]:
        """Supplied fields only, keyed by column name."""
        return self.model_dump(exclude_none=True)


# -----------------------------
# Auth
# -----------------------------


class SignUpRequest(_Body):
    email: Optional[str] = None
    username: Optional[str] = None
    nickname: Optional[str] = None
    password: Optional[str] = None


class SignInRequest(_Body):
    """`login` matches either the email or the username."""

    login: Optional[str] = None
    password: Optional[str] = None


# -----------------------------
# Users
# -----------------------------


class UserInfoRequest(_Body):
    nickname: Optional[str] = None
    sex: Optional[SqlInt] = None
    company: Optional[str] = None
    introduce: Optional[str] = None
    avatar: Optional[str] = None


class UserAccountRequest(_Body):
    email: Optional[str] = None
    username: Optional[str] = None
    current_password: Optional[str] = None
    password: Optional[str] = None
    password_confirmation: Optional[str] = None


class AdminUserRequest(_Body):
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    nickname: Optional[str] = None
    sex: Optional[SqlInt] = None
    company: Optional[str] = None
    introduce: Optional[str] = None
    role: Optional[SqlInt] = None
    avatar: Optional[str] = None


# -----------------------------
# Content
# -----------------------------


class CategoryRequest(_Body):
    name: Optional[str] = None
    rank: Optional[SqlInt] = None


class CourseRequest(_Body):
    category_id: Optional[SqlInt] = None
    name: Optional[str] = None
    image: Optional[str] = None
    recommended: Optional[bool] = None
    introductory: Optional[bool] = None
    content: Optional[str] = None


class ChapterRequest(_Body):
    course_id: Optional[SqlInt] = None
    title: Optional[str] = None
    content: Optional[str] = None
    video: Optional[str] = None
    rank: Optional[SqlInt] = None


class ArticleRequest(_Body):
    title: Optional[str] = None
    content: Optional[str] = None


class SettingRequest(_Body):
    name: Optional[str] = None
    copyright: Optional[str] = None


class LikeRequest(_Body):
    course_id: Optional[SqlInt] = None
