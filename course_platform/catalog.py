"""Categories, courses, chapters, articles and the settings row.

Write helpers validate, apply the change and keep derived columns in step
(`courses.chapters_count`). Read helpers assemble the composite API shapes
used by the public pages (course with its category and creator, chapter with
its siblings, the homepage feed).
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Sequence

from course_platform import repo
from course_platform.errors import BadRequestError, NotFoundError
from course_platform.validation import (
    course_values,
    validate_article,
    validate_category,
    validate_chapter,
    validate_course,
)


# Listings never carry the (possibly large) body text.
COURSE_LIST_COLUMNS = (
    "id",
    "category_id",
    "user_id",
    "name",
    "image",
    "recommended",
    "introductory",
    "likes_count",
    "chapters_count",
    "created_at",
    "updated_at",
)
CHAPTER_LIST_COLUMNS = ("id", "course_id", "title", "video", "rank", "created_at", "updated_at")
ARTICLE_LIST_COLUMNS = ("id", "title", "created_at", "updated_at")

CATEGORY_BRIEF_COLUMNS = ("id", "name")
USER_BRIEF_COLUMNS = ("id", "username", "nickname", "avatar", "company")


def get_or_404(
    conn: Any,
    table: str,
    pk: int,
    message: str,
    *,
    columns: Sequence[str] | str = "*",
) -> Dict[str, Any]:
    row = repo.find_by_pk(conn, table, pk, columns=columns)
    if row is None:
        raise NotFoundError(message)
    return row


def _by_id(conn: Any, table: str, ids: Iterable[int], columns: Sequence[str]) -> Dict[int, Dict[str, Any]]:
    wanted = sorted({int(i) for i in ids if i is not None})
    if not wanted:
        return {}
    marks = ",".join("?" for _ in wanted)
    rows = repo.find_all(conn, table, where_sql=f"id IN ({marks})", params=wanted, columns=columns)
    return {int(r["id"]): repo.to_api(r) for r in rows}  # type: ignore[misc]


def with_category_and_user(conn: Any, rows: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """API course dicts with `category` {id, name} and `user` (public profile) attached."""
    categories = _by_id(conn, "categories", (r["category_id"] for r in rows), CATEGORY_BRIEF_COLUMNS)
    users = _by_id(conn, "users", (r["user_id"] for r in rows), USER_BRIEF_COLUMNS)
    out: List[Dict[str, Any]] = []
    for r in rows:
        d = repo.to_api(r)
        assert d is not None
        d["category"] = categories.get(int(r["category_id"]))
        d["user"] = users.get(int(r["user_id"]))
        out.append(d)
    return out


# -----------------------------
# Public reads
# -----------------------------


def homepage(conn: Any, *, size: int = 10) -> Dict[str, Any]:
    recommended = repo.find_all(
        conn,
        "courses",
        where_sql="recommended = 1",
        order_sql="ORDER BY id DESC",
        limit=size,
        columns=COURSE_LIST_COLUMNS,
    )
    liked = repo.find_all(
        conn,
        "courses",
        order_sql="ORDER BY likes_count DESC, id DESC",
        limit=size,
        columns=COURSE_LIST_COLUMNS,
    )
    introductory = repo.find_all(
        conn,
        "courses",
        where_sql="introductory = 1",
        order_sql="ORDER BY id DESC",
        limit=size,
        columns=COURSE_LIST_COLUMNS,
    )
    return {
        "recommendedCourses": with_category_and_user(conn, recommended),
        "likesCourses": repo.to_api_list(liked),
        "introductoryCourses": repo.to_api_list(introductory),
    }


def course_detail(conn: Any, course_id: int) -> Dict[str, Any]:
    row = get_or_404(conn, "courses", course_id, f"Course with ID:{course_id} is not found.")
    course = with_category_and_user(conn, [row])[0]
    chapters = repo.find_all(
        conn,
        "chapters",
        where_sql="course_id = ?",
        params=(course_id,),
        order_sql="ORDER BY rank ASC, id DESC",
        columns=("id", "title", "rank", "created_at"),
    )
    course["chapters"] = repo.to_api_list(chapters)
    return course


def chapter_detail(conn: Any, chapter_id: int) -> Dict[str, Any]:
    """Chapter plus its course, the course creator and the sibling chapter list."""
    chapter = get_or_404(conn, "chapters", chapter_id, f"Chapter with ID:{chapter_id} is not found.")
    course = get_or_404(
        conn,
        "courses",
        chapter["course_id"],
        f"Course with ID:{chapter['course_id']} is not found.",
        columns=("id", "name", "user_id"),
    )
    user = repo.find_by_pk(conn, "users", course["user_id"], columns=USER_BRIEF_COLUMNS)
    siblings = repo.find_all(
        conn,
        "chapters",
        where_sql="course_id = ?",
        params=(chapter["course_id"],),
        order_sql="ORDER BY rank ASC, id DESC",
        columns=CHAPTER_LIST_COLUMNS,
    )
    return {
        "chapter": repo.to_api(chapter),
        "course": repo.to_api(course),
        "user": repo.to_api(user),
        "chapters": repo.to_api_list(siblings),
    }


def get_settings(conn: Any, *, message: str = "Setting not found.") -> Dict[str, Any]:
    row = repo.find_one(conn, "settings", "", order_sql="ORDER BY id ASC")
    if row is None:
        raise NotFoundError(message)
    return row


def update_settings(conn: Any, values: Mapping[str, Any]) -> Dict[str, Any]:
    row = get_settings(conn)
    updated = repo.update(conn, "settings", row["id"], values)
    assert updated is not None
    return updated


# -----------------------------
# Categories
# -----------------------------


def create_category(conn: Any, values: Mapping[str, Any]) -> Dict[str, Any]:
    validate_category(conn, values, creating=True)
    return repo.insert(conn, "categories", values)


def update_category(conn: Any, category_id: int, values: Mapping[str, Any]) -> Dict[str, Any]:
    get_or_404(conn, "categories", category_id, f"Category with ID:{category_id} is not found.")
    validate_category(conn, values, creating=False, category_id=category_id)
    row = repo.update(conn, "categories", category_id, values)
    assert row is not None
    return row


def delete_category(conn: Any, category_id: int) -> None:
    get_or_404(conn, "categories", category_id, f"Category with ID:{category_id} is not found.")
    if repo.count(conn, "courses", "category_id = ?", (category_id,)) > 0:
        raise BadRequestError("Delete failed, this category has courses.")
    repo.delete(conn, "categories", category_id)


# -----------------------------
# Courses
# -----------------------------


def create_course(conn: Any, values: Mapping[str, Any], *, user_id: int) -> Dict[str, Any]:
    """The authenticated administrator becomes the course owner."""
    data = dict(values)
    data["user_id"] = int(user_id)
    validate_course(conn, data, creating=True)
    return repo.insert(conn, "courses", course_values(data))


def update_course(conn: Any, course_id: int, values: Mapping[str, Any]) -> Dict[str, Any]:
    get_or_404(conn, "courses", course_id, f"Course with ID:{course_id} not exists.")
    validate_course(conn, values, creating=False)
    row = repo.update(conn, "courses", course_id, course_values(dict(values)))
    assert row is not None
    return row


def delete_course(conn: Any, course_id: int) -> None:
    get_or_404(conn, "courses", course_id, f"Course with ID:{course_id} not exists.")
    if repo.count(conn, "chapters", "course_id = ?", (course_id,)) > 0:
        raise BadRequestError("Delete failed, the course has associated chapters.")
    conn.execute("DELETE FROM likes WHERE course_id = ?", (course_id,))
    repo.delete(conn, "courses", course_id)


# -----------------------------
# Chapters
# -----------------------------


def create_chapter(conn: Any, values: Mapping[str, Any]) -> Dict[str, Any]:
    validate_chapter(conn, values, creating=True)
    row = repo.insert(conn, "chapters", values)
    repo.increment(conn, "courses", row["course_id"], "chapters_count")
    return row


def update_chapter(conn: Any, chapter_id: int, values: Mapping[str, Any]) -> Dict[str, Any]:
    before = get_or_404(conn, "chapters", chapter_id, f"ID: {chapter_id} not found")
    validate_chapter(conn, values, creating=False)
    row = repo.update(conn, "chapters", chapter_id, values)
    assert row is not None
    # Moving a chapter to another course moves it between the two counters.
    if int(row["course_id"]) != int(before["course_id"]):
        repo.decrement(conn, "courses", before["course_id"], "chapters_count")
        repo.increment(conn, "courses", row["course_id"], "chapters_count")
    return row


def delete_chapter(conn: Any, chapter_id: int) -> None:
    row = get_or_404(conn, "chapters", chapter_id, f"ID: {chapter_id} not found")
    if repo.delete(conn, "chapters", chapter_id):
        repo.decrement(conn, "courses", row["course_id"], "chapters_count")


# -----------------------------
# Articles
# -----------------------------


def create_article(conn: Any, values: Mapping[str, Any]) -> Dict[str, Any]:
    validate_article(values, creating=True)
    return repo.insert(conn, "articles", values)


def update_article(conn: Any, article_id: int, values: Mapping[str, Any]) -> Dict[str, Any]:
    get_or_404(conn, "articles", article_id, f"ID: {article_id} not found")
    validate_article(values, creating=False)
    row = repo.update(conn, "articles", article_id, values)
    assert row is not None
    return row


def delete_article(conn: Any, article_id: int) -> None:
    get_or_404(conn, "articles", article_id, f"ID: {article_id} not found")
    repo.delete(conn, "articles", article_id)
