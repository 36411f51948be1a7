"""Course likes: the toggle and the per-user liked-course listing.

`courses.likes_count` only ever changes in the same transaction as the
`likes` row it counts, and only when that row actually changed.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from course_platform import repo
from course_platform.catalog import COURSE_LIST_COLUMNS
from course_platform.errors import NotFoundError
from course_platform.query import QuerySpec
from course_platform.util.time import utcnow_iso


LIKED = "Liked successfully."
UNLIKED = "Unliked successfully."


def toggle_like(conn: Any, user_id: int, course_id: int) -> str:
    """Like the course if the user has not liked it yet, otherwise unlike it.

    Returns the outcome message. Must run inside one `connect()` block.
    """
    if repo.find_by_pk(conn, "courses", course_id, columns="id") is None:
        raise NotFoundError("Course not exists")

    removed = conn.execute(
        "DELETE FROM likes WHERE user_id = ? AND course_id = ?",
        (int(user_id), int(course_id)),
    ).rowcount
    if removed:
        repo.decrement(conn, "courses", course_id, "likes_count")
        return UNLIKED

    now = utcnow_iso()
    inserted = conn.execute(
        """
        INSERT INTO likes (course_id, user_id, created_at, updated_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT (user_id, course_id) DO NOTHING
        """,
        (int(course_id), int(user_id), now, now),
    ).rowcount
    if inserted:
        repo.increment(conn, "courses", course_id, "likes_count")
    return LIKED


def liked_courses(conn: Any, user_id: int, spec: QuerySpec) -> Tuple[List[Dict[str, Any]], int]:
    """One page of the courses `user_id` has liked, newest course first."""
    total = repo.count(conn, "likes", "user_id = ?", (int(user_id),))
    cols = ", ".join(f"c.{c}" for c in COURSE_LIST_COLUMNS)
    rows = conn.execute(
        f"""
        SELECT {cols}
        FROM courses c
        JOIN likes l ON l.course_id = c.id
        WHERE l.user_id = ?
        ORDER BY c.id DESC
        LIMIT ? OFFSET ?
        """,
        (int(user_id), spec.limit, spec.offset),
    ).fetchall()
    return [dict(r) for r in rows], total
