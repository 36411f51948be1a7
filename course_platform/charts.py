"""Aggregates behind the admin dashboard charts."""

from __future__ import annotations

from typing import Any, Dict, List

from course_platform.models import SEX_FEMALE, SEX_MALE, SEX_UNSPECIFIED


SEX_LABELS = {
    SEX_MALE: "Male",
    SEX_FEMALE: "Female",
    SEX_UNSPECIFIED: "Unspecified",
}


def monthly_registrations(conn: Any) -> Dict[str, List[Any]]:
    """Users created per "YYYY-MM" month, oldest month first."""
    rows = conn.execute(
        """
        SELECT substr(created_at, 1, 7) AS month, COUNT(*) AS value
        FROM users
        GROUP BY substr(created_at, 1, 7)
        ORDER BY month ASC
        """
    ).fetchall()
    return {
        "months": [str(r["month"]) for r in rows],
        "values": [int(r["value"]) for r in rows],
    }


def sex_distribution(conn: Any) -> List[Dict[str, Any]]:
    """User count for every sex value, zero counts included."""
    rows = conn.execute("SELECT sex, COUNT(*) AS value FROM users GROUP BY sex").fetchall()
    counts = {int(r["sex"]): int(r["value"]) for r in rows}
    return [{"value": counts.get(sex, 0), "name": label} for sex, label in SEX_LABELS.items()]
