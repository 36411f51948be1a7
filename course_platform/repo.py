"""Thin data-access helpers shared by every resource.

All functions take an open connection from `course_platform.db.connect()` and
return plain dicts keyed by column name (snake_case). `to_api()` converts a row
to the camelCase shape exposed by the HTTP API.

Table and column names are never taken from user input: callers pass
identifiers declared in code, values always travel as bound parameters.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from course_platform.query import QuerySpec, sql_int
from course_platform.util.time import utcnow_iso


TABLES = ("users", "categories", "courses", "chapters", "articles", "settings", "likes")

# Stored as 0/1 integers, exposed as booleans.
_BOOL_COLUMNS = {"recommended", "introductory"}

# Never leaves the data layer.
_PRIVATE_COLUMNS = {"password_hash"}


def _table(name: str) -> str:
    if name not in TABLES:
        raise ValueError(f"unknown_table: {name}")
    return name


def _columns(columns: Sequence[str] | str) -> str:
    if isinstance(columns, str):
        return columns
    return ", ".join(columns)


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p[:1].upper() + p[1:] for p in rest)


def to_api(row: Mapping[str, Any] | None) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    out: Dict[str, Any] = {}
    for k, v in dict(row).items():
        if k in _PRIVATE_COLUMNS:
            continue
        if k in _BOOL_COLUMNS and v is not None:
            v = bool(v)
        out[to_camel(k)] = v
    return out


def to_api_list(rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    return [to_api(r) for r in rows]  # type: ignore[misc]


def where_clause(where_sql: str) -> str:
    return f"WHERE {where_sql}" if where_sql else ""


def _row(r: Any) -> Optional[Dict[str, Any]]:
    return dict(r) if r is not None else None


def find_by_pk(
    conn: Any,
    table: str,
    pk: int,
    *,
    columns: Sequence[str] | str = "*",
) -> Optional[Dict[str, Any]]:
    r = conn.execute(
        f"SELECT {_columns(columns)} FROM {_table(table)} WHERE id=?",
        (sql_int(pk),),
    ).fetchone()
    return _row(r)


def find_one(
    conn: Any,
    table: str,
    where_sql: str,
    params: Sequence[Any] = (),
    *,
    columns: Sequence[str] | str = "*",
    order_sql: str = "",
) -> Optional[Dict[str, Any]]:
    r = conn.execute(
        f"SELECT {_columns(columns)} FROM {_table(table)} {where_clause(where_sql)} {order_sql} LIMIT 1",
        tuple(params),
    ).fetchone()
    return _row(r)


def find_all(
    conn: Any,
    table: str,
    *,
    where_sql: str = "",
    params: Sequence[Any] = (),
    order_sql: str = "",
    limit: Optional[int] = None,
    columns: Sequence[str] | str = "*",
) -> List[Dict[str, Any]]:
    sql = f"SELECT {_columns(columns)} FROM {_table(table)} {where_clause(where_sql)} {order_sql}"
    bound: List[Any] = list(params)
    if limit is not None:
        sql += " LIMIT ?"
        bound.append(int(limit))
    return [dict(r) for r in conn.execute(sql, tuple(bound)).fetchall()]


def count(conn: Any, table: str, where_sql: str = "", params: Sequence[Any] = ()) -> int:
    r = conn.execute(
        f"SELECT COUNT(*) AS n FROM {_table(table)} {where_clause(where_sql)}",
        tuple(params),
    ).fetchone()
    return int(r["n"])


def find_and_count(
    conn: Any,
    table: str,
    spec: QuerySpec,
    *,
    columns: Sequence[str] | str = "*",
) -> Tuple[List[Dict[str, Any]], int]:
    """Execute a QuerySpec: one page of rows plus the total match count."""
    where_sql, params = spec.where_sql()
    total = count(conn, table, where_sql, params)
    rows = conn.execute(
        f"""
        SELECT {_columns(columns)}
        FROM {_table(table)}
        {where_clause(where_sql)}
        {spec.order_sql()}
        LIMIT ? OFFSET ?
        """,
        (*params, spec.limit, spec.offset),
    ).fetchall()
    return [dict(r) for r in rows], total


def insert(conn: Any, table: str, values: Mapping[str, Any]) -> Dict[str, Any]:
    now = utcnow_iso()
    fields: List[Tuple[str, Any]] = [(k, v) for k, v in values.items()]
    fields.append(("created_at", now))
    fields.append(("updated_at", now))

    cols = ", ".join(k for k, _ in fields)
    marks = ", ".join("?" for _ in fields)
    # Drain RETURNING fully so the statement is finished before commit.
    rows = conn.execute(
        f"INSERT INTO {_table(table)} ({cols}) VALUES ({marks}) RETURNING *",
        tuple(v for _, v in fields),
    ).fetchall()
    return dict(rows[0])


def update(conn: Any, table: str, pk: int, values: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Update only the provided (non-None) fields; returns the fresh row."""
    # Build dynamic SQL so we only touch provided fields.
    fields: List[Tuple[str, Any]] = [(k, v) for k, v in values.items() if v is not None]
    if fields:
        fields.append(("updated_at", utcnow_iso()))
        sets = ", ".join(f"{k}=?" for k, _ in fields)
        conn.execute(
            f"UPDATE {_table(table)} SET {sets} WHERE id=?",
            (*[v for _, v in fields], sql_int(pk)),
        )
    return find_by_pk(conn, table, pk)


def delete(conn: Any, table: str, pk: int) -> int:
    cur = conn.execute(f"DELETE FROM {_table(table)} WHERE id=?", (sql_int(pk),))
    return int(cur.rowcount or 0)


def increment(conn: Any, table: str, pk: int, column: str, by: int = 1) -> None:
    """Atomic counter update (`col = col + by`) evaluated by the database."""
    if not column.isidentifier():
        raise ValueError(f"invalid_column: {column}")
    conn.execute(
        f"UPDATE {_table(table)} SET {column} = {column} + ? WHERE id=?",
        (int(by), sql_int(pk)),
    )


def decrement(conn: Any, table: str, pk: int, column: str, by: int = 1) -> None:
    increment(conn, table, pk, column, -int(by))
