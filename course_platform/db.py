from __future__ import annotations

import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Sequence
from urllib.parse import urlparse

from course_platform.schema import get_schema_sql
from course_platform.util.time import utcnow_iso


# Serializes schema DDL across API workers on Postgres.
_SCHEMA_LOCK_KEY = 2147483646

# Quoted SQL literals / identifiers; placeholders inside them are left alone.
_QUOTED = re.compile(r"('(?:[^']|'')*'|\"(?:[^\"]|\"\")*\")")


def _debug(msg: str) -> None:
    print(f"[db] {msg}")


def dialect_for(dsn: str) -> str:
    """Return 'postgres' for postgres:// or postgresql:// URLs, else 'sqlite'."""
    try:
        scheme = urlparse((dsn or "").strip()).scheme.lower()
    except ValueError:
        return "sqlite"
    return "postgres" if scheme in ("postgres", "postgresql") else "sqlite"


def _qmark_to_pct(sql: str) -> str:
    """Rewrite sqlite-style `?` placeholders to psycopg2's `%s`.

    Only bare `?` outside quoted literals is rewritten. Not a SQL parser; the
    statements in this package never nest quotes beyond what `_QUOTED` handles.
    """
    parts = _QUOTED.split(sql)
    # split() with one capture group alternates: code, quoted, code, quoted, ...
    return "".join(p if i % 2 else p.replace("?", "%s") for i, p in enumerate(parts))


class _PgCursor:
    def __init__(self, cur: Any):
        self._cur = cur

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> "_PgCursor":
        self._cur.execute(_qmark_to_pct(sql), tuple(params or ()))
        return self

    def fetchone(self) -> Any:
        return self._cur.fetchone()

    def fetchall(self) -> Any:
        return self._cur.fetchall()

    @property
    def rowcount(self) -> int:
        return int(self._cur.rowcount or 0)


class PostgresConnection:
    """psycopg2 connection exposing the subset of the sqlite3 API this package uses."""

    dialect = "postgres"

    def __init__(self, raw: Any):
        self._raw = raw

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> _PgCursor:
        return _PgCursor(self._raw.cursor()).execute(sql, params)

    def executescript(self, script: str) -> None:
        # Naive split is fine: the schema has no semicolons inside literals.
        for stmt in (s.strip() for s in script.split(";")):
            if stmt:
                self.execute(stmt)

    @property
    def IntegrityError(self) -> type:
        # sqlite3.Connection exposes the same DB-API attribute.
        return self._raw.IntegrityError

    def commit(self) -> None:
        self._raw.commit()

    def rollback(self) -> None:
        self._raw.rollback()

    def close(self) -> None:
        self._raw.close()


def _open_postgres(dsn: str) -> PostgresConnection:
    try:
        import psycopg2
        import psycopg2.extras
    except ImportError as e:
        raise RuntimeError(
            "Postgres selected but psycopg2 is not installed. "
            "Install the 'postgres' extra (psycopg2-binary) and try again."
        ) from e

    # RealDictCursor rows behave like sqlite3.Row for dict(row) / row["col"].
    return PostgresConnection(psycopg2.connect(dsn, cursor_factory=psycopg2.extras.RealDictCursor))


def _open_sqlite(dsn: str) -> sqlite3.Connection:
    path = dsn[len("sqlite:///") :] if dsn.lower().startswith("sqlite:///") else dsn
    Path(path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path, timeout=30, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")
    # Substring filters must match case the way Postgres LIKE does.
    conn.execute("PRAGMA case_sensitive_like=ON;")
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn


@contextmanager
def connect(db_dsn: str) -> Iterator[Any]:
    """One connection, one transaction.

    Commits when the block exits normally and rolls back when it raises, so
    everything a request handler writes lands all-or-nothing.
    """
    dsn = (db_dsn or "").strip()
    conn = _open_postgres(dsn) if dialect_for(dsn) == "postgres" else _open_sqlite(dsn)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_dsn: str) -> None:
    """Create all tables and bring older databases up to date."""
    dialect = dialect_for(db_dsn)
    _debug(f"Initializing DB ({dialect}) at {db_dsn}")
    with connect(db_dsn) as conn:
        ddl = get_schema_sql(dialect)
        if dialect == "postgres":
            conn.execute("SELECT pg_advisory_lock(?)", (_SCHEMA_LOCK_KEY,))
            try:
                conn.executescript(ddl)
            finally:
                conn.execute("SELECT pg_advisory_unlock(?)", (_SCHEMA_LOCK_KEY,))
        else:
            # SQLite DDL already takes an exclusive database lock.
            conn.executescript(ddl)

        _migrate(conn, dialect=dialect)


def _columns_of(conn: Any, table: str, *, dialect: str) -> set[str]:
    if dialect == "postgres":
        rows = conn.execute(
            "SELECT column_name AS name FROM information_schema.columns "
            "WHERE table_schema='public' AND table_name=?",
            (table,),
        ).fetchall()
    else:
        rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
    return {str(r["name"]) for r in rows}


# (table, column, DDL type) added after the first release
_ADDED_COLUMNS = (
    ("courses", "likes_count", "INTEGER NOT NULL DEFAULT 0"),
    ("courses", "chapters_count", "INTEGER NOT NULL DEFAULT 0"),
    ("users", "avatar", "TEXT"),
)


def _migrate(conn: Any, *, dialect: str) -> None:
    """Forward-only column additions for databases created by older releases."""
    existing: dict[str, set[str]] = {}
    for table, column, ddl_type in _ADDED_COLUMNS:
        if table not in existing:
            existing[table] = _columns_of(conn, table, dialect=dialect)
        if column not in existing[table]:
            _debug(f"Adding column {table}.{column}")
            conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {ddl_type}")


def seed_settings(conn: Any, *, name: str, copyright: str) -> bool:
    """Insert the single settings row if the table is empty.

    Returns True when a row was created.
    """
    if conn.execute("SELECT id FROM settings LIMIT 1").fetchone() is not None:
        return False
    now = utcnow_iso()
    conn.execute(
        "INSERT INTO settings (name, copyright, created_at, updated_at) VALUES (?, ?, ?, ?)",
        (name, copyright, now, now),
    )
    return True
