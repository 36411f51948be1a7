"""Pagination / filtering query construction shared by every list endpoint.

`build_query()` turns raw query-string parameters into a `QuerySpec` the data
layer executes directly:

    spec = build_query(request.query_params, order=(("id", "DESC"),), filters=[...])
    where_sql, params = spec.where_sql()
    ... f"{repo.where_clause(where_sql)} {spec.order_sql()} LIMIT ? OFFSET ?", (*params, spec.limit, spec.offset)

Coercion rules for `currentPage` / `pageSize`:
- parsed as a number, absolute value taken, truncated to an integer;
- missing, zero, non-numeric or non-finite input falls back to the default
  (page 1, page size 10);
- values are capped so the resulting OFFSET and LIMIT fit a 64-bit INTEGER.

Filters are presence-triggered: a parameter that is absent or empty adds no
predicate at all. Filters supplied together are AND-composed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from course_platform.errors import BadRequestError


DEFAULT_PAGE_SIZE = 10

# Signed 64-bit range of an INTEGER column in both SQLite and Postgres.
SQL_INT_MIN = -(2**63)
SQL_INT_MAX = 2**63 - 1

_KINDS = ("eq", "contains", "bool")
_DIRECTIONS = ("ASC", "DESC")


def to_positive_int(raw: Any, default: int) -> int:
    if raw is None:
        return default
    try:
        n = float(str(raw).strip())
    except ValueError:
        return default
    if not math.isfinite(n):
        return default
    n = int(min(abs(n), SQL_INT_MAX))
    return n if n >= 1 else default


def sql_int(value: Any, name: str = "id") -> int:
    """`value` as an int the database can bind; out-of-range input is a bad request."""
    n = int(value)
    if not SQL_INT_MIN <= n <= SQL_INT_MAX:
        raise BadRequestError(f"Invalid value for {name}: {value}")
    return n


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class Filter:
    """A recognized query parameter and how it maps onto a column."""

    param: str
    column: str
    kind: str = "eq"  # eq | contains | bool
    cast: Optional[Callable[[str], Any]] = None

    def __post_init__(self) -> None:
        if self.kind not in _KINDS:
            raise ValueError(f"invalid_filter_kind: {self.kind}")

    def predicate(self, raw: str) -> "Predicate":
        if self.kind == "bool":
            return Predicate(self.column, "eq", 1 if raw == "true" else 0)
        if self.kind == "contains":
            return Predicate(self.column, "contains", raw)
        value: Any = raw
        if self.cast is not None:
            try:
                value = self.cast(raw)
            except (TypeError, ValueError):
                raise BadRequestError(f"Invalid value for {self.param}: {raw}")
            if isinstance(value, int):
                value = sql_int(value, self.param)
        return Predicate(self.column, "eq", value)


@dataclass(frozen=True)
class Predicate:
    column: str
    op: str  # eq | contains
    value: Any

    def sql(self) -> Tuple[str, List[Any]]:
        if self.op == "contains":
            return f"{self.column} LIKE ? ESCAPE '\\'", [f"%{escape_like(str(self.value))}%"]
        return f"{self.column} = ?", [self.value]


@dataclass(frozen=True)
class QuerySpec:
    current_page: int
    page_size: int
    offset: int
    order: Tuple[Tuple[str, str], ...] = ()
    where: Tuple[Predicate, ...] = field(default_factory=tuple)

    @property
    def limit(self) -> int:
        return self.page_size

    def where_sql(self) -> Tuple[str, List[Any]]:
        """Return (sql, params); sql is empty when there are no predicates."""
        if not self.where:
            return "", []
        parts: List[str] = []
        params: List[Any] = []
        for p in self.where:
            s, ps = p.sql()
            parts.append(s)
            params.extend(ps)
        return " AND ".join(parts), params

    def order_sql(self) -> str:
        if not self.order:
            return ""
        return "ORDER BY " + ", ".join(f"{col} {direction}" for col, direction in self.order)

    def pagination(self, total: int) -> Dict[str, int]:
        return {
            "total": int(total),
            "currentPage": self.current_page,
            "pageSize": self.page_size,
        }


def build_query(
    raw_params: Mapping[str, Any],
    *,
    order: Sequence[Tuple[str, str]],
    filters: Iterable[Filter] = (),
    base: Iterable[Predicate] = (),
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> QuerySpec:
    """Normalize raw pagination / filter parameters into a QuerySpec.

    `base` predicates are always applied (e.g. a required parent id); `filters`
    only when their parameter is present and non-empty.
    """
    current_page = to_positive_int(raw_params.get("currentPage"), 1)
    page_size = to_positive_int(raw_params.get("pageSize"), default_page_size)
    # Keep offset + limit bindable.
    current_page = min(current_page, SQL_INT_MAX // page_size)

    normalized_order: List[Tuple[str, str]] = []
    for col, direction in order:
        d = str(direction).upper()
        if d not in _DIRECTIONS:
            raise ValueError(f"invalid_order_direction: {direction}")
        normalized_order.append((col, d))

    where: List[Predicate] = list(base)
    for f in filters:
        raw = raw_params.get(f.param)
        if raw is None:
            continue
        raw = str(raw)
        if raw == "":
            continue
        where.append(f.predicate(raw))

    return QuerySpec(
        current_page=current_page,
        page_size=page_size,
        offset=(current_page - 1) * page_size,
        order=tuple(normalized_order),
        where=tuple(where),
    )
