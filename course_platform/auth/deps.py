from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import APIKeyHeader

from course_platform.config import Config
from course_platform.db import connect
from course_platform.errors import MissingTokenError, UnauthorizedError

from .crud import get_user_by_id, is_admin
from .security import decode_access_token, subject_id


# The JWT travels in a header literally named "token".
_token_header = APIKeyHeader(name="token", auto_error=False, scheme_name="tokenHeader")


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


@dataclass(frozen=True)
class Principal:
    """Identity resolved for one request. Not persisted."""

    user_id: int
    user: Optional[Dict[str, Any]] = None


def get_config(request: Request) -> Config:
    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None:
        raise HTTPException(status_code=500, detail="server_config_missing")
    return cfg


def _reject(request: Request, exc: UnauthorizedError) -> UnauthorizedError:
    _debug(f"rejected method={request.method} path={request.url.path} reason={exc.reason}")
    return exc


def _verified_subject(request: Request, token: Optional[str], cfg: Config) -> int:
    if not token:
        raise _reject(request, MissingTokenError())
    try:
        claims = decode_access_token(token=token, secret=cfg.AUTH_JWT_SECRET)
        return subject_id(claims)
    except UnauthorizedError as e:
        raise _reject(request, e)


def require_user(
    request: Request,
    token: Optional[str] = Depends(_token_header),
    cfg: Config = Depends(get_config),
) -> Principal:
    """Verify the token and attach the subject id. Does not touch the database."""
    principal = Principal(user_id=_verified_subject(request, token, cfg))
    request.state.principal = principal
    return principal


def require_admin(
    request: Request,
    token: Optional[str] = Depends(_token_header),
    cfg: Config = Depends(get_config),
) -> Principal:
    """Verify the token, load the user and require the administrator role."""
    user_id = _verified_subject(request, token, cfg)

    with connect(cfg.DB_DSN) as conn:
        row = get_user_by_id(conn, user_id)

    if row is None:
        raise _reject(request, UnauthorizedError("User not exists", reason="user_not_found"))
    if not is_admin(row):
        raise _reject(request, UnauthorizedError("Not authorized as admin.", reason="not_admin"))

    principal = Principal(user_id=user_id, user=row)
    request.state.principal = principal
    return principal
